from app.models.models import StructuredResume
from app.services.resume_parser import extract_resume_fields


class TestResumeParser:
    """Test cases for rule-based resume extraction"""

    def test_personal_info(self, sample_resume_text):
        """Test name, contact and link extraction from the header block"""
        info = extract_resume_fields(sample_resume_text).personal_info

        assert info.name == "John Doe"
        assert info.email == "john.doe@example.com"
        assert info.phone == "(555) 123-4567"
        assert info.linkedin == "https://linkedin.com/in/johndoe"
        assert info.website == "https://johndoe.dev"

    def test_experience_entries(self, sample_resume_text):
        """Test grouping of header lines, dates and bullets into entries"""
        experience = extract_resume_fields(sample_resume_text).experience

        assert len(experience) == 2
        first, second = experience
        assert first.position == "Senior Software Engineer"
        assert first.company == "Tech Solutions Inc."
        assert first.location == "San Francisco, CA"
        assert (first.start_date, first.end_date) == ("Jan 2020", "Present")
        assert "microservices" in first.description
        assert "Mentored junior developers" in first.description

        assert second.position == "Software Developer"
        assert second.company == "Dev Startup"
        assert (second.start_date, second.end_date) == ("2017", "2019")

    def test_education_entries(self, sample_resume_text):
        """Test institution, degree, field, dates and GPA"""
        education = extract_resume_fields(sample_resume_text).education

        assert len(education) == 1
        entry = education[0]
        assert entry.institution == "University of Technology"
        assert entry.degree == "Bachelor of Science"
        assert entry.field == "Computer Science"
        assert (entry.start_date, entry.end_date) == ("2013", "2017")
        assert entry.gpa == "3.8"

    def test_skills_with_levels(self, sample_resume_text):
        """Test skills-section items with levels plus vocabulary hits elsewhere"""
        skills = {s.name: s.level for s in extract_resume_fields(sample_resume_text).skills}

        assert skills["JavaScript"] == "expert"
        assert skills["Python"] == "intermediate"
        assert skills["React"] == "unspecified"
        assert skills["Node.js"] == "unspecified"
        # mentioned only in experience bullets
        assert "Docker" in skills
        assert "MongoDB" in skills

    def test_skills_are_deduplicated(self, sample_resume_text):
        names = [s.name.lower() for s in extract_resume_fields(sample_resume_text).skills]
        assert len(names) == len(set(names))

    def test_certifications_languages_projects(self, sample_resume_text):
        """Test the smaller resume sections"""
        resume = extract_resume_fields(sample_resume_text)

        assert resume.certifications[0].name == "AWS Certified Developer"
        assert resume.certifications[0].issuer == "Amazon Web Services"
        assert resume.certifications[0].date == "2021"

        assert [(l.name, l.proficiency) for l in resume.languages] == [
            ("English", "Native"), ("Spanish", "Intermediate")
        ]

        project = resume.projects[0]
        assert project.name == "E-commerce Platform"
        assert project.url == "https://github.com/johndoe/shop"
        assert "React" in project.technologies
        assert "Node.js" in project.technologies

    def test_empty_text_yields_empty_resume(self):
        """Test that missing input degrades to defaults rather than failing"""
        resume = extract_resume_fields("")
        assert resume == StructuredResume()
        assert resume.skills == []
        assert resume.personal_info.email is None

    def test_free_text_without_sections(self):
        """Test that unstructured text still yields contact details and skills"""
        resume = extract_resume_fields("Contact me at jane@example.org. I write Python and Go services on AWS.")

        assert resume.personal_info.email == "jane@example.org"
        assert [s.name for s in resume.skills] == ["Python", "AWS"]
        assert resume.education == []
        assert resume.experience == []

    def test_skills_section_with_labels(self):
        """Test category labels and level labels inside a skills section"""
        text = "Skills\nFrameworks: Django, Flask\nAdvanced: SQL; Bash\n• Salesforce"
        skills = {s.name: s.level for s in extract_resume_fields(text).skills}

        assert skills == {
            "Django": "unspecified",
            "Flask": "unspecified",
            "SQL": "expert",
            "Bash": "expert",
            "Salesforce": "unspecified",
        }

    def test_to_document_uses_camel_case(self, sample_resume_text):
        """Test that stored documents use camelCase keys"""
        doc = extract_resume_fields(sample_resume_text).to_document()
        assert "personalInfo" in doc
        assert "startDate" in doc["experience"][0]
