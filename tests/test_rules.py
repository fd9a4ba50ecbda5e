import pytest
from datetime import datetime

from app.helpers import rules
from app.helpers.rules import JOB_SECTIONS, PREAMBLE, RESUME_SECTIONS


class TestSectionRules:
    """Test cases for section header detection"""

    def test_header_variants_map_to_one_section(self):
        """Test that spelling and case variants resolve to the same section"""
        for header in ("Experience", "EXPERIENCE", "Work History", "Professional Experience:", "## Employment"):
            assert rules.match_section_header(header, RESUME_SECTIONS) == ("experience", "")

    def test_header_with_inline_content(self):
        """Test that content after the colon stays with the section"""
        assert rules.match_section_header("Skills: Python, SQL", RESUME_SECTIONS) == ("skills", "Python, SQL")

    def test_sentence_is_not_a_header(self):
        """Test that a sentence starting with a header word is not a header"""
        assert rules.match_section_header("Experience with React and Redux", RESUME_SECTIONS) is None

    def test_split_sections_bounds_by_next_header(self):
        """Test that each section ends at the next recognized header"""
        text = "John Doe\nEXPERIENCE\nDid things\nSkills: Python, SQL\nWork History\nMore things"
        sections = rules.split_sections(text, RESUME_SECTIONS)

        assert sections[PREAMBLE] == "John Doe"
        assert sections["experience"] == "Did things\nMore things"
        assert sections["skills"] == "Python, SQL"

    def test_job_sections(self):
        """Test job headers including preferred and benefits blocks"""
        text = "Title\nRequirements:\n- Python\nNice to have\n- Go\nWhat we offer\n- Equity"
        sections = rules.split_sections(text, JOB_SECTIONS)

        assert sections["requirements"] == "- Python"
        assert sections["preferred"] == "- Go"
        assert sections["benefits"] == "- Equity"


class TestBullets:
    """Test cases for bullet splitting"""

    def test_split_on_glyphs(self):
        """Test splitting on •, *, - and – bullets"""
        text = "• Python • SQL\n- Docker\n* Git\n– Linux"
        assert rules.split_bullets(text) == ["Python", "SQL", "Docker", "Git", "Linux"]

    def test_hyphenated_words_are_kept(self):
        """Test that a hyphen inside a word is not a bullet"""
        assert rules.split_bullets("E-commerce platform") == ["E-commerce platform"]

    def test_empty_text(self):
        assert rules.split_bullets("") == []


class TestDegreeRules:
    """Test cases for the degree rank table"""

    @pytest.mark.parametrize("text,rank", [
        ("High School Diploma", 1),
        ("Associate of Arts", 2),
        ("Bachelor's", 3),
        ("B.S. Computer Science", 3),
        ("Master of Science", 4),
        ("MBA", 4),
        ("PhD in Physics", 5),
        ("Certificate of Attendance", 0),
        ("", 0),
    ])
    def test_degree_rank(self, text, rank):
        assert rules.degree_rank(text) == rank

    def test_highest_and_lowest_rank(self):
        """Test that candidates count their highest degree and requirements their lowest"""
        text = "Bachelor's or Master's degree"
        assert rules.degree_rank(text) == 4
        assert rules.required_degree_rank(text) == 3

    def test_lowercase_ms_is_not_a_degree(self):
        """Test that a latency figure is not read as a Master's"""
        assert rules.degree_rank("p99 latency under 200 ms") == 0

    def test_degree_label(self):
        assert rules.degree_label(3) == "Bachelor's degree"
        assert rules.degree_label(0) == ""


class TestDates:
    """Test cases for date parsing"""

    @pytest.mark.parametrize("value,expected", [
        ("Jan 2020", datetime(2020, 1, 1)),
        ("September 2019", datetime(2019, 9, 1)),
        ("Sept 2019", datetime(2019, 9, 1)),
        ("03/2021", datetime(2021, 3, 1)),
        ("2018", datetime(2018, 1, 1)),
        ("May, 2020", datetime(2020, 5, 1)),
        ("15 Jan 2018", datetime(2018, 1, 15)),
        ("January 5, 2021", datetime(2021, 1, 5)),
        ("Jan-2019", datetime(2019, 1, 1)),
        ("2019-07", datetime(2019, 7, 1)),
        ("2021-03-01T00:00:00Z", datetime(2021, 3, 1)),
    ])
    def test_parse_date(self, value, expected):
        assert rules.parse_date(value) == expected

    def test_present_resolves_to_now(self):
        """Test that ongoing markers resolve to the supplied clock"""
        now = datetime(2024, 6, 1)
        for value in ("Present", "current", "Ongoing"):
            assert rules.parse_date(value, now=now) == now

    def test_unparseable_date(self):
        assert rules.parse_date("sometime") is None
        assert rules.parse_date("May") is None
        assert rules.parse_date(None) is None

    def test_present_defaults_to_naive_utc(self):
        """Test that the default clock compares with parsed dates"""
        now = rules.parse_date("Present")
        assert now.tzinfo is None
        assert now > rules.parse_date("Jan 2020")

    def test_find_date_range(self):
        """Test range detection with month names, years and separators"""
        m = rules.find_date_range("Senior Engineer | Jan 2020 - Present")
        assert m.group("start") == "Jan 2020"
        assert m.group("end") == "Present"

        m = rules.find_date_range("2017 – 2019")
        assert (m.group("start"), m.group("end")) == ("2017", "2019")

        m = rules.find_date_range("May 2019 to June 2021")
        assert (m.group("start"), m.group("end")) == ("May 2019", "June 2021")

    def test_no_date_range(self):
        assert rules.find_date_range("Senior Engineer") is None


class TestSkillVocabulary:
    """Test cases for vocabulary skill detection"""

    def test_symbols_in_skill_names(self):
        """Test that C++, C# and .NET are matched as whole skills"""
        assert rules.find_vocabulary_skills("Experience with C++, C# and .NET") == ["C++", "C#", ".NET"]

    def test_java_is_not_javascript(self):
        """Test that Java only matches on its own"""
        assert rules.find_vocabulary_skills("JavaScript developer") == ["JavaScript"]
        assert rules.find_vocabulary_skills("JavaScript and Java") == ["JavaScript", "Java"]

    def test_sql_not_matched_inside_mysql(self):
        assert rules.find_vocabulary_skills("We use MySQL") == ["MySQL"]

    def test_aliases_map_to_canonical_names(self):
        """Test that alias spellings produce canonical names"""
        assert rules.find_vocabulary_skills("ReactJS, Postgres and K8s") == ["React", "PostgreSQL", "Kubernetes"]

    def test_order_of_appearance(self):
        assert rules.find_vocabulary_skills("Docker, then Python, then AWS") == ["Docker", "Python", "AWS"]

    def test_canonical_skill(self):
        assert rules.canonical_skill("nodejs") == "Node.js"
        assert rules.canonical_skill(".NET") == ".NET"
        assert rules.canonical_skill("Salesforce") == "Salesforce"
