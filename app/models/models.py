from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # stored documents use camelCase keys (personalInfo, startDate, ...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


# -------- Resumes --------
class PersonalInfo(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    linkedin: Optional[str] = None
    website: Optional[str] = None


class Education(CamelModel):
    institution: Optional[str] = None
    degree: Optional[str] = None
    field: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    gpa: Optional[str] = None


class Experience(CamelModel):
    company: Optional[str] = None
    position: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description: Optional[str] = None


class Skill(CamelModel):
    name: str
    level: str = "unspecified"  # beginner, intermediate, expert, unspecified


class Certification(CamelModel):
    name: str
    issuer: Optional[str] = None
    date: Optional[str] = None


class Language(CamelModel):
    name: str
    proficiency: Optional[str] = None


class Project(CamelModel):
    name: str
    description: Optional[str] = None
    technologies: List[str] = Field(default_factory=list)
    url: Optional[str] = None


class StructuredResume(CamelModel):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    education: List[Education] = Field(default_factory=list)
    experience: List[Experience] = Field(default_factory=list)
    skills: List[Skill] = Field(default_factory=list)
    certifications: List[Certification] = Field(default_factory=list)
    languages: List[Language] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)


# -------- Jobs --------
class StructuredJob(CamelModel):
    job_title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None
    required_skills: List[str] = Field(default_factory=list)
    preferred_skills: List[str] = Field(default_factory=list)
    required_experience: str = ""
    required_education: str = ""
    responsibilities: List[str] = Field(default_factory=list)
    benefits: List[str] = Field(default_factory=list)
    salary: Optional[str] = None
    application_deadline: Optional[str] = None
    keyword_score: int = 0


# -------- Embedded entities --------
class EmbeddedResume(CamelModel):
    id: str
    resume: StructuredResume = Field(default_factory=StructuredResume)
    embedding: List[float] = Field(default_factory=list)
    source_text: str = ""


class EmbeddedJob(CamelModel):
    id: str
    job: StructuredJob = Field(default_factory=StructuredJob)
    embedding: List[float] = Field(default_factory=list)
    source_text: str = ""


# -------- Match results --------
class SkillMatch(CamelModel):
    score: int
    matched_skills: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)


class ScoreDetail(CamelModel):
    score: int
    details: str = ""


class MatchResult(CamelModel):
    overall_score: int
    semantic_similarity: int
    skill_match: SkillMatch
    experience_match: ScoreDetail
    education_match: ScoreDetail


class RankedMatch(CamelModel):
    id: str
    match_score: int
    match_details: MatchResult
