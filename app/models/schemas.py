from pydantic import Field
from typing import List, Literal, Optional
from datetime import datetime, timezone

from app.models.models import CamelModel, MatchResult, StructuredJob, StructuredResume

JobType = Literal["full-time", "part-time", "contract", "internship", "remote"]


# -------- Resumes --------
class ResumeRecord(CamelModel):
    resume_id: str
    user_id: str
    file_name: str
    file_type: str   # pdf, docx, doc, txt
    file_size: int
    is_active: bool = True
    parsed_data: StructuredResume = Field(default_factory=StructuredResume)
    vector_embedding: List[float] = []
    missing_info: List[str] = []
    source_text: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ResumeSummary(CamelModel):
    resume_id: str
    user_id: str
    file_name: str
    file_type: str
    file_size: int
    is_active: bool = True
    parsed_data: StructuredResume = Field(default_factory=StructuredResume)
    missing_info: List[str] = []
    last_updated: Optional[datetime] = None


class ResumeUploadResponse(CamelModel):
    message: str
    resume: ResumeSummary


# -------- Jobs --------
class JobParsedData(StructuredJob):
    embedding: List[float] = []
    missing_info: List[str] = []


class JobCreate(CamelModel):
    title: str
    company: str
    location: str
    type: JobType
    description: str
    requirements: str
    responsibilities: str
    min_salary: Optional[int] = None
    max_salary: Optional[int] = None
    experience: str = ""
    education: str = ""
    skills: List[str] = []
    application_deadline: Optional[datetime] = None
    admin_id: Optional[str] = None


class JobUpdate(CamelModel):
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    type: Optional[JobType] = None
    description: Optional[str] = None
    requirements: Optional[str] = None
    responsibilities: Optional[str] = None
    min_salary: Optional[int] = None
    max_salary: Optional[int] = None
    experience: Optional[str] = None
    education: Optional[str] = None
    skills: Optional[List[str]] = None
    application_deadline: Optional[datetime] = None
    is_active: Optional[bool] = None


class JobRecord(JobCreate):
    job_id: str
    parsed_data: JobParsedData = Field(default_factory=JobParsedData)
    source_text: str = ""
    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class JobResponse(CamelModel):
    job_id: str
    title: str
    company: str
    location: str
    type: str
    is_active: bool = True
    parsed_data: StructuredJob
    missing_info: List[str] = []
    key_requirements: List[str] = []


# -------- Matches --------
class ResumeHighlights(CamelModel):
    skills: List[str] = []
    experience: List[dict] = []


class CandidateMatch(CamelModel):
    user_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    resume_id: str
    match_score: int
    match_details: MatchResult
    resume_highlights: ResumeHighlights = Field(default_factory=ResumeHighlights)


class JobSummary(CamelModel):
    id: str
    title: str


class CandidateMatchesResponse(CamelModel):
    message: str
    job: Optional[JobSummary] = None
    matches: List[CandidateMatch] = []


class JobMatch(CamelModel):
    job_id: str
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    match_score: int
    match_details: MatchResult


class JobMatchesResponse(CamelModel):
    message: str
    matches: List[JobMatch] = []
