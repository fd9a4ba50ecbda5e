"""
Completeness audit for parsed resumes and jobs.

Returns human-readable notes in a fixed order; recommended fields are
flagged with "(recommended)".
"""
from typing import List

from app.models.models import StructuredJob, StructuredResume


def audit_resume(resume: StructuredResume) -> List[str]:
    missing = []
    info = resume.personal_info

    if not info.name:
        missing.append("Name is missing")
    if not info.email:
        missing.append("Email is missing")
    if not info.phone:
        missing.append("Phone number is missing")

    if not resume.education:
        missing.append("Education information is missing")
    elif not any(e.institution and e.degree for e in resume.education):
        missing.append("Education entries are incomplete (institution and degree required)")

    if not resume.experience:
        missing.append("Work experience is missing")
    elif not any(e.company and e.position and e.description for e in resume.experience):
        missing.append("Work experience entries are incomplete (company, position and description required)")

    if not resume.skills:
        missing.append("Skills information is missing")

    if not info.linkedin:
        missing.append("LinkedIn profile is missing (recommended)")
    return missing


def audit_job(job: StructuredJob) -> List[str]:
    missing = []
    if not job.job_title:
        missing.append("Job title is missing")
    if not job.company:
        missing.append("Company name is missing")
    if not job.location:
        missing.append("Location is missing")
    if not job.employment_type:
        missing.append("Employment type is missing")
    if not job.required_skills:
        missing.append("Required skills are missing")
    if not job.required_experience:
        missing.append("Required experience is missing")
    if not job.required_education:
        missing.append("Required education is missing")
    if not job.responsibilities:
        missing.append("Responsibilities are missing")
    if not job.benefits:
        missing.append("Benefits information is missing (recommended)")
    if not job.salary:
        missing.append("Salary information is missing (recommended)")
    return missing
