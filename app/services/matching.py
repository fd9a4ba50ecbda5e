import math
from datetime import datetime
from typing import List, NamedTuple, Optional, Sequence

import numpy as np

from app.helpers import rules
from app.models.models import (
    Education, Experience, MatchResult, ScoreDetail, SkillMatch, StructuredJob, StructuredResume,
)
from app.models.settings import MatchingWeights


class SkillMatchOutcome(NamedTuple):
    score: float
    matched_skills: List[str]
    missing_skills: List[str]


class ScoreOutcome(NamedTuple):
    score: float
    details: str


def round_half(x: float) -> float:
    """Round to the nearest 0.5, halves away from zero for positive values."""
    return math.floor(x * 2 + 0.5) / 2


def to_percent(fraction: float) -> int:
    return int(math.floor(fraction * 100 + 0.5))


def cosine_similarity(a, b) -> float:
    """Cosine similarity clamped to [0, 1]; 0.0 for empty, zero or mismatched vectors."""
    try:
        va = np.asarray(a if a is not None else [], dtype=np.float64).ravel()
        vb = np.asarray(b if b is not None else [], dtype=np.float64).ravel()
    except (TypeError, ValueError):
        return 0.0
    if va.size == 0 or va.shape != vb.shape:
        return 0.0
    den = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if den == 0.0 or not math.isfinite(den):
        return 0.0
    return max(0.0, min(1.0, float(np.dot(va, vb)) / den))


def _skill_name(skill) -> str:
    if isinstance(skill, str):
        return skill
    if isinstance(skill, dict):
        return skill.get("name") or ""
    return getattr(skill, "name", "") or ""


def _skills_match(candidate: str, required: str) -> bool:
    return candidate == required or required in candidate or candidate in required


def calculate_skill_match(resume_skills: Sequence, job_skills: Sequence[str]) -> SkillMatchOutcome:
    """Case-insensitive match by equality or containment in either direction.

    matched_skills and missing_skills keep the job's spelling and order.
    """
    job_skills = [s for s in (job_skills or []) if s and s.strip()]
    candidate = [_skill_name(s).strip().lower() for s in (resume_skills or [])]
    candidate = [s for s in candidate if s]
    if not candidate or not job_skills:
        return SkillMatchOutcome(0.0, [], list(job_skills))

    matched, missing = [], []
    for required in job_skills:
        needle = required.strip().lower()
        if any(_skills_match(c, needle) for c in candidate):
            matched.append(required)
        else:
            missing.append(required)
    return SkillMatchOutcome(len(matched) / len(job_skills), matched, missing)


def parse_required_years(required_experience: Optional[str]) -> int:
    m = rules.REQUIRED_YEARS_RE.search(required_experience or "")
    return int(m.group(1)) if m else 0


def total_experience_years(experience: Sequence[Experience], now: datetime = None) -> float:
    """Sum of entry durations in years, rounded to the nearest 0.5.

    Entries without a readable start or end date are skipped.
    """
    now = now or rules.utc_now()
    total = 0.0
    for entry in experience or []:
        start = rules.parse_date(entry.start_date, now=now)
        end = rules.parse_date(entry.end_date, now=now)
        if start is None or end is None or end < start:
            continue
        total += (end - start).days / 365
    return round_half(total)


def experience_score(total_years: float, required_years: int) -> float:
    if total_years >= required_years:
        return 1.0
    if total_years >= required_years * 0.8:
        return 0.8
    if total_years >= required_years * 0.6:
        return 0.6
    if total_years >= required_years * 0.4:
        return 0.4
    return 0.2


def _years(x: float) -> str:
    return f"{x:g}"


def calculate_experience_match(
    experience: Sequence[Experience], required_experience: Optional[str], now: datetime = None
) -> ScoreOutcome:
    required = parse_required_years(required_experience)
    if not required:
        return ScoreOutcome(0.5, "Could not determine required years of experience")

    total = total_experience_years(experience, now=now)
    score = experience_score(total, required)
    if score == 1.0:
        details = f"Candidate has {_years(total)} years of experience, meeting the requirement of {required} years"
    elif score >= 0.6:
        details = f"Candidate has {_years(total)} years of experience, close to the requirement of {required} years"
    else:
        details = f"Candidate has {_years(total)} years of experience, below the requirement of {required} years"
    return ScoreOutcome(score, details)


def calculate_education_match(education: Sequence[Education], required_education: Optional[str]) -> ScoreOutcome:
    required = rules.required_degree_rank(required_education)
    if not required:
        return ScoreOutcome(0.5, "Could not determine required education level")

    candidate = max((rules.degree_rank(e.degree) for e in education or []), default=0)
    required_label = rules.degree_label(required)
    if candidate >= required:
        return ScoreOutcome(1.0, f"Candidate meets the education requirement ({required_label})")
    if candidate == required - 1:
        return ScoreOutcome(0.7, f"Candidate's education is one level below the requirement ({required_label})")
    return ScoreOutcome(0.3, f"Candidate's education is below the requirement ({required_label})")


def score(
    resume: StructuredResume,
    job: StructuredJob,
    resume_embedding: Sequence[float],
    job_embedding: Sequence[float],
    weights: MatchingWeights = None,
    now: datetime = None,
) -> MatchResult:
    """Composite match of one resume against one job.

    Sub-scores are reported as integers 0-100; the overall score is the
    weighted sum of the fractional sub-scores.
    """
    weights = weights or MatchingWeights()
    semantic = cosine_similarity(resume_embedding, job_embedding)
    skills = calculate_skill_match(resume.skills, job.required_skills)
    experience = calculate_experience_match(resume.experience, job.required_experience, now=now)
    education = calculate_education_match(resume.education, job.required_education)

    overall = (
        weights.semantic_similarity * semantic
        + weights.skill_match * skills.score
        + weights.experience_match * experience.score
        + weights.education_match * education.score
    )
    return MatchResult(
        overall_score=to_percent(overall),
        semantic_similarity=to_percent(semantic),
        skill_match=SkillMatch(
            score=to_percent(skills.score),
            matched_skills=skills.matched_skills,
            missing_skills=skills.missing_skills,
        ),
        experience_match=ScoreDetail(score=to_percent(experience.score), details=experience.details),
        education_match=ScoreDetail(score=to_percent(education.score), details=education.details),
    )
