import re
from typing import Dict, List, Optional

from app.helpers import rules
from app.helpers.rules import JOB_SECTIONS, PREAMBLE
from app.models.models import StructuredJob
from app.utils.logging_config import get_logger

logger = get_logger(__name__)

SKILL_ITEM_EXCLUDE_RE = re.compile(r"\d|\byears?\b|\bdegree\b|\bexperience\b|\b(?:and|or|with)\b", re.I)


def _label_values(text: str) -> Dict[str, str]:
    values = {}
    for rule in rules.JOB_LABEL_RULES:
        if rule.field in values:
            continue
        m = rule.pattern.search(text)
        if m:
            values[rule.field] = m.group("value").strip(" ,;|")
    return values


def _guess_title(text: str) -> Optional[str]:
    lines = [l for l in text.split("\n") if l.strip()]
    for i, line in enumerate(lines[:5]):
        line = rules.strip_bullet(line)
        if rules.match_section_header(line, JOB_SECTIONS) or ":" in line:
            continue
        if len(line.split()) <= 10 and not line.endswith("."):
            if i == 0 or rules.TITLE_RE.search(line):
                return line
    return None


def _guess_company(text: str) -> Optional[str]:
    for rule in rules.COMPANY_FALLBACK_RULES:
        m = rule.pattern.search(text)
        if m:
            return m.group("value").strip(" .,")
    return None


def _guess_location(text: str) -> Optional[str]:
    m = rules.LOCATION_RE.search(text)
    return m.group(0) if m else None


def employment_type_of(text: Optional[str]) -> Optional[str]:
    """Earliest employment type mentioned in the text."""
    best = None
    for label, pattern in rules.EMPLOYMENT_TYPES:
        m = pattern.search(text or "")
        if m and (best is None or m.start() < best[0]):
            best = (m.start(), label)
    return best[1] if best else None


def experience_requirement_of(text: Optional[str]) -> str:
    """'5+ years of experience with React' -> '5+ years'. Prefers lines that mention experience."""
    candidates = []
    for line in (text or "").split("\n"):
        m = rules.EXPERIENCE_YEARS_RE.search(line)
        if m:
            candidates.append((0 if "experience" in line.lower() else 1, m))
    if not candidates:
        return ""
    _, m = min(candidates, key=lambda c: c[0])
    return f"{int(m.group('years'))}+ years"


def education_requirement_of(text: Optional[str]) -> str:
    return rules.degree_label(rules.required_degree_rank(text))


def _section_skill_items(section: str) -> List[str]:
    """Short items listed under a skills header ("Skills: Salesforce, HubSpot")."""
    items = []
    for item in rules.split_bullets(section):
        for part in rules.split_list(item):
            part = part.strip(" .")
            if not part or len(part.split()) > 3 or SKILL_ITEM_EXCLUDE_RE.search(part):
                continue
            if rules.degree_rank(part) > 0:
                continue
            items.append(rules.canonical_skill(part))
    return items


def _required_skills(text: str, skills_section: str) -> List[str]:
    positioned = rules.vocabulary_skill_positions(text)
    lowered = text.lower()
    for item in _section_skill_items(skills_section):
        pos = lowered.find(item.lower())
        positioned.append((pos if pos >= 0 else len(text), item))

    seen = set()
    out = []
    for _, name in sorted(positioned, key=lambda p: p[0]):
        if name.lower() not in seen:
            seen.add(name.lower())
            out.append(name)
    return out


def _keyword_score(text: str) -> int:
    return sum(1 for pattern in rules.POSITIVE_KEYWORD_PATTERNS if pattern.search(text))


def extract_job_fields(text: str) -> StructuredJob:
    """Rule-based extraction of a structured job from a job description.

    Never raises on malformed input; fields that cannot be found stay empty.
    """
    text = rules.normalize_text(text or "")
    sections = rules.split_sections(text, JOB_SECTIONS)
    labels = _label_values(text)

    preferred = sections.get("preferred", "")
    # everything except the preferred block counts towards requirements
    required_text = "\n".join(v for k, v in sections.items() if k != "preferred")
    skills_section = sections.get("skills", "")
    requirements = "\n".join(s for s in (sections.get("requirements", ""), skills_section) if s)

    required_skills = _required_skills(required_text, skills_section)
    required_lower = {s.lower() for s in required_skills}
    preferred_skills = [s for s in rules.find_vocabulary_skills(preferred) if s.lower() not in required_lower]

    salary = labels.get("salary")
    if not salary:
        m = rules.SALARY_RE.search(text)
        salary = m.group(0) if m else None

    job = StructuredJob(
        job_title=labels.get("job_title") or _guess_title(sections.get(PREAMBLE) or text),
        company=labels.get("company") or _guess_company(text),
        location=labels.get("location") or _guess_location(text),
        employment_type=employment_type_of(labels.get("employment_type")) or employment_type_of(text),
        required_skills=required_skills,
        preferred_skills=preferred_skills,
        required_experience=(experience_requirement_of(labels.get("required_experience"))
                             or experience_requirement_of(requirements or required_text)),
        required_education=(education_requirement_of(labels.get("required_education"))
                            or education_requirement_of(requirements or required_text)),
        responsibilities=rules.split_bullets(sections.get("responsibilities", "")),
        benefits=rules.split_bullets(sections.get("benefits", "")),
        salary=salary,
        application_deadline=labels.get("application_deadline"),
        keyword_score=_keyword_score(text),
    )
    logger.debug(f"Extracted job fields: title={job.job_title!r}, {len(job.required_skills)} required skills")
    return job


def identify_key_requirements(job: StructuredJob) -> List[str]:
    """Top three required skills plus the experience and education requirements."""
    out = [f"Skill: {s}" for s in job.required_skills[:3]]
    if job.required_experience:
        out.append(f"Experience: {job.required_experience}")
    if job.required_education:
        out.append(f"Education: {job.required_education}")
    return out


def apply_declared_requirements(
    job: StructuredJob,
    job_title: str = None,
    company: str = None,
    location: str = None,
    employment_type: str = None,
    skills: List[str] = None,
    experience: str = None,
    education: str = None,
) -> StructuredJob:
    """Overlay the fields an employer declared on a posting onto the parsed job.

    Declared skills come first, followed by any extra skills found in the text.
    Declared experience/education replace the parsed ones when they can be read.
    """
    updates = {}
    if job_title:
        updates["job_title"] = job_title.strip()
    if company:
        updates["company"] = company.strip()
    if location:
        updates["location"] = location.strip()
    if employment_type:
        updates["employment_type"] = employment_type_of(employment_type) or employment_type.strip()

    if skills:
        merged, seen = [], set()
        for name in [rules.canonical_skill(s) for s in skills if s and s.strip()] + job.required_skills:
            if name.lower() not in seen:
                seen.add(name.lower())
                merged.append(name)
        updates["required_skills"] = merged
        updates["preferred_skills"] = [s for s in job.preferred_skills if s.lower() not in seen]

    if experience:
        updates["required_experience"] = experience_requirement_of(experience) or experience.strip()
    if education:
        updates["required_education"] = education_requirement_of(education) or education.strip()
    return job.model_copy(update=updates)


def build_job_text(
    title: str,
    description: str = "",
    requirements: str = "",
    responsibilities: str = "",
) -> str:
    """Canonical text of a job posting; this is what gets parsed and embedded."""
    return (
        f"{title or ''}\n\n{description or ''}\n\n"
        f"Requirements:\n{requirements or ''}\n\n"
        f"Responsibilities:\n{responsibilities or ''}"
    )
