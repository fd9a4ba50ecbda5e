import re
from typing import Dict, List, Optional, Tuple

from app.helpers import rules
from app.helpers.rules import PREAMBLE, RESUME_SECTIONS
from app.models.models import (
    Certification, Education, Experience, Language, PersonalInfo, Project, Skill, StructuredResume,
)
from app.utils.logging_config import get_logger

logger = get_logger(__name__)

# separators between title, company and location on an experience header line
HEADER_PARTS_RE = re.compile(r"\s*[|,]\s*|\s+[-–—]\s+")
# "Portfolio Site - Personal website built with Next.js"
PROJECT_NAME_SPLIT_RE = re.compile(r"\s+[-–—]\s+|:\s+")


def _first_rule_value(rules_list, field: str, text: str) -> Optional[str]:
    for rule in rules_list:
        if rule.field != field:
            continue
        m = rule.pattern.search(text)
        if m:
            value = m.groupdict().get("value") or m.group(0)
            return value.strip(" ,;|")
    return None


def _guess_name(header: str) -> Optional[str]:
    for line in header.split("\n")[:6]:
        line = line.strip()
        if not line or rules.NAME_EXCLUDE_RE.match(line):
            continue
        if "@" in line or any(ch.isdigit() for ch in line) or "/" in line:
            continue
        if rules.NAME_LINE_RE.match(line) and not rules.TITLE_RE.search(line):
            return line
    return None


def _extract_personal_info(text: str, header: str) -> PersonalInfo:
    # contact details sit at the top; fall back to the first lines of the document
    top = header or "\n".join(text.split("\n")[:8])
    info = {
        "name": _first_rule_value(rules.PERSONAL_INFO_RULES, "name", top) or _guess_name(top),
        "email": _first_rule_value(rules.PERSONAL_INFO_RULES, "email", text),
        "phone": (_first_rule_value(rules.PERSONAL_INFO_RULES, "phone", top)
                  or _first_rule_value(rules.PERSONAL_INFO_RULES, "phone", text)),
        "address": _first_rule_value(rules.PERSONAL_INFO_RULES, "address", top),
    }

    linkedin = _first_rule_value(rules.PERSONAL_INFO_RULES, "linkedin", text)
    if linkedin and not linkedin.lower().startswith("http"):
        linkedin = "https://" + linkedin
    info["linkedin"] = linkedin

    # websites: strip emails and linkedin first so neither is picked up as a site
    scrubbed = rules.LINKEDIN_RE.sub(" ", rules.EMAIL_RE.sub(" ", top))
    site = rules.URL_RE.search(scrubbed) or rules.BARE_SITE_RE.search(scrubbed)
    info["website"] = site.group(0).rstrip(".") if site else None
    return PersonalInfo(**info)


# -------- Education --------
def _split_degree(part: str) -> Tuple[str, Optional[str]]:
    """'Bachelor of Science in Computer Science' -> ('Bachelor of Science', 'Computer Science')"""
    if " in " in part:
        degree, _, field = part.partition(" in ")
        return degree.strip(), field.strip() or None
    m = re.match(r"^(?P<abbr>(?:[A-Z]\.?){1,2}(?:[A-Za-z]{1,3}\.?)?|MBA|PhD)\s+(?P<field>[A-Z].+)$", part)
    if m:
        return m.group("abbr"), m.group("field")
    return part.strip(), None


def _education_line_kind(line: str) -> Tuple[bool, bool]:
    is_degree = rules.degree_rank(line) > 0 or bool(rules.DEGREE_HINT_RE.search(line))
    is_inst = bool(rules.INSTITUTION_RE.search(line))
    return is_degree, is_inst


def _extract_education(section: str) -> List[Education]:
    entries: List[Dict] = []
    current: Optional[Dict] = None

    for line in rules.split_bullets(section):
        is_degree, is_inst = _education_line_kind(line)
        starts_new = (
            current is None
            or (is_degree and current["degree"])
            or (is_inst and not is_degree and current["institution"])
        )
        if starts_new and (is_degree or is_inst or current is None):
            current = {"institution": None, "degree": None, "field": None,
                       "start_date": None, "end_date": None, "gpa": None}
            entries.append(current)

        rest = line
        date_range = rules.find_date_range(rest)
        if date_range:
            current["start_date"] = current["start_date"] or rules.canonical_date(date_range.group("start"))
            current["end_date"] = current["end_date"] or rules.canonical_date(date_range.group("end"))
            rest = rest[:date_range.start()] + rest[date_range.end():]
        else:
            single = rules.SINGLE_DATE_RE.search(rest)
            if single and not current["end_date"]:
                current["end_date"] = single.group("date")
                rest = rest[:single.start()] + rest[single.end():]

        gpa = rules.GPA_RE.search(rest)
        if gpa:
            current["gpa"] = gpa.group("gpa")
            rest = rest[:gpa.start()] + rest[gpa.end():]

        for part in HEADER_PARTS_RE.split(rest):
            part = part.strip(" ()")
            if not part:
                continue
            if not current["degree"] and (rules.degree_rank(part) > 0 or rules.DEGREE_HINT_RE.search(part)):
                current["degree"], current["field"] = _split_degree(part)
            elif not current["institution"] and rules.INSTITUTION_RE.search(part):
                current["institution"] = part

    return [Education(**e) for e in entries if e["institution"] or e["degree"]]


# -------- Experience --------
def _parse_experience_header(lines: List[str]) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    position = company = location = None
    leftovers = []
    for line in lines:
        loc = rules.LOCATION_RE.search(line)
        if loc and location is None:
            location = loc.group(0)
            line = (line[:loc.start()] + line[loc.end():]).strip(" ,|-–—")
            if not line:
                continue
        at = rules.AT_SPLIT_RE.match(line)
        if at and position is None:
            position = at.group("left").strip()
            company = company or at.group("right").strip(" ,|")
            continue
        for part in HEADER_PARTS_RE.split(line):
            part = part.strip(" ()")
            if not part:
                continue
            if position is None and rules.TITLE_RE.search(part) and not rules.COMPANY_HINT_RE.search(part):
                position = part
            elif company is None and rules.COMPANY_HINT_RE.search(part):
                company = part
            else:
                leftovers.append(part)

    for part in leftovers:
        if position is None:
            position = part
        elif company is None:
            company = part
    return position, company, location


def _new_block() -> Dict:
    return {"header": [], "dates": None, "bullets": []}


def _is_prose(line: str) -> bool:
    return len(line.split()) > 10 or line.endswith(".")


def _group_experience_blocks(section: str) -> List[Dict]:
    """Group lines into entries: header lines, one date range, then description bullets."""
    blocks: List[Dict] = []
    current: Optional[Dict] = None
    for raw in section.split("\n"):
        raw = raw.strip()
        if not raw:
            continue
        if rules.is_bullet(raw):
            if current is None:
                current = _new_block()
                blocks.append(current)
            current["bullets"].append(rules.strip_bullet(raw))
            continue

        date_range = rules.find_date_range(raw)
        if current is not None and not date_range and _is_prose(raw):
            current["bullets"].append(raw)
            continue

        starts_new = (
            current is None
            or current["bullets"]
            or (date_range and current["dates"])
            or (current["dates"] and len(current["header"]) >= 2)
        )
        if starts_new:
            current = _new_block()
            blocks.append(current)

        if date_range:
            current["dates"] = (date_range.group("start"), date_range.group("end"))
            raw = (raw[:date_range.start()] + raw[date_range.end():]).strip(" ,|-–—()")
        if raw:
            current["header"].append(raw)
    return blocks


def _extract_experience(section: str) -> List[Experience]:
    entries = []
    for block in _group_experience_blocks(section):
        position, company, location = _parse_experience_header(block["header"])
        start, end = block["dates"] or (None, None)
        description = " ".join(b.rstrip() for b in block["bullets"]) or None
        if not (position or company):
            continue
        entries.append(Experience(
            company=company,
            position=position,
            location=location,
            start_date=rules.canonical_date(start) if start else None,
            end_date=rules.canonical_date(end) if end else None,
            description=description,
        ))
    return entries


# -------- Skills --------
def _skill_items(section: str) -> List[Tuple[str, str]]:
    """(name, level) pairs declared in a skills section."""
    items = []
    for line in rules.split_bullets(section):
        level = "unspecified"
        label, sep, rest = line.partition(":")
        if sep and len(label.split()) <= 4:
            label_level = rules.SKILL_LEVELS.get(label.strip().lower())
            if label_level:
                level = label_level
            line = rest
        for item in rules.split_list(line):
            item_level = level
            m = re.match(r"^(?P<name>.+?)\s*(?:\((?P<paren>[^)]*)\)|[-–:]\s*(?P<suffix>\w+))$", item)
            if m:
                hint = m.group("paren") or m.group("suffix") or ""
                found = rules.SKILL_LEVEL_RE.search(hint)
                if found:
                    item, item_level = m.group("name"), rules.SKILL_LEVELS[found.group(1).lower()]
            item = item.strip(" .")
            if item and len(item) <= 40 and len(item.split()) <= 5:
                items.append((item, item_level))
    return items


def _extract_skills(text: str, section: str) -> List[Skill]:
    found: Dict[str, Skill] = {}
    for name, level in _skill_items(section):
        name = rules.canonical_skill(name)
        if name.lower() not in found:
            found[name.lower()] = Skill(name=name, level=level)
    for name in rules.find_vocabulary_skills(text):
        if name.lower() not in found:
            found[name.lower()] = Skill(name=name)
    return list(found.values())


# -------- Certifications / languages / projects --------
def _extract_certifications(section: str) -> List[Certification]:
    out: List[Certification] = []
    seen = set()
    for item in rules.split_bullets(section):
        date = None
        single = rules.SINGLE_DATE_RE.search(item)
        if single:
            date = single.group("date")
            item = (item[:single.start()] + item[single.end():]).strip(" ,|-–—()")
        parts = [p.strip(" ()") for p in re.split(r"\s+[-–—|]\s+|\s*,\s*|\s+by\s+", item) if p.strip(" ()")]
        if not parts or parts[0].lower() in seen:
            continue
        seen.add(parts[0].lower())
        out.append(Certification(name=parts[0], issuer=parts[1] if len(parts) > 1 else None, date=date))
    return out


def _extract_languages(section: str) -> List[Language]:
    out: List[Language] = []
    for line in rules.split_bullets(section):
        for item in re.split(r"\s*[,;|]\s*", line):
            m = re.match(r"^(?P<name>[A-Za-zÀ-ÿ ]+?)\s*(?:\((?P<paren>[^)]*)\)|[-–:]\s*(?P<suffix>.+))?$", item.strip())
            if not m or not m.group("name"):
                continue
            # "Languages: Python, Java" inside a skills block names programming languages
            if rules.canonical_skill(m.group("name")) in rules.SKILL_VOCABULARY:
                continue
            proficiency = (m.group("paren") or m.group("suffix") or "").strip() or None
            out.append(Language(name=m.group("name").strip(), proficiency=proficiency))
    return out


def _finish_project(project: Dict) -> Project:
    body = " ".join(project["lines"])
    url = rules.URL_RE.search(body) or rules.BARE_SITE_RE.search(body)
    technologies = list(project["technologies"])
    for name in rules.find_vocabulary_skills(project["name"] + " " + body):
        if name.lower() not in [t.lower() for t in technologies]:
            technologies.append(name)
    description = rules.URL_RE.sub("", body).strip() or None
    return Project(name=project["name"], description=description, technologies=technologies,
                   url=url.group(0).rstrip(".") if url else None)


def _extract_projects(section: str) -> List[Project]:
    projects: List[Dict] = []
    current: Optional[Dict] = None
    for raw in section.split("\n"):
        raw = raw.strip()
        if not raw:
            continue
        bullet = rules.is_bullet(raw)
        line = rules.strip_bullet(raw) if bullet else raw

        tech = re.match(r"^(?:technologies|tech stack|tools|built with|stack)\s*:\s*(?P<list>.+)$", line, re.I)
        if tech and current is not None:
            current["technologies"] += [rules.canonical_skill(t) for t in rules.split_list(tech.group("list"))]
            continue

        if bullet and current is not None and not current["from_bullet"]:
            current["lines"].append(line)
            continue
        if not bullet and current is not None and _is_prose(line):
            current["lines"].append(line)
            continue

        parts = PROJECT_NAME_SPLIT_RE.split(line, maxsplit=1)
        name, rest = parts[0], parts[1] if len(parts) > 1 else ""
        current = {"name": name.strip(), "lines": [rest.strip()] if rest.strip() else [],
                   "technologies": [], "from_bullet": bullet}
        projects.append(current)
    return [_finish_project(p) for p in projects if p["name"]]


def extract_resume_fields(text: str) -> StructuredResume:
    """Rule-based extraction of a structured resume from raw text.

    Never raises on malformed input; fields that cannot be found stay empty.
    """
    text = rules.normalize_text(text or "")
    sections = rules.split_sections(text, RESUME_SECTIONS)
    header = sections.get(PREAMBLE, "")

    resume = StructuredResume(
        personal_info=_extract_personal_info(text, header),
        education=_extract_education(sections.get("education", "")),
        experience=_extract_experience(sections.get("experience", "")),
        skills=_extract_skills(text, sections.get("skills", "")),
        certifications=_extract_certifications(sections.get("certifications", "")),
        languages=_extract_languages(sections.get("languages", "")),
        projects=_extract_projects(sections.get("projects", "")),
    )
    logger.debug(
        f"Extracted resume fields: {len(resume.education)} education, {len(resume.experience)} experience, "
        f"{len(resume.skills)} skills"
    )
    return resume
