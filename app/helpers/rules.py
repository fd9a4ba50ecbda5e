"""
Rule tables for structured field extraction.

Every heuristic used by the resume and job parsers lives here as an ordered
table of compiled patterns so each rule can be exercised on its own:

- section header variants (SectionRule) bound the blocks of a document
- field rules (FieldRule) pull single values such as email or salary
- degree rules (DegreeRule) map degree wording onto a numeric rank
- a fixed skill vocabulary with aliases
"""
import re
from datetime import datetime, timezone
from typing import Dict, List, NamedTuple, Optional, Pattern, Tuple

from dateutil.parser import parse as date_parse


class SectionRule(NamedTuple):
    name: str
    pattern: Pattern


class FieldRule(NamedTuple):
    field: str
    pattern: Pattern


class DegreeRule(NamedTuple):
    rank: int
    label: str
    pattern: Pattern


# Text before the first recognized header
PREAMBLE = "_preamble"


def _section(name: str, *variants: str) -> SectionRule:
    # the header may carry inline content after a colon or dash ("Skills: Python, SQL")
    alternation = "|".join(variants)
    return SectionRule(name, re.compile(rf"^(?:{alternation})\s*(?:[:\-–—]\s*(?P<rest>.*))?$", re.I))


RESUME_SECTIONS: List[SectionRule] = [
    _section("summary", r"summary", r"professional summary", r"profile", r"professional profile",
             r"objective", r"career objective", r"about me"),
    _section("education", r"education", r"academic background", r"academic history",
             r"education (?:and|&) training", r"academics", r"educational background"),
    _section("experience", r"experience", r"work experience", r"professional experience",
             r"employment history", r"employment", r"work history", r"career history",
             r"relevant experience"),
    _section("skills", r"skills", r"technical skills", r"core competencies", r"key skills",
             r"competencies", r"skills (?:and|&) tools", r"tech stack", r"areas of expertise",
             r"technologies"),
    _section("certifications", r"certifications?", r"certificates?", r"licenses?",
             r"licenses? (?:and|&) certifications?", r"certifications? (?:and|&) licenses?",
             r"professional certifications?"),
    _section("languages", r"languages", r"language skills", r"spoken languages"),
    _section("projects", r"projects", r"personal projects", r"key projects", r"academic projects",
             r"selected projects"),
    _section("other", r"awards", r"honors", r"honors (?:and|&) awards", r"references", r"interests",
             r"hobbies", r"volunteer(?:ing)?(?: experience)?", r"publications"),
]

JOB_SECTIONS: List[SectionRule] = [
    _section("about", r"about (?:us|the company|the role|the job|the team)", r"company overview",
             r"who we are", r"overview", r"job description", r"description", r"the role", r"job summary"),
    _section("responsibilities", r"responsibilities", r"key responsibilities", r"duties", r"job duties",
             r"what you(?:'|’)ll do", r"your role", r"role responsibilities", r"day to day"),
    _section("requirements", r"requirements", r"qualifications", r"required qualifications",
             r"minimum qualifications", r"basic qualifications", r"what you(?:'|’)ll need",
             r"what we(?:'|’)re looking for", r"must have", r"who you are"),
    _section("skills", r"required skills", r"skills", r"key skills", r"technical skills",
             r"skills (?:and|&) experience", r"tech stack"),
    _section("preferred", r"preferred qualifications", r"preferred skills", r"preferred",
             r"nice to have", r"nice-to-have", r"bonus points", r"pluses", r"desired skills"),
    _section("benefits", r"benefits", r"perks", r"perks (?:and|&) benefits", r"what we offer", r"we offer",
             r"compensation (?:and|&) benefits", r"why join us"),
    _section("other", r"how to apply", r"application process", r"equal opportunity(?: employer)?"),
]

BULLET_GLYPHS = ("•", "*", "-", "–", "—", "·", "▪", "●", "◦")
BULLET_RE = re.compile(r"^\s*(?:[•*·▪●◦–—]\s*|-\s+|\d{1,2}[.)]\s+)")
INLINE_BULLET_RE = re.compile(r"\s+[•·▪●]\s+")
LIST_SEPARATOR_RE = re.compile(r"\s*[,;|]\s*|\s+[•·▪●]\s+")


def normalize_text(x: str) -> str:
    """Normalize line endings and runs of spaces while keeping line structure."""
    x = (x or "").replace("\r\n", "\n").replace("\r", "\n").replace("\x0c", "\n")
    lines = [re.sub(r"[ \t\u00a0]+", " ", line).strip() for line in x.split("\n")]
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()


def match_section_header(line: str, rules: List[SectionRule]) -> Optional[Tuple[str, str]]:
    """Return (section name, inline remainder) when the line is a header."""
    candidate = line.strip().strip("#*_=").strip()
    if not candidate or len(candidate) > 80:
        return None
    for rule in rules:
        m = rule.pattern.match(candidate)
        if m:
            return rule.name, (m.group("rest") or "").strip()
    return None


def split_sections(text: str, rules: List[SectionRule]) -> Dict[str, str]:
    """Split text into named blocks, each bounded by the next header or end of text.

    Lines before the first header are stored under PREAMBLE. A section that
    appears more than once is concatenated.
    """
    blocks: Dict[str, List[str]] = {PREAMBLE: []}
    current = PREAMBLE
    for line in normalize_text(text).split("\n"):
        header = match_section_header(line, rules)
        if header:
            current, rest = header
            blocks.setdefault(current, [])
            if rest:
                blocks[current].append(rest)
            continue
        blocks[current].append(line)
    return {name: "\n".join(lines).strip() for name, lines in blocks.items()}


def is_bullet(line: str) -> bool:
    return bool(BULLET_RE.match(line))


def strip_bullet(line: str) -> str:
    return BULLET_RE.sub("", line, count=1).strip()


def split_bullets(text: str) -> List[str]:
    """Split a section into items on line breaks and bullet glyphs."""
    items = []
    for line in (text or "").split("\n"):
        line = line.strip()
        if not line:
            continue
        for part in INLINE_BULLET_RE.split(line):
            part = strip_bullet(part)
            if part:
                items.append(part)
    return items


def split_list(text: str) -> List[str]:
    return [p.strip() for p in LIST_SEPARATOR_RE.split(text or "") if p.strip()]


# -------- Personal info --------
EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")
PHONE_RE = re.compile(r"(?<![\w/])(?:\+?\d{1,3}[\s.-]?)?(?:\(\d{2,4}\)|\d{2,4})[\s.-]?\d{3,4}[\s.-]?\d{3,4}(?![\w/])")
LINKEDIN_RE = re.compile(r"(?:https?://)?(?:[a-z]{2,3}\.)?linkedin\.com/(?:in|pub)/[\w%-]+/?", re.I)
URL_RE = re.compile(r"(?:https?://|www\.)[^\s,;|()]+", re.I)
BARE_SITE_RE = re.compile(r"\b(?:github\.com|gitlab\.com|bitbucket\.org)/[\w.-]+|\b[a-z0-9-]+\.(?:dev|io|me|site|tech|com|net|org)(?:/[^\s,;|()]*)?\b", re.I)
ADDRESS_RE = re.compile(
    r"\b\d{1,6}\s+(?:[A-Z][\w.'-]*\s+){0,5}"
    r"(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Lane|Ln|Drive|Dr|Way|Court|Ct|Place|Pl|Terrace|Parkway)\b\.?"
    r"(?:,\s*[A-Z][\w .'-]*){0,3}"
)
LABEL_VALUE_RE = r"\s*[:\-–]\s*(?P<value>.+)$"

PERSONAL_INFO_RULES: List[FieldRule] = [
    FieldRule("name", re.compile(r"^(?:full\s+)?name" + LABEL_VALUE_RE, re.I | re.M)),
    FieldRule("address", re.compile(r"^(?:address|location)" + LABEL_VALUE_RE, re.I | re.M)),
    FieldRule("email", EMAIL_RE),
    FieldRule("phone", PHONE_RE),
    FieldRule("linkedin", LINKEDIN_RE),
    FieldRule("address", ADDRESS_RE),
]

NAME_EXCLUDE_RE = re.compile(r"^(?:resume|r[ée]sum[ée]|curriculum vitae|cv)$", re.I)
NAME_LINE_RE = re.compile(r"^[A-Za-zÀ-ÿ][A-Za-zÀ-ÿ.'-]*(?:\s+[A-Za-zÀ-ÿ][A-Za-zÀ-ÿ.'-]*){1,3}$")


# -------- Experience / education hints --------
TITLE_RE = re.compile(
    r"\b(?:engineer|developer|manager|analyst|designer|consultant|intern|lead|director|architect|"
    r"specialist|administrator|scientist|coordinator|officer|associate|assistant|programmer|"
    r"technician|head|vp|president|founder|executive|representative|supervisor|researcher|"
    r"teacher|accountant|nurse|owner|strategist|writer|editor)\b",
    re.I,
)
COMPANY_HINT_RE = re.compile(
    r"\b(?:inc|llc|ltd|corp|corporation|company|co|technologies|technology|solutions|systems|group|"
    r"labs|gmbh|plc|startup|agency|partners|studio|studios|bank|ventures|holdings|consulting)\b\.?",
    re.I,
)
INSTITUTION_RE = re.compile(r"\b(?:university|college|institute|school|academy|polytechnic|conservatory)\b", re.I)
LOCATION_RE = re.compile(r"\b(?:Remote|Hybrid)\b|\b[A-Z][a-zA-Z.]+(?:\s[A-Z][a-zA-Z.]+)*,\s*[A-Z]{2}\b")
AT_SPLIT_RE = re.compile(r"^(?P<left>.+?)\s+(?:at|@)\s+(?P<right>.+)$")
GPA_RE = re.compile(r"\b(?:GPA|CGPA)\s*[:\-]?\s*(?P<gpa>\d(?:\.\d{1,2})?)(?:\s*/\s*\d(?:\.\d)?)?", re.I)
DEGREE_HINT_RE = re.compile(r"\b(?:degree|diploma|certificate in)\b", re.I)


# -------- Degree ranks --------
DEGREE_RULES: List[DegreeRule] = [
    DegreeRule(5, "PhD", re.compile(r"\bph\.?\s?d\b|\bdoctor(?:ate|al)\b|\bd\.phil\b", re.I)),
    DegreeRule(4, "Master's degree", re.compile(
        r"\bmaster(?:'|’)?s?\b|\bm\.?sc\b|\bm\.s\.?|(?-i:\bMS\b)|\bm\.a\.|(?-i:\bMA\b)|\bmba\b|\bm\.?eng\b|\bm\.?tech\b",
        re.I)),
    DegreeRule(3, "Bachelor's degree", re.compile(
        r"\bbachelor(?:'|’)?s?\b|\bb\.?sc\b|\bb\.s\.?|(?-i:\bBS\b)|\bb\.a\.|(?-i:\bBA\b)|\bb\.?eng\b|\bb\.?tech\b"
        r"|\bundergraduate degree\b",
        re.I)),
    DegreeRule(2, "Associate's degree", re.compile(
        r"\bassociate(?:'|’)?s?\s+(?:degree|of)\b|(?-i:\bA\.A\.S?\b)", re.I)),
    DegreeRule(1, "High school diploma", re.compile(r"\bhigh\s+school\b|(?-i:\bGED\b)|\bsecondary\s+school\b", re.I)),
]
DEGREE_LABELS = {rule.rank: rule.label for rule in DEGREE_RULES}


def degree_rank(text: Optional[str]) -> int:
    """Highest degree rank mentioned in the text, 0 if none."""
    if not text:
        return 0
    return max((rule.rank for rule in DEGREE_RULES if rule.pattern.search(text)), default=0)


def required_degree_rank(text: Optional[str]) -> int:
    """Lowest degree rank mentioned; "Bachelor's or Master's" requires a Bachelor's."""
    if not text:
        return 0
    return min((rule.rank for rule in DEGREE_RULES if rule.pattern.search(text)), default=0)


def degree_label(rank: int) -> str:
    return DEGREE_LABELS.get(rank, "")


# -------- Dates --------
MONTHS = (r"jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?|"
          r"sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?")
PRESENT_WORDS = ("present", "current", "currently", "now", "ongoing", "today", "date")
YEAR = r"(?:19|20)\d{2}"
DATE_TOKEN = (
    rf"(?:(?:{MONTHS})\.?\s+{YEAR}|(?:0?[1-9]|1[0-2])/{YEAR}|{YEAR}[-/](?:0?[1-9]|1[0-2])(?!\d)|{YEAR}"
    rf"|{'|'.join(PRESENT_WORDS)})"
)
DATE_RANGE_RE = re.compile(
    rf"(?<![\w/])(?P<start>{DATE_TOKEN})\s*(?:-|–|—|to|until)\s*(?P<end>{DATE_TOKEN})(?![\w/])", re.I
)
SINGLE_DATE_RE = re.compile(rf"(?<![\w/])(?P<date>(?:(?:{MONTHS})\.?\s+)?{YEAR})(?![\w/])", re.I)
YEAR_RE = re.compile(rf"(?<!\d){YEAR}(?!\d)")
DATE_DEFAULT = datetime(2000, 1, 1)


def is_current(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() in PRESENT_WORDS


def utc_now() -> datetime:
    """Naive UTC timestamp, comparable with parsed resume dates."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_date(value: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Parse the date spellings found on resumes; "Present" resolves to now.

    Missing month or day default to January and the 1st.
    """
    if not value:
        return None
    value = value.strip()
    if is_current(value):
        return now or utc_now()
    if not YEAR_RE.search(value):
        return None
    try:
        return date_parse(value, default=DATE_DEFAULT).replace(tzinfo=None)
    except (ValueError, OverflowError):
        return None


def find_date_range(line: str) -> Optional[re.Match]:
    return DATE_RANGE_RE.search(line or "")


def canonical_date(value: str) -> str:
    """'present'/'Current' -> 'Present'; other tokens unchanged."""
    return "Present" if is_current(value) else value.strip()


# -------- Skills --------
SKILL_VOCABULARY: Dict[str, Tuple[str, ...]] = {
    "Python": (),
    "Java": (),
    "JavaScript": ("JS",),
    "TypeScript": ("TS",),
    "C++": (),
    "C#": (),
    "Ruby": (),
    "PHP": (),
    "Swift": (),
    "Kotlin": (),
    "Golang": (),
    "Rust": (),
    "Scala": (),
    "MATLAB": (),
    "SQL": (),
    "NoSQL": (),
    "HTML": ("HTML5",),
    "CSS": ("CSS3",),
    "Sass": ("SCSS",),
    "React": ("ReactJS", "React.js"),
    "React Native": (),
    "Angular": ("AngularJS",),
    "Vue.js": ("Vue", "VueJS"),
    "Next.js": ("NextJS",),
    "Node.js": ("NodeJS", "Node JS"),
    "Express.js": ("ExpressJS",),
    "Django": (),
    "Flask": (),
    "FastAPI": (),
    "Spring Boot": (),
    "Ruby on Rails": ("Rails",),
    ".NET": ("dotnet",),
    "ASP.NET": (),
    "jQuery": (),
    "Redux": (),
    "GraphQL": (),
    "REST APIs": ("REST API", "RESTful", "RESTful APIs"),
    "MongoDB": ("Mongo",),
    "PostgreSQL": ("Postgres",),
    "MySQL": (),
    "SQLite": (),
    "Redis": (),
    "Elasticsearch": (),
    "DynamoDB": (),
    "Cassandra": (),
    "AWS": ("Amazon Web Services",),
    "Azure": (),
    "Google Cloud": ("GCP",),
    "Docker": (),
    "Kubernetes": ("K8s",),
    "Terraform": (),
    "Ansible": (),
    "Jenkins": (),
    "CI/CD": (),
    "Git": (),
    "GitHub": (),
    "GitLab": (),
    "Linux": (),
    "Bash": (),
    "Kafka": (),
    "RabbitMQ": (),
    "Spark": ("Apache Spark", "PySpark"),
    "Hadoop": (),
    "Airflow": (),
    "Pandas": (),
    "NumPy": (),
    "scikit-learn": ("sklearn",),
    "TensorFlow": (),
    "PyTorch": (),
    "Keras": (),
    "Machine Learning": (),
    "Deep Learning": (),
    "NLP": ("Natural Language Processing",),
    "Computer Vision": (),
    "Data Analysis": (),
    "Data Science": (),
    "Tableau": (),
    "Power BI": (),
    "Figma": (),
    "Jira": (),
    "Agile": (),
    "Scrum": (),
    "Microservices": (),
    "Unit Testing": (),
    "Jest": (),
    "Selenium": (),
    "Cypress": (),
    "Webpack": (),
    "Tailwind CSS": ("Tailwind",),
    "Bootstrap": (),
    "Firebase": (),
    "Leadership": (),
    "Communication": (),
    "Project Management": (),
}

# Short aliases are only trusted inside a skills section, never in free text
_SECTION_ONLY_ALIASES = {"js", "ts", "mongo", "rails", "vue"}


def _skill_pattern(name: str) -> Pattern:
    return re.compile(r"(?<![\w+#.])" + re.escape(name) + r"(?![\w+#])", re.I)


SKILL_PATTERNS: List[Tuple[str, Pattern]] = [
    (canonical, _skill_pattern(spelling))
    for canonical, aliases in SKILL_VOCABULARY.items()
    for spelling in (canonical,) + aliases
    if spelling.lower() not in _SECTION_ONLY_ALIASES
]

_CANONICAL_SKILLS: Dict[str, str] = {}
for _canonical, _aliases in SKILL_VOCABULARY.items():
    _CANONICAL_SKILLS[_canonical.lower()] = _canonical
    for _alias in _aliases:
        _CANONICAL_SKILLS[_alias.lower()] = _canonical


def canonical_skill(name: str) -> str:
    name = (name or "").strip().rstrip(".")
    return _CANONICAL_SKILLS.get(name.lower(), name)


def vocabulary_skill_positions(text: str) -> List[Tuple[int, str]]:
    """(offset, canonical name) of each vocabulary skill's first mention, in text order."""
    positions: Dict[str, int] = {}
    for canonical, pattern in SKILL_PATTERNS:
        m = pattern.search(text or "")
        if m and (canonical not in positions or m.start() < positions[canonical]):
            positions[canonical] = m.start()
    return sorted(((pos, name) for name, pos in positions.items()), key=lambda p: p[0])


def find_vocabulary_skills(text: str) -> List[str]:
    """Vocabulary skills mentioned in text, ordered by first appearance."""
    return [name for _, name in vocabulary_skill_positions(text)]


SKILL_LEVELS: Dict[str, str] = {
    "expert": "expert",
    "advanced": "expert",
    "proficient": "intermediate",
    "intermediate": "intermediate",
    "familiar": "beginner",
    "basic": "beginner",
    "beginner": "beginner",
    "novice": "beginner",
}
SKILL_LEVEL_RE = re.compile(r"\b(" + "|".join(SKILL_LEVELS) + r")\b", re.I)


# -------- Job description rules --------
JOB_LABEL_RULES: List[FieldRule] = [
    FieldRule("job_title", re.compile(r"^(?:job\s+title|position|role|title)" + LABEL_VALUE_RE, re.I | re.M)),
    FieldRule("company", re.compile(r"^(?:company(?:\s+name)?|employer|organization)" + LABEL_VALUE_RE, re.I | re.M)),
    FieldRule("location", re.compile(r"^(?:location|based in|office)" + LABEL_VALUE_RE, re.I | re.M)),
    FieldRule("employment_type", re.compile(r"^(?:employment\s+type|job\s+type|type)" + LABEL_VALUE_RE, re.I | re.M)),
    FieldRule("salary", re.compile(r"^(?:salary(?:\s+range)?|compensation|pay(?:\s+range)?)" + LABEL_VALUE_RE, re.I | re.M)),
    FieldRule("application_deadline", re.compile(
        r"^(?:application\s+deadline|deadline|apply\s+by|closing\s+date)\s*[:\-–]?\s*(?P<value>.+)$", re.I | re.M)),
    FieldRule("required_experience", re.compile(r"^experience(?:\s+required)?" + LABEL_VALUE_RE, re.I | re.M)),
    FieldRule("required_education", re.compile(r"^education(?:\s+required)?" + LABEL_VALUE_RE, re.I | re.M)),
]

COMPANY_FALLBACK_RULES: List[FieldRule] = [
    FieldRule("company", re.compile(r"^About\s+(?P<value>[A-Z][\w&.-]*(?:\s+[A-Z][\w&.-]*){0,3})\s*$", re.M)),
    FieldRule("company", re.compile(r"\b(?:[Aa]t|[Jj]oin)\s+(?P<value>[A-Z][\w&.-]*(?:\s+[A-Z][\w&.-]*){0,3})")),
]

EMPLOYMENT_TYPES: List[Tuple[str, Pattern]] = [
    ("Part-time", re.compile(r"\bpart[\s-]?time\b", re.I)),
    ("Contract", re.compile(r"\bcontract(?:or|-to-hire)?\b", re.I)),
    ("Internship", re.compile(r"\binternship\b|\bintern\b", re.I)),
    ("Freelance", re.compile(r"\bfreelance\b", re.I)),
    ("Temporary", re.compile(r"\btemporary\b", re.I)),
    ("Full-time", re.compile(r"\bfull[\s-]?time\b|\bpermanent\b", re.I)),
]

# "5+ years", "3-5 years", "at least 2 years", "minimum of 4 yrs"
EXPERIENCE_YEARS_RE = re.compile(r"(?P<years>\d{1,2})\s*(?:\+|plus)?\s*(?:(?:-|–|to)\s*\d{1,2}\s*\+?\s*)?(?:years?|yrs?)\b", re.I)
# Matching-time parse of a stored requirement such as "3+ years"
REQUIRED_YEARS_RE = re.compile(r"(\d+)\+?\s*years?", re.I)

SALARY_RE = re.compile(
    r"[$£€]\s?\d{1,3}(?:,\d{3})*(?:\.\d+)?\s?[kK]?\s*(?:-|–|—|to)\s*[$£€]?\s?\d{1,3}(?:,\d{3})*(?:\.\d+)?\s?[kK]?"
)

POSITIVE_KEYWORDS: List[str] = [
    "competitive", "flexible", "growth", "innovative", "collaborative", "inclusive", "diverse",
    "remote", "mentorship", "learning", "career development", "work-life balance", "bonus",
    "equity", "benefits", "supportive", "dynamic", "exciting", "impactful", "cutting-edge",
]
POSITIVE_KEYWORD_PATTERNS: List[Pattern] = [
    re.compile(r"\b" + re.escape(keyword) + r"\b", re.I) for keyword in POSITIVE_KEYWORDS
]
