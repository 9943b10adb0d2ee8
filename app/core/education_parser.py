"""
Education parsing module for detecting and extracting education entries from resumes.

Education does not use the section assembler: the whole document is re-scanned
for an education-header window, and the lines inside it are grouped into entries
by institution and degree repetition. Each entry gets degree, field of study,
institution, dates and GPA, plus a readable name ("degree in field from institution").
"""

import logging
import re
from typing import List, Optional, Tuple

from app.core.dates import find_date_range, normalize_date
from app.core.schemas import EducationEntry, Line
from app.core.text_normalization import MONTHS, strip_bullet

logger = logging.getLogger(__name__)


# ===== SECTION WINDOW KEYWORDS =====

EDUCATION_WINDOW_HEADERS = [
    "EDUCATION",
    "ACADEMIC BACKGROUND",
    "ACADEMIC HISTORY",
    "EDUCATIONAL BACKGROUND",
    "ACADEMIC QUALIFICATIONS",
    "QUALIFICATIONS",
]

# Any of these in a short line closes the education window
WINDOW_STOP_WORDS = ["EXPERIENCE", "SKILLS", "PROJECTS", "PUBLICATIONS"]

# Header-looking lines are short; longer lines mentioning "education" are content
MAX_HEADER_LINE_LENGTH = 40


# ===== DEGREE KEYWORDS =====
# Longer degree names first (longer match wins)

DEGREE_PATTERNS = [
    re.compile(
        r"\b(bachelor of (?:science|arts|engineering|technology|commerce)|master of (?:science|arts|engineering|"
        r"technology|business administration)|doctor of philosophy|associate of (?:science|arts)|"
        r"bachelor'?s(?: degree)?|master'?s(?: degree)?|associate'?s(?: degree)?)",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?<![A-Za-z])(b\.\s?s\.?c?\.?|b\.\s?a\.?|m\.\s?s\.?c?\.?|m\.\s?a\.?|m\.b\.a\.?|ph\.\s?d\.?|"
        r"b\.\s?tech\.?|m\.\s?tech\.?|a\.\s?a\.?)(?![A-Za-z])",
        re.IGNORECASE,
    ),
    re.compile(r"\b(BSc|MSc|BSC|MSC|BTech|MTech|MBA|PhD|PHD|BS|BA|MS)\b"),
    re.compile(r"\b(bachelor|master|associate|doctorate|doctoral|diploma)\b", re.IGNORECASE),
]

# ===== FIELD OF STUDY KEYWORDS =====

FIELD_KEYWORDS = [
    "computer science", "computer engineering", "software engineering", "electrical engineering",
    "mechanical engineering", "civil engineering", "information technology", "information systems",
    "data science", "business administration", "mathematics", "statistics", "physics", "chemistry",
    "biology", "economics", "finance", "psychology", "sociology", "literature", "history",
    "philosophy", "engineering", "business", "arts",
]

# ===== INSTITUTION KEYWORDS =====

INSTITUTION_RE = re.compile(r"\b(university|college|institute|school|academy|polytechnic)\b", re.IGNORECASE)

# ===== DATES / GPA =====

EDUCATION_DATE_RE = re.compile(rf"(?:\b{MONTHS}\s*)?\b(?:19|20)\d{{2}}\b", re.IGNORECASE)
GPA_RE = re.compile(
    r"\b(?:c?gpa|grade)\s*:?\s*(\d+(?:\.\d+)?(?:\s*/\s*\d+(?:\.\d+)?)?)"
    r"|(\d+(?:\.\d+)?(?:\s*/\s*\d+(?:\.\d+)?)?)\s*(?:c?gpa)\b",
    re.IGNORECASE,
)

SEGMENT_SPLIT_RE = re.compile(r"\s*[,|•]\s*|\s+[-–—]\s+")


def has_degree_keyword(text: str) -> bool:
    """
    Check if text contains degree keywords.
    This is a STRONG signal that a line starts or belongs to an education entry.

    Args:
        text: Text to check

    Returns:
        True if a degree keyword is found
    """
    return extract_degree_from_text(text) is not None


def is_institution_keyword(text: str) -> bool:
    """True when the text names a school-like institution."""
    return bool(INSTITUTION_RE.search(text))


def extract_degree_from_text(text: str) -> Optional[str]:
    """
    Extract degree name from text.

    Examples:
        "Bachelor of Science in Computer Science" -> "Bachelor of Science"
        "M.S. in Engineering" -> "M.S."
        "PhD, Stanford University" -> "PhD"

    Args:
        text: Text containing degree information

    Returns:
        Extracted degree (original casing) or None
    """
    for pattern in DEGREE_PATTERNS:
        match = pattern.search(text)
        if match:
            return text[match.start(1):match.end(1)].strip()
    return None


def extract_field_of_study(text: str, degree: Optional[str] = None) -> Optional[str]:
    """
    Extract field of study.

    The degree name itself is never searched, so "Bachelor of Engineering in
    Robotics" yields "Robotics". Known field keywords after the degree win,
    then the words after "in", stopping at commas and institution names.
    Text before the degree is the last resort ("Computer Science, B.S.").

    Examples:
        "Bachelor of Science in Computer Science" -> "Computer Science"
        "B.S. in Marine Ecology, State University" -> "Marine Ecology"
        "Master of Business Administration" -> None
    """
    after, before = text, ""
    if degree:
        pos = text.find(degree)
        if pos >= 0:
            after, before = text[pos + len(degree):], text[:pos]

    for keyword in FIELD_KEYWORDS:
        match = re.search(rf"\b{re.escape(keyword)}\b", after, re.IGNORECASE)
        if match:
            return match.group(0)

    # Look for "in <field>" pattern, but stop at common delimiters like commas
    match = re.search(
        r"\bin\s+([A-Za-z&/\- ]+?)(?=\s*(?:,|\||\(|$|\bfrom\b|\bat\b|\d))",
        after,
        re.IGNORECASE,
    )
    if match:
        field = match.group(1).strip()
        if len(field) > 2 and not INSTITUTION_RE.search(field):
            return field

    for keyword in FIELD_KEYWORDS:
        match = re.search(rf"\b{re.escape(keyword)}\b", before, re.IGNORECASE)
        if match:
            return match.group(0)
    return None


def extract_institution(text: str) -> Optional[str]:
    """
    Extract the institution name: the comma/pipe/dash segment that names a
    university, college, institute or school.

    Examples:
        "Stanford University, Stanford, CA" -> "Stanford University"
        "B.S. in Physics from University of Texas, 2019" -> "University of Texas"
    """
    for segment in SEGMENT_SPLIT_RE.split(text):
        if not INSTITUTION_RE.search(segment):
            continue
        # "Degree in Field from/at Institution"
        tail = re.split(r"\b(?:from|at)\s+", segment, maxsplit=1, flags=re.IGNORECASE)
        candidate = tail[-1] if len(tail) > 1 and INSTITUTION_RE.search(tail[-1]) else segment
        candidate = EDUCATION_DATE_RE.sub("", candidate).strip(" ()-–:")
        if has_degree_keyword(candidate):
            continue
        if candidate:
            return candidate
    return None


def extract_dates(text: str) -> Tuple[str, Optional[str]]:
    """
    Returns (start_date, end_date). A single date is the end (graduation) date.
    The end date is None for an open-ended range or when no date is found,
    the same convention experience entries use.
    """
    start, end, matched = find_date_range(text)
    if matched:
        return start or "", end

    found = EDUCATION_DATE_RE.findall(text)
    normalized = [normalize_date(re.sub(r"\s+", " ", d.strip())) or d.strip() for d in found]
    if len(normalized) >= 2:
        return normalized[0], normalized[1]
    if len(normalized) == 1:
        return "", normalized[0]
    return "", None


def extract_gpa(text: str) -> str:
    match = GPA_RE.search(text)
    if not match:
        return ""
    return re.sub(r"\s+", "", match.group(1) or match.group(2))


def _is_window_start(text: str) -> bool:
    upper = text.strip().upper()
    return len(upper) <= MAX_HEADER_LINE_LENGTH and any(upper.startswith(h) for h in EDUCATION_WINDOW_HEADERS)


def _is_window_stop(text: str) -> bool:
    upper = text.strip().upper()
    if len(upper) > MAX_HEADER_LINE_LENGTH or not any(w in upper for w in WINDOW_STOP_WORDS):
        return False
    return not (has_degree_keyword(text) or is_institution_keyword(text))


def find_education_window(lines: List[Line]) -> List[Line]:
    """
    Lines between an education header and the next major section header.

    Args:
        lines: Every normalized line of the document

    Returns:
        Education lines, header excluded. Empty when no header is found.
    """
    window: List[Line] = []
    inside = False
    for line in lines:
        if not inside:
            if _is_window_start(line.text):
                inside = True
                # "Education: B.S. Computer Science, MIT"
                _, sep, rest = line.text.partition(":")
                if sep and rest.strip():
                    window.append(Line(index=line.index, text=rest.strip()))
            continue
        if _is_window_stop(line.text):
            break
        window.append(line)
    return window


def group_education_lines(lines: List[Line]) -> List[List[str]]:
    """
    Split window lines into per-entry groups.

    A line starts a new entry when it repeats something the current entry
    already has: a second institution or a second degree.
    """
    groups: List[List[str]] = []
    current: List[str] = []
    has_institution = has_degree = False

    for line in lines:
        text = strip_bullet(line.text)
        if not text:
            continue
        line_institution = is_institution_keyword(text)
        line_degree = has_degree_keyword(text)
        if current and ((line_institution and has_institution) or (line_degree and has_degree)):
            groups.append(current)
            current = []
            has_institution = has_degree = False
        current.append(text)
        has_institution = has_institution or line_institution
        has_degree = has_degree or line_degree

    if current:
        groups.append(current)
    return groups


def compose_name(degree: str, field: str, institution: str) -> str:
    """
    Examples:
        ("B.S.", "Computer Science", "MIT") -> "B.S. in Computer Science from MIT"
        ("", "", "MIT") -> "MIT"
    """
    if degree and field:
        name = f"{degree} in {field}"
    else:
        name = degree or field
    if institution:
        name = f"{name} from {institution}" if name else institution
    return name


def parse_education_entry(entry_lines: List[str]) -> Optional[EducationEntry]:
    """
    Parse a single education entry (list of lines) into an EducationEntry.

    Returns:
        EducationEntry, or None when neither an institution nor a degree is found
    """
    combined = " | ".join(entry_lines)

    degree = extract_degree_from_text(combined) or ""
    institution = extract_institution(combined) or ""
    if not (degree or institution):
        return None

    field = extract_field_of_study(combined, degree or None) or ""
    start_date, end_date = extract_dates(combined)

    return EducationEntry(
        name=compose_name(degree, field, institution),
        institution=institution,
        degree=degree,
        field=field,
        start_date=start_date,
        end_date=end_date,
        gpa=extract_gpa(combined),
    )


def extract_education(lines: List[Line]) -> List[EducationEntry]:
    """
    Extract education entries from the whole document.

    Args:
        lines: Every normalized line of the document (not a pre-assembled section)

    Returns:
        Education entries in document order
    """
    window = find_education_window(lines)
    if not window:
        return []

    entries: List[EducationEntry] = []
    for group in group_education_lines(window):
        entry = parse_education_entry(group)
        if entry is None:
            logger.debug("Dropped education group without institution or degree: %s", group[0][:60])
            continue
        entries.append(entry)

    logger.debug("Education: %d window lines -> %d entries", len(window), len(entries))
    return entries
