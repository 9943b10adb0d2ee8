"""
Section header detection and section assembly.

Three passes, each only tried when the previous one found nothing:
  1. exact: the line equals a known header or starts with header + ":" / " "
  2. loose: short all-caps lines containing a header keyword anywhere, plus a
     rescue pass for plain-case lines carrying a strong topical keyword
     ("Projects undertaken", "Summer Internship")
  3. content-based classification (see content_classifier)

Anchors are (line index, section type) pairs; content between consecutive
anchors becomes that anchor's Section.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from app.core.schemas import Line, Section, SectionAnchor, SectionType
from app.core.text_normalization import is_all_caps

logger = logging.getLogger(__name__)


# ===== HEADER SYNONYM TABLE =====

SKILLS_HEADERS = [
    "SKILLS", "TECHNICAL SKILLS", "SKILL SET", "SKILLSET", "TECHNOLOGIES", "TECH STACK", "STACK",
    "PROGRAMMING LANGUAGES", "LANGUAGES", "TOOLS", "TECHNICAL EXPERTISE", "CORE COMPETENCIES",
    "COMPETENCIES", "PROFICIENCIES", "EXPERTISE", "AREAS OF EXPERTISE", "QUALIFICATIONS",
    "TECHNICAL PROFICIENCIES", "KEY SKILLS", "PROFESSIONAL SKILLS", "TOOLS & TECHNOLOGIES",
    "TOOLS AND TECHNOLOGIES",
]

EXPERIENCE_HEADERS = [
    "EXPERIENCE", "WORK EXPERIENCE", "EMPLOYMENT", "PROFESSIONAL EXPERIENCE", "WORK HISTORY",
    "CAREER", "EMPLOYMENT HISTORY", "PROFESSIONAL BACKGROUND", "PROFESSIONAL SUMMARY",
    "CAREER HISTORY", "INTERNSHIPS", "INTERNSHIP EXPERIENCE", "RELEVANT EXPERIENCE",
]

PROJECTS_HEADERS = [
    "PROJECTS", "PROJECT EXPERIENCE", "PERSONAL PROJECTS", "ACADEMIC PROJECTS", "KEY PROJECTS",
    "RELATED PROJECTS", "PORTFOLIO", "MAJOR PROJECTS", "PROJECT WORK", "SOFTWARE PROJECTS",
    "DEVELOPMENT PROJECTS", "SIDE PROJECTS",
]

EDUCATION_HEADERS = [
    "EDUCATION", "ACADEMIC BACKGROUND", "ACADEMIC HISTORY", "EDUCATIONAL BACKGROUND",
    "ACADEMIC QUALIFICATIONS", "EDUCATION & TRAINING", "EDUCATION AND TRAINING",
]

# Headers that end the current section but are never extracted
OTHER_HEADERS = [
    "CERTIFICATIONS", "CERTIFICATES", "ACHIEVEMENTS", "AWARDS", "HONORS", "LEADERSHIP",
    "PUBLICATIONS", "VOLUNTEER", "VOLUNTEERING", "INTERESTS", "HOBBIES", "REFERENCES",
    "OBJECTIVE", "SUMMARY", "PROFILE", "ACTIVITIES", "EXTRACURRICULAR ACTIVITIES",
]


def _build_header_table() -> List[Tuple[str, Optional[SectionType]]]:
    table: List[Tuple[str, Optional[SectionType]]] = []
    for headers, section_type in (
        (SKILLS_HEADERS, "SKILLS"),
        (EXPERIENCE_HEADERS, "EXPERIENCE"),
        (PROJECTS_HEADERS, "PROJECTS"),
        (EDUCATION_HEADERS, "EDUCATION"),
        (OTHER_HEADERS, None),
    ):
        table.extend((h, section_type) for h in headers)
    # Longest first so "TECHNICAL SKILLS" wins over "SKILLS" and inline remainders stay correct
    table.sort(key=lambda item: len(item[0]), reverse=True)
    return table


HEADER_TABLE = _build_header_table()
ALL_HEADERS = {h for h, _ in HEADER_TABLE}


# ===== LOOSE PASS KEYWORDS =====

LOOSE_KEYWORDS: List[Tuple[re.Pattern, SectionType]] = [
    (re.compile(r"SKILL|TECH|LANGUAGE|TOOL|EXPERT|COMPETENC|PROFICIEN|QUALIF"), "SKILLS"),
    (re.compile(r"EXPERIENCE|EMPLOYMENT|WORK|CAREER|PROFESSIONAL|HISTORY|INTERNSHIP"), "EXPERIENCE"),
    (re.compile(r"PROJECT|PORTFOLIO|APPLICATION|SYSTEM|DEVELOPMENT"), "PROJECTS"),
    (re.compile(r"EDUCATION|ACADEMIC"), "EDUCATION"),
]

RESCUE_KEYWORDS: List[Tuple[re.Pattern, SectionType]] = [
    (re.compile(r"\bprojects?\b", re.IGNORECASE), "PROJECTS"),
    (re.compile(r"\binternships?\b", re.IGNORECASE), "EXPERIENCE"),
    (re.compile(r"\btraining\b", re.IGNORECASE), "EXPERIENCE"),
]

LOOSE_MAX_LENGTH = 50
RESCUE_MAX_WORDS = 5
TRAILING_PUNCT_RE = re.compile(r"[,.;:]$")

# Content markers that rule out "HEADER remainder" lines ("Stack Overflow Clone - Q&A site")
CONTENT_MARKER_RE = re.compile(r"\s[-–—]\s|\||\d|https?://|www\.|\.(?:com|io|org|net)\b", re.IGNORECASE)


class HeaderMatch:
    """A header found on a line: its canonical type (None for non-extracted headers) and inline text."""

    __slots__ = ("header", "section_type", "remainder")

    def __init__(self, header: str, section_type: Optional[SectionType], remainder: str):
        self.header = header
        self.section_type = section_type
        self.remainder = remainder

    def __repr__(self) -> str:
        return f"HeaderMatch({self.header!r}, {self.section_type!r}, {self.remainder!r})"


def match_header(text: str) -> Optional[HeaderMatch]:
    """
    Exact header test against the synonym table, case-insensitive.

    A line matches when it equals a header, or starts with the header followed
    by ":" or a space. The space form only counts when the line still reads
    like a header: the header word is written in capitals and the remainder
    carries no dash separator, pipe, digit or link, so a project named
    "Portfolio Site" stays content.

    Examples:
        "TECHNICAL SKILLS" -> SKILLS, remainder ""
        "Skills: Python, Go" -> SKILLS, remainder "Python, Go"
        "SKILLS Python, Go" -> SKILLS, remainder "Python, Go"
        "Experience with AWS" -> None
        "Stack Overflow Clone - Q&A site" -> None
    """
    stripped = text.strip()
    upper = stripped.upper()
    for header, section_type in HEADER_TABLE:
        if upper == header or upper == header + ":":
            return HeaderMatch(header, section_type, "")
        if upper.startswith(header + ":"):
            return HeaderMatch(header, section_type, stripped[len(header) + 1:].strip())
        if upper.startswith(header + " "):
            remainder = stripped[len(header) + 1:].strip()
            if not _space_form_is_header(stripped[:len(header)], remainder):
                continue
            return HeaderMatch(header, section_type, remainder.lstrip(":-–| ").strip())
    return None


def _space_form_is_header(header_text: str, remainder: str) -> bool:
    if remainder[:1].islower() or CONTENT_MARKER_RE.search(remainder):
        return False
    return is_all_caps(header_text)


def _loose_header_type(text: str) -> Optional[SectionType]:
    if len(text) >= LOOSE_MAX_LENGTH or not is_all_caps(text) or TRAILING_PUNCT_RE.search(text):
        return None
    for pattern, section_type in LOOSE_KEYWORDS:
        if pattern.search(text):
            return section_type
    return None


def _rescue_header_type(text: str) -> Optional[SectionType]:
    """Plain-case lines such as "Academic Projects" or "Summer Internship"."""
    if is_all_caps(text) or TRAILING_PUNCT_RE.search(text):
        return None
    if len(text.split()) > RESCUE_MAX_WORDS or len(text) >= LOOSE_MAX_LENGTH:
        return None
    if not text[:1].isupper():
        return None
    for pattern, section_type in RESCUE_KEYWORDS:
        if pattern.search(text):
            return section_type
    return None


def _dedupe_anchors(anchors: Iterable[SectionAnchor]) -> List[SectionAnchor]:
    seen = set()
    out: List[SectionAnchor] = []
    for anchor in sorted(anchors, key=lambda a: a.index):
        if anchor.index in seen:
            continue
        seen.add(anchor.index)
        out.append(anchor)
    return out


def detect_anchors(lines: List[Line]) -> Tuple[List[SectionAnchor], List[int], str]:
    """
    Find section anchors in a normalized line sequence.

    Returns:
        (anchors, boundaries, pass_name) where boundaries are line indexes of
        headers that end a section without starting an extracted one, and
        pass_name is "exact", "loose" or "none".
    """
    anchors: List[SectionAnchor] = []
    boundaries: List[int] = []

    for line in lines:
        hm = match_header(line.text)
        if hm is None:
            continue
        if hm.section_type is None:
            boundaries.append(line.index)
        else:
            anchors.append(SectionAnchor(index=line.index, section_type=hm.section_type))

    if anchors:
        logger.debug("Exact header pass found %d anchors", len(anchors))
        return _dedupe_anchors(anchors), boundaries, "exact"

    for line in lines:
        section_type = _loose_header_type(line.text) or _rescue_header_type(line.text)
        if section_type:
            anchors.append(SectionAnchor(index=line.index, section_type=section_type))

    if anchors:
        logger.debug("Loose header pass found %d anchors", len(anchors))
        return _dedupe_anchors(anchors), boundaries, "loose"

    logger.debug("No section headers found in %d lines", len(lines))
    return [], boundaries, "none"


def assemble_sections(
    lines: List[Line],
    anchors: List[SectionAnchor],
    boundaries: Iterable[int] = (),
) -> Dict[SectionType, Section]:
    """
    Slice lines into per-type sections.

    Each anchor owns the lines after it up to the next anchor or boundary. The
    header line itself is excluded, except for inline content following an
    exact header ("Skills: Python, Go" contributes "Python, Go"). Sections of
    the same type are merged by appending.
    """
    stops = sorted({a.index for a in anchors} | set(boundaries))
    by_index = {line.index: line for line in lines}
    collected: Dict[SectionType, List[Line]] = {}

    for anchor in anchors:
        bucket = collected.setdefault(anchor.section_type, [])
        header_line = by_index.get(anchor.index)
        if header_line is not None:
            hm = match_header(header_line.text)
            if hm is not None and hm.remainder:
                bucket.append(Line(index=header_line.index, text=hm.remainder))

        next_stop = next((s for s in stops if s > anchor.index), None)
        for line in lines:
            if line.index <= anchor.index:
                continue
            if next_stop is not None and line.index >= next_stop:
                break
            bucket.append(line)

    return {
        section_type: Section(section_type=section_type, lines=section_lines)
        for section_type, section_lines in collected.items()
    }


