"""
Resume parsing entry points.

parse_resume_text() is the pure heuristic pipeline:
  normalize lines -> detect section anchors -> assemble sections
  (content classifier when no extractable headers exist) -> field extractors.
Education always re-scans the whole document.

parse() adds document conversion for binary payloads and tries the external
structured extractor first when one is configured.
"""

import logging
import re
from typing import Dict, List, Optional, Union

from app.ai.extractor import StructuredExtractor
from app.core.content_classifier import classify_lines
from app.core.document_converter import bytes_to_text
from app.core.education_parser import extract_education
from app.core.experience_extractor import extract_experience
from app.core.project_extractor import extract_projects
from app.core.schemas import Line, ParsedResume, Section, SectionType
from app.core.section_detector import assemble_sections, detect_anchors
from app.core.skills_extractor import extract_skills
from app.core.text_normalization import normalize_lines

logger = logging.getLogger(__name__)

EXTRACTED_TYPES: List[SectionType] = ["SKILLS", "EXPERIENCE", "PROJECTS"]

# "Frameworks: React, Vue" style lines outside any skills section
SKILL_CATEGORY_LINE_RE = re.compile(
    r"^\W*(?:programming\s+)?(languages|frameworks|libraries|tools|technologies|databases|platforms|"
    r"cloud|devops|frontend|backend|web technologies|soft skills|technical skills)\s*:\s*\S",
    re.IGNORECASE,
)


def _find_sections(lines: List[Line]) -> Dict[SectionType, Section]:
    anchors, boundaries, pass_name = detect_anchors(lines)
    sections = assemble_sections(lines, anchors, boundaries) if anchors else {}

    if not any(t in sections for t in EXTRACTED_TYPES):
        classified = classify_lines(lines)
        logger.debug("No extractable headers (%s pass); classifier found %s", pass_name, sorted(classified))
        for section_type, section in classified.items():
            sections.setdefault(section_type, section)
    return sections


def rescue_skill_category_lines(lines: List[Line]) -> List[str]:
    """Skills from category-labelled lines anywhere in the document."""
    category_lines = [line for line in lines if SKILL_CATEGORY_LINE_RE.match(line.text)]
    if not category_lines:
        return []
    logger.debug("Rescuing skills from %d category lines", len(category_lines))
    return extract_skills(category_lines)


def parse_resume_text(text: Optional[str]) -> ParsedResume:
    """
    Parse resume text with the heuristic pipeline.

    Never raises; empty or unusable input yields an empty ParsedResume.

    Examples:
        "TECHNICAL SKILLS\\nSkills: Python, Go, Docker" -> skills ["Python", "Go", "Docker"]
    """
    raw_text = text if isinstance(text, str) else ""
    lines = normalize_lines(raw_text)
    if not lines:
        return ParsedResume(raw_text=raw_text)

    sections = _find_sections(lines)

    if "SKILLS" in sections:
        skills = extract_skills(sections["SKILLS"].lines)
    else:
        skills = rescue_skill_category_lines(lines)

    experience = extract_experience(sections["EXPERIENCE"].lines) if "EXPERIENCE" in sections else []
    projects = extract_projects(sections["PROJECTS"].lines) if "PROJECTS" in sections else []
    education = extract_education(lines)

    logger.info(
        "Parsed resume: %d skills, %d experience, %d projects, %d education",
        len(skills), len(experience), len(projects), len(education),
    )
    return ParsedResume(
        skills=skills,
        experience=experience,
        projects=projects,
        education=education,
        raw_text=raw_text,
    )


async def parse(
    document: Union[str, bytes, None],
    extractor: Optional[StructuredExtractor] = None,
    content_type: Optional[str] = None,
    filename: Optional[str] = None,
) -> ParsedResume:
    """
    Parse a resume from text or a binary document.

    The external extractor is tried first when given and available; its result
    is used when it returns skills. Otherwise the heuristic pipeline runs.
    Education always comes from the heuristic pipeline.

    Never raises.
    """
    if isinstance(document, (bytes, bytearray)):
        text = bytes_to_text(bytes(document), content_type=content_type, filename=filename)
    else:
        text = document or ""

    if not text.strip():
        return ParsedResume(raw_text=text)

    heuristic = parse_resume_text(text)
    if extractor is None:
        return heuristic

    extracted = await extractor.extract(text)
    if extracted is None or not extracted.skills:
        logger.info("Using heuristic parse (external extraction unavailable or empty)")
        return heuristic

    return ParsedResume(
        skills=extracted.skills,
        experience=extracted.experience,
        projects=extracted.projects,
        education=heuristic.education,
        raw_text=text,
    )
