"""
Feature rule tables used when a resume has no usable section headers.

Each rule is a named predicate over a single line with a signed weight.
The content classifier counts matching positive rules (+1 each) per category;
feature_score() applies the full signed weights to rank lines within a section.
"""

import re
from typing import Callable, Dict, List, NamedTuple, Tuple

from app.core.text_normalization import MONTH_YEAR_RE, YEAR_RANGE_RE, YEAR_RE


class FeatureRule(NamedTuple):
    name: str
    match: Callable[[str], bool]
    weight: int


def _rx(pattern: str, flags: int = re.IGNORECASE) -> Callable[[str], bool]:
    compiled = re.compile(pattern, flags)
    return lambda line: bool(compiled.search(line))


# ===== SHARED VOCABULARY =====

TECH_NAMES_RE = re.compile(
    r"\b(javascript|typescript|python|java|react|angular|vue|node(?:\.js)?|aws|azure|gcp|docker|"
    r"kubernetes|sql|mysql|postgresql|mongodb|html|css|git|django|flask|spring|golang|rust|kotlin|swift)\b"
    r"|c\+\+|c#",
    re.IGNORECASE,
)
JOB_TITLE_RE = re.compile(
    r"\b(senior|junior|lead|principal|developer|engineer|manager|director|coordinator|intern|"
    r"analyst|consultant|designer|architect|specialist|administrator|scientist)\b",
    re.IGNORECASE,
)
COMPANY_RE = re.compile(r"\b(company|corporation|corp|inc|llc|ltd|technologies|solutions|labs)\b\.?", re.IGNORECASE)
PROJECT_WORD_RE = re.compile(r"\b(project|application|web|mobile|app|developed|created|built|implemented)\b", re.IGNORECASE)
DEGREE_RE = re.compile(
    r"\b(bachelor|master|associate|ph\.?d|doctorate|diploma|b\.?s\.?c?|m\.?s\.?c?|b\.?a\.?|m\.?b\.?a|b\.?tech|m\.?tech)\b",
    re.IGNORECASE,
)
INSTITUTION_RE = re.compile(r"\b(university|college|institute|school|academy|polytechnic)\b", re.IGNORECASE)
COMMA_LIST_RE = re.compile(r"\b[a-zA-Z+#.]{2,}(?:\s*,\s*[a-zA-Z+#.]{2,}){2,}")
LINK_RE = re.compile(r"github|website|www\.|https?://", re.IGNORECASE)


def _no_year_project(line: str) -> bool:
    return bool(PROJECT_WORD_RE.search(line)) and not YEAR_RE.search(line)


COMMON_RULES: List[FeatureRule] = [
    FeatureRule("link", lambda line: bool(LINK_RE.search(line)), -5),
]

FEATURE_RULES: Dict[str, List[FeatureRule]] = {
    "SKILLS": COMMON_RULES + [
        FeatureRule("proficiency_phrase", _rx(r"\b(proficient|skilled|familiar|experienced?|expertise)\s+(in|with)\b"), 5),
        FeatureRule("category_label", _rx(r"\b(languages|frameworks|tools|technologies|databases|libraries)\s*:"), 5),
        FeatureRule("tech_names", lambda line: bool(TECH_NAMES_RE.search(line)), 4),
        FeatureRule("comma_list", lambda line: bool(COMMA_LIST_RE.search(line)), 3),
        FeatureRule("contains_year", lambda line: bool(YEAR_RE.search(line)), -3),
        FeatureRule("contains_month", _rx(r"\b(jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)\b"), -4),
    ],
    "EXPERIENCE": COMMON_RULES + [
        FeatureRule("date_range", lambda line: bool(YEAR_RANGE_RE.search(line)), 5),
        FeatureRule("month_year", lambda line: bool(MONTH_YEAR_RE.search(line)), 5),
        FeatureRule("job_title", lambda line: bool(JOB_TITLE_RE.search(line)), 4),
        FeatureRule("company", lambda line: bool(COMPANY_RE.search(line)), 3),
        FeatureRule("project_without_year", _no_year_project, -3),
    ],
    "PROJECTS": COMMON_RULES + [
        FeatureRule("project_words", lambda line: bool(PROJECT_WORD_RE.search(line)), 5),
        FeatureRule("project_links", _rx(r"\b(github|demo|website)\b"), 3),
        FeatureRule("tech_phrase", _rx(r"\b(using|utilized|with|technologies|tech stack)\b"), 2),
        FeatureRule("company", lambda line: bool(COMPANY_RE.search(line)), -4),
        FeatureRule("job_title", _rx(r"\b(senior|junior|lead|manager|director|coordinator)\b"), -3),
    ],
    "EDUCATION": [
        FeatureRule("degree", lambda line: bool(DEGREE_RE.search(line)), 5),
        FeatureRule("institution", lambda line: bool(INSTITUTION_RE.search(line)), 4),
        FeatureRule("gpa", _rx(r"\b(gpa|cgpa|grade)\b"), 3),
        FeatureRule("graduation", _rx(r"\b(graduat\w*|coursework|honou?rs|dean'?s list)\b"), 2),
        FeatureRule("company", lambda line: bool(COMPANY_RE.search(line)), -3),
    ],
}


def feature_score(line: str, section_type: str) -> int:
    """Signed weighted score of one line against a category's rule table."""
    return sum(rule.weight for rule in FEATURE_RULES.get(section_type, []) if rule.match(line))


def positive_hits(line: str, section_type: str) -> int:
    """Number of positive-weight rules the line matches (+1 each)."""
    return sum(1 for rule in FEATURE_RULES.get(section_type, []) if rule.weight > 0 and rule.match(line))


def rank_lines(lines: List[str], section_type: str) -> List[Tuple[str, int]]:
    """
    Score every line and keep the positive ones, best first.
    Ties keep document order.
    """
    scored = [(line, feature_score(line, section_type)) for line in lines]
    kept = [(line, score) for line, score in scored if score > 0]
    return sorted(kept, key=lambda item: item[1], reverse=True)
