"""
Experience extraction from an EXPERIENCE section.

Strategies, in order:
  1. role_signals: lines that name the role kind ("Internship", "Open source contributor")
  2. subsections: formatting-cue entries from the subsection divider
  3. feature_ranked: lines ranked by the experience feature rules, for sections
     the divider cannot split
  4. dated_or_titled_lines: any line with a month/year date or a job-title word
"""

import logging
import re
from typing import List, Optional, Tuple

from app.core.dates import find_date_range
from app.core.feature_rules import JOB_TITLE_RE, rank_lines
from app.core.schemas import ExperienceEntry, Line
from app.core.strategies import ExtractionStrategy, run_strategies
from app.core.subsection_divider import Subsection, attach_bullet_runs, divide_into_subsections
from app.core.text_normalization import MONTH_YEAR_RE, YEAR_RANGE_RE, is_all_caps, strip_bullet

logger = logging.getLogger(__name__)

ROLE_SIGNAL_RE = re.compile(r"\b(internships?|experience|contributor|trainee|apprentice(?:ship)?)\b", re.IGNORECASE)
ROLE_LINE_MIN_LENGTH = 40
MIN_ENTRY_LENGTH = 5

# "Engineer at Acme", "Engineer @ Acme", "Acme | Engineer", "Engineer - Acme", "Engineer, Acme"
SEGMENT_SPLIT_RE = re.compile(r"\s+(?:at|@)\s+|\s*[|•]\s*|\s+[-–—]\s+|\s*,\s*|\s*:\s+")
LOCATION_RE = re.compile(r"^(?:remote|hybrid|on-?site|[A-Z][A-Za-z .'-]+,\s*[A-Z]{2})$", re.IGNORECASE)
CITY_STATE_TAIL_RE = re.compile(r"(?:^|[,|•]\s*|\s[-–—]\s)([A-Z][A-Za-z .'-]+,\s*[A-Z]{2})\s*$")


def _split_title_company(text: str) -> Tuple[str, str, str]:
    """Split "Title at Company, City, ST" style text into (title, company, location)."""
    location = ""
    m = CITY_STATE_TAIL_RE.search(text)
    if m and m.start(1) > 0:
        location = m.group(1).strip()
        text = text[:m.start(1)].rstrip(" ,|-–")

    segments = [s.strip(" ()") for s in SEGMENT_SPLIT_RE.split(text) if s and s.strip(" ()")]
    remaining: List[str] = []
    for seg in segments:
        if not location and LOCATION_RE.match(seg):
            location = seg
        else:
            remaining.append(seg)

    if not remaining:
        return "", "", location

    title_idx = next((i for i, seg in enumerate(remaining) if JOB_TITLE_RE.search(seg)), 0)
    title = remaining[title_idx]
    others = [seg for i, seg in enumerate(remaining) if i != title_idx]
    company = others[0] if others else ""
    return title, company, location


def build_experience(summary: str, description: str = "", heading: str = "") -> Optional[ExperienceEntry]:
    """
    Turn an entry's summary line (plus optional description and company heading)
    into an ExperienceEntry. Returns None when nothing usable remains.

    Examples:
        "Software Engineer at Acme Corp, Jan 2020 - Present"
        -> title "Software Engineer", company "Acme Corp", start "2020-01", end None
    """
    summary = strip_bullet(summary)
    start, end, matched = find_date_range(summary)
    if matched is None and description:
        start, end, matched_desc = find_date_range(description)
        if matched_desc is None:
            start = end = None
    if matched:
        summary = summary.replace(matched, " ").strip(" ,|-–()")
    summary = re.sub(r"\s{2,}", " ", summary)

    title, company, location = _split_title_company(summary)
    if heading and not company:
        company = strip_bullet(heading)
    elif heading and company and company != heading:
        description = f"{heading} | {description}" if description else heading

    entry = ExperienceEntry(
        title=title,
        company=company,
        location=location,
        start_date=start or "",
        end_date=end,
        description=description.strip(),
    )
    if not (entry.title or entry.company or entry.description or entry.start_date):
        return None
    return entry


def _entry_text(entry: ExperienceEntry) -> str:
    return " ".join(p for p in (entry.title, entry.company, entry.description) if p)


def finalize_experience(entries: List[ExperienceEntry]) -> List[ExperienceEntry]:
    """Drop short entries and duplicates, preserving order."""
    seen = set()
    out: List[ExperienceEntry] = []
    for entry in entries:
        if len(_entry_text(entry)) < MIN_ENTRY_LENGTH:
            continue
        key = (entry.title.lower(), entry.company.lower(), entry.start_date, entry.description.lower())
        if key in seen:
            continue
        seen.add(key)
        out.append(entry)
    return out


def _from_role_signals(lines: List[Line]) -> Optional[List[ExperienceEntry]]:
    entries: List[ExperienceEntry] = []
    for i, line in enumerate(lines):
        text = strip_bullet(line.text)
        if not ROLE_SIGNAL_RE.search(text):
            continue
        if len(text) >= ROLE_LINE_MIN_LENGTH or i + 1 >= len(lines):
            entry = build_experience(text)
        else:
            entry = build_experience(text, strip_bullet(lines[i + 1].text))
        if entry:
            entries.append(entry)
    return finalize_experience(entries) or None


def _is_heading(sub: Subsection) -> bool:
    # A lone all-caps line without dates names the company of the entry below it
    if len(sub.lines) != 1:
        return False
    text = sub.lines[0].text
    return is_all_caps(text) and not YEAR_RANGE_RE.search(text)


def _from_subsections(lines: List[Line]) -> Optional[List[ExperienceEntry]]:
    raw = divide_into_subsections(lines)
    if len(raw) <= 1 and len(lines) > 1:
        return None

    entries: List[ExperienceEntry] = []
    heading = ""
    for sub in attach_bullet_runs(raw):
        if _is_heading(sub):
            if heading:
                entries.append(build_experience(heading))
            heading = sub.title
            continue
        entries.append(build_experience(sub.title, sub.description, heading=heading))
        heading = ""
    if heading:
        entries.append(build_experience(heading))

    return finalize_experience([e for e in entries if e]) or None


def _from_feature_ranking(lines: List[Line]) -> Optional[List[ExperienceEntry]]:
    ranked = rank_lines([line.text for line in lines], "EXPERIENCE")
    entries = [build_experience(text) for text, _ in ranked]
    return finalize_experience([e for e in entries if e]) or None


def _from_dated_or_titled_lines(lines: List[Line]) -> Optional[List[ExperienceEntry]]:
    entries: List[ExperienceEntry] = []
    for line in lines:
        text = strip_bullet(line.text)
        if MONTH_YEAR_RE.search(text) or YEAR_RANGE_RE.search(text) or JOB_TITLE_RE.search(text):
            start, end, _ = find_date_range(text)
            entries.append(ExperienceEntry(description=text, start_date=start or "", end_date=end))
    return finalize_experience(entries) or None


EXPERIENCE_STRATEGIES = [
    ExtractionStrategy("role_signals", _from_role_signals),
    ExtractionStrategy("subsections", _from_subsections),
    ExtractionStrategy("feature_ranked", _from_feature_ranking),
    ExtractionStrategy("dated_or_titled_lines", _from_dated_or_titled_lines),
]


def extract_experience(lines: List[Line]) -> List[ExperienceEntry]:
    entries, _ = run_strategies("experience", lines, EXPERIENCE_STRATEGIES)
    return entries
