"""
Project extraction from a PROJECTS section.

Strategies, in order:
  1. build_signals: lines that describe building something ("Developed ...", "... app")
  2. subsections: formatting-cue entries from the subsection divider
  3. bullet_or_link_lines: bullets and lines with URLs
  4. first_long_lines: the first few substantial lines
"""

import logging
import re
from typing import List, Optional, Tuple

from app.core.schemas import Line, ProjectEntry
from app.core.skills_extractor import find_technologies
from app.core.strategies import ExtractionStrategy, run_strategies
from app.core.subsection_divider import attach_bullet_runs, divide_into_subsections
from app.core.text_normalization import GITHUB_RE, URL_RE, is_bullet, strip_bullet

logger = logging.getLogger(__name__)

BUILD_SIGNAL_RE = re.compile(
    r"\b(developed|built|implemented|created|designed|engineered)\b"
    r"|\b(project|application|app|website|platform|system|tool|bot|dashboard)\b",
    re.IGNORECASE,
)
TECH_PHRASE_RE = re.compile(
    r"\b(?:technologies|tech stack|tech|stack|built with|using|utilizing)\b\s*:?\s*(.+)$",
    re.IGNORECASE,
)
# Words that end a technology list inside a sentence ("using React to build ...")
TECH_LIST_STOP_RE = re.compile(r"\b(?:to|for|that|which|in|on|with)\b.*$", re.IGNORECASE)
NAME_SPLIT_RE = re.compile(r"\s+[-–—|:]\s+|:\s+|\s+using\s+|\s*\(", re.IGNORECASE)

FIRST_LINES_LIMIT = 3
FIRST_LINE_MIN_LENGTH = 10
MAX_NAME_WORDS = 10
MIN_ENTRY_LENGTH = 5


def _technologies_from(text: str) -> List[str]:
    """Technologies from an explicit "using X, Y" phrase plus any known names in the text."""
    found: List[str] = []
    text = GITHUB_RE.sub("", URL_RE.sub("", text))
    m = TECH_PHRASE_RE.search(text)
    if m:
        listed = TECH_LIST_STOP_RE.sub("", m.group(1))
        for token in re.split(r"[,;|]|\band\b", listed):
            token = token.strip(" .()")
            if token and len(token) <= 30 and len(token.split()) <= 3:
                found.append(token)
    found.extend(find_technologies(text))

    seen = set()
    out: List[str] = []
    for tech in found:
        if tech.lower() not in seen:
            seen.add(tech.lower())
            out.append(tech)
    return out


def _split_name(summary: str) -> Tuple[str, str]:
    parts = NAME_SPLIT_RE.split(summary, maxsplit=1)
    name = parts[0].strip(" .")
    rest = summary[len(parts[0]):].strip(" -–—|:(") if len(parts) > 1 else ""
    if len(name.split()) > MAX_NAME_WORDS:
        return "", summary
    return name, rest


def build_project(summary: str, description: str = "") -> Optional[ProjectEntry]:
    """
    Turn a project's summary line (plus optional description) into a ProjectEntry.

    Examples:
        "Chat App - realtime messaging using React, Node.js (github.com/me/chat)"
        -> name "Chat App", technologies ["React", "Node.js"], url "github.com/me/chat"
    """
    summary = strip_bullet(summary)
    combined = f"{summary} {description}".strip()

    url_match = URL_RE.search(combined)
    url = url_match.group(0).rstrip(".") if url_match else ""
    if not url:
        m = GITHUB_RE.search(combined)
        url = m.group(0).rstrip(".") if m else ""

    name, rest = _split_name(GITHUB_RE.sub("", URL_RE.sub("", summary)).replace("()", "").strip(" ()"))
    if rest and not description:
        description = rest
    elif rest:
        description = f"{rest} | {description}"

    entry = ProjectEntry(
        name=name,
        description=description.strip(" ()"),
        technologies=_technologies_from(combined),
        url=url,
    )
    if len(f"{entry.name} {entry.description}".strip()) < MIN_ENTRY_LENGTH:
        return None
    return entry


def finalize_projects(entries: List[ProjectEntry]) -> List[ProjectEntry]:
    seen = set()
    out: List[ProjectEntry] = []
    for entry in entries:
        key = (entry.name.lower(), entry.description.lower())
        if key in seen:
            continue
        seen.add(key)
        out.append(entry)
    return out


def _from_build_signals(lines: List[Line]) -> Optional[List[ProjectEntry]]:
    entries: List[ProjectEntry] = []
    for line in lines:
        if BUILD_SIGNAL_RE.search(line.text):
            entry = build_project(line.text)
            if entry:
                entries.append(entry)
    return finalize_projects(entries) or None


def _from_subsections(lines: List[Line]) -> Optional[List[ProjectEntry]]:
    raw = divide_into_subsections(lines)
    if len(raw) <= 1 and len(lines) > 1:
        return None
    entries = [build_project(sub.title, sub.description) for sub in attach_bullet_runs(raw)]
    return finalize_projects([e for e in entries if e]) or None


def _from_bullets_or_links(lines: List[Line]) -> Optional[List[ProjectEntry]]:
    entries: List[ProjectEntry] = []
    for line in lines:
        if is_bullet(line.text) or URL_RE.search(line.text):
            entry = build_project(line.text)
            if entry:
                entries.append(entry)
    return finalize_projects(entries) or None


def _from_first_long_lines(lines: List[Line]) -> Optional[List[ProjectEntry]]:
    long_lines = [line for line in lines if len(line.text) > FIRST_LINE_MIN_LENGTH][:FIRST_LINES_LIMIT]
    entries = [build_project(line.text) for line in long_lines]
    return finalize_projects([e for e in entries if e]) or None


PROJECT_STRATEGIES = [
    ExtractionStrategy("build_signals", _from_build_signals),
    ExtractionStrategy("subsections", _from_subsections),
    ExtractionStrategy("bullet_or_link_lines", _from_bullets_or_links),
    ExtractionStrategy("first_long_lines", _from_first_long_lines),
]


def extract_projects(lines: List[Line]) -> List[ProjectEntry]:
    projects, _ = run_strategies("projects", lines, PROJECT_STRATEGIES)
    return projects
