import logging
import re
from typing import List, NamedTuple

from app.core.dates import DATE_RANGE_RE
from app.core.schemas import Line
from app.core.text_normalization import is_all_caps, is_bullet, strip_bullet

logger = logging.getLogger(__name__)

SUBSECTION_YEAR_RANGE_RE = re.compile(r"\d{4}\s*(?:-|–|—|to)\s*(?:\d{4}|present)", re.IGNORECASE)
CAPS_TITLE_MAX_LENGTH = 50
DESCRIPTION_DELIMITER = " | "


class Subsection(NamedTuple):
    lines: List[Line]

    @property
    def title(self) -> str:
        return strip_bullet(self.lines[0].text) if self.lines else ""

    @property
    def description(self) -> str:
        return DESCRIPTION_DELIMITER.join(strip_bullet(line.text) for line in self.lines[1:])

    @property
    def is_bullet_run(self) -> bool:
        return bool(self.lines) and all(is_bullet(line.text) for line in self.lines)


def _starts_subsection(line: Line, prev: Line) -> bool:
    # Non-consecutive indexes mean the lines come from separate parts of the document
    if line.index - prev.index > 1:
        return True
    if is_all_caps(line.text) and len(line.text) < CAPS_TITLE_MAX_LENGTH:
        return True
    if SUBSECTION_YEAR_RANGE_RE.search(line.text):
        return True
    if is_bullet(line.text) and not is_bullet(prev.text):
        return True
    return False


def divide_into_subsections(lines: List[Line]) -> List[Subsection]:
    """
    Group a section's lines into logical entries using formatting cues.

    A new subsection starts at a gap in line indexes, a short all-caps line, a line
    with a year range ("2019 - 2021", "2020 to present"), or the first bullet
    after a non-bullet line. The first line of each subsection is its title.

    Examples:
        ["ACME CORP", "Engineer 2019 - 2021", "• Built APIs", "• Led team"]
        -> [["ACME CORP"], ["Engineer 2019 - 2021"], ["• Built APIs", "• Led team"]]
    """
    if not lines:
        return []

    subsections: List[Subsection] = []
    current: List[Line] = [lines[0]]

    for prev, line in zip(lines, lines[1:]):
        if _starts_subsection(line, prev):
            subsections.append(Subsection(current))
            current = []
        current.append(line)

    if current:
        subsections.append(Subsection(current))

    logger.debug("Divided %d lines into %d subsections", len(lines), len(subsections))
    return subsections


def split_dated_titles(sub: Subsection) -> List[Subsection]:
    """
    Split a subsection where a dated, non-bullet line follows bullet lines.

    "Title, Company, Jun 2018 - Dec 2020" after the previous role's bullets
    starts the next role even though it carries no four-digit year range.
    """
    parts: List[List[Line]] = [[]]
    for line in sub.lines:
        current = parts[-1]
        if (
            current
            and is_bullet(current[-1].text)
            and not is_bullet(line.text)
            and DATE_RANGE_RE.search(line.text)
        ):
            current = []
            parts.append(current)
        current.append(line)
    return [Subsection(lines) for lines in parts if lines]


def attach_bullet_runs(subsections: List[Subsection]) -> List[Subsection]:
    """Fold each all-bullet subsection into the entry above it, so titles keep their bullets."""
    merged: List[Subsection] = []
    for sub in (part for raw in subsections for part in split_dated_titles(raw)):
        if merged and sub.is_bullet_run and not merged[-1].is_bullet_run:
            merged[-1] = Subsection(merged[-1].lines + sub.lines)
        else:
            merged.append(sub)
    return merged
