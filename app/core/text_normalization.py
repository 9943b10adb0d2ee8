"""
Text normalization utilities shared by the parsing stages.

normalize_lines() is the entry point of the heuristic pipeline: it turns raw
document text into ordered, trimmed, non-empty Line objects. When the naive
newline split yields too few lines (typical of PDFs whose text layer lost its
line breaks) a secondary re-split is applied.
"""

import logging
import re
from typing import List

from app.core.schemas import Line

logger = logging.getLogger(__name__)


# ============================================================================
# Shared patterns
# ============================================================================

BULLET_RE = re.compile(r"^[\s•●◦▪\-*>+]+")
BULLET_START_RE = re.compile(r"^\s*[•●◦▪\-*]")
MONTHS = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sept?|Oct|Nov|Dec)[a-z]*\.?"
MONTH_YEAR_RE = re.compile(rf"\b{MONTHS}\s+\d{{4}}\b", re.IGNORECASE)
YEAR_RANGE_RE = re.compile(r"\b\d{4}\s*(?:-|–|—|to)\s*(?:\d{4}|present)\b", re.IGNORECASE)
YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
URL_RE = re.compile(r"(?:https?://|www\.)[^\s)>\]|,]+", re.IGNORECASE)
GITHUB_RE = re.compile(r"\b(?:https?://)?(?:www\.)?github\.com/[A-Za-z0-9_./-]+", re.IGNORECASE)

# Secondary re-split, applied only to degraded input
_SENTENCE_END_RE = re.compile(r"\.\s+")
_BULLET_GLYPH_RE = re.compile(r"\s*([•●◦▪])")
_WIDE_GAP_RE = re.compile(r"\s{3,}")

MIN_LINES_BEFORE_RESPLIT = 3


def strip_bullet(text: str) -> str:
    """Remove leading bullet glyphs and dashes."""
    return BULLET_RE.sub("", text).strip()


def is_bullet(text: str) -> bool:
    return bool(BULLET_START_RE.match(text))


def is_all_caps(text: str) -> bool:
    """True when the line has letters and none of them are lowercase."""
    letters = [c for c in text if c.isalpha()]
    return bool(letters) and all(c.isupper() for c in letters)


def _split_and_trim(text: str) -> List[str]:
    return [ln.strip() for ln in text.split("\n") if ln.strip()]


def normalize_lines(text: str) -> List[Line]:
    """
    Split raw text into trimmed, non-empty lines with their position index.

    If three or fewer lines come out and the text is non-empty, the text is
    re-split after each sentence-ending period, before each bullet glyph and at
    runs of 3+ whitespace characters.

    Never raises; None or unusable input yields an empty list.

    Examples:
        "SKILLS\\nPython, Go" -> [Line(0, "SKILLS"), Line(1, "Python, Go")]
        "Built APIs. Led team.   • Python" -> ["Built APIs.", "Led team.", "• Python"]
    """
    if not text or not isinstance(text, str):
        return []

    text = text.replace("\r\n", "\n").replace("\r", "\n")
    parts = _split_and_trim(text)

    if len(parts) <= MIN_LINES_BEFORE_RESPLIT and text.strip():
        resplit = _SENTENCE_END_RE.sub(".\n", text)
        resplit = _BULLET_GLYPH_RE.sub(r"\n\1", resplit)
        resplit = _WIDE_GAP_RE.sub("\n", resplit)
        candidate = _split_and_trim(resplit)
        logger.debug("Degraded text detected: re-split %d lines into %d", len(parts), len(candidate))
        parts = candidate

    return [Line(index=i, text=t) for i, t in enumerate(parts)]
