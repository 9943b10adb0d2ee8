"""
Date helpers shared by the extractors and the match scorer.

Resume dates arrive in many shapes ("Jan 2020", "01/2020", "2020-01", "2020",
"Present"). Everything is normalized to "YYYY" or "YYYY-MM"; open-ended dates
("Present", "Current", None) mean "now".
"""

import re
from datetime import date
from typing import Optional, Tuple

MONTH_NUMBERS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

PRESENT_WORDS = {"present", "current", "now", "today", "ongoing", "till date", "null", "none"}

_MONTH_NAME = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*\.?"
_SINGLE_DATE = rf"(?:{_MONTH_NAME}\s*,?\s*\d{{4}}|\d{{1,2}}[/.-]\d{{4}}|\d{{4}}[/.-]\d{{1,2}}|\d{{4}})"

# "Jan 2020 - Present", "01/2019 – 04/2021", "2018 to 2020"
DATE_RANGE_RE = re.compile(
    rf"({_SINGLE_DATE})\s*(?:-|–|—|to|until)\s*(Present|Current|Now|Ongoing|{_SINGLE_DATE})",
    re.IGNORECASE,
)

_MONTH_YEAR_RE = re.compile(rf"^({_MONTH_NAME})\s*,?\s*(\d{{4}})$", re.IGNORECASE)
_NUM_MONTH_YEAR_RE = re.compile(r"^(\d{1,2})[/.-](\d{4})$")
_YEAR_NUM_MONTH_RE = re.compile(r"^(\d{4})[/.-](\d{1,2})(?:[/.-]\d{1,2})?$")
_YEAR_RE = re.compile(r"^(\d{4})$")


def is_open_ended(value: Optional[str]) -> bool:
    return value is None or value.strip().lower() in PRESENT_WORDS or not value.strip()


def normalize_date(value: Optional[str]) -> Optional[str]:
    """
    Normalize a single date to "YYYY-MM" or "YYYY".

    Returns None for open-ended values and for anything unparseable.

    Examples:
        "Jan 2020" -> "2020-01"
        "3/2019" -> "2019-03"
        "2021" -> "2021"
        "Present" -> None
    """
    if value is None:
        return None
    text = value.strip()
    if not text or text.lower() in PRESENT_WORDS:
        return None

    m = _MONTH_YEAR_RE.match(text)
    if m:
        month = MONTH_NUMBERS.get(m.group(1)[:3].lower())
        return f"{m.group(2)}-{month:02d}" if month else m.group(2)

    m = _NUM_MONTH_YEAR_RE.match(text)
    if m and 1 <= int(m.group(1)) <= 12:
        return f"{m.group(2)}-{int(m.group(1)):02d}"

    m = _YEAR_NUM_MONTH_RE.match(text)
    if m and 1 <= int(m.group(2)) <= 12:
        return f"{m.group(1)}-{int(m.group(2)):02d}"

    m = _YEAR_RE.match(text)
    if m:
        return m.group(1)

    return None


def find_date_range(text: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """
    Locate a date range in free text.

    Returns:
        (start, end, matched_text). start/end are normalized; end is None for
        open-ended ranges. All three are None when no range is found.
    """
    m = DATE_RANGE_RE.search(text or "")
    if not m:
        return None, None, None
    start = normalize_date(m.group(1))
    end = normalize_date(m.group(2))
    if start is None:
        return None, None, None
    return start, end, m.group(0)


def parse_year_month(value: Optional[str], now: Optional[date] = None) -> Optional[Tuple[int, int]]:
    """
    Parse a stored date into (year, month). Open-ended values resolve to now.
    A bare year counts as January. Returns None when unparseable.
    """
    if is_open_ended(value):
        today = now or date.today()
        return today.year, today.month
    normalized = normalize_date(value)
    if normalized is None:
        return None
    if len(normalized) == 4:
        return int(normalized), 1
    year, month = normalized.split("-")
    return int(year), int(month)


def duration_years(start: Optional[str], end: Optional[str], now: Optional[date] = None) -> Optional[float]:
    """
    Month-accurate duration in fractional years.

    Returns None when the start is missing or either end is unparseable, and
    0.0 for ranges that end before they start.

    Examples:
        ("2020-01", "2022-01") -> 2.0
        ("2021-07", None) with now=2022-07 -> 1.0
    """
    if not start or is_open_ended(start):
        return None
    s = parse_year_month(start, now)
    e = parse_year_month(end, now)
    if s is None or e is None:
        return None
    months = (e[0] - s[0]) * 12 + (e[1] - s[1])
    return max(months, 0) / 12.0
