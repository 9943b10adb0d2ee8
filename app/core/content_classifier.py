"""
Content-based line classifier, used when no section headers are found.

Pass 1 scores every line against the four feature rule tables (+1 per positive
rule hit) and assigns the strictly best category. Pass 2 resolves runs of
unclassified lines by voting over up to three classified neighbours on each
side, falling back to in-cluster formatting signals when the neighbours give
no answer.
"""

import logging
import re
from collections import Counter
from typing import Dict, List, Optional

from app.core.feature_rules import COMMA_LIST_RE, JOB_TITLE_RE, positive_hits
from app.core.schemas import Line, Section, SectionType
from app.core.text_normalization import MONTH_YEAR_RE, YEAR_RE, is_bullet

logger = logging.getLogger(__name__)

CATEGORIES: List[SectionType] = ["SKILLS", "EXPERIENCE", "PROJECTS", "EDUCATION"]
NEIGHBOUR_WINDOW = 3
COLON_LIST_RE = re.compile(r"^[^:]{2,40}:\s*\S+(?:\s*[,;|]\s*\S+)+")


def classify_line(text: str) -> Optional[SectionType]:
    """Return the category with the strictly highest rule count, or None on tie/zero."""
    scores = {category: positive_hits(text, category) for category in CATEGORIES}
    best = max(scores.values())
    if best == 0:
        return None
    winners = [c for c, s in scores.items() if s == best]
    return winners[0] if len(winners) == 1 else None


def _strict_winner(votes: Counter, among: Optional[List[SectionType]] = None) -> Optional[SectionType]:
    candidates = [(c, n) for c, n in votes.items() if n > 0 and (among is None or c in among)]
    if not candidates:
        return None
    top = max(n for _, n in candidates)
    winners = [c for c, n in candidates if n == top]
    return winners[0] if len(winners) == 1 else None


def _signal_votes(cluster: List[Line]) -> Counter:
    """Formatting signals inside an unclassified cluster."""
    votes: Counter = Counter()
    for line in cluster:
        text = line.text
        if YEAR_RE.search(text) or MONTH_YEAR_RE.search(text):
            votes["EXPERIENCE"] += 1
        if JOB_TITLE_RE.search(text):
            votes["EXPERIENCE"] += 1
        if COMMA_LIST_RE.search(text) or COLON_LIST_RE.match(text):
            votes["SKILLS"] += 1
        if is_bullet(text):
            votes["SKILLS"] += 1
    return votes


def _resolve_cluster(
    labels: List[Optional[SectionType]],
    start: int,
    end: int,
    cluster: List[Line],
) -> Optional[SectionType]:
    neighbours = [labels[i] for i in range(max(0, start - NEIGHBOUR_WINDOW), start)]
    neighbours += [labels[i] for i in range(end + 1, min(len(labels), end + 1 + NEIGHBOUR_WINDOW))]
    context = Counter(n for n in neighbours if n is not None)

    winner = _strict_winner(context)
    if winner:
        return winner

    signals = _signal_votes(cluster)
    if context:
        # Neighbours tied: formatting signals break the tie among the tied categories
        top = max(context.values())
        tied = [c for c, n in context.items() if n == top]
        return _strict_winner(signals, among=tied)
    return _strict_winner(signals)


def classify_lines(lines: List[Line]) -> Dict[SectionType, Section]:
    """
    Classify every line into a section without relying on headers.

    Clusters that cannot be resolved are dropped. When nothing at all can be
    classified, bullet lines become SKILLS and year-bearing lines EXPERIENCE.
    """
    labels: List[Optional[SectionType]] = [classify_line(line.text) for line in lines]
    first_pass = sum(1 for label in labels if label)
    direct = list(labels)

    i = 0
    while i < len(lines):
        if labels[i] is not None:
            i += 1
            continue
        j = i
        while j + 1 < len(lines) and labels[j + 1] is None:
            j += 1
        resolved = _resolve_cluster(direct, i, j, lines[i:j + 1])
        if resolved:
            for k in range(i, j + 1):
                labels[k] = resolved
        i = j + 1

    logger.debug(
        "Content classifier: %d lines, %d classified directly, %d after cluster voting",
        len(lines), first_pass, sum(1 for label in labels if label),
    )

    buckets: Dict[SectionType, List[Line]] = {}
    for line, label in zip(lines, labels):
        if label:
            buckets.setdefault(label, []).append(line)

    if not buckets:
        bullets = [line for line in lines if is_bullet(line.text)]
        dated = [line for line in lines if YEAR_RE.search(line.text)]
        if bullets:
            buckets["SKILLS"] = bullets
        if dated:
            buckets["EXPERIENCE"] = dated
        if buckets:
            logger.debug("Content classifier fell back to bullet/date line grouping")

    return {category: Section(section_type=category, lines=found) for category, found in buckets.items()}
