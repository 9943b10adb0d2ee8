"""
Ordered extraction strategies.

Every field extractor is a list of named strategies. Each strategy takes the
section lines and returns a list of results, or None when it does not apply.
run_strategies() stops at the first non-empty result, so the fallback order is
the list order.
"""

import logging
from typing import Any, Callable, List, NamedTuple, Optional, Sequence, Tuple

from app.core.schemas import Line

logger = logging.getLogger(__name__)


class ExtractionStrategy(NamedTuple):
    name: str
    run: Callable[[List[Line]], Optional[List[Any]]]


def run_strategies(
    field: str,
    lines: List[Line],
    strategies: Sequence[ExtractionStrategy],
) -> Tuple[List[Any], Optional[str]]:
    """
    Run strategies in order and return (results, strategy_name).

    Returns ([], None) when every strategy comes back empty.
    """
    for strategy in strategies:
        results = strategy.run(lines)
        if results:
            logger.debug("%s: strategy '%s' produced %d entries", field, strategy.name, len(results))
            return results, strategy.name
    logger.debug("%s: no strategy produced entries from %d lines", field, len(lines))
    return [], None
