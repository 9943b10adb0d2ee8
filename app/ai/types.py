from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class TimingHints:
    """
    Pacing hints for a single completion call.

    skip_delay: send immediately
    force_delay: always wait the full delay before sending
    custom_delay_ms: delay to use instead of the provider default
    """
    skip_delay: bool = False
    force_delay: bool = False
    custom_delay_ms: Optional[int] = None


class TextCompletionProvider(Protocol):
    async def complete(self, prompt: str, hints: Optional[TimingHints] = None) -> str: ...


def pacing_delay(hints: Optional[TimingHints], default_delay_ms: int, elapsed_s: Optional[float]) -> float:
    """
    Seconds to wait before sending a prompt.

    Without hints the delay only covers what is left of the minimum spacing
    since the previous call (elapsed_s is None when there was none).
    """
    hints = hints or TimingHints()
    if hints.skip_delay:
        return 0.0
    delay_s = (hints.custom_delay_ms if hints.custom_delay_ms is not None else default_delay_ms) / 1000.0
    if hints.force_delay:
        return delay_s
    if elapsed_s is None:
        return 0.0
    return max(0.0, delay_s - elapsed_s)
