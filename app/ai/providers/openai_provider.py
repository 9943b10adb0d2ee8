import asyncio
import logging
import os
import time
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from app.ai.types import TimingHints, pacing_delay
from app.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """Text completion over OpenAI chat completions, one user message per prompt."""

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
        max_retries: int = 2,
        temperature: float = 0.0,
        default_delay_ms: int = 0,
    ):
        self._model = model
        self._temperature = temperature
        self._default_delay_ms = default_delay_ms
        self._last_call: Optional[float] = None
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise ExternalServiceError("OPENAI_API_KEY is missing")

        self._client = AsyncOpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=float(os.getenv("OPENAI_TIMEOUT_S", str(timeout_s))),
            max_retries=int(os.getenv("OPENAI_MAX_RETRIES", str(max_retries))),
        )

    @property
    def model(self) -> str:
        return self._model

    async def complete(self, prompt: str, hints: Optional[TimingHints] = None) -> str:
        elapsed = None if self._last_call is None else time.monotonic() - self._last_call
        delay = pacing_delay(hints, self._default_delay_ms, elapsed)
        if delay > 0:
            logger.debug("Pacing completion call for %.2fs", delay)
            await asyncio.sleep(delay)
        self._last_call = time.monotonic()

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self._temperature,
            )
        except OpenAIError as exc:
            raise ExternalServiceError(f"OpenAI completion failed: {exc}") from exc

        if not response.choices:
            raise ExternalServiceError("OpenAI completion returned no choices")
        return response.choices[0].message.content or ""


def from_env(default_delay_ms: int = 0) -> OpenAIProvider:
    api_key = os.getenv("OPENAI_API_KEY", "").strip()
    if not api_key:
        raise ExternalServiceError("OPENAI_API_KEY is missing")

    model = os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip()
    base_url = os.getenv("OPENAI_BASE_URL", "").strip() or None

    timeout_s = float(os.getenv("OPENAI_TIMEOUT_S", "30"))
    max_retries = int(os.getenv("OPENAI_MAX_RETRIES", "2"))

    return OpenAIProvider(
        api_key=api_key,
        model=model,
        base_url=base_url,
        timeout_s=timeout_s,
        max_retries=max_retries,
        default_delay_ms=default_delay_ms,
    )
