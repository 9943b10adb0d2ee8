import logging
import os
from functools import lru_cache
from typing import Optional

from app.ai.analyzer import CandidateAnalyzer
from app.ai.extractor import StructuredExtractor
from app.ai.providers.openai_provider import OpenAIProvider, from_env
from app.core.config import get_config_value
from app.core.errors import ConfigError, ExternalServiceError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _provider() -> Optional[OpenAIProvider]:
    if not os.getenv("OPENAI_API_KEY", "").strip():
        logger.info("OPENAI_API_KEY not set; external extraction and analysis disabled")
        return None
    try:
        delay_ms = int(get_config_value("external.default_delay_ms", 0))
    except ConfigError as exc:
        logger.warning("Config unavailable, using no call pacing: %s", exc)
        delay_ms = 0
    try:
        return from_env(default_delay_ms=delay_ms)
    except ExternalServiceError as exc:
        logger.warning("External provider disabled: %s", exc)
        return None


@lru_cache(maxsize=1)
def get_extractor() -> Optional[StructuredExtractor]:
    provider = _provider()
    if provider is None:
        return None
    try:
        return StructuredExtractor.from_config(provider)
    except ConfigError as exc:
        logger.warning("Config unavailable, extractor uses defaults: %s", exc)
        return StructuredExtractor(provider)


@lru_cache(maxsize=1)
def get_analyzer() -> Optional[CandidateAnalyzer]:
    provider = _provider()
    if provider is None:
        return None
    try:
        return CandidateAnalyzer.from_config(provider)
    except ConfigError as exc:
        logger.warning("Config unavailable, analyzer uses defaults: %s", exc)
        return CandidateAnalyzer(provider)
