import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from app.core.errors import ConfigError
from app.core.schemas import MatchWeights

logger = logging.getLogger(__name__)

_CONFIG_CACHE: Optional[Dict[str, Any]] = None
_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "matching.yaml"


def _config_path() -> Path:
    override = os.getenv("RESUME_MATCH_CONFIG", "").strip()
    return Path(override) if override else _DEFAULT_CONFIG_PATH


def get_config() -> Dict[str, Any]:
    """Load config/matching.yaml once and cache it."""
    global _CONFIG_CACHE

    if _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    path = _config_path()
    if not path.exists():
        raise ConfigError(f"Matching config not found at '{path}'. Expected file: config/matching.yaml")

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read matching config '{path}': {exc}") from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in matching config '{path}': {exc}") from exc

    if not isinstance(parsed, dict):
        raise ConfigError(f"Invalid matching config '{path}': expected a top-level mapping.")

    logger.debug("Loaded matching config from %s", path)
    _CONFIG_CACHE = parsed
    return _CONFIG_CACHE


def reset_config_cache() -> None:
    global _CONFIG_CACHE
    _CONFIG_CACHE = None


def get_config_value(path: str, default: Any = None) -> Any:
    """Get nested config value using dot path notation, e.g. 'cache.ttl_seconds'."""
    if not path:
        return default

    current: Any = get_config()
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


def load_weights(preset: Optional[str] = None) -> MatchWeights:
    """
    Build MatchWeights from a named preset.

    Resolution order: explicit argument, RESUME_MATCH_WEIGHTS env var,
    matching.preset in the config file, then "default".

    Raises:
        ConfigError: unknown preset or weights that do not sum to 1.0
    """
    name = preset or os.getenv("RESUME_MATCH_WEIGHTS", "").strip() or get_config_value("matching.preset", "default")
    presets = get_config_value("matching.presets", {}) or {}
    values = presets.get(name)
    if values is None:
        raise ConfigError(f"Unknown weight preset '{name}'. Available: {sorted(presets)}")
    try:
        return MatchWeights(**values)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid weights for preset '{name}': {exc}") from exc
