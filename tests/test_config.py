"""Tests for the YAML config layer and weight presets."""

import pytest

from app.core.config import get_config_value, load_weights, reset_config_cache
from app.core.errors import ConfigError
from app.core.schemas import MatchWeights


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    monkeypatch.delenv("RESUME_MATCH_CONFIG", raising=False)
    monkeypatch.delenv("RESUME_MATCH_WEIGHTS", raising=False)
    reset_config_cache()
    yield
    reset_config_cache()


def test_default_preset_matches_builtin_weights():
    assert load_weights() == MatchWeights()


def test_named_preset():
    weights = load_weights("simple")
    assert weights.preferred_skills == 0.0
    assert weights.llm_analysis == 0.0
    assert weights.required_skills == pytest.approx(0.40)


def test_env_selects_preset(monkeypatch):
    monkeypatch.setenv("RESUME_MATCH_WEIGHTS", "simple")
    assert load_weights().llm_analysis == 0.0


def test_unknown_preset():
    with pytest.raises(ConfigError):
        load_weights("does-not-exist")


def test_dot_path_lookup():
    assert get_config_value("cache.ttl_seconds") == 300
    assert get_config_value("retry.max_attempts") == 3
    assert get_config_value("missing.key", "fallback") == "fallback"


def test_weights_must_sum_to_one(tmp_path, monkeypatch):
    path = tmp_path / "matching.yaml"
    path.write_text(
        "matching:\n  preset: bad\n  presets:\n    bad:\n      required_skills: 0.9\n      experience: 0.9\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("RESUME_MATCH_CONFIG", str(path))
    with pytest.raises(ConfigError):
        load_weights()


def test_invalid_yaml(tmp_path, monkeypatch):
    path = tmp_path / "matching.yaml"
    path.write_text("matching: [unclosed\n", encoding="utf-8")
    monkeypatch.setenv("RESUME_MATCH_CONFIG", str(path))
    with pytest.raises(ConfigError):
        get_config_value("matching.preset")


def test_missing_file(tmp_path, monkeypatch):
    monkeypatch.setenv("RESUME_MATCH_CONFIG", str(tmp_path / "nope.yaml"))
    with pytest.raises(ConfigError):
        load_weights()
