"""Settings parsing and derived values."""

from __future__ import annotations

from pathlib import Path

import pytest

from lingorelay.config import Environment, get_settings


def test_defaults():
    s = get_settings()
    assert s.app_port == 3000
    assert (s.source_language, s.target_language) == ("en", "fa")
    assert s.max_requests_per_day == 1000
    assert s.quota_window_seconds == 86_400
    assert len(s.libretranslate_mirrors) == 3


def test_paths_follow_state_dir(tmp_path):
    s = get_settings(state_dir=tmp_path)
    assert s.quota_stats_path == tmp_path / "api_usage_stats.json"
    assert s.projector_text_path == Path(tmp_path) / "projector_text.txt"


def test_mirrors_are_trimmed():
    s = get_settings(libretranslate_endpoints=" https://a.test/ ,, https://b.test ")
    assert s.libretranslate_mirrors == ("https://a.test", "https://b.test")


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("MAX_REQUESTS_PER_DAY", "25")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    s = get_settings()
    assert s.max_requests_per_day == 25
    assert s.log_level == "DEBUG"


def test_production_without_credentials_warns():
    with pytest.warns(UserWarning):
        s = get_settings(app_env=Environment.PRODUCTION)
    assert s.is_production
