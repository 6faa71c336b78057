"""Environment-driven settings."""

from pathlib import Path

import pytest

from challenge_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from challenge_app.utils.config import get_app_config


@pytest.fixture(autouse=True)
def fresh_config():
    get_app_config.cache_clear()
    yield
    get_app_config.cache_clear()


def test_defaults(monkeypatch):
    for name in ("CHALLENGE_HOST", "CHALLENGE_PORT", "CHALLENGE_LOG_LEVEL", "CHALLENGE_DAY_TEMPLATES"):
        monkeypatch.delenv(name, raising=False)
    config = get_app_config()
    assert (config.host, config.port, config.log_level) == (DEFAULT_HOST, DEFAULT_PORT, "INFO")
    assert config.day_templates_path is None


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CHALLENGE_HOST", "127.0.0.1")
    monkeypatch.setenv("CHALLENGE_PORT", "9100")
    monkeypatch.setenv("CHALLENGE_LOG_LEVEL", "debug")
    monkeypatch.setenv("CHALLENGE_DAY_TEMPLATES", "seed/days.json")
    config = get_app_config()
    assert config.port == 9100
    assert config.log_level == "DEBUG"
    assert config.day_templates_path == Path("seed/days.json")
