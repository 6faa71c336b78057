"""Runtime settings read from the environment (and a local ``.env`` file)."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from os import getenv
from pathlib import Path

from dotenv import load_dotenv

from challenge_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT


@dataclass(frozen=True)
class AppConfig:
    """Immutable container for server settings."""

    host: str
    port: int
    log_level: str
    day_templates_path: Path | None


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    """Return settings derived from environment variables."""

    load_dotenv()
    templates = getenv("CHALLENGE_DAY_TEMPLATES", "").strip()
    return AppConfig(
        host=getenv("CHALLENGE_HOST", DEFAULT_HOST),
        port=int(getenv("CHALLENGE_PORT", str(DEFAULT_PORT))),
        log_level=getenv("CHALLENGE_LOG_LEVEL", "INFO").upper(),
        day_templates_path=Path(templates) if templates else None,
    )
