"""Configuration settings for the SkyTrack ingestion service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger("skytrack.config")


def _get_bool(env_var: str, default: bool = False) -> bool:
    """Parse an environment variable into a boolean with a default."""

    value = os.getenv(env_var)
    if value is None:
        return default

    return value.lower() in {"1", "true", "yes", "on"}


def _get_list(env_var: str, default: str = "") -> list[str]:
    """Split a comma-separated environment variable, dropping blanks."""

    raw = os.getenv(env_var, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    """Application configuration loaded from environment variables."""

    skytrack_env: str = os.getenv("SKYTRACK_ENV", "local")
    log_level: str = os.getenv("SKYTRACK_LOG_LEVEL", "INFO")

    # Dump1090 / readsb JSON ingestion
    dump1090_enabled: bool = _get_bool("DUMP1090_ENABLED", default=True)
    dump1090_urls: list[str] = field(
        default_factory=lambda: _get_list(
            "DUMP1090_URLS", "http://localhost:8080/data/aircraft.json"
        )
    )
    dump1090_name: str = os.getenv("DUMP1090_NAME", "Dump1090")
    dump1090_poll_interval: float = float(os.getenv("DUMP1090_POLL_INTERVAL", "5.0"))
    dump1090_timeout: float = float(os.getenv("DUMP1090_TIMEOUT", "5.0"))

    # Track table
    track_history_seconds: float = float(os.getenv("TRACK_HISTORY_SECONDS", "300"))


settings = Settings()

if not settings.dump1090_urls and settings.dump1090_enabled:
    logger.warning("Dump1090 ingestion enabled but no DUMP1090_URLS configured")

__all__ = ["settings", "Settings"]
