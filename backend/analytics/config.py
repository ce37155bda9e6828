"""Environment-driven settings for the analytics service."""
from __future__ import annotations

import logging
import os
from datetime import date
from functools import lru_cache

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./analytics.db"
DEFAULT_FINGERPRINT_SECRET = "portfolio-analytics-development-secret"
DEFAULT_ALL_TIME_START = "2020-01-01"


def _get_int_setting(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def get_database_url() -> str:
    return os.environ.get("ANALYTICS_DATABASE_URL", DEFAULT_DATABASE_URL)


@lru_cache(maxsize=1)
def get_fingerprint_secret() -> str:
    secret = os.environ.get("ANALYTICS_FINGERPRINT_SECRET")
    if not secret:
        logger.warning(
            "ANALYTICS_FINGERPRINT_SECRET is not set; visitor fingerprints use the development secret"
        )
        return DEFAULT_FINGERPRINT_SECRET
    return secret


def get_all_time_start() -> date:
    return date.fromisoformat(os.environ.get("ANALYTICS_ALL_TIME_START", DEFAULT_ALL_TIME_START))


def get_track_rate_limit() -> int:
    return _get_int_setting("ANALYTICS_TRACK_RATE_LIMIT", 120)


def get_track_rate_window() -> int:
    return _get_int_setting("ANALYTICS_TRACK_RATE_WINDOW", 60)


def get_presence_timeout() -> int:
    return _get_int_setting("ANALYTICS_PRESENCE_TIMEOUT_SECONDS", 30)


def reset_settings() -> None:
    """Drop cached settings. Intended for use in tests."""

    get_fingerprint_secret.cache_clear()
