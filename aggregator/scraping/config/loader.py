"""
Environment config loader for scraping.
"""

from __future__ import annotations

import os
from functools import lru_cache

from db.config import load_env_files

from aggregator.scraping.config.models import ScraperSettings


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    stripped = raw.strip()
    return stripped if stripped else default


def load_scraper_settings() -> ScraperSettings:
    """
    Build scraper settings from the current environment, clamping to sane minimums.
    """

    defaults = ScraperSettings()
    return ScraperSettings(
        user_agent=_get_str_env("SCRAPER_USER_AGENT", defaults.user_agent),
        timeout_seconds=max(
            1.0,
            _get_float_env("SCRAPER_TIMEOUT_SECONDS", defaults.timeout_seconds),
        ),
        max_retries=max(
            0,
            _get_int_env("SCRAPER_MAX_RETRIES", defaults.max_retries),
        ),
        backoff_initial_seconds=max(
            0.1,
            _get_float_env("SCRAPER_BACKOFF_INITIAL_SECONDS", defaults.backoff_initial_seconds),
        ),
        backoff_multiplier=max(
            1.0,
            _get_float_env("SCRAPER_BACKOFF_MULTIPLIER", defaults.backoff_multiplier),
        ),
        rate_limit_per_second=max(
            0.1,
            _get_float_env("SCRAPER_RATE_LIMIT_PER_SECOND", defaults.rate_limit_per_second),
        ),
        max_workers=max(
            1,
            _get_int_env("SCRAPER_MAX_WORKERS", defaults.max_workers),
        ),
        verify_tls=_get_bool_env("SCRAPER_VERIFY_TLS", defaults.verify_tls),
        ctftime_event_limit=max(
            1,
            _get_int_env("SCRAPER_CTFTIME_EVENT_LIMIT", defaults.ctftime_event_limit),
        ),
    )


@lru_cache(maxsize=1)
def get_scraper_settings() -> ScraperSettings:
    """
    Return cached scraper settings, loading `.env` files first.
    """

    load_env_files()
    return load_scraper_settings()
