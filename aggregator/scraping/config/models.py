"""
Scraping configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScraperSettings:
    """
    Runtime settings shared by source adapters and the orchestrator.
    """

    user_agent: str = "CompetitionAggregatorBot/1.0"
    timeout_seconds: float = 15.0
    max_retries: int = 2
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 1.0
    max_workers: int = 4
    verify_tls: bool = True
    ctftime_event_limit: int = 20
