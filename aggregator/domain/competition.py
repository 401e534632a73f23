"""
aggregator/domain/competition.py

Domain models for the competition catalog and scrape runs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

_BRACKET_TAG_REGEX = re.compile(r"\[[^\]]*\]")
_PUNCTUATION_REGEX = re.compile(r"[^\w\s]|_")
_WHITESPACE_REGEX = re.compile(r"\s+")


class CompetitionStatus:
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"

    ALL = (UPCOMING, ACTIVE, COMPLETED)


def normalize_title(title: str | None) -> str:
    """
    Comparison-only form of a title.

    Bracketed source tags such as ``[HKU]`` are dropped anywhere in the title,
    then the text is lower-cased, punctuation becomes whitespace and runs of
    whitespace collapse to one space.
    """

    if not title:
        return ""
    stripped = _BRACKET_TAG_REGEX.sub(" ", title)
    lowered = stripped.lower()
    without_punctuation = _PUNCTUATION_REGEX.sub(" ", lowered)
    return _WHITESPACE_REGEX.sub(" ", without_punctuation).strip()


def ensure_utc(value: datetime | None) -> datetime | None:
    """
    Treat naive datetimes as UTC and convert aware ones to UTC.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def derive_status(
    *,
    start_date: datetime | None,
    end_date: datetime | None,
    now: datetime | None = None,
) -> str:
    current = ensure_utc(now) or datetime.now(timezone.utc)
    start = ensure_utc(start_date)
    end = ensure_utc(end_date)

    if end is not None and current > end:
        return CompetitionStatus.COMPLETED
    if start is not None and current >= start:
        return CompetitionStatus.ACTIVE
    return CompetitionStatus.UPCOMING


@dataclass(frozen=True)
class CandidateRecord:
    """
    One scraped event as produced by a source adapter, before deduplication.
    """

    title: str
    source: str
    host: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    description: str | None = None
    location: str | None = None
    registration_link: str | None = None

    @property
    def normalized_title(self) -> str:
        return normalize_title(self.title)


@dataclass(frozen=True)
class CompetitionRecord:
    """
    Committed catalog entry.

    ``sources`` keeps first-seen order and only ever grows.
    """

    id: str
    title: str
    sources: tuple[str, ...]
    created_at: datetime
    updated_at: datetime
    host: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    description: str | None = None
    location: str | None = None
    registration_link: str | None = None

    def __post_init__(self) -> None:
        if not self.sources:
            raise ValueError(f"Competition record '{self.id}' must have at least one source.")

    @property
    def normalized_title(self) -> str:
        return normalize_title(self.title)

    def status(self, now: datetime | None = None) -> str:
        return derive_status(start_date=self.start_date, end_date=self.end_date, now=now)


@dataclass
class AdapterRunOutcome:
    """
    Per-adapter counters collected during one orchestrator run.
    """

    name: str
    fetched: int = 0
    created: int = 0
    merged: int = 0
    failed: bool = False
    error: str | None = None

    def mark_failed(self, message: str) -> None:
        # First error wins; later ones are usually consequences of it.
        if not self.failed:
            self.failed = True
            self.error = message

    def to_dict(self) -> dict[str, Any]:
        return {
            "fetched": self.fetched,
            "created": self.created,
            "merged": self.merged,
            "failed": self.failed,
            "error": self.error,
        }


@dataclass
class RunReport:
    """
    Outcome of one orchestrator invocation, keyed by adapter name.
    """

    per_adapter: dict[str, AdapterRunOutcome] = field(default_factory=dict)
    cancelled: bool = False

    @property
    def total_created(self) -> int:
        return sum(outcome.created for outcome in self.per_adapter.values())

    @property
    def total_merged(self) -> int:
        return sum(outcome.merged for outcome in self.per_adapter.values())

    @property
    def failed_adapters(self) -> list[str]:
        return [name for name, outcome in self.per_adapter.items() if outcome.failed]

    def to_dict(self) -> dict[str, Any]:
        return {
            "per_adapter": {
                name: outcome.to_dict() for name, outcome in self.per_adapter.items()
            },
            "cancelled": self.cancelled,
        }
