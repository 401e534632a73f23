"""
tests/fakes.py

In-process stand-ins for adapters, storage, HTTP sessions and clocks.
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

import requests

from aggregator.domain.competition import CandidateRecord, CompetitionRecord
from aggregator.scraping.base import SourceAdapter
from aggregator.scraping.errors import AdapterFetchFailed, StorageUnavailable
from aggregator.scraping.storage import InMemoryCompetitionStorage

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class StaticAdapter(SourceAdapter):
    """Adapter returning a fixed list of candidates on every fetch."""

    def __init__(
        self,
        name: str,
        items: Iterable[dict[str, Any]] = (),
    ) -> None:
        self.name = name
        self._items = list(items)
        self.fetch_calls = 0

    def fetch(self, cancel_event: threading.Event | None = None) -> list[CandidateRecord]:
        self.fetch_calls += 1
        return [CandidateRecord(source=self.name, **item) for item in self._items]


class FailingAdapter(SourceAdapter):
    """Adapter whose fetch always raises."""

    def __init__(self, name: str, error: Exception | None = None) -> None:
        self.name = name
        self._error = error or AdapterFetchFailed(name, "connection refused")

    def fetch(self, cancel_event: threading.Event | None = None) -> list[CandidateRecord]:
        raise self._error


class FlakyStorage(InMemoryCompetitionStorage):
    """In-memory storage that becomes unreachable after a number of writes."""

    def __init__(
        self,
        records: Iterable[CompetitionRecord] = (),
        *,
        writes_before_failure: int | None = None,
        fail_reads: bool = False,
    ) -> None:
        super().__init__(records)
        self.writes_before_failure = writes_before_failure
        self.fail_reads = fail_reads
        self.writes = 0

    def find_all(self) -> list[CompetitionRecord]:
        if self.fail_reads:
            raise StorageUnavailable("catalog store unreachable")
        return super().find_all()

    def _count_write(self) -> None:
        if self.writes_before_failure is not None and self.writes >= self.writes_before_failure:
            raise StorageUnavailable("catalog store unreachable")
        self.writes += 1

    def insert(self, record: CompetitionRecord) -> str:
        self._count_write()
        return super().insert(record)

    def update_fields(self, record_id: str, patch: Mapping[str, Any]) -> None:
        self._count_write()
        super().update_fields(record_id, patch)


class TickingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self._ticks = itertools.count()
        self._start = start

    def __call__(self) -> datetime:
        return self._start + timedelta(seconds=next(self._ticks))


def make_record(
    record_id: str,
    title: str,
    *,
    sources: tuple[str, ...] = ("HKU",),
    created_at: datetime = BASE_TIME,
    **fields: Any,
) -> CompetitionRecord:
    return CompetitionRecord(
        id=record_id,
        title=title,
        sources=sources,
        created_at=created_at,
        updated_at=created_at,
        **fields,
    )


def make_response(status_code: int = 200, body: str | bytes = "", *, url: str = "") -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = body.encode("utf-8") if isinstance(body, str) else body
    response.encoding = "utf-8"
    response.url = url
    return response


class FakeSession:
    """
    Replays queued responses (or raises queued exceptions) for ``get`` calls.
    """

    def __init__(self, *outcomes: requests.Response | Exception) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append({"url": url, **kwargs})
        if not self._outcomes:
            raise AssertionError(f"Unexpected request to {url}")
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
