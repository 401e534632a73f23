"""
Process-local catalog storage for dry runs.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from typing import Any

from aggregator.domain.competition import CompetitionRecord
from aggregator.scraping.errors import StorageUnavailable
from aggregator.scraping.merge import apply_patch
from aggregator.scraping.storage.base import CompetitionStorage


class InMemoryCompetitionStorage(CompetitionStorage):
    """
    Dict-backed catalog; insertion order doubles as creation order.
    """

    def __init__(self, records: Iterable[CompetitionRecord] = ()) -> None:
        self._records: dict[str, CompetitionRecord] = {}
        self._lock = threading.Lock()
        for record in records:
            self._records[record.id] = record

    def find_all(self) -> list[CompetitionRecord]:
        with self._lock:
            return list(self._records.values())

    def find_by_id(self, record_id: str) -> CompetitionRecord | None:
        with self._lock:
            return self._records.get(record_id)

    def insert(self, record: CompetitionRecord) -> str:
        with self._lock:
            if record.id in self._records:
                raise StorageUnavailable(f"Competition {record.id} already exists.")
            self._records[record.id] = record
            return record.id

    def update_fields(self, record_id: str, patch: Mapping[str, Any]) -> None:
        with self._lock:
            existing = self._records.get(record_id)
            if existing is None:
                raise StorageUnavailable(f"Competition {record_id} not found for update.")
            self._records[record_id] = apply_patch(existing, dict(patch))

    def delete(self, record_id: str) -> bool:
        with self._lock:
            return self._records.pop(record_id, None) is not None
