"""
Storage interface for the competition catalog.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from aggregator.domain.competition import CompetitionRecord


class CompetitionStorage(ABC):
    """
    Catalog store used by the orchestrator.

    Every method raises ``StorageUnavailable`` when the store cannot be reached
    or holds a row that is not a valid record.
    """

    @abstractmethod
    def find_all(self) -> list[CompetitionRecord]:
        """
        Return a snapshot of every stored record, oldest first.
        """

    @abstractmethod
    def find_by_id(self, record_id: str) -> CompetitionRecord | None:
        """
        Return one record, or None when it does not exist.
        """

    @abstractmethod
    def insert(self, record: CompetitionRecord) -> str:
        """
        Persist a new record and return its id.
        """

    @abstractmethod
    def update_fields(self, record_id: str, patch: Mapping[str, Any]) -> None:
        """
        Apply a partial update to an existing record.
        """

    @abstractmethod
    def delete(self, record_id: str) -> bool:
        """
        Remove one record. Returns False when it does not exist.
        """
