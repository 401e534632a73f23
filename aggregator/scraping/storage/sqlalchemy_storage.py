"""
SQLAlchemy-backed catalog storage.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aggregator.domain.competition import CompetitionRecord
from aggregator.repositories.competition_repository import CompetitionRepository
from aggregator.scraping.errors import StorageUnavailable
from aggregator.scraping.storage.base import CompetitionStorage


class SQLAlchemyCompetitionStorage(CompetitionStorage):
    """
    Persist catalog changes through the repository, committing each write.
    """

    def __init__(self, *, session: Session) -> None:
        self._session = session
        self._repository = CompetitionRepository(session)

    def find_all(self) -> list[CompetitionRecord]:
        try:
            return self._repository.list_all()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageUnavailable(f"Failed to read competitions: {exc}") from exc
        except ValueError as exc:
            raise StorageUnavailable(f"Invalid competition row: {exc}") from exc

    def find_by_id(self, record_id: str) -> CompetitionRecord | None:
        try:
            return self._repository.get(record_id)
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageUnavailable(f"Failed to read competition {record_id}: {exc}") from exc
        except ValueError as exc:
            raise StorageUnavailable(f"Invalid competition row: {exc}") from exc

    def insert(self, record: CompetitionRecord) -> str:
        try:
            record_id = self._repository.add(record)
            self._session.commit()
            return record_id
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageUnavailable(f"Failed to insert competition {record.id}: {exc}") from exc

    def update_fields(self, record_id: str, patch: Mapping[str, Any]) -> None:
        try:
            updated = self._repository.update_fields(record_id, patch)
            if not updated:
                self._session.rollback()
                raise StorageUnavailable(f"Competition {record_id} not found for update.")
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageUnavailable(f"Failed to update competition {record_id}: {exc}") from exc

    def delete(self, record_id: str) -> bool:
        try:
            deleted = self._repository.delete(record_id)
            self._session.commit()
            return deleted
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageUnavailable(f"Failed to delete competition {record_id}: {exc}") from exc
