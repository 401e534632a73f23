"""
aggregator/repositories/competition_repository.py

Persistence layer for catalog competitions.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from aggregator.domain.competition import CompetitionRecord, ensure_utc, normalize_title
from db.models.competition import Competition

_PATCHABLE_FIELDS = {
    "title",
    "host",
    "start_date",
    "end_date",
    "description",
    "location",
    "registration_link",
    "sources",
    "updated_at",
}


class CompetitionRepository:
    """
    Maps catalog rows to and from domain records. Does not commit.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_all(self) -> list[CompetitionRecord]:
        stmt = select(Competition).order_by(Competition.created_at, Competition.id)
        return [self.to_domain(row) for row in self._session.scalars(stmt)]

    def get(self, record_id: str) -> CompetitionRecord | None:
        row = self._session.get(Competition, record_id)
        return self.to_domain(row) if row is not None else None

    def add(self, record: CompetitionRecord) -> str:
        row = Competition(
            id=record.id,
            title=record.title,
            normalized_title=record.normalized_title,
            host=record.host,
            start_date=record.start_date,
            end_date=record.end_date,
            description=record.description,
            location=record.location,
            registration_link=record.registration_link,
            sources=list(record.sources),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
        self._session.add(row)
        self._session.flush()
        return row.id

    def update_fields(self, record_id: str, patch: Mapping[str, Any]) -> bool:
        """
        Apply ``patch`` to one row. Returns False when the row does not exist.
        """

        unknown = set(patch) - _PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported competition fields in patch: {sorted(unknown)}")

        if "sources" in patch and not patch["sources"]:
            raise ValueError(f"Competition '{record_id}' must keep at least one source.")

        row = self._session.get(Competition, record_id)
        if row is None:
            return False

        for field_name, value in patch.items():
            if field_name == "sources":
                value = list(value)
            setattr(row, field_name, value)
        if "title" in patch:
            row.normalized_title = normalize_title(row.title)

        self._session.flush()
        return True

    def delete(self, record_id: str) -> bool:
        row = self._session.get(Competition, record_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True

    @staticmethod
    def to_domain(row: Competition) -> CompetitionRecord:
        return CompetitionRecord(
            id=row.id,
            title=row.title,
            sources=tuple(row.sources or ()),
            created_at=ensure_utc(row.created_at),
            updated_at=ensure_utc(row.updated_at),
            host=row.host,
            start_date=ensure_utc(row.start_date),
            end_date=ensure_utc(row.end_date),
            description=row.description,
            location=row.location,
            registration_link=row.registration_link,
        )
