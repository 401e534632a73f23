"""
aggregator/services/catalog_service.py

Read and manual-write access to the deduplicated catalog.

Manual writes go through the same similarity check as scraped candidates: a
create or title/host edit that would duplicate another record is refused with
``DuplicateCompetition``. Writes hold the scraping service's merge lock so they
never interleave with a scraper merge in this process.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

from sqlalchemy.orm import Session

from aggregator.domain.competition import (
    CandidateRecord,
    CompetitionRecord,
    CompetitionStatus,
    ensure_utc,
)
from aggregator.scraping.errors import DuplicateCompetition
from aggregator.scraping.merge import apply_patch, find_best_match
from aggregator.scraping.storage import CompetitionStorage, SQLAlchemyCompetitionStorage
from aggregator.services.scraping_service import get_scraping_service

EDITABLE_FIELDS = (
    "title",
    "host",
    "start_date",
    "end_date",
    "description",
    "location",
    "registration_link",
)
_DATETIME_FIELDS = {"start_date", "end_date"}


@dataclass(frozen=True)
class CompetitionPage:
    items: list[CompetitionRecord]
    page: int
    limit: int
    total: int
    now: datetime


def _clean_sources(sources: Sequence[str]) -> tuple[str, ...]:
    cleaned: list[str] = []
    for source in sources:
        value = source.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    if not cleaned:
        raise ValueError("A competition needs at least one non-blank source.")
    return tuple(cleaned)


def _clean_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Unsupported competition fields: {sorted(unknown)}")

    cleaned = dict(fields)
    if "title" in cleaned and not (cleaned["title"] or "").strip():
        raise ValueError("Title must not be empty.")
    for name in _DATETIME_FIELDS & cleaned.keys():
        cleaned[name] = ensure_utc(cleaned[name])
    return cleaned


def _check_dates(record: CompetitionRecord) -> None:
    if record.start_date and record.end_date and record.end_date < record.start_date:
        raise ValueError("end_date must not be earlier than start_date.")


class CatalogService:
    """
    Filters and paginates catalog records and applies manual edits.

    Status is derived per request.
    """

    def __init__(
        self,
        *,
        write_lock: threading.Lock | None = None,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self._write_lock = write_lock or threading.Lock()
        self._id_factory = id_factory

    def list_competitions(
        self,
        *,
        storage: CompetitionStorage,
        status: str | None = None,
        host: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        page: int = 1,
        limit: int = 20,
        now: datetime | None = None,
    ) -> CompetitionPage:
        """
        Filter by derived status, exact host and a start-date window.

        ``date_from`` and ``date_to`` are inclusive bounds on ``start_date``;
        records without a start date are left out whenever either is given.
        """

        if status is not None and status not in CompetitionStatus.ALL:
            raise ValueError(
                f"Invalid status '{status}'. Allowed values: {list(CompetitionStatus.ALL)}."
            )
        date_from = ensure_utc(date_from)
        date_to = ensure_utc(date_to)
        if date_from and date_to and date_from > date_to:
            raise ValueError("date_from must not be later than date_to.")

        current = now or datetime.now(timezone.utc)
        records = storage.find_all()
        if status is not None:
            records = [record for record in records if record.status(current) == status]
        if host:
            records = [record for record in records if record.host == host]
        if date_from or date_to:
            records = [
                record
                for record in records
                if record.start_date is not None
                and (date_from is None or record.start_date >= date_from)
                and (date_to is None or record.start_date <= date_to)
            ]

        page = max(1, page)
        limit = max(1, limit)
        start = (page - 1) * limit
        return CompetitionPage(
            items=records[start : start + limit],
            page=page,
            limit=limit,
            total=len(records),
            now=current,
        )

    def get_competition(
        self,
        *,
        storage: CompetitionStorage,
        record_id: str,
    ) -> CompetitionRecord | None:
        return storage.find_by_id(record_id)

    def create_competition(
        self,
        *,
        storage: CompetitionStorage,
        fields: Mapping[str, Any],
        sources: Sequence[str],
        now: datetime | None = None,
    ) -> CompetitionRecord:
        cleaned = _clean_fields(fields)
        if "title" not in cleaned:
            raise ValueError("Title must not be empty.")

        current = now or datetime.now(timezone.utc)
        record = CompetitionRecord(
            id=self._id_factory(),
            sources=_clean_sources(sources),
            created_at=current,
            updated_at=current,
            **cleaned,
        )
        _check_dates(record)

        with self._write_lock:
            self._ensure_not_duplicate(storage, record)
            storage.insert(record)
        return record

    def update_competition(
        self,
        *,
        storage: CompetitionStorage,
        record_id: str,
        changes: Mapping[str, Any],
        now: datetime | None = None,
    ) -> CompetitionRecord | None:
        """
        Apply a partial edit. Returns None when the record does not exist.
        """

        cleaned = _clean_fields(changes)
        if not cleaned:
            raise ValueError("No fields to update.")

        patch = {**cleaned, "updated_at": now or datetime.now(timezone.utc)}
        with self._write_lock:
            existing = storage.find_by_id(record_id)
            if existing is None:
                return None
            updated = apply_patch(existing, patch)
            _check_dates(updated)
            if {"title", "host"} & cleaned.keys():
                self._ensure_not_duplicate(storage, updated)
            storage.update_fields(record_id, patch)
        return updated

    def delete_competition(
        self,
        *,
        storage: CompetitionStorage,
        record_id: str,
    ) -> bool:
        with self._write_lock:
            return storage.delete(record_id)

    @staticmethod
    def _ensure_not_duplicate(storage: CompetitionStorage, record: CompetitionRecord) -> None:
        others = [existing for existing in storage.find_all() if existing.id != record.id]
        candidate = CandidateRecord(title=record.title, source=record.sources[0], host=record.host)
        match = find_best_match(candidate, others)
        if match is not None:
            raise DuplicateCompetition(match[0].id, match[0].title)

    @staticmethod
    def storage_for(db: Session) -> CompetitionStorage:
        return SQLAlchemyCompetitionStorage(session=db)


@lru_cache(maxsize=1)
def get_catalog_service() -> CatalogService:
    return CatalogService(write_lock=get_scraping_service().merge_lock)
