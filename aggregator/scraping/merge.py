"""
Insert-or-merge reconciliation of one candidate against the catalog.

The functions here never touch storage: they return a decision which the
orchestrator applies.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Union

from aggregator.domain.competition import CandidateRecord, CompetitionRecord, ensure_utc
from aggregator.scraping.similarity import SimilarityResult, compare

# Optional fields a later source may fill in but never overwrite.
BACKFILL_FIELDS = (
    "host",
    "start_date",
    "end_date",
    "description",
    "location",
    "registration_link",
)
_DATETIME_FIELDS = {"start_date", "end_date"}


@dataclass(frozen=True)
class CreateDecision:
    record: CompetitionRecord


@dataclass(frozen=True)
class MergeDecision:
    record_id: str
    patch: dict[str, Any]
    match: SimilarityResult


Decision = Union[CreateDecision, MergeDecision]


def _new_record_id() -> str:
    return str(uuid.uuid4())


def find_best_match(
    candidate: CandidateRecord,
    catalog: Sequence[CompetitionRecord],
) -> tuple[CompetitionRecord, SimilarityResult] | None:
    """
    Highest-scoring duplicate of ``candidate``; ties go to the earliest-created record.
    """

    candidate_title = candidate.normalized_title
    if not candidate_title:
        return None

    matches: list[tuple[CompetitionRecord, SimilarityResult]] = []
    for existing in catalog:
        result = compare(
            candidate_title,
            existing.normalized_title,
            host_a=candidate.host,
            host_b=existing.host,
        )
        if result.is_duplicate:
            matches.append((existing, result))

    if not matches:
        return None
    return min(
        matches,
        key=lambda item: (-item[1].score, ensure_utc(item[0].created_at), item[0].id),
    )


def build_merge_patch(
    existing: CompetitionRecord,
    candidate: CandidateRecord,
    *,
    now: datetime,
) -> dict[str, Any]:
    patch: dict[str, Any] = {}

    if candidate.source not in existing.sources:
        patch["sources"] = (*existing.sources, candidate.source)

    for field_name in BACKFILL_FIELDS:
        if getattr(existing, field_name) is not None:
            continue
        value = getattr(candidate, field_name)
        if value is None:
            continue
        patch[field_name] = ensure_utc(value) if field_name in _DATETIME_FIELDS else value

    patch["updated_at"] = now
    return patch


def build_new_record(
    candidate: CandidateRecord,
    *,
    now: datetime,
    id_factory: Callable[[], str] = _new_record_id,
) -> CompetitionRecord:
    return CompetitionRecord(
        id=id_factory(),
        title=candidate.title,
        sources=(candidate.source,),
        created_at=now,
        updated_at=now,
        host=candidate.host,
        start_date=ensure_utc(candidate.start_date),
        end_date=ensure_utc(candidate.end_date),
        description=candidate.description,
        location=candidate.location,
        registration_link=candidate.registration_link,
    )


def reconcile(
    candidate: CandidateRecord,
    catalog: Sequence[CompetitionRecord],
    *,
    now: datetime | None = None,
    id_factory: Callable[[], str] = _new_record_id,
) -> Decision:
    """
    Decide whether ``candidate`` creates a new record or merges into an existing one.
    """

    timestamp = ensure_utc(now) or datetime.now(timezone.utc)
    best = find_best_match(candidate, catalog)
    if best is None:
        return CreateDecision(record=build_new_record(candidate, now=timestamp, id_factory=id_factory))

    existing, match = best
    return MergeDecision(
        record_id=existing.id,
        patch=build_merge_patch(existing, candidate, now=timestamp),
        match=match,
    )


def apply_patch(record: CompetitionRecord, patch: dict[str, Any]) -> CompetitionRecord:
    """
    Return ``record`` with ``patch`` applied; ``id`` and ``created_at`` are immutable.
    """

    forbidden = {"id", "created_at"} & patch.keys()
    if forbidden:
        raise ValueError(f"Cannot patch immutable fields: {sorted(forbidden)}")
    if "sources" in patch:
        missing = set(record.sources) - set(patch["sources"])
        if missing:
            raise ValueError(f"Sources may only grow; patch drops {sorted(missing)}")
        patch = {**patch, "sources": tuple(patch["sources"])}
    return replace(record, **patch)
