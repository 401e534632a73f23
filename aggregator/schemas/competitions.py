"""
aggregator/schemas/competitions.py

Request and response schemas for the catalog endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from aggregator.domain.competition import CompetitionRecord


class CompetitionResponse(BaseModel):
    id: str
    title: str
    host: str | None = None
    status: str
    start_date: datetime | None = None
    end_date: datetime | None = None
    description: str | None = None
    location: str | None = None
    registration_link: str | None = None
    sources: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: CompetitionRecord, *, now: datetime | None = None) -> "CompetitionResponse":
        return cls(
            id=record.id,
            title=record.title,
            host=record.host,
            status=record.status(now),
            start_date=record.start_date,
            end_date=record.end_date,
            description=record.description,
            location=record.location,
            registration_link=record.registration_link,
            sources=list(record.sources),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class CompetitionPageResponse(BaseModel):
    """
    One page of catalog records.
    """

    data: list[CompetitionResponse] = Field(default_factory=list)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)


MANUAL_SOURCE = "manual"


class CompetitionCreateRequest(BaseModel):
    """
    A competition entered by hand. The id is always assigned by the server.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str = Field(min_length=1)
    host: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    description: str | None = None
    location: str | None = None
    registration_link: str | None = None
    sources: list[str] = Field(default_factory=lambda: [MANUAL_SOURCE], min_length=1)

    def record_fields(self) -> dict:
        return self.model_dump(exclude={"sources"})


class CompetitionUpdateRequest(BaseModel):
    """
    Partial update; only fields present in the body change.

    ``id``, ``sources`` and the timestamps are not editable.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1)
    host: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    description: str | None = None
    location: str | None = None
    registration_link: str | None = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
