"""
db/models/competition.py

Catalog row for one deduplicated competition.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

SourcesType = JSON().with_variant(JSONB(), "postgresql")


class Competition(Base, TimestampMixin):
    __tablename__ = "competitions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    normalized_title: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Derived from title; comparison only",
    )
    host: Mapped[str | None] = mapped_column(String(255), nullable=True)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    registration_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    sources: Mapped[list[str]] = mapped_column(
        SourcesType,
        nullable=False,
        comment="Adapter names that reported this competition",
    )

    __table_args__ = (
        Index("ix_competitions_host", "host"),
        Index("ix_competitions_start_date", "start_date"),
        Index("ix_competitions_created_at", "created_at"),
    )
