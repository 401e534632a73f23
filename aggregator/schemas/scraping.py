"""
aggregator/schemas/scraping.py

Response schemas for scraper runs.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from aggregator.domain.competition import RunReport


class ScraperListResponse(BaseModel):
    """
    Registered adapter names.
    """

    scrapers: list[str] = Field(default_factory=list)


class AdapterRunOutcomeResponse(BaseModel):
    fetched: int = Field(..., ge=0)
    created: int = Field(..., ge=0)
    merged: int = Field(..., ge=0)
    failed: bool
    error: str | None = None


class RunReportResponse(BaseModel):
    """
    API response model for one orchestrator run.
    """

    per_adapter: dict[str, AdapterRunOutcomeResponse] = Field(default_factory=dict)
    cancelled: bool = False

    @classmethod
    def from_report(cls, report: RunReport) -> "RunReportResponse":
        return cls(
            per_adapter={
                name: AdapterRunOutcomeResponse(
                    fetched=outcome.fetched,
                    created=outcome.created,
                    merged=outcome.merged,
                    failed=outcome.failed,
                    error=outcome.error,
                )
                for name, outcome in report.per_adapter.items()
            },
            cancelled=report.cancelled,
        )
