"""
aggregator/schemas package marker.
"""

from aggregator.schemas.competitions import (
    CompetitionCreateRequest,
    CompetitionPageResponse,
    CompetitionResponse,
    CompetitionUpdateRequest,
)
from aggregator.schemas.scraping import (
    AdapterRunOutcomeResponse,
    RunReportResponse,
    ScraperListResponse,
)

__all__ = [
    "AdapterRunOutcomeResponse",
    "CompetitionCreateRequest",
    "CompetitionPageResponse",
    "CompetitionResponse",
    "CompetitionUpdateRequest",
    "RunReportResponse",
    "ScraperListResponse",
]
