"""
aggregator/domain package marker.
"""

from aggregator.domain.competition import (
    AdapterRunOutcome,
    CandidateRecord,
    CompetitionRecord,
    CompetitionStatus,
    RunReport,
    normalize_title,
)

__all__ = [
    "AdapterRunOutcome",
    "CandidateRecord",
    "CompetitionRecord",
    "CompetitionStatus",
    "RunReport",
    "normalize_title",
]
