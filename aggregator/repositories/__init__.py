"""
Repository layer exports.
"""

from aggregator.repositories.competition_repository import CompetitionRepository

__all__ = ["CompetitionRepository"]
