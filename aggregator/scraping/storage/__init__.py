"""
Storage layer exports.
"""

from aggregator.scraping.storage.base import CompetitionStorage
from aggregator.scraping.storage.memory import InMemoryCompetitionStorage
from aggregator.scraping.storage.sqlalchemy_storage import SQLAlchemyCompetitionStorage

__all__ = ["CompetitionStorage", "InMemoryCompetitionStorage", "SQLAlchemyCompetitionStorage"]
