"""
aggregator/api/routers package marker.
"""

from aggregator.api.routers.competitions import router as competitions_router
from aggregator.api.routers.scrapers import router as scrapers_router

__all__ = [
    "competitions_router",
    "scrapers_router",
]
