"""
aggregator/services package marker.
"""

from aggregator.services.catalog_service import CatalogService, CompetitionPage, get_catalog_service
from aggregator.services.scraping_service import ScrapingService, get_scraping_service

__all__ = [
    "CatalogService",
    "CompetitionPage",
    "ScrapingService",
    "get_catalog_service",
    "get_scraping_service",
]
