"""
Config helpers for scraping.
"""

from aggregator.scraping.config.loader import get_scraper_settings, load_scraper_settings
from aggregator.scraping.config.models import ScraperSettings

__all__ = [
    "ScraperSettings",
    "get_scraper_settings",
    "load_scraper_settings",
]
