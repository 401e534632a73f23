"""
Error taxonomy for scrape runs and catalog writes.
"""

from __future__ import annotations


class ScrapingError(Exception):
    """Base exception for scraping workflow failures."""


class UnknownScraper(ScrapingError):
    """Raised when a run is requested for an adapter name that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown scraper '{name}'.")
        self.name = name


class AdapterFetchFailed(ScrapingError):
    """Raised when one source cannot be fetched or parsed."""

    def __init__(self, name: str, cause: object) -> None:
        super().__init__(f"{name}: fetch failed: {cause}")
        self.name = name
        self.cause = cause


class StorageUnavailable(ScrapingError):
    """Raised when the catalog store cannot be read or written."""


class DuplicateCompetition(ScrapingError):
    """Raised when a catalog write would create a duplicate of an existing record."""

    def __init__(self, record_id: str, title: str) -> None:
        super().__init__(f"Competition duplicates existing record '{record_id}' ({title}).")
        self.record_id = record_id
        self.title = title
