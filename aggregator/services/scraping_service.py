"""
aggregator/services/scraping_service.py

Service wiring for scraper runs against the SQL catalog.
"""

from __future__ import annotations

import threading
from functools import lru_cache

from sqlalchemy.orm import Session

from aggregator.domain.competition import RunReport
from aggregator.scraping.config import ScraperSettings, get_scraper_settings
from aggregator.scraping.engine import ScraperOrchestrator
from aggregator.scraping.registry import AdapterRegistry, build_default_registry
from aggregator.scraping.storage import CompetitionStorage, SQLAlchemyCompetitionStorage


class ScrapingService:
    """
    Owns the adapter registry and builds one orchestrator per catalog session.
    """

    def __init__(
        self,
        *,
        settings: ScraperSettings | None = None,
        registry: AdapterRegistry | None = None,
    ) -> None:
        self._settings = settings or get_scraper_settings()
        self._registry = registry or build_default_registry(settings=self._settings)
        self._merge_lock = threading.Lock()

    @property
    def merge_lock(self) -> threading.Lock:
        return self._merge_lock

    def list_adapter_names(self) -> list[str]:
        return self._registry.names()

    def build_orchestrator(self, storage: CompetitionStorage) -> ScraperOrchestrator:
        return ScraperOrchestrator(
            registry=self._registry,
            storage=storage,
            max_workers=self._settings.max_workers,
            merge_lock=self._merge_lock,
        )

    def run(
        self,
        *,
        db: Session,
        name: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> RunReport:
        storage = SQLAlchemyCompetitionStorage(session=db)
        return self.build_orchestrator(storage).run(name, cancel_event=cancel_event)


@lru_cache(maxsize=1)
def get_scraping_service() -> ScrapingService:
    """
    Build and cache the scraping service.
    """

    return ScrapingService()
