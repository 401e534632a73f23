"""
Named source adapter registry.
"""

from __future__ import annotations

from collections.abc import Iterable

import requests

from aggregator.scraping.adapters import CTFTimeAdapter, HKUBoardAdapter, HKUSTBoardAdapter
from aggregator.scraping.base import HTTPSourceAdapter, SourceAdapter
from aggregator.scraping.config.models import ScraperSettings
from aggregator.scraping.errors import UnknownScraper
from aggregator.scraping.rate_limiter import DomainRateLimiter

DEFAULT_ADAPTER_CLASSES: tuple[type[HTTPSourceAdapter], ...] = (
    HKUBoardAdapter,
    HKUSTBoardAdapter,
    CTFTimeAdapter,
)


def _registry_key(name: str) -> str:
    return name.strip().lower()


class AdapterRegistry:
    """
    Fixed mapping of adapter name to adapter instance, built once.

    Lookup is case-insensitive; names keep their declared spelling everywhere else.
    """

    def __init__(self, adapters: Iterable[SourceAdapter]) -> None:
        registered: dict[str, SourceAdapter] = {}
        for adapter in adapters:
            if not adapter.name or not adapter.name.strip():
                raise ValueError(f"Adapter {adapter!r} must declare a non-empty name.")
            key = _registry_key(adapter.name)
            if key in registered:
                raise ValueError(
                    f"Duplicate adapter name '{adapter.name}' "
                    f"(already registered as '{registered[key].name}')."
                )
            registered[key] = adapter
        self._adapters = registered

    def names(self) -> list[str]:
        return [adapter.name for adapter in self._adapters.values()]

    def get(self, name: str) -> SourceAdapter:
        adapter = self._adapters.get(_registry_key(name))
        if adapter is None:
            raise UnknownScraper(name)
        return adapter

    def all(self) -> list[SourceAdapter]:
        return list(self._adapters.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and _registry_key(name) in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)


def build_default_registry(
    *,
    settings: ScraperSettings,
    session: requests.Session | None = None,
) -> AdapterRegistry:
    """
    Registry of the built-in adapters sharing one HTTP session and rate limiter.
    """

    shared_session = session or requests.Session()
    rate_limiter = DomainRateLimiter(rate_limit_per_second=settings.rate_limit_per_second)
    return AdapterRegistry(
        adapter_class(settings=settings, session=shared_session, rate_limiter=rate_limiter)
        for adapter_class in DEFAULT_ADAPTER_CLASSES
    )
