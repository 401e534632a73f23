"""
Source adapter contract and shared HTTP fetch mechanics.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import requests
from bs4 import BeautifulSoup

from aggregator.domain.competition import CandidateRecord
from aggregator.scraping.config.models import ScraperSettings
from aggregator.scraping.errors import AdapterFetchFailed
from aggregator.scraping.logging_utils import log_event
from aggregator.scraping.rate_limiter import DomainRateLimiter

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

CANCELLED_MESSAGE = "run cancelled"


class SourceAdapter(ABC):
    """
    One pluggable event source.

    ``fetch`` returns a fully materialized list of candidates or raises
    ``AdapterFetchFailed``. Adapters never write to the catalog.

    ``cancel_event`` is set when the run no longer wants the result; adapters
    doing blocking I/O should stop at the next request or backoff.
    """

    name: str = ""

    @abstractmethod
    def fetch(self, cancel_event: threading.Event | None = None) -> list[CandidateRecord]:
        """
        Fetch the source and return its candidate records.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class HTTPSourceAdapter(SourceAdapter):
    """
    Base class for adapters backed by one HTTP endpoint.
    """

    def __init__(
        self,
        *,
        settings: ScraperSettings,
        session: requests.Session | None = None,
        rate_limiter: DomainRateLimiter | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self.rate_limiter = rate_limiter or DomainRateLimiter(
            rate_limit_per_second=settings.rate_limit_per_second
        )
        self.request_headers = {"User-Agent": settings.user_agent}
        self._sleep = sleep

    def candidate(self, **fields: Any) -> CandidateRecord:
        return CandidateRecord(source=self.name, **fields)

    def get_soup(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BeautifulSoup:
        response = self._request_with_retry(url, params=params, cancel_event=cancel_event)
        return BeautifulSoup(response.text, "html.parser")

    def get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Any:
        response = self._request_with_retry(url, params=params, cancel_event=cancel_event)
        try:
            return response.json()
        except ValueError as exc:
            raise AdapterFetchFailed(self.name, "response was not valid JSON") from exc

    def skip_item(self, *, index: int, reason: str) -> None:
        log_event(
            logger,
            logging.WARNING,
            "adapter_item_skipped",
            adapter=self.name,
            index=index,
            reason=reason,
        )

    def _request_with_retry(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> requests.Response:
        last_error: Exception | None = None

        for attempt in range(self.settings.max_retries + 1):
            if cancel_event is not None and cancel_event.is_set():
                raise AdapterFetchFailed(self.name, CANCELLED_MESSAGE)
            self.rate_limiter.wait(url)
            try:
                response = self.session.get(
                    url,
                    params=params,
                    headers=self.request_headers,
                    timeout=self.settings.timeout_seconds,
                    verify=self.settings.verify_tls,
                    allow_redirects=True,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable status={response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                last_error = exc
                status_code = exc.response.status_code if exc.response is not None else None
                if status_code not in RETRYABLE_STATUS_CODES:
                    raise AdapterFetchFailed(self.name, f"status={status_code} url={url}") from exc
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc

            if attempt >= self.settings.max_retries:
                break

            backoff_seconds = self.settings.backoff_initial_seconds * (
                self.settings.backoff_multiplier**attempt
            )
            log_event(
                logger,
                logging.WARNING,
                "adapter_request_retry",
                adapter=self.name,
                attempt=attempt + 1,
                max_retries=self.settings.max_retries,
                wait_seconds=round(backoff_seconds, 2),
                url=url,
                error=str(last_error),
            )
            if self._pause(backoff_seconds, cancel_event):
                raise AdapterFetchFailed(self.name, CANCELLED_MESSAGE) from last_error

        raise AdapterFetchFailed(
            self.name,
            f"request failed after retries url={url} error={last_error}",
        ) from last_error

    def _pause(self, seconds: float, cancel_event: threading.Event | None) -> bool:
        """
        Sleep between attempts; returns True when cancelled while waiting.
        """

        if cancel_event is None:
            self._sleep(seconds)
            return False
        return cancel_event.wait(seconds)

    @staticmethod
    def parse_iso_datetime(value: str) -> datetime:
        """
        Parse an ISO-8601 string into a timezone-aware UTC datetime.
        """

        normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
        parsed = datetime.fromisoformat(normalized)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    @staticmethod
    def clean_text(value: str | None) -> str:
        if not value:
            return ""
        return " ".join(value.split())
