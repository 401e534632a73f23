"""
Scraper orchestration: concurrent fetch, serialized merge.

Adapters fetch on a worker pool; every candidate they return is merged on the
calling thread, one at a time, under a lock shared by all runs of this
orchestrator. A catalog scan and the write it leads to therefore never
interleave with another merge.

When a run stops early (cancelled, or the catalog store became unreachable)
the pool is shut down without joining. Fetches still in flight see their
cancel event set and give up at the next request or backoff; anything they
return after that is discarded.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import replace
from datetime import datetime, timezone

from aggregator.domain.competition import AdapterRunOutcome, CandidateRecord, RunReport
from aggregator.scraping.base import CANCELLED_MESSAGE, SourceAdapter
from aggregator.scraping.errors import AdapterFetchFailed, StorageUnavailable
from aggregator.scraping.logging_utils import log_event
from aggregator.scraping.merge import CreateDecision, Decision, reconcile
from aggregator.scraping.registry import AdapterRegistry
from aggregator.scraping.storage.base import CompetitionStorage

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScraperOrchestrator:
    """
    Runs registered source adapters and folds their output into the catalog.
    """

    def __init__(
        self,
        *,
        registry: AdapterRegistry,
        storage: CompetitionStorage,
        max_workers: int = 4,
        poll_interval_seconds: float = 0.2,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        merge_lock: threading.Lock | None = None,
    ) -> None:
        self._registry = registry
        self._storage = storage
        self._max_workers = max(1, max_workers)
        self._poll_interval_seconds = max(0.01, poll_interval_seconds)
        self._clock = clock
        self._id_factory = id_factory
        # Orchestrators built per request share one lock through the service.
        self._merge_lock = merge_lock or threading.Lock()

    def list_adapter_names(self) -> list[str]:
        return self._registry.names()

    def run(
        self,
        name: str | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> RunReport:
        """
        Run one named adapter, or every adapter when ``name`` is None.

        Raises ``UnknownScraper`` for an unregistered name; every other failure
        is recorded in the returned report.
        """

        if name is None:
            adapters = self._registry.all()
        else:
            adapters = [self._registry.get(name)]

        cancel = cancel_event or threading.Event()
        report = RunReport(
            per_adapter={adapter.name: AdapterRunOutcome(name=adapter.name) for adapter in adapters}
        )

        if len(adapters) == 1:
            self._run_inline(adapters[0], report=report, cancel=cancel)
        elif adapters:
            self._run_concurrently(adapters, report=report, cancel=cancel)

        if cancel.is_set():
            report.cancelled = True
            log_event(
                logger,
                logging.WARNING,
                "scrape_run_cancelled",
                adapters=[adapter.name for adapter in adapters],
            )
        return report

    def merge_candidate(self, candidate: CandidateRecord) -> Decision:
        """
        Scan the catalog and apply the insert-or-merge decision atomically.
        """

        with self._merge_lock:
            catalog = self._storage.find_all()
            decision = reconcile(
                candidate,
                catalog,
                now=self._clock(),
                id_factory=self._id_factory,
            )
            if isinstance(decision, CreateDecision):
                record_id = self._storage.insert(decision.record)
                log_event(
                    logger,
                    logging.INFO,
                    "candidate_created",
                    adapter=candidate.source,
                    record_id=record_id,
                    title=candidate.title,
                )
            else:
                self._storage.update_fields(decision.record_id, decision.patch)
                log_event(
                    logger,
                    logging.INFO,
                    "candidate_merged",
                    adapter=candidate.source,
                    record_id=decision.record_id,
                    title=candidate.title,
                    score=round(decision.match.score, 4),
                    host_match=decision.match.host_match,
                    fields=sorted(decision.patch),
                )
        return decision

    def _run_inline(
        self,
        adapter: SourceAdapter,
        *,
        report: RunReport,
        cancel: threading.Event,
    ) -> None:
        outcome = report.per_adapter[adapter.name]
        if cancel.is_set():
            outcome.mark_failed(CANCELLED_MESSAGE)
            return

        try:
            candidates = self._fetch(adapter, cancel)
        except Exception as exc:
            if cancel.is_set():
                outcome.mark_failed(CANCELLED_MESSAGE)
            else:
                self._record_fetch_failure(adapter, outcome, exc)
            return

        try:
            self._merge_all(adapter, candidates, outcome=outcome, cancel=cancel)
        except StorageUnavailable:
            return

    def _run_concurrently(
        self,
        adapters: Sequence[SourceAdapter],
        *,
        report: RunReport,
        cancel: threading.Event,
    ) -> None:
        executor = ThreadPoolExecutor(
            max_workers=min(self._max_workers, len(adapters)),
            thread_name_prefix="adapter-fetch",
        )
        # Set once merging stops; in-flight fetches watch it.
        stop_fetching = threading.Event()
        futures: dict[Future[list[CandidateRecord]], SourceAdapter] = {
            executor.submit(self._fetch, adapter, stop_fetching): adapter for adapter in adapters
        }
        pending = set(futures)
        finished: set[str] = set()
        storage_error: StorageUnavailable | None = None

        try:
            while pending and storage_error is None and not cancel.is_set():
                done, pending = wait(
                    pending,
                    timeout=self._poll_interval_seconds,
                    return_when=FIRST_COMPLETED,
                )
                # Merge in registration order among fetches that finished together.
                for future in sorted(done, key=lambda item: adapters.index(futures[item])):
                    adapter = futures[future]
                    outcome = report.per_adapter[adapter.name]
                    if storage_error is not None or cancel.is_set():
                        break
                    finished.add(adapter.name)

                    try:
                        candidates = future.result()
                    except Exception as exc:
                        self._record_fetch_failure(adapter, outcome, exc)
                        continue

                    try:
                        self._merge_all(adapter, candidates, outcome=outcome, cancel=cancel)
                    except StorageUnavailable as exc:
                        storage_error = exc
        finally:
            stop_fetching.set()
            executor.shutdown(wait=False, cancel_futures=True)

        for name, outcome in report.per_adapter.items():
            if name in finished:
                continue
            if storage_error is not None:
                outcome.mark_failed(str(storage_error))
            else:
                outcome.mark_failed(CANCELLED_MESSAGE)

    def _fetch(self, adapter: SourceAdapter, cancel: threading.Event) -> list[CandidateRecord]:
        log_event(logger, logging.INFO, "adapter_fetch_started", adapter=adapter.name)
        candidates = list(adapter.fetch(cancel_event=cancel))
        log_event(
            logger,
            logging.INFO,
            "adapter_fetch_completed",
            adapter=adapter.name,
            candidates=len(candidates),
        )
        return candidates

    def _merge_all(
        self,
        adapter: SourceAdapter,
        candidates: Sequence[CandidateRecord],
        *,
        outcome: AdapterRunOutcome,
        cancel: threading.Event,
    ) -> None:
        outcome.fetched = len(candidates)
        for candidate in candidates:
            if cancel.is_set():
                outcome.mark_failed(CANCELLED_MESSAGE)
                return
            if candidate.source != adapter.name:
                candidate = replace(candidate, source=adapter.name)

            try:
                decision = self.merge_candidate(candidate)
            except StorageUnavailable as exc:
                outcome.mark_failed(str(exc))
                log_event(
                    logger,
                    logging.ERROR,
                    "adapter_storage_failed",
                    adapter=adapter.name,
                    created=outcome.created,
                    merged=outcome.merged,
                    error=str(exc),
                )
                raise

            if isinstance(decision, CreateDecision):
                outcome.created += 1
            else:
                outcome.merged += 1

        log_event(
            logger,
            logging.INFO,
            "adapter_run_completed",
            adapter=adapter.name,
            fetched=outcome.fetched,
            created=outcome.created,
            merged=outcome.merged,
        )

    @staticmethod
    def _record_fetch_failure(
        adapter: SourceAdapter,
        outcome: AdapterRunOutcome,
        exc: Exception,
    ) -> None:
        error = exc if isinstance(exc, AdapterFetchFailed) else AdapterFetchFailed(adapter.name, exc)
        outcome.mark_failed(str(error))
        log_event(
            logger,
            logging.ERROR,
            "adapter_fetch_failed",
            adapter=adapter.name,
            error=str(error),
        )
