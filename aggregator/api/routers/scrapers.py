"""
aggregator/api/routers/scrapers.py

Scraper listing and run endpoints.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from aggregator.domain.competition import RunReport
from aggregator.schemas.scraping import RunReportResponse, ScraperListResponse
from aggregator.scraping.errors import UnknownScraper
from aggregator.services.scraping_service import ScrapingService, get_scraping_service
from db.session import get_db

router = APIRouter(prefix="/scrapers", tags=["scrapers"])

DISCONNECT_POLL_SECONDS = 0.5


async def _run_until_disconnect(
    request: Request,
    run: Callable[[threading.Event], RunReport],
) -> RunReport:
    """
    Run a scrape off the event loop; a client disconnect cancels it cooperatively.
    """

    cancel_event = threading.Event()
    task = asyncio.ensure_future(run_in_threadpool(run, cancel_event))
    while True:
        done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
        if done:
            return task.result()
        if not cancel_event.is_set() and await request.is_disconnected():
            cancel_event.set()


@router.get("", response_model=ScraperListResponse)
def list_scrapers(
    scraping_service: ScrapingService = Depends(get_scraping_service),
) -> ScraperListResponse:
    return ScraperListResponse(scrapers=scraping_service.list_adapter_names())


@router.post("/run", response_model=RunReportResponse)
async def run_all_scrapers(
    request: Request,
    db: Session = Depends(get_db),
    scraping_service: ScrapingService = Depends(get_scraping_service),
) -> RunReportResponse:
    """
    Run every registered scraper. Always returns a report, even if all of them fail.
    """

    report = await _run_until_disconnect(
        request,
        lambda cancel_event: scraping_service.run(db=db, cancel_event=cancel_event),
    )
    return RunReportResponse.from_report(report)


@router.post("/{name}/run", response_model=RunReportResponse)
async def run_scraper(
    name: str,
    request: Request,
    db: Session = Depends(get_db),
    scraping_service: ScrapingService = Depends(get_scraping_service),
) -> RunReportResponse:
    """
    Run one scraper by name (case-insensitive).
    """

    try:
        report = await _run_until_disconnect(
            request,
            lambda cancel_event: scraping_service.run(db=db, name=name, cancel_event=cancel_event),
        )
    except UnknownScraper as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc

    return RunReportResponse.from_report(report)
