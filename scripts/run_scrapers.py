"""
Run competition scrapers from the command line and print the run report.
"""

from __future__ import annotations

import argparse
import json
import logging
import os

from aggregator.scraping.errors import UnknownScraper
from aggregator.scraping.storage import InMemoryCompetitionStorage
from aggregator.services.scraping_service import ScrapingService


def _configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run competition scrapers.")
    parser.add_argument(
        "--scraper",
        dest="scraper",
        default=None,
        help="Run only this scraper (case-insensitive). Runs all when omitted.",
    )
    parser.add_argument(
        "--list",
        dest="list_only",
        action="store_true",
        help="Print registered scraper names and exit.",
    )
    parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        help="Merge into an empty in-memory catalog instead of the database.",
    )
    args = parser.parse_args(argv)

    _configure_logging()
    service = ScrapingService()

    if args.list_only:
        print(json.dumps(service.list_adapter_names(), indent=2))
        return 0

    try:
        if args.dry_run:
            storage = InMemoryCompetitionStorage()
            report = service.build_orchestrator(storage).run(args.scraper)
            catalog = [
                {"title": record.title, "host": record.host, "sources": list(record.sources)}
                for record in storage.find_all()
            ]
        else:
            from db.session import SessionLocal

            with SessionLocal() as db:
                report = service.run(db=db, name=args.scraper)
            catalog = None
    except UnknownScraper as exc:
        parser.error(str(exc))

    payload = report.to_dict()
    if catalog is not None:
        payload["catalog"] = catalog
    print(json.dumps(payload, indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
