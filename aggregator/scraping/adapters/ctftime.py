"""
CTFtime public events API.
"""

from __future__ import annotations

import threading
from typing import Any

from aggregator.domain.competition import CandidateRecord
from aggregator.scraping.base import HTTPSourceAdapter
from aggregator.scraping.errors import AdapterFetchFailed


class CTFTimeAdapter(HTTPSourceAdapter):
    """
    Lists upcoming capture-the-flag events.
    """

    name = "CTFTime"
    url = "https://ctftime.org/api/v1/events/"
    default_host = "CTFTime"
    title_tag = "[CTF]"

    def fetch(self, cancel_event: threading.Event | None = None) -> list[CandidateRecord]:
        payload = self.get_json(
            self.url,
            params={"limit": self.settings.ctftime_event_limit},
            cancel_event=cancel_event,
        )
        if not isinstance(payload, list):
            raise AdapterFetchFailed(self.name, "expected a JSON list of events")

        candidates: list[CandidateRecord] = []
        for index, event in enumerate(payload):
            try:
                candidate = self._to_candidate(event)
            except (TypeError, ValueError) as exc:
                self.skip_item(index=index, reason=str(exc))
                continue
            if candidate is None:
                self.skip_item(index=index, reason="missing title or dates")
                continue
            candidates.append(candidate)
        return candidates

    def _to_candidate(self, event: Any) -> CandidateRecord | None:
        if not isinstance(event, dict):
            return None

        title = self.clean_text(event.get("title"))
        start = event.get("start")
        finish = event.get("finish")
        if not title or not isinstance(start, str) or not isinstance(finish, str):
            return None

        return self.candidate(
            title=f"{self.title_tag} {title}",
            host=self._organizer(event) or self.default_host,
            start_date=self.parse_iso_datetime(start),
            end_date=self.parse_iso_datetime(finish),
            description=self.clean_text(event.get("description")) or None,
            location=self._location(event),
            registration_link=self.clean_text(event.get("url")) or None,
        )

    def _organizer(self, event: dict[str, Any]) -> str | None:
        organizers = event.get("organizers")
        if not isinstance(organizers, list):
            return None
        for organizer in organizers:
            if isinstance(organizer, dict):
                name = self.clean_text(organizer.get("name"))
                if name:
                    return name
        return None

    def _location(self, event: dict[str, Any]) -> str:
        location = self.clean_text(event.get("location"))
        if event.get("onsite") and location:
            return location
        return "Online"
