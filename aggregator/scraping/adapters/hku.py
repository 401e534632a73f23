"""
HKU Business School undergraduate competition board.
"""

from __future__ import annotations

import threading
from urllib.parse import urljoin

from aggregator.domain.competition import CandidateRecord
from aggregator.scraping.base import HTTPSourceAdapter


class HKUBoardAdapter(HTTPSourceAdapter):
    """
    Reads competition cards from the HKU board.
    """

    name = "HKU"
    url = "https://ug.hkubs.hku.hk/competition"
    host = "HKU"
    title_tag = "[HKU]"

    CARD_SELECTOR = "a.card-blk__item"
    TITLE_SELECTOR = "p.card-blk__title"

    def fetch(self, cancel_event: threading.Event | None = None) -> list[CandidateRecord]:
        soup = self.get_soup(self.url, cancel_event=cancel_event)

        candidates: list[CandidateRecord] = []
        for index, card in enumerate(soup.select(self.CARD_SELECTOR)):
            title_node = card.select_one(self.TITLE_SELECTOR)
            title = self.clean_text(title_node.get_text(" ") if title_node else None)
            if not title:
                self.skip_item(index=index, reason="missing title")
                continue

            href = card.get("href")
            candidates.append(
                self.candidate(
                    title=f"{self.title_tag} {title}",
                    host=self.host,
                    registration_link=urljoin(self.url, href) if isinstance(href, str) and href else None,
                )
            )
        return candidates
