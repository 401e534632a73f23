"""
HKUST Business School undergraduate announcement board.
"""

from __future__ import annotations

import threading
from urllib.parse import urljoin

from aggregator.domain.competition import CandidateRecord
from aggregator.scraping.base import HTTPSourceAdapter

COMPETITION_KEYWORDS = ("case", "challenge", "competition", "hackathon", "datathon")


class HKUSTBoardAdapter(HTTPSourceAdapter):
    """
    Reads announcement rows and keeps the ones that look like competitions.
    """

    name = "HKUST"
    url = "https://bmundergrad.hkust.edu.hk/announcement"
    host = "HKUST"
    title_tag = "[UST]"

    def fetch(self, cancel_event: threading.Event | None = None) -> list[CandidateRecord]:
        soup = self.get_soup(self.url, cancel_event=cancel_event)

        candidates: list[CandidateRecord] = []
        for row in soup.select("tr"):
            for heading in row.select("h3"):
                title = self.clean_text(heading.get_text(" "))
                if not is_competition_title(title):
                    continue

                link = heading.find("a", href=True) or row.find("a", href=True)
                candidates.append(
                    self.candidate(
                        title=f"{self.title_tag} {title}",
                        host=self.host,
                        registration_link=urljoin(self.url, link["href"]) if link else None,
                    )
                )
        return candidates


def is_competition_title(title: str) -> bool:
    lowered = title.lower()
    return any(keyword in lowered for keyword in COMPETITION_KEYWORDS)
