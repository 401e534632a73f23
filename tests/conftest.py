"""
Shared pytest fixtures. Nothing here touches the network or a real database.
"""

from __future__ import annotations

import pytest

from aggregator.scraping.storage import InMemoryCompetitionStorage


@pytest.fixture()
def storage() -> InMemoryCompetitionStorage:
    return InMemoryCompetitionStorage()
