"""
tests/test_api.py

HTTP contract tests for the scraper and catalog routers.

Database-backed dependencies are overridden with in-memory storage.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from aggregator.domain.competition import RunReport
from aggregator.main import create_app
from aggregator.scraping.config.models import ScraperSettings
from aggregator.scraping.registry import AdapterRegistry
from aggregator.scraping.storage import CompetitionStorage, InMemoryCompetitionStorage
from aggregator.services.catalog_service import CatalogService, get_catalog_service
from aggregator.services.scraping_service import ScrapingService, get_scraping_service
from db.session import get_db
from tests.fakes import FailingAdapter, FlakyStorage, StaticAdapter, make_record


class InMemoryScrapingService(ScrapingService):
    def __init__(self, registry: AdapterRegistry, storage: CompetitionStorage) -> None:
        super().__init__(settings=ScraperSettings(max_workers=2), registry=registry)
        self.storage = storage

    def run(self, *, db, name=None, cancel_event: threading.Event | None = None) -> RunReport:
        return self.build_orchestrator(self.storage).run(name, cancel_event=cancel_event)


class InMemoryCatalogService(CatalogService):
    def __init__(self, storage: CompetitionStorage) -> None:
        super().__init__()
        self.storage = storage

    def storage_for(self, db) -> CompetitionStorage:
        return self.storage


def _no_db() -> Iterator[None]:
    yield None


@pytest.fixture()
def catalog() -> InMemoryCompetitionStorage:
    return InMemoryCompetitionStorage()


@pytest.fixture()
def app(catalog: InMemoryCompetitionStorage) -> FastAPI:
    registry = AdapterRegistry(
        [
            StaticAdapter("HKU", [{"title": "[HKU] AI Hackathon 2024", "host": "HKU"}]),
            StaticAdapter("HKUST", [{"title": "[UST] AI Hackathon 2024", "host": "HKU"}]),
            FailingAdapter("CTFTime"),
        ]
    )
    app = create_app(validate_env=False, check_database=False)
    app.dependency_overrides[get_db] = _no_db
    app.dependency_overrides[get_scraping_service] = lambda: InMemoryScrapingService(registry, catalog)
    app.dependency_overrides[get_catalog_service] = lambda: InMemoryCatalogService(catalog)
    return app


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


# ---------------------------------------------------------------------------
# Scrapers
# ---------------------------------------------------------------------------


class TestScraperEndpoints:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_list_scrapers(self, client: TestClient) -> None:
        response = client.get("/scrapers")
        assert response.status_code == 200
        assert response.json() == {"scrapers": ["HKU", "HKUST", "CTFTime"]}

    def test_run_all_reports_every_adapter(self, client: TestClient, catalog: InMemoryCompetitionStorage) -> None:
        response = client.post("/scrapers/run")

        assert response.status_code == 200
        body = response.json()
        assert body["cancelled"] is False
        assert set(body["per_adapter"]) == {"HKU", "HKUST", "CTFTime"}
        assert body["per_adapter"]["CTFTime"]["failed"] is True
        assert body["per_adapter"]["CTFTime"]["error"] == "CTFTime: fetch failed: connection refused"
        assert body["per_adapter"]["HKU"]["created"] + body["per_adapter"]["HKUST"]["created"] == 1
        assert body["per_adapter"]["HKU"]["merged"] + body["per_adapter"]["HKUST"]["merged"] == 1
        assert len(catalog.find_all()) == 1

    def test_run_one_is_case_insensitive(self, client: TestClient) -> None:
        response = client.post("/scrapers/hkust/run")

        assert response.status_code == 200
        assert response.json()["per_adapter"] == {
            "HKUST": {"fetched": 1, "created": 1, "merged": 0, "failed": False, "error": None}
        }

    def test_run_unknown_scraper_returns_404(self, client: TestClient, catalog: InMemoryCompetitionStorage) -> None:
        response = client.post("/scrapers/devpost/run")

        assert response.status_code == 404
        assert "devpost" in response.json()["detail"]
        assert catalog.find_all() == []


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class TestCompetitionEndpoints:
    @pytest.fixture()
    def seeded(self, catalog: InMemoryCompetitionStorage) -> InMemoryCompetitionStorage:
        now = datetime.now(timezone.utc)
        catalog.insert(
            make_record(
                "rec-past",
                "Quantum Computing Challenge",
                host="HKU",
                created_at=now - timedelta(days=30),
                start_date=now - timedelta(days=20),
                end_date=now - timedelta(days=10),
            )
        )
        catalog.insert(
            make_record(
                "rec-live",
                "AI Hackathon 2024",
                host="HKU",
                created_at=now - timedelta(days=5),
                start_date=now - timedelta(days=1),
                end_date=now + timedelta(days=1),
            )
        )
        catalog.insert(
            make_record(
                "rec-next",
                "Global Case Competition",
                sources=("HKUST", "CTFTime"),
                host="HKUST",
                created_at=now - timedelta(days=1),
                start_date=now + timedelta(days=14),
            )
        )
        return catalog

    def test_list_paginates(self, client: TestClient, seeded: InMemoryCompetitionStorage) -> None:
        response = client.get("/competitions", params={"page": 2, "limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert body["page"] == 2
        assert [item["id"] for item in body["data"]] == ["rec-next"]
        assert body["data"][0]["sources"] == ["HKUST", "CTFTime"]

    @pytest.mark.parametrize(
        ("status", "expected_id"),
        [("completed", "rec-past"), ("active", "rec-live"), ("upcoming", "rec-next")],
    )
    def test_filter_by_status(
        self,
        client: TestClient,
        seeded: InMemoryCompetitionStorage,
        status: str,
        expected_id: str,
    ) -> None:
        response = client.get("/competitions", params={"status": status})

        assert response.status_code == 200
        data = response.json()["data"]
        assert [item["id"] for item in data] == [expected_id]
        assert data[0]["status"] == status

    def test_filter_by_host(self, client: TestClient, seeded: InMemoryCompetitionStorage) -> None:
        response = client.get("/competitions", params={"host": "HKU"})

        assert [item["id"] for item in response.json()["data"]] == ["rec-past", "rec-live"]

    def test_invalid_status_returns_400(self, client: TestClient, seeded: InMemoryCompetitionStorage) -> None:
        response = client.get("/competitions", params={"status": "cancelled"})
        assert response.status_code == 400

    def test_limit_is_bounded(self, client: TestClient) -> None:
        assert client.get("/competitions", params={"limit": 0}).status_code == 422
        assert client.get("/competitions", params={"limit": 101}).status_code == 422

    def test_get_by_id(self, client: TestClient, seeded: InMemoryCompetitionStorage) -> None:
        response = client.get("/competitions/rec-live")

        assert response.status_code == 200
        assert response.json()["title"] == "AI Hackathon 2024"
        assert response.json()["status"] == "active"

    def test_get_missing_returns_404(self, client: TestClient) -> None:
        assert client.get("/competitions/missing").status_code == 404

    def test_storage_outage_returns_503(self, app: FastAPI, client: TestClient) -> None:
        app.dependency_overrides[get_catalog_service] = lambda: InMemoryCatalogService(
            FlakyStorage(fail_reads=True)
        )

        response = client.get("/competitions")

        assert response.status_code == 503

    def test_filter_by_start_date_window(self, client: TestClient, seeded: InMemoryCompetitionStorage) -> None:
        now = datetime.now(timezone.utc)

        response = client.get(
            "/competitions",
            params={
                "date_from": (now - timedelta(days=2)).isoformat(),
                "date_to": (now + timedelta(days=30)).isoformat(),
            },
        )

        assert response.status_code == 200
        assert [item["id"] for item in response.json()["data"]] == ["rec-live", "rec-next"]

    def test_date_from_alone_skips_records_without_start(
        self,
        client: TestClient,
        seeded: InMemoryCompetitionStorage,
    ) -> None:
        seeded.insert(make_record("rec-undated", "Deloitte Case Competition"))

        response = client.get("/competitions", params={"date_from": "2000-01-01T00:00:00Z"})

        assert "rec-undated" not in [item["id"] for item in response.json()["data"]]
        assert response.json()["total"] == 3

    def test_inverted_date_window_returns_400(self, client: TestClient) -> None:
        response = client.get(
            "/competitions",
            params={"date_from": "2024-06-01T00:00:00Z", "date_to": "2024-05-01T00:00:00Z"},
        )
        assert response.status_code == 400

    def test_unparseable_date_returns_422(self, client: TestClient) -> None:
        assert client.get("/competitions", params={"date_from": "next week"}).status_code == 422


# ---------------------------------------------------------------------------
# Catalog writes
# ---------------------------------------------------------------------------


class TestCompetitionWrites:
    def test_create_assigns_id_and_normalizes_sources(
        self,
        client: TestClient,
        catalog: InMemoryCompetitionStorage,
    ) -> None:
        response = client.post(
            "/competitions",
            json={
                "title": "  Deloitte Case Competition ",
                "host": "Deloitte",
                "start_date": "2024-09-01T09:00:00",
                "sources": ["admin", " admin ", "HKU"],
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Deloitte Case Competition"
        assert body["sources"] == ["admin", "HKU"]
        assert body["start_date"].startswith("2024-09-01T09:00:00")
        stored = catalog.find_by_id(body["id"])
        assert stored is not None
        assert stored.start_date.tzinfo is not None

    def test_create_defaults_to_manual_source(self, client: TestClient) -> None:
        response = client.post("/competitions", json={"title": "Deloitte Case Competition"})

        assert response.status_code == 201
        assert response.json()["sources"] == ["manual"]

    def test_create_rejects_client_supplied_id(self, client: TestClient, catalog: InMemoryCompetitionStorage) -> None:
        response = client.post("/competitions", json={"id": "rec-mine", "title": "Deloitte Case Competition"})

        assert response.status_code == 422
        assert catalog.find_all() == []

    @pytest.mark.parametrize(
        "payload",
        [{"title": ""}, {"title": "   "}, {"title": "AI Hackathon 2025", "sources": []}],
    )
    def test_create_validates_body(self, client: TestClient, payload: dict) -> None:
        assert client.post("/competitions", json=payload).status_code == 422

    def test_create_with_blank_sources_returns_400(self, client: TestClient) -> None:
        response = client.post("/competitions", json={"title": "AI Hackathon 2025", "sources": ["  "]})
        assert response.status_code == 400

    def test_create_duplicate_returns_409(self, client: TestClient, catalog: InMemoryCompetitionStorage) -> None:
        catalog.insert(make_record("rec-1", "[HKU] AI Hackathon 2024", host="HKU"))

        response = client.post("/competitions", json={"title": "AI Hackathon 2024", "host": "HKU"})

        assert response.status_code == 409
        assert "rec-1" in response.json()["detail"]
        assert len(catalog.find_all()) == 1

    def test_update_changes_only_given_fields(self, client: TestClient, catalog: InMemoryCompetitionStorage) -> None:
        catalog.insert(make_record("rec-1", "AI Hackathon 2024", sources=("HKU", "HKUST"), location="Online"))

        response = client.put("/competitions/rec-1", json={"title": "AI Hackathon 2024 Finals", "host": "HKU"})

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == "rec-1"
        assert body["title"] == "AI Hackathon 2024 Finals"
        assert body["host"] == "HKU"
        assert body["location"] == "Online"
        assert body["sources"] == ["HKU", "HKUST"]
        stored = catalog.find_by_id("rec-1")
        assert stored.normalized_title == "ai hackathon 2024 finals"
        assert stored.updated_at > stored.created_at

    @pytest.mark.parametrize(
        "payload",
        [{"id": "rec-2"}, {"sources": []}, {"sources": ["manual"]}, {"created_at": "2024-01-01T00:00:00Z"}],
    )
    def test_update_rejects_immutable_fields(
        self,
        client: TestClient,
        catalog: InMemoryCompetitionStorage,
        payload: dict,
    ) -> None:
        record = make_record("rec-1", "AI Hackathon 2024")
        catalog.insert(record)

        response = client.put("/competitions/rec-1", json=payload)

        assert response.status_code == 422
        assert catalog.find_by_id("rec-1") == record

    def test_update_with_empty_body_returns_400(self, client: TestClient, catalog: InMemoryCompetitionStorage) -> None:
        catalog.insert(make_record("rec-1", "AI Hackathon 2024"))
        assert client.put("/competitions/rec-1", json={}).status_code == 400

    def test_update_rejects_end_before_start(self, client: TestClient, catalog: InMemoryCompetitionStorage) -> None:
        catalog.insert(make_record("rec-1", "AI Hackathon 2024", start_date=datetime(2024, 6, 1, tzinfo=timezone.utc)))

        response = client.put("/competitions/rec-1", json={"end_date": "2024-05-01T00:00:00Z"})

        assert response.status_code == 400

    def test_update_into_duplicate_returns_409(self, client: TestClient, catalog: InMemoryCompetitionStorage) -> None:
        catalog.insert(make_record("rec-1", "AI Hackathon 2024", host="HKU"))
        catalog.insert(make_record("rec-2", "Quantum Computing Challenge", host="HKU"))

        response = client.put("/competitions/rec-2", json={"title": "Hackathon AI 2024"})

        assert response.status_code == 409
        assert catalog.find_by_id("rec-2").title == "Quantum Computing Challenge"

    def test_update_missing_returns_404(self, client: TestClient) -> None:
        assert client.put("/competitions/missing", json={"location": "Online"}).status_code == 404

    def test_delete_removes_record(self, client: TestClient, catalog: InMemoryCompetitionStorage) -> None:
        catalog.insert(make_record("rec-1", "AI Hackathon 2024"))

        response = client.delete("/competitions/rec-1")

        assert response.status_code == 204
        assert catalog.find_all() == []
        assert client.get("/competitions/rec-1").status_code == 404

    def test_delete_missing_returns_404(self, client: TestClient) -> None:
        assert client.delete("/competitions/missing").status_code == 404

    def test_write_during_outage_returns_503(self, app: FastAPI, client: TestClient) -> None:
        app.dependency_overrides[get_catalog_service] = lambda: InMemoryCatalogService(
            FlakyStorage(fail_reads=True)
        )

        response = client.post("/competitions", json={"title": "AI Hackathon 2025"})

        assert response.status_code == 503
