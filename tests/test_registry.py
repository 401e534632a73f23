from __future__ import annotations

import unittest

from aggregator.scraping.adapters import CTFTimeAdapter, HKUBoardAdapter, HKUSTBoardAdapter
from aggregator.scraping.config.models import ScraperSettings
from aggregator.scraping.errors import UnknownScraper
from aggregator.scraping.registry import AdapterRegistry, build_default_registry
from tests.fakes import FakeSession, StaticAdapter


class TestAdapterRegistry(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = AdapterRegistry(
            [StaticAdapter("HKU"), StaticAdapter("HKUST"), StaticAdapter("CTFTime")]
        )

    def test_names_keep_registration_order_and_spelling(self) -> None:
        self.assertEqual(self.registry.names(), ["HKU", "HKUST", "CTFTime"])
        self.assertEqual(len(self.registry), 3)

    def test_lookup_is_case_insensitive(self) -> None:
        self.assertEqual(self.registry.get("ctftime").name, "CTFTime")
        self.assertIn("hkust", self.registry)
        self.assertNotIn(42, self.registry)

    def test_unknown_name_raises(self) -> None:
        with self.assertRaises(UnknownScraper) as ctx:
            self.registry.get("Devpost")
        self.assertEqual(ctx.exception.name, "Devpost")

    def test_duplicate_names_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            AdapterRegistry([StaticAdapter("HKU"), StaticAdapter("hku")])

    def test_blank_names_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            AdapterRegistry([StaticAdapter("  ")])


class TestDefaultRegistry(unittest.TestCase):
    def test_builtin_adapters_share_session_and_rate_limiter(self) -> None:
        session = FakeSession()
        registry = build_default_registry(settings=ScraperSettings(), session=session)

        adapters = registry.all()
        self.assertEqual(registry.names(), ["HKU", "HKUST", "CTFTime"])
        self.assertEqual(
            [type(adapter) for adapter in adapters],
            [HKUBoardAdapter, HKUSTBoardAdapter, CTFTimeAdapter],
        )
        self.assertTrue(all(adapter.session is session for adapter in adapters))
        self.assertEqual(len({id(adapter.rate_limiter) for adapter in adapters}), 1)


if __name__ == "__main__":
    unittest.main()
