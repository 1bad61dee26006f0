import threading
import time
import unittest

from unittest import mock

from fastapi import Response

from interior_cms import cache as cache_module
from interior_cms.cache import STALE_DATA_HEADER, Entity, Keys, QueryCache, QueryKey, read_cached


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class Counter:
    """Fetcher that returns an increasing number on every call."""

    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.calls


class QueryCacheTests(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = QueryCache(stale_seconds=300, clock=self.clock)

    def test_fresh_entry_is_served_from_memory(self):
        fetcher = Counter()

        first = self.cache.fetch(Keys.ALL_PORTFOLIOS, fetcher)
        self.clock.advance(299)
        second = self.cache.fetch(Keys.ALL_PORTFOLIOS, fetcher)

        self.assertFalse(first.from_cache)
        self.assertTrue(second.from_cache)
        self.assertEqual(second.data, 1)
        self.assertEqual(fetcher.calls, 1)

    def test_stale_entry_is_refetched(self):
        fetcher = Counter()
        self.cache.fetch(Keys.ALL_PORTFOLIOS, fetcher)
        self.clock.advance(301)

        self.assertEqual(self.cache.fetch(Keys.ALL_PORTFOLIOS, fetcher).data, 2)

    def test_stale_override_per_key(self):
        cache = QueryCache(stale_seconds=300, stale_overrides={Keys.LOGO: 600}, clock=self.clock)
        logo = Counter()
        settings_rows = Counter()
        cache.fetch(Keys.LOGO, logo)
        cache.fetch(Keys.ALL_SITE_SETTINGS, settings_rows)

        self.clock.advance(400)
        cache.fetch(Keys.LOGO, logo)
        cache.fetch(Keys.ALL_SITE_SETTINGS, settings_rows)

        self.assertEqual(logo.calls, 1)
        self.assertEqual(settings_rows.calls, 2)

    def test_invalidate_entity_covers_every_key(self):
        published, everything, detail, slides = Counter(), Counter(), Counter(), Counter()
        self.cache.fetch(Keys.PUBLISHED_PORTFOLIOS, published)
        self.cache.fetch(Keys.ALL_PORTFOLIOS, everything)
        self.cache.fetch(Keys.portfolio_detail("abc"), detail)
        self.cache.fetch(Keys.ALL_HERO_SLIDES, slides)

        count = self.cache.invalidate(Entity.PORTFOLIOS)

        self.assertEqual(count, 3)
        self.cache.fetch(Keys.PUBLISHED_PORTFOLIOS, published)
        self.cache.fetch(Keys.ALL_PORTFOLIOS, everything)
        self.cache.fetch(Keys.portfolio_detail("abc"), detail)
        self.cache.fetch(Keys.ALL_HERO_SLIDES, slides)
        self.assertEqual((published.calls, everything.calls, detail.calls), (2, 2, 2))
        self.assertEqual(slides.calls, 1)

    def test_invalidate_single_key(self):
        first, second = Counter(), Counter()
        self.cache.fetch(Keys.about_section("intro"), first)
        self.cache.fetch(Keys.about_section("values"), second)

        self.assertEqual(self.cache.invalidate(Keys.about_section("intro")), 1)
        self.assertTrue(self.cache.peek(Keys.about_section("intro")).invalidated)
        self.assertFalse(self.cache.peek(Keys.about_section("values")).invalidated)

    def test_failed_fetch_is_retried_once(self):
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("temporary")
            return ["ok"]

        self.assertEqual(self.cache.fetch(Keys.ALL_INQUIRIES, flaky).data, ["ok"])
        self.assertEqual(len(attempts), 2)

    def test_error_without_cached_data_propagates(self):
        attempts = []

        def broken():
            attempts.append(1)
            raise RuntimeError("down")

        with self.assertRaises(RuntimeError):
            self.cache.fetch(Keys.ALL_INQUIRIES, broken)
        self.assertEqual(len(attempts), 2)
        self.assertIsNone(self.cache.peek(Keys.ALL_INQUIRIES))

    def test_stale_data_served_with_error_after_failed_refetch(self):
        self.cache.fetch(Keys.ALL_CATEGORIES, lambda: ["주거"])
        self.clock.advance(301)

        def broken():
            raise RuntimeError("down")

        result = self.cache.fetch(Keys.ALL_CATEGORIES, broken)

        self.assertTrue(result.is_error)
        self.assertTrue(result.from_cache)
        self.assertEqual(result.data, ["주거"])

    def test_concurrent_reads_share_one_fetch(self):
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow():
            calls.append(1)
            started.set()
            release.wait(5)
            return "rows"

        results = []
        threads = [
            threading.Thread(target=lambda: results.append(self.cache.fetch(Keys.ALL_PORTFOLIOS, slow).data))
            for _ in range(5)
        ]
        for thread in threads:
            thread.start()
        self.assertTrue(started.wait(5))
        time.sleep(0.1)
        release.set()
        for thread in threads:
            thread.join(5)

        self.assertEqual(len(calls), 1)
        self.assertEqual(results, ["rows"] * 5)

    def test_invalidation_during_fetch_marks_result_stale(self):
        started = threading.Event()
        release = threading.Event()

        def slow():
            started.set()
            release.wait(5)
            return "old rows"

        worker = threading.Thread(target=lambda: self.cache.fetch(Keys.ALL_PORTFOLIOS, slow))
        worker.start()
        self.assertTrue(started.wait(5))
        self.cache.invalidate(Entity.PORTFOLIOS)
        release.set()
        worker.join(5)

        self.assertTrue(self.cache.peek(Keys.ALL_PORTFOLIOS).invalidated)
        self.assertEqual(self.cache.fetch(Keys.ALL_PORTFOLIOS, lambda: "new rows").data, "new rows")

    def test_clear(self):
        self.cache.fetch(Keys.LOGO, lambda: "https://cdn/logo.png")
        self.cache.clear()
        self.assertEqual(list(self.cache.keys()), [])

    def test_entry_count_is_bounded(self):
        cache = QueryCache(max_entries=10, clock=self.clock)
        for i in range(100):
            cache.fetch(Keys.about_section(f"section-{i}"), lambda: [])

        keys = list(cache.keys())
        self.assertEqual(len(keys), 10)
        self.assertEqual(keys[-1], Keys.about_section("section-99"))
        self.assertIsNone(cache.peek(Keys.about_section("section-0")))

    def test_recently_read_entry_survives_eviction(self):
        cache = QueryCache(max_entries=2, clock=self.clock)
        cache.fetch(Keys.ALL_PORTFOLIOS, lambda: "portfolios")
        cache.fetch(Keys.ALL_CATEGORIES, lambda: "categories")
        cache.fetch(Keys.ALL_PORTFOLIOS, lambda: "unused")
        cache.fetch(Keys.LOGO, lambda: "logo")

        self.assertIsNotNone(cache.peek(Keys.ALL_PORTFOLIOS))
        self.assertIsNone(cache.peek(Keys.ALL_CATEGORIES))

    def test_missing_detail_is_not_stored(self):
        fetcher = mock.Mock(return_value=None)

        self.assertIsNone(self.cache.fetch(Keys.portfolio_detail("missing"), fetcher).data)
        self.assertIsNone(self.cache.fetch(Keys.portfolio_detail("missing"), fetcher).data)

        self.assertIsNone(self.cache.peek(Keys.portfolio_detail("missing")))
        self.assertEqual(fetcher.call_count, 2)

    def test_unset_logo_is_stored(self):
        self.cache.fetch(Keys.LOGO, lambda: None)
        self.assertIsNotNone(self.cache.peek(Keys.LOGO))

    def test_key_string_form(self):
        self.assertEqual(str(Keys.PUBLISHED_PORTFOLIOS), "portfolios/published")
        self.assertEqual(str(QueryKey(Entity.ABOUT_CONTENT, "section", "intro")), "aboutContent/section/intro")


class ReadCachedTests(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        patcher = mock.patch.object(cache_module, "query_cache", QueryCache(stale_seconds=300, clock=self.clock))
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_fresh_read_has_no_stale_header(self):
        response = Response()
        self.assertEqual(read_cached(Keys.ALL_CATEGORIES, lambda: ["주거"], response), ["주거"])
        self.assertNotIn(STALE_DATA_HEADER, response.headers)

    def test_stale_read_sets_header(self):
        read_cached(Keys.ALL_CATEGORIES, lambda: ["주거"])
        self.clock.advance(301)

        def broken():
            raise RuntimeError("down")

        response = Response()
        with self.assertLogs("interior_cms.cache", level="WARNING"):
            data = read_cached(Keys.ALL_CATEGORIES, broken, response)

        self.assertEqual(data, ["주거"])
        self.assertEqual(response.headers[STALE_DATA_HEADER], "true")


if __name__ == "__main__":
    unittest.main()
