"""Client query cache: freshness window, eviction, retries and invalidation."""

import unittest

from app.client.query_cache import GC_TIME_SEC, STALE_TIME_SEC, QueryCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingFetcher:
    def __init__(self, failures: int = 0) -> None:
        self.calls = 0
        self.failures = failures

    def __call__(self) -> dict:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError(f"attempt {self.calls} failed")
        return {"call": self.calls}


class TestQueryCache(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.cache = QueryCache(clock=self.clock)

    def test_defaults(self) -> None:
        self.assertEqual(STALE_TIME_SEC, 300)
        self.assertEqual(GC_TIME_SEC, 600)
        self.assertEqual(QueryCache().retries, 1)

    def test_fresh_data_is_served_from_cache(self) -> None:
        fetch = CountingFetcher()
        first = self.cache.fetch(("projects",), fetch)
        self.clock.advance(299)
        second = self.cache.fetch(("projects",), fetch)
        self.assertEqual(first, second)
        self.assertEqual(fetch.calls, 1)

    def test_stale_data_is_refetched(self) -> None:
        fetch = CountingFetcher()
        self.cache.fetch("projects", fetch)
        self.clock.advance(300)
        self.assertTrue(self.cache.is_stale("projects"))
        self.assertEqual(self.cache.fetch("projects", fetch), {"call": 2})

    def test_force_bypasses_freshness(self) -> None:
        fetch = CountingFetcher()
        self.cache.fetch("projects", fetch)
        self.cache.fetch("projects", fetch, force=True)
        self.assertEqual(fetch.calls, 2)

    def test_entries_are_evicted_after_gc_time(self) -> None:
        self.cache.fetch("projects", CountingFetcher())
        self.clock.advance(450)
        self.assertIn("projects", self.cache)
        self.assertIsNotNone(self.cache.get("projects"))
        self.clock.advance(150)
        self.assertNotIn("projects", self.cache)
        self.assertIsNone(self.cache.get("projects"))
        self.assertEqual(len(self.cache), 0)

    def test_one_retry_then_success(self) -> None:
        fetch = CountingFetcher(failures=1)
        self.assertEqual(self.cache.fetch("tasks", fetch), {"call": 2})

    def test_second_failure_propagates(self) -> None:
        fetch = CountingFetcher(failures=2)
        with self.assertRaises(ConnectionError):
            self.cache.fetch("tasks", fetch)
        self.assertEqual(fetch.calls, 2)
        self.assertNotIn("tasks", self.cache)

    def test_mutation_retries_once_and_invalidates(self) -> None:
        self.cache.fetch(("projects", 1), CountingFetcher())
        self.cache.fetch(("projects", 2), CountingFetcher())
        self.cache.fetch(("tasks", 1), CountingFetcher())
        mutation = CountingFetcher(failures=1)

        result = self.cache.mutate(mutation, invalidate=[("projects",)])

        self.assertEqual(result, {"call": 2})
        self.assertNotIn(("projects", 1), self.cache)
        self.assertNotIn(("projects", 2), self.cache)
        self.assertIn(("tasks", 1), self.cache)

    def test_failed_mutation_keeps_cache(self) -> None:
        self.cache.fetch("projects", CountingFetcher())
        with self.assertRaises(ConnectionError):
            self.cache.mutate(CountingFetcher(failures=5), invalidate=["projects"])
        self.assertIn("projects", self.cache)

    def test_invalidate_returns_count(self) -> None:
        self.cache.fetch(("bom", 1), CountingFetcher())
        self.cache.fetch(("bom", 2), CountingFetcher())
        self.assertEqual(self.cache.invalidate("bom"), 2)
        self.assertEqual(self.cache.invalidate("bom"), 0)

    def test_clear(self) -> None:
        self.cache.fetch("a", CountingFetcher())
        self.cache.clear()
        self.assertEqual(len(self.cache), 0)


if __name__ == "__main__":
    unittest.main()
