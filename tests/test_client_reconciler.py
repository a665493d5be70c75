"""Query invalidation, refetch coalescing and the polling fallback."""

import asyncio

import pytest

from statuspage.client.reconciler import ClientReconciler, QueryCache


class CountingFetcher:
    """Returns an increasing version number; can be held mid-fetch."""

    def __init__(self) -> None:
        self.calls = 0
        self.gate: asyncio.Event | None = None

    async def __call__(self) -> int:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        return self.calls


@pytest.fixture
def dashboard():
    cache = QueryCache()
    fetchers = {
        ("services",): CountingFetcher(),
        ("incidents",): CountingFetcher(),
        ("incident", "i-1"): CountingFetcher(),
        ("maintenance",): CountingFetcher(),
    }
    for key, fetcher in fetchers.items():
        cache.register(key, fetcher)
    return ClientReconciler.for_dashboard(cache), fetchers


class TestRouting:

    async def test_maintenance_event_touches_only_maintenance(self, dashboard):
        reconciler, fetchers = dashboard

        invalidated = reconciler.handle_event("maintenance:created", {"id": "m"})
        await reconciler.cache.settle()

        assert invalidated == [("maintenance",)]
        assert fetchers[("maintenance",)].calls == 1
        assert fetchers[("services",)].calls == 0

    async def test_incident_event_refreshes_lists_and_detail(self, dashboard):
        reconciler, _ = dashboard

        invalidated = reconciler.handle_event("incident:resolved", {})

        assert set(invalidated) == {("incidents",), ("incident", "i-1"), ("services",)}
        await reconciler.cache.settle()

    async def test_unknown_event_is_ignored(self, dashboard):
        reconciler, fetchers = dashboard

        assert reconciler.handle_event("billing:updated", {}) == []
        assert all(f.calls == 0 for f in fetchers.values())

    async def test_payload_is_never_merged(self, dashboard):
        reconciler, _ = dashboard

        reconciler.handle_event("service:updated", {"status": "major_outage"})
        await reconciler.cache.settle()

        assert reconciler.cache.get(("services",)) == 1

    async def test_public_view_refreshes_all_three_queries(self):
        cache = QueryCache()
        for key in ("public_status", "public_incidents", "public_maintenance"):
            cache.register((key, "acme"), CountingFetcher())
        reconciler = ClientReconciler.for_public(cache, "acme")

        invalidated = reconciler.handle_event("maintenance:deleted", {"maintenanceId": "m"})
        await cache.settle()

        assert len(invalidated) == 3
        assert all(cache.get(key) == 1 for key in cache.keys())


class TestCoalescing:

    async def test_burst_of_duplicate_events_fetches_once(self, dashboard):
        reconciler, fetchers = dashboard

        for _ in range(5):
            reconciler.handle_event("service:status_changed", {})
        await reconciler.cache.settle()

        assert fetchers[("services",)].calls == 1

    async def test_invalidation_during_fetch_schedules_one_trailing_fetch(self):
        cache = QueryCache()
        fetcher = CountingFetcher()
        fetcher.gate = asyncio.Event()
        cache.register(("services",), fetcher)

        cache.invalidate(("services",))
        await asyncio.sleep(0)
        assert cache.entry(("services",)).in_flight

        cache.invalidate(("services",))
        cache.invalidate(("services",))
        fetcher.gate.set()
        await cache.settle()

        assert fetcher.calls == 2
        assert cache.get(("services",)) == 2

    async def test_failed_fetch_keeps_last_good_data(self):
        cache = QueryCache()
        responses = [{"v": 1}]

        async def flaky():
            if not responses:
                raise ConnectionError("api down")
            return responses.pop()

        cache.register(("services",), flaky)
        await cache.load()
        cache.invalidate(("services",))
        await cache.settle()

        assert cache.get(("services",)) == {"v": 1}
        assert isinstance(cache.entry(("services",)).error, ConnectionError)


class TestPolling:

    async def test_polling_refreshes_everything(self, dashboard):
        reconciler, fetchers = dashboard

        reconciler.start_polling(0.01)
        await asyncio.sleep(0.1)
        await reconciler.stop()

        assert all(f.calls >= 2 for f in fetchers.values())

    async def test_stop_halts_polling(self, dashboard):
        reconciler, fetchers = dashboard
        reconciler.start_polling(0.01)
        await reconciler.stop()

        await asyncio.sleep(0.03)

        assert all(f.calls == 0 for f in fetchers.values())
