"""
client/reconciler.py
--------------------
Client-side state reconciliation.

QueryCache holds the last fetched result of each query a view shows, keyed by
tuples such as ("services",) or ("incident", "<id>"). ClientReconciler turns
incoming socket events into invalidations of whole query families; it never
merges an event payload into cached data. Every invalidation ends in a
refetch from the REST API, so duplicate, late or out-of-order events all
converge on what the server currently holds.

Refetch scheduling per query:
  - invalidated while idle            → one fetch is scheduled
  - invalidated while scheduled       → coalesced into the scheduled fetch
  - invalidated while a fetch runs    → exactly one trailing fetch afterwards
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional

import structlog

from statuspage.realtime.events import EventKind

logger = structlog.get_logger(__name__)

QueryKey = tuple
Fetcher = Callable[[], Awaitable[Any]]


@dataclass
class QueryEntry:
    fetcher: Fetcher
    data: Any = None
    error: Optional[Exception] = None
    fetch_count: int = 0
    in_flight: bool = False
    trailing: bool = False
    task: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def scheduled(self) -> bool:
        return self.task is not None and not self.task.done()


class QueryCache:

    def __init__(self) -> None:
        self._entries: dict[QueryKey, QueryEntry] = {}

    def register(self, key: QueryKey, fetcher: Fetcher) -> None:
        self._entries[key] = QueryEntry(fetcher=fetcher)

    def keys(self) -> list[QueryKey]:
        return list(self._entries)

    def get(self, key: QueryKey) -> Any:
        return self._entries[key].data

    def entry(self, key: QueryKey) -> QueryEntry:
        return self._entries[key]

    async def load(self) -> None:
        """Initial fetch of every registered query."""
        for key in self._entries:
            self._schedule(key)
        await self.settle()

    def invalidate(self, prefix: QueryKey) -> list[QueryKey]:
        """
        Mark every query whose key starts with prefix as stale and schedule a
        refetch. An empty prefix matches everything.
        """
        matched = [key for key in self._entries if key[: len(prefix)] == prefix]
        for key in matched:
            self._schedule(key)
        return matched

    async def settle(self) -> None:
        """Wait until no fetch is scheduled or running."""
        while True:
            pending = [e.task for e in self._entries.values() if e.scheduled]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        tasks = [e.task for e in self._entries.values() if e.scheduled]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    # ── Internals ────────────────────────────────────────────────────────────

    def _schedule(self, key: QueryKey) -> None:
        entry = self._entries[key]
        if entry.scheduled:
            if entry.in_flight:
                entry.trailing = True
            return
        entry.task = asyncio.create_task(self._refetch(key, entry))

    async def _refetch(self, key: QueryKey, entry: QueryEntry) -> None:
        while True:
            entry.in_flight = True
            entry.trailing = False
            try:
                entry.data = await entry.fetcher()
                entry.error = None
            except Exception as exc:
                # Stale data stays visible; the next event or poll retries.
                logger.warning("Query refetch failed", query=key, error=str(exc))
                entry.error = exc
            finally:
                entry.in_flight = False
                entry.fetch_count += 1
            if not entry.trailing:
                return


# ── Event → query family routing ─────────────────────────────────────────────

DASHBOARD_ROUTES: dict[str, tuple[QueryKey, ...]] = {
    # Incidents embed their service, services carry an incident count.
    "service": (("services",), ("incidents",), ("incident",), ("maintenance",)),
    "incident": (("incidents",), ("incident",), ("services",)),
    "maintenance": (("maintenance",),),
}


def public_routes(slug: str) -> dict[str, tuple[QueryKey, ...]]:
    everything = (
        ("public_status", slug),
        ("public_incidents", slug),
        ("public_maintenance", slug),
    )
    return {"service": everything, "incident": everything, "maintenance": everything}


class ClientReconciler:
    """
    Routes socket events to cache invalidations and runs the polling
    fallback that keeps a view fresh while the socket is down.
    """

    def __init__(self, cache: QueryCache, routes: Mapping[str, Iterable[QueryKey]]) -> None:
        self.cache = cache
        self._routes = {entity: tuple(prefixes) for entity, prefixes in routes.items()}
        self._poller: Optional[asyncio.Task] = None

    @classmethod
    def for_dashboard(cls, cache: QueryCache) -> "ClientReconciler":
        return cls(cache, DASHBOARD_ROUTES)

    @classmethod
    def for_public(cls, cache: QueryCache, slug: str) -> "ClientReconciler":
        return cls(cache, public_routes(slug))

    def handle_event(self, event: str, data: Optional[dict] = None) -> list[QueryKey]:
        """Invalidate the query families an event affects. data is ignored."""
        try:
            kind = EventKind(event)
        except ValueError:
            logger.debug("Unrecognised socket event ignored", event_name=event)
            return []

        invalidated: list[QueryKey] = []
        for prefix in self._routes.get(kind.entity, ()):
            invalidated.extend(self.cache.invalidate(prefix))
        logger.debug("Queries invalidated", event_name=kind.value, queries=invalidated)
        return invalidated

    # ── Polling fallback ─────────────────────────────────────────────────────

    def start_polling(self, interval: float) -> None:
        if self._poller is None or self._poller.done():
            self._poller = asyncio.create_task(self._poll(interval))

    async def stop(self) -> None:
        if self._poller is not None:
            self._poller.cancel()
            try:
                await self._poller
            except asyncio.CancelledError:
                pass
            self._poller = None
        await self.cache.close()

    async def _poll(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.cache.invalidate(())
