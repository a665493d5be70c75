"""
client/views.py
---------------
Live views: one mounted page worth of cached queries kept fresh by the
socket, with polling as the safety net.

    api = StatusPageAPI("http://localhost:8000")
    view = LiveView.public(api, "acme", socket_url="ws://localhost:8000/ws")
    await view.mount()
    view.cache.get(("public_status", "acme"))
    ...
    await view.unmount()
"""

from typing import Callable, Optional

import structlog

from statuspage.client.api import StatusPageAPI
from statuspage.client.lifecycle import ConnectionLifecycleController, StateListener
from statuspage.client.reconciler import ClientReconciler, QueryCache
from statuspage.client.transport import Transport, WebSocketTransport
from statuspage.realtime.events import TenantRef

logger = structlog.get_logger(__name__)

DEFAULT_POLL_INTERVAL = 30.0


class LiveView:

    def __init__(
        self,
        cache: QueryCache,
        reconciler: ClientReconciler,
        transport_factory: Callable[[], Transport],
        tenant: TenantRef,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_state: Optional[StateListener] = None,
    ) -> None:
        self.cache = cache
        self.reconciler = reconciler
        self.poll_interval = poll_interval
        self.lifecycle = ConnectionLifecycleController(
            transport_factory, tenant, reconciler.handle_event, on_state
        )
        self.mounted = False

    @classmethod
    def dashboard(
        cls,
        api: StatusPageAPI,
        org_id: str,
        token: str,
        socket_url: str = "ws://localhost:8000/ws",
        incident_id: Optional[str] = None,
        transport_factory: Optional[Callable[[], Transport]] = None,
        **kwargs,
    ) -> "LiveView":
        """Authenticated dashboard; joins its organization room by id."""
        cache = QueryCache()
        cache.register(("services",), api.services)
        cache.register(("incidents",), api.incidents)
        cache.register(("maintenance",), api.maintenance)
        if incident_id is not None:
            cache.register(("incident", incident_id), lambda: api.incident(incident_id))
        return cls(
            cache,
            ClientReconciler.for_dashboard(cache),
            transport_factory or (lambda: WebSocketTransport(socket_url, token=token)),
            TenantRef(org_id=org_id),
            **kwargs,
        )

    @classmethod
    def public(
        cls,
        api: StatusPageAPI,
        slug: str,
        socket_url: str = "ws://localhost:8000/ws",
        transport_factory: Optional[Callable[[], Transport]] = None,
        **kwargs,
    ) -> "LiveView":
        """Anonymous public status page; joins by slug."""
        cache = QueryCache()
        cache.register(("public_status", slug), lambda: api.public_status(slug))
        cache.register(("public_incidents", slug), lambda: api.public_incidents(slug))
        cache.register(("public_maintenance", slug), lambda: api.public_maintenance(slug))
        return cls(
            cache,
            ClientReconciler.for_public(cache, slug),
            transport_factory or (lambda: WebSocketTransport(socket_url)),
            TenantRef(org_slug=slug),
            **kwargs,
        )

    async def mount(self) -> None:
        if self.mounted:
            return
        self.mounted = True
        await self.cache.load()
        self.lifecycle.connect()
        self.reconciler.start_polling(self.poll_interval)
        logger.info("Live view mounted", queries=self.cache.keys())

    async def unmount(self) -> None:
        if not self.mounted:
            return
        self.mounted = False
        await self.lifecycle.disconnect()
        await self.reconciler.stop()
        logger.info("Live view unmounted")
