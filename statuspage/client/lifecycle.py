"""
client/lifecycle.py
-------------------
Client-side connection lifecycle.

States of one ClientConnection:

    disconnected → connecting → connected → disconnected

A connection is terminal once it reaches disconnected; reconnecting builds a
fresh ClientConnection on a fresh transport. Right after the handshake the
connection sends join:org with the tenant context it was created with, so the
view never has to remember to join.

There is no backoff, jitter or retry cap here. Callers decide when to call
reconnect(); the polling fallback keeps views fresh in the meantime.
"""

import asyncio
from enum import Enum
from typing import Any, Callable, Optional

import structlog

from statuspage.client.transport import Transport, TransportClosed
from statuspage.realtime.events import ClientEvent, TenantRef
from statuspage.schemas.realtime import JoinOrgRequest

logger = structlog.get_logger(__name__)

EventListener = Callable[[str, dict], Any]
StateListener = Callable[[str], Any]


class LinkState(str, Enum):
    disconnected = "disconnected"
    connecting = "connecting"
    connected = "connected"


def join_frame(tenant: TenantRef) -> dict:
    body = JoinOrgRequest(org_id=tenant.org_id, org_slug=tenant.org_slug)
    return {
        "event": ClientEvent.join_org.value,
        "data": body.model_dump(by_alias=True, exclude_none=True),
    }


class ClientConnection:

    def __init__(
        self,
        transport: Transport,
        tenant: TenantRef,
        on_event: EventListener,
        on_state: Optional[StateListener] = None,
    ) -> None:
        self._transport = transport
        self._tenant = tenant
        self._on_event = on_event
        self._on_state = on_state
        self._task: Optional[asyncio.Task] = None
        self.state = LinkState.disconnected
        self.started = False

    def start(self) -> None:
        if self.started:
            return
        self.started = True
        self._set_state(LinkState.connecting)
        self._task = asyncio.create_task(self._run())

    async def close(self) -> None:
        """
        Tear down from any state. Closing while the handshake is pending cancels
        it, so the connected state is never reported for this instance.
        """
        if self.state == LinkState.disconnected and (self._task is None or self._task.done()):
            return
        self._set_state(LinkState.disconnected)
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    # ── Internals ────────────────────────────────────────────────────────────

    async def _run(self) -> None:
        try:
            try:
                await self._transport.open()
            except TransportClosed as exc:
                logger.info("Socket handshake failed", error=str(exc))
                return

            if self.state != LinkState.connecting:
                return
            self._set_state(LinkState.connected)

            await self._transport.send(join_frame(self._tenant))
            while True:
                message = await self._transport.receive()
                self._dispatch(message)
        except TransportClosed as exc:
            logger.info("Socket closed by transport", error=str(exc))
        finally:
            self._set_state(LinkState.disconnected)
            await self._transport.close()

    def _dispatch(self, message: dict) -> None:
        data = message.get("data")
        try:
            self._on_event(message["event"], data if isinstance(data, dict) else {})
        except Exception:
            logger.exception("Socket event listener failed", event_name=message.get("event"))

    def _set_state(self, state: LinkState) -> None:
        if self.state == state:
            return
        self.state = state
        if self._on_state is not None:
            self._on_state(state.value)


class ConnectionLifecycleController:
    """
    Owns the current ClientConnection of one mounted view.

    transport_factory builds a new, unopened transport per attempt.
    """

    def __init__(
        self,
        transport_factory: Callable[[], Transport],
        tenant: TenantRef,
        on_event: EventListener,
        on_state: Optional[StateListener] = None,
    ) -> None:
        self._transport_factory = transport_factory
        self._tenant = tenant
        self._on_event = on_event
        self._on_state = on_state
        self.current: Optional[ClientConnection] = None

    @property
    def state(self) -> LinkState:
        return self.current.state if self.current is not None else LinkState.disconnected

    def connect(self) -> ClientConnection:
        if self.current is not None and self.current.state != LinkState.disconnected:
            return self.current
        self.current = ClientConnection(
            self._transport_factory(), self._tenant, self._on_event, self._on_state
        )
        self.current.start()
        return self.current

    async def disconnect(self) -> None:
        # No leave:org is sent; the server drops membership with the socket.
        if self.current is not None:
            await self.current.close()

    async def reconnect(self) -> ClientConnection:
        await self.disconnect()
        return self.connect()
