"""
realtime/connection.py
----------------------
Server-side handle for one live socket.

A Connection owns an outbound FIFO queue and the writer task that drains it
into the socket. Broadcasting therefore never awaits: it only enqueues.
Closing the handle stops the writer; room membership is revoked by whoever
owns the handle (the gateway) through RoomMembershipManager.remove_connection.
"""

import asyncio
import uuid
from enum import Enum as PyEnum
from typing import Any, Awaitable, Callable, Optional

from statuspage.core.logging import get_logger

logger = get_logger(__name__)

SendJSON = Callable[[dict[str, Any]], Awaitable[None]]

# Frames queued for a socket that is not reading are dropped beyond this.
MAX_PENDING_FRAMES = 256


class ConnectionState(str, PyEnum):
    connecting = "connecting"
    connected = "connected"
    disconnected = "disconnected"


class Connection:
    """
    One client channel.

    `send` is the transport's coroutine for writing a JSON frame
    (WebSocket.send_json in production, a list append in tests).
    `principal_org_id` is the organization of an authenticated socket, or
    None for anonymous public-page viewers.
    At most `max_pending` frames wait in the outbound queue; a slow reader
    loses the overflow and recovers on its next refetch.
    """

    def __init__(
        self,
        send: SendJSON,
        principal_org_id: Optional[str] = None,
        connection_id: Optional[str] = None,
        max_pending: int = MAX_PENDING_FRAMES,
    ) -> None:
        self.id = connection_id or uuid.uuid4().hex
        self.principal_org_id = principal_org_id
        self.state = ConnectionState.connecting
        self._send = send
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=max_pending)
        self._writer: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return f"<Connection id={self.id} state={self.state.value}>"

    @property
    def is_open(self) -> bool:
        return self.state != ConnectionState.disconnected

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def open(self) -> None:
        """Mark the handshake complete and start draining the outbound queue."""
        if self.state != ConnectionState.connecting:
            return
        self.state = ConnectionState.connected
        self._writer = asyncio.create_task(
            self._drain(), name=f"ws-writer-{self.id}"
        )

    def deliver(self, message: dict[str, Any]) -> bool:
        """
        Queue a frame without waiting. Returns False once the connection is
        closed or its outbound queue is full.
        """
        if not self.is_open:
            return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(
                "Outbound queue full, frame dropped",
                connection_id=self.id,
                pending=self._queue.qsize(),
            )
            return False
        return True

    async def _drain(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                await self._send(message)
            except Exception as exc:
                # A dead transport surfaces as a disconnect in the gateway's
                # receive loop; nothing more to do here than stop writing.
                logger.info(
                    "Socket write failed, stopping writer",
                    connection_id=self.id,
                    error=str(exc),
                )
                self.state = ConnectionState.disconnected
                return

    async def close(self) -> None:
        """Idempotent. Drops anything still queued."""
        self.state = ConnectionState.disconnected
        writer, self._writer = self._writer, None
        if writer is not None and not writer.done():
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass
