"""
realtime/gateway.py
-------------------
WebSocket endpoint glue: handshake, inbound frame dispatch, and teardown.

Lifecycle of one socket:
  1. Optional ?token= is verified; a bad token is refused before accept.
  2. Accept, wrap the socket in a Connection, start its writer.
  3. Read frames until the client goes away. Only join:org and leave:org are
     understood; anything else is logged and ignored.
  4. On any exit path, membership is revoked and the writer stopped.
"""

import json
from typing import Optional

from fastapi import WebSocket, WebSocketDisconnect, status
from jose import JWTError
from pydantic import ValidationError

from statuspage.core.logging import get_logger, socket_context
from statuspage.core.security import decode_access_token
from statuspage.realtime.broadcaster import EventBroadcaster
from statuspage.realtime.connection import Connection
from statuspage.realtime.events import ClientEvent, TenantRef
from statuspage.realtime.membership import RoomMembershipManager
from statuspage.schemas.realtime import Envelope, JoinOrgRequest, LeaveOrgRequest

logger = get_logger(__name__)


class InvalidSocketToken(Exception):
    pass


class RealtimeGateway:

    def __init__(self, membership: RoomMembershipManager) -> None:
        self.membership = membership
        self.broadcaster = EventBroadcaster(membership)
        self._connections: dict[str, Connection] = {}

    def stats(self) -> dict:
        return {
            "connections": len(self._connections),
            "rooms": self.membership.rooms(),
        }

    # ── Socket lifecycle ─────────────────────────────────────────────────────

    async def serve(self, websocket: WebSocket, token: Optional[str] = None) -> None:
        try:
            principal_org_id = self._authenticate(token)
        except InvalidSocketToken:
            logger.warning("Socket refused: invalid token")
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid token")
            return

        await websocket.accept()
        connection = Connection(send=websocket.send_json, principal_org_id=principal_org_id)
        connection.open()
        self._connections[connection.id] = connection

        with socket_context(connection.id, authenticated=principal_org_id is not None):
            logger.info("Socket connected")
            try:
                while True:
                    message = await websocket.receive()
                    if message["type"] == "websocket.disconnect":
                        break
                    raw = message.get("text")
                    if raw is None and message.get("bytes") is not None:
                        raw = message["bytes"].decode("utf-8", errors="replace")
                    if raw is None:
                        continue
                    await self.handle_frame(connection, raw)
            except WebSocketDisconnect:
                pass
            finally:
                left = self.membership.remove_connection(connection)
                self._connections.pop(connection.id, None)
                await connection.close()
                logger.info("Socket disconnected", org_id=left)

    async def shutdown(self) -> None:
        for connection in list(self._connections.values()):
            self.membership.remove_connection(connection)
            await connection.close()
        self._connections.clear()

    # ── Inbound frames ───────────────────────────────────────────────────────

    async def handle_frame(self, connection: Connection, raw: str) -> None:
        try:
            envelope = Envelope.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning("Malformed socket frame ignored", connection_id=connection.id, error=str(exc))
            return

        try:
            if envelope.event == ClientEvent.join_org.value:
                body = JoinOrgRequest.model_validate(envelope.data)
                await self.membership.join(
                    connection, TenantRef(org_id=body.org_id, org_slug=body.org_slug)
                )
            elif envelope.event == ClientEvent.leave_org.value:
                body = LeaveOrgRequest.model_validate(envelope.data)
                self.membership.leave(connection, body.org_id)
            else:
                logger.warning(
                    "Unknown socket event ignored",
                    connection_id=connection.id,
                    event_name=envelope.event,
                )
        except ValidationError as exc:
            logger.warning(
                "Invalid socket event body ignored",
                connection_id=connection.id,
                event_name=envelope.event,
                error=str(exc),
            )

    # ── Internals ────────────────────────────────────────────────────────────

    @staticmethod
    def _authenticate(token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        try:
            payload = decode_access_token(token)
        except JWTError as exc:
            raise InvalidSocketToken(str(exc)) from exc
        org_id = payload.get("org_id")
        if not org_id:
            raise InvalidSocketToken("token has no org_id claim")
        return org_id
