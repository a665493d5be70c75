"""
realtime/membership.py
----------------------
Room membership: which live connections receive which organization's events.

Critical security invariant:
  A connection is a member of at most one organization room at a time, and
  the broadcaster only ever reads rooms through members_of(). An event for
  organization A can therefore never reach a socket that joined B.

The maps below are the only shared mutable state of the real-time layer.
They are touched exclusively from the event loop, so no locking is needed.
"""

from typing import Optional, Protocol

from statuspage.core.logging import get_logger
from statuspage.realtime.connection import Connection
from statuspage.realtime.events import TenantRef

logger = get_logger(__name__)


class TenantDirectory(Protocol):
    """Resolves public organization handles. Backed by the database in production."""

    async def resolve_slug(self, slug: str) -> Optional[str]:
        ...

    async def exists(self, org_id: str) -> bool:
        ...


class RoomMembershipManager:

    def __init__(self, directory: TenantDirectory, org_id_requires_auth: bool = True) -> None:
        self._directory = directory
        self._org_id_requires_auth = org_id_requires_auth
        self._rooms: dict[str, set[Connection]] = {}
        self._room_of: dict[str, str] = {}

    # ── Queries ──────────────────────────────────────────────────────────────

    def members_of(self, tenant_id: str) -> frozenset[Connection]:
        return frozenset(self._rooms.get(tenant_id, ()))

    def room_of(self, connection: Connection) -> Optional[str]:
        return self._room_of.get(connection.id)

    def rooms(self) -> dict[str, int]:
        """Room id → member count. Only non-empty rooms exist."""
        return {tenant_id: len(members) for tenant_id, members in self._rooms.items()}

    # ── Mutations ────────────────────────────────────────────────────────────

    async def join(self, connection: Connection, ref: TenantRef) -> Optional[str]:
        """
        Add the connection to the room of the referenced organization.

        Returns the organization id joined, or None when the join was dropped.
        Dropped joins are logged and never reported to the client; the page
        still converges through polling.
        """
        try:
            tenant_id = await self._resolve(connection, ref)
        except Exception as exc:
            logger.warning(
                "Tenant resolution failed, join dropped",
                connection_id=connection.id,
                org_id=ref.org_id,
                org_slug=ref.org_slug,
                error=str(exc),
            )
            return None

        if tenant_id is None:
            return None

        # The socket may have gone away while the directory lookup was pending.
        if not connection.is_open:
            logger.debug("Connection closed before join completed", connection_id=connection.id)
            return None

        previous = self._room_of.get(connection.id)
        if previous == tenant_id:
            return tenant_id
        if previous is not None:
            self._discard(connection, previous)

        self._rooms.setdefault(tenant_id, set()).add(connection)
        self._room_of[connection.id] = tenant_id
        logger.info(
            "Connection joined org room",
            connection_id=connection.id,
            org_id=tenant_id,
            previous_org_id=previous,
            members=len(self._rooms[tenant_id]),
        )
        return tenant_id

    def leave(self, connection: Connection, tenant_id: str) -> bool:
        """Remove the connection from a room. Returns False if it was not a member."""
        if self._room_of.get(connection.id) != tenant_id:
            return False
        self._discard(connection, tenant_id)
        logger.info("Connection left org room", connection_id=connection.id, org_id=tenant_id)
        return True

    def remove_connection(self, connection: Connection) -> Optional[str]:
        """Revoke every membership of a closing connection."""
        tenant_id = self._room_of.get(connection.id)
        if tenant_id is not None:
            self._discard(connection, tenant_id)
        return tenant_id

    # ── Internals ────────────────────────────────────────────────────────────

    async def _resolve(self, connection: Connection, ref: TenantRef) -> Optional[str]:
        if not ref:
            logger.info("Empty join request ignored", connection_id=connection.id)
            return None

        if ref.org_id:
            if (
                self._org_id_requires_auth
                and connection.principal_org_id is not None
                and connection.principal_org_id != ref.org_id
            ):
                logger.warning(
                    "Join to foreign organization refused",
                    connection_id=connection.id,
                    org_id=ref.org_id,
                    principal_org_id=connection.principal_org_id,
                )
                return None
            if self._org_id_requires_auth and connection.principal_org_id is None:
                logger.warning(
                    "Anonymous join by organization id refused",
                    connection_id=connection.id,
                    org_id=ref.org_id,
                )
                return None
            if not await self._directory.exists(ref.org_id):
                logger.info("Unknown organization id, join dropped", org_id=ref.org_id)
                return None
            return ref.org_id

        tenant_id = await self._directory.resolve_slug(ref.org_slug)
        if tenant_id is None:
            logger.info("Unknown organization slug, join dropped", org_slug=ref.org_slug)
        return tenant_id

    def _discard(self, connection: Connection, tenant_id: str) -> None:
        members = self._rooms.get(tenant_id)
        if members is not None:
            members.discard(connection)
            if not members:
                del self._rooms[tenant_id]
        if self._room_of.get(connection.id) == tenant_id:
            del self._room_of[connection.id]
