"""Room membership: joining, leaving, and revocation on disconnect."""

import asyncio

import pytest

from statuspage.realtime.events import TenantRef
from statuspage.realtime.membership import RoomMembershipManager

from conftest import FakeDirectory


class TestJoin:

    async def test_join_by_slug_resolves_to_org_id(self, directory, open_connection):
        manager = RoomMembershipManager(directory)
        connection, _ = open_connection()

        joined = await manager.join(connection, TenantRef(org_slug="acme"))

        assert joined == "org-acme"
        assert manager.members_of("org-acme") == {connection}
        assert manager.room_of(connection) == "org-acme"

    async def test_unknown_slug_is_dropped_silently(self, directory, open_connection):
        manager = RoomMembershipManager(directory)
        connection, socket = open_connection()

        assert await manager.join(connection, TenantRef(org_slug="does-not-exist")) is None
        assert manager.rooms() == {}
        assert socket.sent == []

    async def test_empty_reference_is_ignored(self, directory, open_connection):
        manager = RoomMembershipManager(directory)
        connection, _ = open_connection()

        assert await manager.join(connection, TenantRef()) is None
        assert manager.room_of(connection) is None

    async def test_org_id_wins_over_slug(self, directory, open_connection):
        manager = RoomMembershipManager(directory)
        connection, _ = open_connection(principal_org_id="org-globex")

        joined = await manager.join(
            connection, TenantRef(org_id="org-globex", org_slug="acme")
        )

        assert joined == "org-globex"

    async def test_joining_another_org_leaves_the_previous_room(self, directory, open_connection):
        manager = RoomMembershipManager(directory)
        connection, _ = open_connection()

        await manager.join(connection, TenantRef(org_slug="acme"))
        await manager.join(connection, TenantRef(org_slug="globex"))

        assert manager.members_of("org-acme") == frozenset()
        assert manager.members_of("org-globex") == {connection}
        assert manager.rooms() == {"org-globex": 1}

    async def test_rejoining_same_room_is_idempotent(self, directory, open_connection):
        manager = RoomMembershipManager(directory)
        connection, _ = open_connection()

        await manager.join(connection, TenantRef(org_slug="acme"))
        await manager.join(connection, TenantRef(org_slug="acme"))

        assert manager.rooms() == {"org-acme": 1}

    async def test_directory_failure_drops_the_join(self, open_connection):
        class BrokenDirectory(FakeDirectory):
            async def resolve_slug(self, slug):
                raise RuntimeError("database unavailable")

        manager = RoomMembershipManager(BrokenDirectory())
        connection, _ = open_connection()

        assert await manager.join(connection, TenantRef(org_slug="acme")) is None
        assert manager.rooms() == {}

    async def test_connection_closed_during_resolution_never_joins(self, open_connection):
        release = asyncio.Event()

        class SlowDirectory(FakeDirectory):
            async def resolve_slug(self, slug):
                await release.wait()
                return "org-acme"

        manager = RoomMembershipManager(SlowDirectory())
        connection, _ = open_connection()

        pending = asyncio.create_task(manager.join(connection, TenantRef(org_slug="acme")))
        await asyncio.sleep(0)
        await connection.close()
        manager.remove_connection(connection)
        release.set()

        assert await pending is None
        assert manager.rooms() == {}


class TestOrgIdAuthorization:

    async def test_anonymous_join_by_org_id_is_refused(self, directory, open_connection):
        manager = RoomMembershipManager(directory)
        connection, _ = open_connection()

        assert await manager.join(connection, TenantRef(org_id="org-acme")) is None
        assert manager.rooms() == {}

    async def test_join_by_foreign_org_id_is_refused(self, directory, open_connection):
        manager = RoomMembershipManager(directory)
        connection, _ = open_connection(principal_org_id="org-globex")

        assert await manager.join(connection, TenantRef(org_id="org-acme")) is None

    async def test_unknown_org_id_is_dropped(self, directory, open_connection):
        manager = RoomMembershipManager(directory)
        connection, _ = open_connection(principal_org_id="org-missing")

        assert await manager.join(connection, TenantRef(org_id="org-missing")) is None

    async def test_open_mode_accepts_anonymous_org_id(self, directory, open_connection):
        manager = RoomMembershipManager(directory, org_id_requires_auth=False)
        connection, _ = open_connection()

        assert await manager.join(connection, TenantRef(org_id="org-acme")) == "org-acme"


class TestLeave:

    async def test_leave_removes_membership_and_empty_room(self, directory, open_connection):
        manager = RoomMembershipManager(directory)
        connection, _ = open_connection()
        await manager.join(connection, TenantRef(org_slug="acme"))

        assert manager.leave(connection, "org-acme") is True
        assert manager.room_of(connection) is None
        assert manager.rooms() == {}

    async def test_leave_of_a_room_never_joined_is_a_noop(self, directory, open_connection):
        manager = RoomMembershipManager(directory)
        connection, _ = open_connection()
        await manager.join(connection, TenantRef(org_slug="acme"))

        assert manager.leave(connection, "org-globex") is False
        assert manager.members_of("org-acme") == {connection}

    async def test_remove_connection_revokes_membership(self, directory, open_connection):
        manager = RoomMembershipManager(directory)
        first, _ = open_connection()
        second, _ = open_connection()
        await manager.join(first, TenantRef(org_slug="acme"))
        await manager.join(second, TenantRef(org_slug="acme"))

        assert manager.remove_connection(first) == "org-acme"
        assert manager.members_of("org-acme") == {second}
        assert manager.remove_connection(first) is None


@pytest.mark.parametrize("slug", ["acme", "globex"])
async def test_members_of_returns_a_snapshot(directory, open_connection, slug):
    manager = RoomMembershipManager(directory)
    connection, _ = open_connection()
    await manager.join(connection, TenantRef(org_slug=slug))

    snapshot = manager.members_of(directory.slugs[slug])
    manager.remove_connection(connection)

    assert snapshot == {connection}
    assert manager.members_of(directory.slugs[slug]) == frozenset()
