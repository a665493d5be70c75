"""
Shared fixtures.

Settings are read at import time, so the environment is prepared before any
statuspage module is imported. Each API test gets a fresh in-memory SQLite
schema; StaticPool keeps that single database alive across sessions.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production-0123456789")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")

import time
from typing import AsyncGenerator, Callable, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from main import app
from statuspage.db.session import get_db
from statuspage.models import Base
from statuspage.realtime.connection import Connection
from statuspage.realtime.gateway import RealtimeGateway
from statuspage.realtime.membership import RoomMembershipManager
from statuspage.services.organization_service import OrganizationDirectory

test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@event.listens_for(test_engine.sync_engine, "connect")
def _enable_foreign_keys(dbapi_connection, _record):
    # ON DELETE CASCADE is off by default in SQLite.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async def _reset_schema() -> None:
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@pytest.fixture(name="client")
def client_fixture():
    app.dependency_overrides[get_db] = _get_test_db
    app.state.realtime = RealtimeGateway(
        RoomMembershipManager(OrganizationDirectory(TestSessionLocal))
    )
    # One portal for the whole test: HTTP calls, sockets and the DB share a loop.
    with TestClient(app) as client:
        client.portal.call(_reset_schema)
        yield client
        # Drop the pooled connection so the next test's loop gets a fresh one.
        client.portal.call(test_engine.dispose)
    app.dependency_overrides.clear()


@pytest.fixture
def gateway(client: TestClient) -> RealtimeGateway:
    return client.app.state.realtime


@pytest.fixture
def make_org(client: TestClient) -> Callable[..., dict]:
    """Sign up an admin with a new organization; returns ids, slug and auth headers."""

    def _make(name: str = "Acme Corp", email: Optional[str] = None) -> dict:
        email = email or f"admin@{name.lower().replace(' ', '')}.io"
        response = client.post(
            "/api/auth/signup",
            json={
                "name": "Admin",
                "email": email,
                "password": "s3cure-password",
                "organizationName": name,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return {
            "org_id": body["organization"]["id"],
            "slug": body["organization"]["slug"],
            "token": body["accessToken"],
            "headers": {"Authorization": f"Bearer {body['accessToken']}"},
        }

    return _make


def wait_for_room(gateway: RealtimeGateway, org_id: str, members: int, timeout: float = 2.0) -> None:
    """Joins are acknowledged silently; poll the membership map instead."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if gateway.membership.rooms().get(org_id, 0) == members:
            return
        time.sleep(0.01)
    raise AssertionError(
        f"room {org_id} never reached {members} members: {gateway.membership.rooms()}"
    )


class FakeDirectory:
    """In-memory tenant directory: slug → organization id."""

    def __init__(self, slugs: Optional[dict[str, str]] = None) -> None:
        self.slugs = dict(slugs or {})

    async def resolve_slug(self, slug: str) -> Optional[str]:
        return self.slugs.get(slug)

    async def exists(self, org_id: str) -> bool:
        return org_id in self.slugs.values()


class RecordingSocket:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def send(self, message: dict) -> None:
        self.sent.append(message)

    def events(self) -> list[str]:
        return [m["event"] for m in self.sent]


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory({"acme": "org-acme", "globex": "org-globex"})


@pytest.fixture
async def open_connection():
    """Factory for open server-side connections backed by a RecordingSocket."""
    created: list[Connection] = []

    def _open(principal_org_id: Optional[str] = None) -> tuple[Connection, RecordingSocket]:
        socket = RecordingSocket()
        connection = Connection(send=socket.send, principal_org_id=principal_org_id)
        connection.open()
        created.append(connection)
        return connection, socket

    yield _open
    for connection in created:
        await connection.close()
