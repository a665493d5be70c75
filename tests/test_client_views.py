"""Live views wired end to end with a mocked REST API and socket."""

import asyncio

import httpx
import pytest

from statuspage.client.api import StatusPageAPI
from statuspage.client.lifecycle import LinkState
from statuspage.client.views import LiveView

from test_client_lifecycle import FakeTransport, settle


class FakeStatusServer:
    """Serves the public and dashboard read endpoints from mutable state."""

    def __init__(self) -> None:
        self.overall = "operational"
        self.requests: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request.url.path)
        path = request.url.path
        if path == "/api/public/acme/status":
            return httpx.Response(200, json={"overallStatus": self.overall, "services": []})
        if path == "/api/public/acme/incidents":
            return httpx.Response(200, json={"active": [], "recent": []})
        if path == "/api/public/acme/maintenance":
            return httpx.Response(200, json=[])
        if path.startswith("/api/") and request.headers.get("Authorization") == "Bearer t0k3n":
            return httpx.Response(200, json=[] if path != "/api/incidents/i-1" else {"id": "i-1"})
        return httpx.Response(404, json={"detail": "Not found"})


def make_api(server: FakeStatusServer, token: str | None = None) -> StatusPageAPI:
    return StatusPageAPI(
        "http://status.test", token=token, transport=httpx.MockTransport(server.handler)
    )


class TestPublicView:

    async def test_socket_event_triggers_refetch(self):
        server = FakeStatusServer()
        transport = FakeTransport()
        transport.accept.set()
        api = make_api(server)
        view = LiveView.public(api, "acme", transport_factory=lambda: transport)

        await view.mount()
        await settle()
        assert view.cache.get(("public_status", "acme"))["overallStatus"] == "operational"
        assert view.lifecycle.state == LinkState.connected
        assert transport.sent == [{"event": "join:org", "data": {"orgSlug": "acme"}}]

        server.overall = "major_outage"
        transport.inbox.put_nowait({"event": "service:status_changed", "data": {}})
        await settle()
        await view.cache.settle()

        assert view.cache.get(("public_status", "acme"))["overallStatus"] == "major_outage"
        await view.unmount()
        await api.close()
        assert transport.closed is True

    async def test_polling_covers_a_dead_socket(self):
        server = FakeStatusServer()
        transport = FakeTransport(refuse=True)
        transport.accept.set()
        api = make_api(server)
        view = LiveView.public(api, "acme", transport_factory=lambda: transport, poll_interval=0.01)

        await view.mount()
        server.overall = "degraded"
        await asyncio.sleep(0.1)
        await view.cache.settle()

        assert view.lifecycle.state == LinkState.disconnected
        assert view.cache.get(("public_status", "acme"))["overallStatus"] == "degraded"
        await view.unmount()
        await api.close()


class TestDashboardView:

    async def test_dashboard_joins_by_org_id_and_loads_queries(self):
        server = FakeStatusServer()
        transport = FakeTransport()
        transport.accept.set()
        api = make_api(server, token="t0k3n")
        view = LiveView.dashboard(
            api, "org-1", token="t0k3n", incident_id="i-1", transport_factory=lambda: transport
        )

        await view.mount()
        await settle()

        assert transport.sent == [{"event": "join:org", "data": {"orgId": "org-1"}}]
        assert view.cache.get(("incident", "i-1")) == {"id": "i-1"}
        assert set(server.requests) == {
            "/api/services",
            "/api/incidents",
            "/api/maintenance",
            "/api/incidents/i-1",
        }
        await view.unmount()
        await api.close()

    async def test_api_errors_surface_as_http_errors(self):
        server = FakeStatusServer()
        async with make_api(server) as api:
            with pytest.raises(httpx.HTTPStatusError) as exc_info:
                await api.services()
        assert exc_info.value.response.status_code == 404
