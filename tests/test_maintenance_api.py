"""Maintenance windows over the REST API."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from conftest import wait_for_room


def window(start_in_hours: int = 24, length_hours: int = 2) -> dict:
    start = datetime.now(timezone.utc) + timedelta(hours=start_in_hours)
    return {
        "scheduledStart": start.isoformat(),
        "scheduledEnd": (start + timedelta(hours=length_hours)).isoformat(),
    }


@pytest.fixture
def acme(make_org) -> dict:
    return make_org("Acme")


@pytest.fixture
def service(client: TestClient, acme) -> dict:
    return client.post("/api/services", json={"name": "Database"}, headers=acme["headers"]).json()


def schedule(client: TestClient, org: dict, service: dict, **extra) -> dict:
    response = client.post(
        "/api/maintenance",
        json={"title": "Upgrade", "serviceId": service["id"], **window(), **extra},
        headers=org["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestMaintenance:

    def test_schedule_and_list(self, client: TestClient, acme, service):
        created = schedule(client, acme, service)

        listed = client.get("/api/maintenance", headers=acme["headers"]).json()

        assert created["status"] == "scheduled"
        assert created["service"] == {"id": service["id"], "name": "Database"}
        assert [m["id"] for m in listed] == [created["id"]]

    def test_end_before_start_is_rejected(self, client: TestClient, acme, service):
        times = window()
        response = client.post(
            "/api/maintenance",
            json={
                "title": "Backwards",
                "serviceId": service["id"],
                "scheduledStart": times["scheduledEnd"],
                "scheduledEnd": times["scheduledStart"],
            },
            headers=acme["headers"],
        )

        assert response.status_code == 422

    def test_patch_that_inverts_window_is_rejected(self, client: TestClient, acme, service):
        created = schedule(client, acme, service)
        too_late = datetime.now(timezone.utc) + timedelta(days=30)

        response = client.patch(
            f"/api/maintenance/{created['id']}",
            json={"scheduledStart": too_late.isoformat()},
            headers=acme["headers"],
        )

        assert response.status_code == 400

    def test_patch_status(self, client: TestClient, acme, service):
        created = schedule(client, acme, service)

        response = client.patch(
            f"/api/maintenance/{created['id']}",
            json={"status": "in_progress"},
            headers=acme["headers"],
        )

        assert response.json()["status"] == "in_progress"

    def test_foreign_org_cannot_touch_window(self, client: TestClient, make_org, acme, service):
        created = schedule(client, acme, service)
        globex = make_org("Globex")

        assert client.get("/api/maintenance", headers=globex["headers"]).json() == []
        assert client.delete(
            f"/api/maintenance/{created['id']}", headers=globex["headers"]
        ).status_code == 404

    def test_events_for_create_update_delete(self, client: TestClient, gateway, acme, service):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "join:org", "data": {"orgSlug": acme["slug"]}})
            wait_for_room(gateway, acme["org_id"], 1)

            created = schedule(client, acme, service)
            client.patch(
                f"/api/maintenance/{created['id']}", json={"title": "Bigger upgrade"}, headers=acme["headers"]
            )
            client.delete(f"/api/maintenance/{created['id']}", headers=acme["headers"])

            events = [ws.receive_json() for _ in range(3)]

        assert [e["event"] for e in events] == [
            "maintenance:created",
            "maintenance:updated",
            "maintenance:deleted",
        ]
        assert events[1]["data"]["title"] == "Bigger upgrade"
        assert events[2]["data"] == {"maintenanceId": created["id"]}
