"""Incident lifecycle over the REST API and its real-time events."""

import pytest
from fastapi.testclient import TestClient

from conftest import wait_for_room


@pytest.fixture
def acme(make_org) -> dict:
    return make_org("Acme")


@pytest.fixture
def service(client: TestClient, acme) -> dict:
    return client.post("/api/services", json={"name": "API"}, headers=acme["headers"]).json()


def open_incident(client: TestClient, org: dict, service: dict, **extra) -> dict:
    response = client.post(
        "/api/incidents",
        json={"title": "Elevated errors", "serviceId": service["id"], **extra},
        headers=org["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestIncidents:

    def test_open_records_first_timeline_entry(self, client: TestClient, acme, service):
        incident = open_incident(client, acme, service, description="5xx on /v1")

        assert incident["status"] == "investigating"
        assert incident["resolvedAt"] is None
        assert incident["service"] == {"id": service["id"], "name": "API", "status": "operational"}
        assert [u["message"] for u in incident["updates"]] == ["5xx on /v1"]

    def test_open_on_foreign_service_is_not_found(self, client: TestClient, make_org, service):
        globex = make_org("Globex")

        response = client.post(
            "/api/incidents",
            json={"title": "Sneaky", "serviceId": service["id"]},
            headers=globex["headers"],
        )

        assert response.status_code == 404

    def test_list_filters_by_status(self, client: TestClient, acme, service):
        open_incident(client, acme, service)
        resolved = open_incident(client, acme, service, status="resolved")

        listed = client.get(
            "/api/incidents", params={"status": "resolved"}, headers=acme["headers"]
        ).json()

        assert [i["id"] for i in listed] == [resolved["id"]]
        assert listed[0]["resolvedAt"] is not None

    def test_get_detail_is_tenant_scoped(self, client: TestClient, make_org, acme, service):
        incident = open_incident(client, acme, service)
        globex = make_org("Globex")

        assert client.get(f"/api/incidents/{incident['id']}", headers=acme["headers"]).status_code == 200
        assert client.get(f"/api/incidents/{incident['id']}", headers=globex["headers"]).status_code == 404

    def test_timeline_update_moves_status(self, client: TestClient, acme, service):
        incident = open_incident(client, acme, service)

        response = client.post(
            f"/api/incidents/{incident['id']}/updates",
            json={"message": "Root cause found", "status": "identified"},
            headers=acme["headers"],
        )

        assert response.status_code == 201
        body = response.json()
        assert body["update"]["status"] == "identified"
        assert body["incident"]["status"] == "identified"
        assert len(body["incident"]["updates"]) == 2

    def test_update_without_status_keeps_current(self, client: TestClient, acme, service):
        incident = open_incident(client, acme, service, status="monitoring")

        body = client.post(
            f"/api/incidents/{incident['id']}/updates",
            json={"message": "Still watching"},
            headers=acme["headers"],
        ).json()

        assert body["update"]["status"] == "monitoring"

    def test_resolve_and_reopen(self, client: TestClient, acme, service):
        incident = open_incident(client, acme, service)

        resolved = client.patch(
            f"/api/incidents/{incident['id']}/resolve", headers=acme["headers"]
        ).json()["incident"]
        assert resolved["status"] == "resolved"
        assert resolved["resolvedAt"] is not None
        assert "This incident has been resolved." in [u["message"] for u in resolved["updates"]]

        reopened = client.patch(
            f"/api/incidents/{incident['id']}",
            json={"status": "investigating"},
            headers=acme["headers"],
        ).json()
        assert reopened["resolvedAt"] is None


class TestIncidentEvents:

    def test_events_follow_the_incident_lifecycle(self, client: TestClient, gateway, acme, service):
        with client.websocket_connect(f"/ws?token={acme['token']}") as ws:
            ws.send_json({"event": "join:org", "data": {"orgId": acme["org_id"]}})
            wait_for_room(gateway, acme["org_id"], 1)

            incident = open_incident(client, acme, service)
            client.patch(
                f"/api/incidents/{incident['id']}", json={"title": "Errors"}, headers=acme["headers"]
            )
            client.post(
                f"/api/incidents/{incident['id']}/updates",
                json={"message": "Fixed", "status": "resolved"},
                headers=acme["headers"],
            )
            client.patch(
                f"/api/incidents/{incident['id']}/resolve",
                json={"message": "Closing"},
                headers=acme["headers"],
            )

            events = [ws.receive_json() for _ in range(5)]

        assert [e["event"] for e in events] == [
            "incident:created",
            "incident:updated",
            "incident:updated",
            "incident:resolved",
            "incident:resolved",
        ]
        assert all(e["data"]["id"] == incident["id"] for e in events)
