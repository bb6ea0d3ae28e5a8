import json

import pytest
from fastapi.testclient import TestClient

from carrier_gateway.api.main import create_app
from carrier_gateway.integrations.carriers.gateway import CarrierGateway
from carrier_gateway.integrations.clients.mocks.carriers import MockCarrierBackend
from carrier_gateway.integrations.notifications.notification_service import InMemoryNotificationSink
from carrier_gateway.integrations.policy.webhook_service import SIGNATURE_HEADER, compute_signature

HEADERS = {"X-API-KEY": "test-key"}


@pytest.fixture
def api_sink():
    return InMemoryNotificationSink()


@pytest.fixture
def client(monkeypatch, carrier_configs, api_sink):
    monkeypatch.setenv("API_KEYS", "test-key,other-key")
    gateway = CarrierGateway.from_configs(carrier_configs, transport=MockCarrierBackend().transport(), sink=api_sink)
    with TestClient(create_app(gateway=gateway)) as test_client:
        yield test_client


def _purchase_body(quote_id, carrier_name="Acme"):
    return {
        "carrier_name": carrier_name,
        "quote_id": quote_id,
        "submission_id": "S-1",
        "effective_date": "2030-01-01",
        "payment_cadence": "MONTHLY",
        "billing": {"name": "Dana Lee", "address": "1 Market St", "city": "San Francisco", "state": "CA", "zip_code": "94105"},
    }


def test_health_needs_no_api_key(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["carriers"] == 3


def test_api_key_is_required(client):
    assert client.get("/api/v1/carriers/carriers").status_code == 401
    assert client.get("/api/v1/carriers/carriers", headers={"X-API-KEY": "nope"}).status_code == 401
    assert client.get("/api/v1/carriers/carriers", headers={"X-API-KEY": "other-key"}).status_code == 200


def test_list_carriers_and_status(client):
    carriers = client.get("/api/v1/carriers/carriers", headers=HEADERS).json()["data"]["carriers"]
    assert [c["name"] for c in carriers] == ["Acme", "Beacon", "Dormant"]
    assert carriers[0]["rate_limit"] == 120
    assert "api_key" not in carriers[0]

    status = client.get("/api/v1/carriers/status", headers=HEADERS).json()["data"]
    assert status["total_carriers"] == 3
    assert status["configured_carriers"] == 2


def test_fanout_returns_successful_quotes(client, quote_request_data):
    response = client.post(
        "/api/v1/carriers/quotes/request",
        json={**quote_request_data, "carrier_names": ["Acme", "Dormant", "Geico"]},
        headers=HEADERS,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert list(data["quotes"]) == ["Acme"]
    assert data["total_quotes"] == 1
    assert data["requested_carriers"] == ["Acme", "Dormant", "Geico"]
    assert data["carrier_status"] == {"Acme": "SUCCEEDED", "Dormant": "UNCONFIGURED", "Geico": "UNKNOWN"}
    assert data["quotes"]["Acme"]["provider"] == "Acme"


def test_fanout_validates_coverage(client, quote_request_data):
    quote_request_data["coverage"]["limits"] = {"CYBER": 100}

    response = client.post("/api/v1/carriers/quotes/request", json=quote_request_data, headers=HEADERS)

    assert response.status_code == 422


def test_single_carrier_errors_are_mapped(client, quote_request_data):
    unknown = client.post("/api/v1/carriers/quotes/Geico", json=quote_request_data, headers=HEADERS)
    assert unknown.status_code == 404
    assert unknown.json()["success"] is False
    assert unknown.json()["metadata"]["carrier"] == "Geico"

    unconfigured = client.post("/api/v1/carriers/quotes/Dormant", json=quote_request_data, headers=HEADERS)
    assert unconfigured.status_code == 503


def test_policy_lifecycle_over_http(client, quote_request_data):
    quote = client.post("/api/v1/carriers/quotes/beacon", json=quote_request_data, headers=HEADERS).json()["data"]["quote"]

    purchased = client.post("/api/v1/carriers/policies/purchase", json=_purchase_body(quote["quote_id"], "Beacon"), headers=HEADERS)
    assert purchased.status_code == 200
    policy = purchased.json()["data"]["policy"]
    assert policy["status"] == "ACTIVE"
    assert len(policy["payment_schedule"]) == 12
    policy_id = policy["policy_id"]

    status = client.get(f"/api/v1/carriers/policies/Beacon/{policy_id}/status", headers=HEADERS)
    assert status.json()["data"]["policy"]["policy_id"] == policy_id

    documents = client.get(f"/api/v1/carriers/policies/Beacon/{policy_id}/documents", headers=HEADERS)
    assert documents.json()["data"]["documents"][0]["type"] == "DECLARATIONS"

    cancelled = client.post(
        f"/api/v1/carriers/policies/Beacon/{policy_id}/cancel",
        json={"reason": "Business sold", "effective_date": "2030-03-01T00:00:00Z"},
        headers=HEADERS,
    )
    cancellation = cancelled.json()["data"]["cancellation"]
    assert cancellation["success"] is True
    assert cancellation["effective_date"].startswith("2030-03-01T00:00:00")


def test_purchase_of_unknown_quote_is_bad_gateway(client):
    response = client.post("/api/v1/carriers/policies/purchase", json=_purchase_body("Q-NOPE"), headers=HEADERS)

    assert response.status_code == 502
    assert response.json()["metadata"]["carrier_status"] == 422


def test_cancel_requires_reason(client):
    response = client.post("/api/v1/carriers/policies/Acme/P-1/cancel", json={"reason": ""}, headers=HEADERS)

    assert response.status_code == 422


def test_connection_check(client):
    response = client.post("/api/v1/carriers/test/Acme", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["data"]["connected"] is True


def test_webhook_needs_no_api_key_and_always_answers_200(client, api_sink):
    body = json.dumps({"type": "QUOTE_READY", "quoteId": "Q-1"}).encode("utf-8")

    accepted = client.post(
        "/api/v1/carriers/webhooks/Acme",
        content=body,
        headers={SIGNATURE_HEADER: compute_signature("acme-secret", body), "Content-Type": "application/json"},
    )
    assert accepted.status_code == 200
    assert accepted.json() == {"success": True, "processed": True, "message": "Webhook processed successfully"}
    assert [n.reference_id for n in api_sink.notifications] == ["Q-1"]

    forged = client.post(
        "/api/v1/carriers/webhooks/Acme",
        content=body,
        headers={SIGNATURE_HEADER: "0" * 64, "Content-Type": "application/json"},
    )
    assert forged.status_code == 200
    assert forged.json()["processed"] is False
    assert forged.json()["message"] == "Invalid webhook signature"
    assert len(api_sink.notifications) == 1

    unknown = client.post("/api/v1/carriers/webhooks/Geico", content=body)
    assert unknown.status_code == 200
    assert unknown.json()["processed"] is False


def test_app_builds_gateway_from_environment(monkeypatch, quote_request_data):
    monkeypatch.setenv("API_KEYS", "test-key")
    monkeypatch.setenv("INTEGRATIONS_MODE", "mock")
    monkeypatch.setenv("STATE_FARM_API_KEY", "sf-key")
    for prefix in ("PROGRESSIVE", "ALLSTATE", "LIBERTY_MUTUAL", "TRAVELERS"):
        monkeypatch.delenv(f"{prefix}_API_KEY", raising=False)
    monkeypatch.delenv("CARRIER_CONFIG_PATH", raising=False)

    app = create_app()
    with TestClient(app) as test_client:
        status = test_client.get("/api/v1/carriers/status", headers=HEADERS).json()["data"]
        assert status["total_carriers"] == 5
        assert status["configured_carriers"] == 1

        quotes = test_client.post("/api/v1/carriers/quotes/request", json=quote_request_data, headers=HEADERS).json()
        assert list(quotes["data"]["quotes"]) == ["State Farm"]

    assert app.state.gateway is None
