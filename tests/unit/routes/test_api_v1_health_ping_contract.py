"""API v1 health contract tests."""

import pytest


@pytest.mark.unit
def test_api_v1_health_ping_returns_success_envelope(client):
    response = client.get("/api/v1/health/ping")

    assert response.status_code == 200
    payload = response.get_json()
    assert isinstance(payload, dict)
    assert payload["success"] is True
    assert payload["error"] is False
    assert payload["message"] == "健康检查成功"
    assert payload["data"]["status"] == "ok"


@pytest.mark.unit
def test_api_v1_health_basic_reports_data_source(client, anonymous_client):
    payload = client.get("/api/v1/health/basic").get_json()
    assert payload["data"] == {"status": "healthy", "version": "0.3.0", "data_source_configured": True}

    payload = anonymous_client.get("/api/v1/health/basic").get_json()
    assert payload["data"]["data_source_configured"] is False


@pytest.mark.unit
def test_api_v1_root_returns_discovery_envelope(client):
    response = client.get("/api/v1/")

    assert response.status_code == 200
    assert response.mimetype == "application/json"
    payload = response.get_json()
    assert payload["success"] is True
    assert payload["data"]["openapi_url"] == "/api/v1/openapi.json"
    assert payload["data"]["health_ping_url"] == "/api/v1/health/ping"
