from __future__ import annotations

import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def module_client():
    from edms.main import app

    with TestClient(app) as _client:
        yield _client


def test_health_endpoints(client):
    assert client.get("/health").json() == {"ok": True, "storage": "memory"}
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_request_id_is_echoed(client):
    response = client.get("/healthz", headers={"x-request-id": "abc123"})
    assert response.headers["x-request-id"] == "abc123"


@pytest.mark.integration
def test_metrics_endpoint(module_client):
    module_client.get("/healthz")
    response = module_client.get("/metrics")
    assert response.status_code == 200
    assert "http_requests_total" in response.text
