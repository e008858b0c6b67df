"""
tests/test_health.py -- Integration tests for GET /health.

Covers:
  - 200 response with status, version, and components fields
  - auth_db and catalog_db components report 'ok' when their stores answer
  - A failing store flips its component to 'error' without failing the request
  - No authentication required
"""

from __future__ import annotations

from sqlalchemy.exc import OperationalError


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    client, _token, _ = api_client
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["version"]
    assert data["components"] == {"app": "ok", "auth_db": "ok", "catalog_db": "ok"}


def test_health_reports_failing_store(api_client, monkeypatch):
    client, _, _ = api_client

    def broken():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(client.app.state.products, "ping", broken)
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["components"]["catalog_db"] == "error"
    assert resp.json()["components"]["auth_db"] == "ok"


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    client, _, _ = api_client
    resp = client.get("/health", headers={})
    assert resp.status_code == 200


def test_unknown_route_uses_error_envelope(api_client):
    client, _, _ = api_client
    resp = client.get("/no-such-route")
    assert resp.status_code == 404
    assert resp.json() == {"status": "error", "message": "Resource not found."}


def test_docs_require_token(api_client):
    client, token, _ = api_client
    assert client.get("/docs").status_code == 401
    resp = client.get("/docs", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert "swagger" in resp.text.lower()
