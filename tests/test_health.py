"""
tests/test_health.py -- Integration tests for GET / (health).

Covers:
  - 200 response with status, message, timestamp and environment
  - No authentication required
  - Unknown routes return the error envelope with 404
  - 405 keeps its Allow header inside the envelope
"""

from __future__ import annotations

from datetime import datetime


def test_health_returns_200(api_client):
    """Health endpoint reports ok with the running environment."""
    client, _ = api_client
    resp = client.get("/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["message"] == "Service is healthy"
    assert data["environment"] == "test"
    assert datetime.fromisoformat(data["timestamp"]).tzinfo is not None


def test_health_no_auth_required(api_client):
    """Health endpoint ignores a bad Authorization header."""
    client, _ = api_client
    resp = client.get("/", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_unknown_route_uses_envelope(api_client):
    client, _ = api_client
    resp = client.get("/does-not-exist")
    assert resp.status_code == 404
    assert resp.json() == {"status": "error", "message": "Not Found"}


def test_wrong_method_keeps_allow_header(api_client):
    client, _ = api_client
    resp = client.get("/auth/register")
    assert resp.status_code == 405
    assert resp.json() == {"status": "error", "message": "Method Not Allowed"}
    assert resp.headers["allow"] == "POST"
