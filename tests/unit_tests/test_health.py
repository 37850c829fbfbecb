"""Tests for the /api/health endpoint."""

from studio_tracker.dependencies import get_backend
from studio_tracker.main import app


def test_health_returns_ok(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200

    data = resp.json()
    assert data["status"] == "ok"
    assert data["version"] == "0.1.0"
    assert data["backend"] == "configured"
    assert "timestamp" in data


def test_health_without_client(client):
    app.dependency_overrides[get_backend] = lambda: None
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["backend"] == "unavailable"
