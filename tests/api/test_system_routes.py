"""Tests for the health, diagnostics and banner routes."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient


def test_health_reports_version_and_uptime(client: TestClient, app: FastAPI) -> None:
    """Return ok with the app version and a whole-second uptime."""
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["message"] == "Server is healthy"
    assert body["data"]["version"] == app.version
    assert isinstance(body["data"]["uptime"], int)
    assert body["data"]["uptime"] >= 0
    assert "code" not in body


def test_health_uptime_never_decreases(client: TestClient, app: FastAPI) -> None:
    """Report a larger uptime once the start time moves into the past."""
    first = client.get("/api/health").json()["data"]["uptime"]
    app.state.started_at -= 5
    second = client.get("/api/health").json()["data"]["uptime"]

    assert second >= first + 5


def test_diag_log_level_is_a_stub(client: TestClient) -> None:
    """Return the fixed stub message and the effective log level."""
    response = client.get("/api/diag/log-level")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["message"] == "Diagnostics endpoint ready"
    assert body["data"]["message"] == "Log level diagnostics endpoint - no-op stub"
    assert isinstance(body["data"]["logLevel"], str)


def test_root_banner_is_plain_text(client: TestClient) -> None:
    """Serve a plain-text banner outside the envelope."""
    response = client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "Forge server is running. Try /api/health"


def test_cors_allows_configured_origin(make_app) -> None:
    """Echo the configured origin on CORS preflight requests."""
    app = make_app(cors_origins=["http://localhost:5173"])
    with TestClient(app) as client:
        response = client.options(
            "/api/captions",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
            },
        )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
