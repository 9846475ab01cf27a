"""Health probe, root endpoint and the generic error envelope."""

from fastapi import APIRouter
from fastapi.testclient import TestClient

from telecalling.main import app


def test_health_reports_database(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"


def test_root_lists_name_and_version(client):
    body = client.get("/").json()

    assert body["name"] == "Telecalling CRM"
    assert body["status"] == "running"


def test_responses_carry_timing_header(client):
    assert client.get("/health").headers["X-Response-Time"].endswith("ms")


def test_unknown_route_uses_message_envelope(client):
    resp = client.get("/api/nothing-here")

    assert resp.status_code == 404
    assert resp.json() == {"msg": "Not Found"}


def test_unhandled_error_is_hidden():
    router = APIRouter()

    @router.get("/api/boom")
    async def boom():
        raise RuntimeError("internal detail")

    app.include_router(router)
    try:
        resp = TestClient(app, raise_server_exceptions=False).get("/api/boom")
    finally:
        app.router.routes[:] = [r for r in app.router.routes if getattr(r, "path", None) != "/api/boom"]

    assert resp.status_code == 500
    assert resp.json() == {"msg": "Server Error"}
