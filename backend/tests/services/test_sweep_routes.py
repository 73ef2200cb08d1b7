"""Operational API — health probes and sweep status routes.

Invariants:
    - Liveness always 200; readiness 503 without a reachable database
    - Sweep routes 503 when no completion service runs in the process
    - /last is 404 until a pass has finished, then mirrors the report
    - Service errors keep their envelope; anything else is a fixed 500 body
    - The lifespan closes the database on every exit path
"""

import logging
from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from reconciler.config import get_settings
from reconciler.core.errors import ConfigurationError
import reconciler.infrastructure.database as db_module
from reconciler.main import app, lifespan
from reconciler.services.event_completion_service import EventCompletionService
from reconciler.services.reconciliation_sweep import ReconciliationSweep
from reconciler.services.scheduler import Scheduler

from tests.services.fake_status_store import T0


HANDLER_LOGGER = "reconciler.api.error_handlers"


class _BrokenService:
    """Completion service whose report cannot be read."""

    @property
    def last_report(self):
        raise RuntimeError("report store corrupted")


def _install_service(store) -> EventCompletionService:
    sweep = ReconciliationSweep(store.scope, timedelta(hours=1), clock=lambda: T0)
    service = EventCompletionService(sweep, Scheduler(60))
    app.state.completion_service = service
    return service


# ==============================================================================
# Health
# ==============================================================================


async def test_liveness(client):
    response = await client.get("/api/v1/health/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_readiness_with_database(client, test_db_manager):
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json()["checks"]["database"] == "healthy"


async def test_readiness_without_database(client, monkeypatch):
    monkeypatch.setattr(db_module, "db_manager", None)

    response = await client.get("/api/v1/health/ready")

    assert response.status_code == 503
    assert response.json()["reason"] == "database_unavailable"


# ==============================================================================
# Sweeps
# ==============================================================================


async def test_sweep_routes_unavailable_without_service(client):
    for path in ("/api/v1/sweeps/status", "/api/v1/sweeps/last"):
        response = await client.get(path)
        assert response.status_code == 503


async def test_last_sweep_not_found_before_first_pass(client, fake_store):
    _install_service(fake_store)

    response = await client.get("/api/v1/sweeps/last")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_not_found_envelope_logged_as_warning(client, fake_store, caplog):
    _install_service(fake_store)

    with caplog.at_level(logging.INFO, logger=HANDLER_LOGGER):
        response = await client.get("/api/v1/sweeps/last")

    error = response.json()["error"]
    assert error["category"] == "resource_not_found"
    assert error["message"] == "SweepReport 'last' not found"
    (record,) = [r for r in caplog.records if r.name == HANDLER_LOGGER]
    assert record.levelno == logging.WARNING
    assert record.error_code == "RESOURCE_NOT_FOUND"


async def test_unexpected_error_returns_fixed_envelope(caplog):
    app.state.completion_service = _BrokenService()
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    try:
        with caplog.at_level(logging.ERROR, logger=HANDLER_LOGGER):
            async with AsyncClient(transport=transport, base_url="http://test") as c:
                response = await c.get("/api/v1/sweeps/last")
    finally:
        app.state.completion_service = None

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "INTERNAL_ERROR"
    assert "corrupted" not in response.text
    (record,) = [r for r in caplog.records if r.name == HANDLER_LOGGER]
    assert record.exc_info is not None


async def test_status_before_first_pass(client, fake_store):
    _install_service(fake_store)

    body = (await client.get("/api/v1/sweeps/status")).json()

    assert body["running"] is False
    assert body["check_interval_seconds"] == 60.0
    assert body["completed_after_hours"] == 1.0
    assert body["passes_completed"] == 0
    assert body["last_pass"] is None


async def test_status_and_last_after_pass(client, fake_store):
    event = fake_store.add_event()
    playlist = fake_store.add_playlist(event, end_time_utc=T0 - timedelta(hours=2))
    blocked = fake_store.add_event()
    fake_store.add_playlist(blocked, end_time_utc=None)
    service = _install_service(fake_store)
    report = await service.run_once()

    status_body = (await client.get("/api/v1/sweeps/status")).json()
    last = await client.get("/api/v1/sweeps/last")

    assert status_body["passes_completed"] == 1
    assert status_body["last_pass"]["pass_id"] == report.pass_id
    assert status_body["last_pass"]["events_completed"] == 1

    assert last.status_code == 200
    body = last.json()
    assert body["candidates"] == 2
    assert body["playlists_completed"] == 1
    assert body["failures"] == 0
    assert {(r["kind"], r["record_id"], r["outcome"]) for r in body["results"]} == {
        ("playlist", str(playlist.id), "completed"),
        ("event", str(event.id), "completed"),
    }


# ==============================================================================
# Lifespan
# ==============================================================================


async def test_lifespan_starts_and_stops_service():
    get_settings.cache_clear()
    try:
        async with lifespan(app):
            service = app.state.completion_service
            assert service.running
            assert service.scheduler.interval == 60.0
        assert not service.running
        assert app.state.completion_service is None
    finally:
        get_settings.cache_clear()


async def test_lifespan_with_sweep_disabled(monkeypatch):
    monkeypatch.setenv("EVENT_SWEEP_ENABLED", "false")
    get_settings.cache_clear()
    try:
        async with lifespan(app):
            assert app.state.completion_service is None
    finally:
        get_settings.cache_clear()


async def test_lifespan_fails_on_invalid_configuration(monkeypatch):
    monkeypatch.delenv("EVENT_COMPLETED_AFTER_HOURS", raising=False)
    get_settings.cache_clear()
    try:
        with pytest.raises(ConfigurationError):
            async with lifespan(app):
                pass
    finally:
        get_settings.cache_clear()


async def test_lifespan_closes_database_when_service_cannot_be_built(monkeypatch):
    monkeypatch.setenv("EVENT_COMPLETED_AFTER_HOURS", "1e12")
    get_settings.cache_clear()
    try:
        with pytest.raises(ConfigurationError):
            async with lifespan(app):
                pass
        assert db_module.db_manager is None
        assert app.state.completion_service is None
    finally:
        get_settings.cache_clear()
