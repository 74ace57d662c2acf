"""
Tests del contrato HTTP del sync:
- POST /api/v1/sync ejecuta la corrida y retorna el reporte.
- Responde 409 si ya hay una corrida en curso.
- GET /api/v1/sync/status expone el último reporte.
"""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from odoo_source.api.v1.dependencies.use_case_deps import get_sync_use_cases
from odoo_source.application.services.sync_orchestrator import (
    ModelSyncStats,
    PassReport,
    SyncPhase,
    SyncReport,
)


def _report(error: bool = False) -> SyncReport:
    stats = ModelSyncStats(connection="sync@https://erp/prod", odoo_model="library.book", node_type="Book")
    stats.fetched = stats.created = 3
    if error:
        stats.error = {"error": "REMOTE_CALL_ERROR", "message": "boom", "details": {"model": "library.book"}}
    report = SyncReport(
        phase=SyncPhase.DONE,
        passes=[PassReport(phase=SyncPhase.INCREMENTAL, models=[stats]), PassReport(phase=SyncPhase.FORCED)],
    )
    report.mark_started()
    report.mark_completed()
    return report


@pytest.fixture
def mock_use_cases() -> MagicMock:
    uc = MagicMock()
    uc.is_running = False
    uc.run_sync.return_value = _report()
    uc.get_status.return_value = {
        "running": False,
        "connections": ["sync@https://erp/prod"],
        "last_report": _report(),
    }
    return uc


@pytest.fixture
def app_with_mock(mock_use_cases: MagicMock):
    """App FastAPI con el use case mockeado vía dependency_overrides."""
    from main import create_application
    app = create_application()
    app.dependency_overrides[get_sync_use_cases] = lambda: mock_use_cases
    yield app
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_post_sync_returns_report(app_with_mock, mock_use_cases: MagicMock) -> None:
    transport = ASGITransport(app=app_with_mock)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/api/v1/sync")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["phase"] == "done"
    assert data["passes"][0]["created"] == 3
    assert data["passes"][0]["models"][0]["node_type"] == "Book"
    mock_use_cases.run_sync.assert_called_once()


@pytest.mark.asyncio
async def test_post_sync_reports_model_errors(app_with_mock, mock_use_cases: MagicMock) -> None:
    mock_use_cases.run_sync.return_value = _report(error=True)
    transport = ASGITransport(app=app_with_mock)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/api/v1/sync")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert data["errors"][0]["details"]["model"] == "library.book"


@pytest.mark.asyncio
async def test_post_sync_while_running_is_conflict(app_with_mock, mock_use_cases: MagicMock) -> None:
    mock_use_cases.is_running = True
    transport = ASGITransport(app=app_with_mock)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/api/v1/sync")

    assert response.status_code == 409
    assert response.json()["error"] == "SYNC_ALREADY_RUNNING"
    mock_use_cases.run_sync.assert_not_called()


@pytest.mark.asyncio
async def test_status_exposes_last_report(app_with_mock) -> None:
    transport = ASGITransport(app=app_with_mock)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/v1/sync/status")

    assert response.status_code == 200
    data = response.json()
    assert data["running"] is False
    assert data["connections"] == ["sync@https://erp/prod"]
    assert data["last_report"]["passes"][0]["created"] == 3
    assert data["executor"]["semaphore"]["max_concurrent_runs"] == 1


@pytest.mark.asyncio
async def test_sync_without_engine_is_unavailable() -> None:
    from main import create_application
    app = create_application()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/api/v1/sync")
        health = await client.get("/health")

    assert response.status_code == 503
    assert health.status_code == 200
    assert health.json()["sync_ready"] is False
