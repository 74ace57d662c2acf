from __future__ import annotations

import json
import threading
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from odoo_source.application.dto.sync_dto import SyncReportDTO
from odoo_source.application.services.sync_orchestrator import SyncOrchestrator, SyncPhase, SyncReport
from odoo_source.application.use_cases.sync_use_cases import SyncUseCases, build_sync_use_cases
from odoo_source.infrastructure.node_store.memory_store import InMemoryNodeStore
from odoo_source.shared.exceptions.sync import SyncAlreadyRunningError

from tests.odoo_fakes import build_library_backend


def test_run_sync_keeps_last_report(connection, store) -> None:
    use_cases = SyncUseCases(SyncOrchestrator([connection], store), store)

    report = use_cases.run_sync()

    assert report.phase is SyncPhase.DONE
    assert use_cases.last_report is report
    status = use_cases.get_status()
    assert status["running"] is False
    assert status["connections"] == [connection.label]


def test_second_concurrent_run_is_rejected() -> None:
    started = threading.Event()
    release = threading.Event()

    def slow_run() -> SyncReport:
        started.set()
        release.wait(timeout=5)
        return SyncReport(phase=SyncPhase.DONE)

    orchestrator = MagicMock()
    orchestrator.run.side_effect = slow_run
    use_cases = SyncUseCases(orchestrator)

    worker = threading.Thread(target=use_cases.run_sync)
    worker.start()
    assert started.wait(timeout=5)
    try:
        assert use_cases.is_running
        with pytest.raises(SyncAlreadyRunningError):
            use_cases.run_sync()
    finally:
        release.set()
        worker.join(timeout=5)
    assert not use_cases.is_running


def test_lock_is_released_when_the_run_fails() -> None:
    orchestrator = MagicMock()
    orchestrator.run.side_effect = RuntimeError("fallo")
    use_cases = SyncUseCases(orchestrator)

    with pytest.raises(RuntimeError):
        use_cases.run_sync()
    assert not use_cases.is_running


def test_build_from_settings(tmp_path: Path) -> None:
    connections_file = tmp_path / "connections.json"
    connections_file.write_text(
        json.dumps(
            [
                {
                    "url": "https://erp.example.com",
                    "database": "library",
                    "username": "sync",
                    "password": "secret",
                    "models": [
                        {"odoo_model": "library.author", "node_type": "Author", "fields": {"name": {}}},
                    ],
                }
            ]
        ),
        encoding="utf-8",
    )
    settings = SimpleNamespace(
        ODOO_CONNECTIONS_FILE=str(connections_file),
        NODE_STORE_BACKEND="memory",
        DATABASE_URL="",
        SYNC_PAGE_SIZE=10,
        SYNC_MAX_PARALLEL_CONNECTIONS=2,
        ODOO_TIMEOUT_S=5,
        ODOO_MAX_RETRIES=0,
        ODOO_MIN_BACKOFF_S=0.1,
        ODOO_MAX_BACKOFF_S=1,
    )
    odoo = build_library_backend()

    with patch(
        "odoo_source.infrastructure.external.odoo.connection.OdooClient",
        return_value=odoo,
    ) as client_cls:
        use_cases = build_sync_use_cases(settings)

    assert client_cls.call_args.kwargs["timeout_s"] == 5
    assert client_cls.call_args.kwargs["max_retries"] == 0
    assert isinstance(use_cases.store, InMemoryNodeStore)

    report = use_cases.run_sync()
    assert report.get_pass(SyncPhase.INCREMENTAL).created == 2
    assert len(use_cases.store) == 2


def test_report_dto_message(connection, store) -> None:
    report = SyncOrchestrator([connection], store).run()
    dto = SyncReportDTO.from_report(report)

    assert dto.success is True
    assert dto.phase == "done"
    assert [p.phase for p in dto.passes] == ["incremental", "forced"]
    assert dto.passes[0].created == 6
    assert "6 nodo(s)" in dto.message

    again = SyncReportDTO.from_report(SyncOrchestrator([connection], store).run())
    assert again.message == "Sin cambios en Odoo"
