"""
Casos de uso del sync Odoo -> nodos locales.

Una sola corrida a la vez por proceso: el endpoint HTTP y el CLI comparten
este punto de entrada.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from odoo_source.application.services.sync_orchestrator import SyncOrchestrator, SyncReport
from odoo_source.core.connections_config import load_connections_file
from odoo_source.domain.entities.mapping import ConnectionConfig
from odoo_source.domain.repositories.node_store import INodeStore
from odoo_source.infrastructure.external.odoo.connection import Connection
from odoo_source.infrastructure.node_store import create_node_store
from odoo_source.shared.exceptions.sync import SyncAlreadyRunningError


class SyncUseCases:
    """
    Ejecuta el sync completo (pasada incremental + pasada forzada).

    El lock es no bloqueante: una segunda petición mientras hay una corrida
    en curso falla con SyncAlreadyRunningError en vez de encolarse.
    """

    def __init__(self, orchestrator: SyncOrchestrator, store: Optional[INodeStore] = None) -> None:
        self.orchestrator = orchestrator
        self.store = store
        self._lock = threading.Lock()
        self._last_report: Optional[SyncReport] = None

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    @property
    def last_report(self) -> Optional[SyncReport]:
        return self._last_report

    def run_sync(self) -> SyncReport:
        if not self._lock.acquire(blocking=False):
            raise SyncAlreadyRunningError()
        try:
            logger.info("Iniciando sincronización Odoo -> nodos")
            report = self.orchestrator.run()
            self._last_report = report
            return report
        finally:
            self._lock.release()

    def get_status(self) -> Dict[str, Any]:
        return {
            "running": self.is_running,
            "connections": [c.label for c in self.orchestrator.connections],
            "last_report": self._last_report,
        }

    def close(self) -> None:
        if self.store is not None:
            self.store.close()


def open_connections(connections: Sequence[ConnectionConfig], settings: Any) -> List[Connection]:
    """Login + idiomas + metadatos de cada conexión, con los timeouts de settings."""
    return [
        Connection.open(
            config,
            timeout_s=settings.ODOO_TIMEOUT_S,
            max_retries=settings.ODOO_MAX_RETRIES,
            min_backoff_s=settings.ODOO_MIN_BACKOFF_S,
            max_backoff_s=settings.ODOO_MAX_BACKOFF_S,
        )
        for config in connections
    ]


def build_sync_use_cases(settings: Any, store: Optional[INodeStore] = None) -> SyncUseCases:
    """
    Construye el caso de uso completo a partir de la configuración.

    Errores de configuración o de bootstrap de conexiones se propagan: son
    fatales para el arranque.
    """
    configs = load_connections_file(settings.ODOO_CONNECTIONS_FILE)
    connections = open_connections(configs, settings)
    if store is None:
        store = create_node_store(settings.NODE_STORE_BACKEND, settings.DATABASE_URL)
    orchestrator = SyncOrchestrator(
        connections,
        store,
        page_size=settings.SYNC_PAGE_SIZE,
        max_parallel_connections=settings.SYNC_MAX_PARALLEL_CONNECTIONS,
    )
    logger.info(
        f"Sync configurado: {len(connections)} conexión(es), store={settings.NODE_STORE_BACKEND}"
    )
    return SyncUseCases(orchestrator, store)
