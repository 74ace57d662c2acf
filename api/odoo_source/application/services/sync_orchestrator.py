"""
Orquestador del sync Odoo -> nodos.

Cada invocación recorre INCREMENTAL -> FORCED -> DONE:

- INCREMENTAL: por conexión y por modelo (incluido el de borrados), marca de
  agua -> búsqueda paginada -> normalización -> relaciones -> borrados -> upsert.
  Acumula los ids relacionados de los registros actualizados.
- FORCED: solo para los modelos con ids relacionados, lee exactamente esos
  ids, sin importar su write_date. Los modelos sin ids se omiten.
- DONE: fin.

Las conexiones se procesan en paralelo (no comparten estado mutable); dentro
de una conexión, los modelos y los idiomas van en secuencia.

Estrategia ante fallos:
- RemoteCallError aborta solo el modelo en curso; lo ya materializado queda.
- ConfigurationError / ResolutionError son fatales y se propagan.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from odoo_source.application.services.garbage_collector import GarbageCollector
from odoo_source.application.services.node_upsert import NodeUpsertEngine, UpsertOutcome
from odoo_source.application.services.paginated_fetcher import DEFAULT_PAGE_SIZE, PaginatedFetcher
from odoo_source.application.services.relation_resolver import RelatedIdSet, RelationResolver
from odoo_source.application.services.value_normalizer import ValueNormalizer
from odoo_source.application.services.watermark_tracker import WatermarkTracker
from odoo_source.domain.entities.mapping import ModelMapping
from odoo_source.domain.repositories.node_store import INodeStore
from odoo_source.infrastructure.external.odoo.connection import Connection
from odoo_source.shared.exceptions.sync import RemoteCallError
from odoo_source.shared.utils.datetime_utils import utc_now


class SyncPhase(str, Enum):
    PENDING = "pending"
    INCREMENTAL = "incremental"
    FORCED = "forced"
    DONE = "done"


@dataclass
class ModelSyncStats:
    connection: str
    odoo_model: str
    node_type: str
    fetched: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    deleted: int = 0
    error: Optional[Dict[str, Any]] = None

    def record(self, outcome: UpsertOutcome) -> None:
        self.fetched += 1
        if outcome is UpsertOutcome.CREATED:
            self.created += 1
        elif outcome is UpsertOutcome.UPDATED:
            self.updated += 1
        else:
            self.unchanged += 1


@dataclass
class PassReport:
    phase: SyncPhase
    models: List[ModelSyncStats] = field(default_factory=list)
    skipped_models: List[str] = field(default_factory=list)
    related_ids: Dict[str, Dict[str, List[int]]] = field(default_factory=dict)

    def _total(self, attribute: str) -> int:
        return sum(getattr(stats, attribute) for stats in self.models)

    @property
    def created(self) -> int:
        return self._total("created")

    @property
    def updated(self) -> int:
        return self._total("updated")

    @property
    def unchanged(self) -> int:
        return self._total("unchanged")

    @property
    def deleted(self) -> int:
        return self._total("deleted")

    @property
    def errors(self) -> List[Dict[str, Any]]:
        return [stats.error for stats in self.models if stats.error]


@dataclass
class SyncReport:
    phase: SyncPhase = SyncPhase.PENDING
    passes: List[PassReport] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def mark_started(self) -> None:
        self.started_at = utc_now()

    def mark_completed(self) -> None:
        self.completed_at = utc_now()

    @property
    def duration_seconds(self) -> float:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0

    @property
    def errors(self) -> List[Dict[str, Any]]:
        return [error for sync_pass in self.passes for error in sync_pass.errors]

    @property
    def ok(self) -> bool:
        return not self.errors

    def get_pass(self, phase: SyncPhase) -> Optional[PassReport]:
        for sync_pass in self.passes:
            if sync_pass.phase is phase:
                return sync_pass
        return None


class SyncOrchestrator:
    """
    Uso:
        orchestrator = SyncOrchestrator(connections, store)
        report = orchestrator.run()
    """

    def __init__(
        self,
        connections: Sequence[Connection],
        store: INodeStore,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_parallel_connections: int = 4,
    ) -> None:
        self._connections = list(connections)
        self._store = store
        self._max_parallel_connections = max(1, max_parallel_connections)
        self._tracker = WatermarkTracker(store)
        self._fetcher = PaginatedFetcher(page_size)
        self._normalizer = ValueNormalizer()
        self._resolver = RelationResolver()
        self._garbage = GarbageCollector(store)
        self._upsert = NodeUpsertEngine(store)

    @property
    def connections(self) -> List[Connection]:
        return list(self._connections)

    def run(self) -> SyncReport:
        report = SyncReport()
        report.mark_started()

        report.phase = SyncPhase.INCREMENTAL
        incremental, related = self._run_pass(SyncPhase.INCREMENTAL, forced_ids=None)
        report.passes.append(incremental)

        report.phase = SyncPhase.FORCED
        forced, _ = self._run_pass(SyncPhase.FORCED, forced_ids=related)
        report.passes.append(forced)

        report.phase = SyncPhase.DONE
        report.mark_completed()
        logger.info(
            f"Sync completado en {report.duration_seconds:.1f}s: "
            f"incremental(created={incremental.created}, updated={incremental.updated}, "
            f"deleted={incremental.deleted}) forced(updated={forced.updated}, "
            f"skipped={len(forced.skipped_models)}) errores={len(report.errors)}"
        )
        return report

    def _run_pass(
        self,
        phase: SyncPhase,
        forced_ids: Optional[List[RelatedIdSet]],
    ) -> Tuple[PassReport, List[RelatedIdSet]]:
        logger.info(f"Iniciando pasada {phase.value} ({len(self._connections)} conexión(es))")
        report = PassReport(phase=phase)
        if not self._connections:
            return report, []

        workers = min(self._max_parallel_connections, len(self._connections))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"odoo-{phase.value}-") as pool:
            futures = [
                pool.submit(
                    self._sync_connection,
                    connection,
                    phase,
                    forced_ids[index] if forced_ids is not None else None,
                )
                for index, connection in enumerate(self._connections)
            ]
            # result() relanza los errores fatales del thread
            results = [future.result() for future in futures]

        related_sets: List[RelatedIdSet] = []
        for connection, (stats, skipped, related) in zip(self._connections, results):
            report.models.extend(stats)
            report.skipped_models.extend(skipped)
            if related:
                report.related_ids[connection.label] = related.as_dict()
            related_sets.append(related)
        return report, related_sets

    def _sync_connection(
        self,
        connection: Connection,
        phase: SyncPhase,
        forced_ids: Optional[RelatedIdSet],
    ) -> Tuple[List[ModelSyncStats], List[str], RelatedIdSet]:
        related = RelatedIdSet()
        results: List[ModelSyncStats] = []
        skipped: List[str] = []

        for mapping in connection.config.all_models:
            ids: Optional[List[int]] = None
            if phase is SyncPhase.FORCED:
                ids = forced_ids.get(mapping.odoo_model) if forced_ids is not None else []
                if not ids:
                    skipped.append(mapping.odoo_model)
                    continue

            stats = ModelSyncStats(
                connection=connection.label,
                odoo_model=mapping.odoo_model,
                node_type=mapping.node_type,
            )
            try:
                self._sync_model(connection, mapping, stats, related, forced_ids=ids)
            except RemoteCallError as e:
                stats.error = e.to_dict()
                logger.error(
                    f"Sync de {mapping.odoo_model} abortado ({phase.value}, {connection.label}): "
                    f"{e.message} {e.details}"
                )
            results.append(stats)
            logger.info(
                f"{phase.value} {mapping.odoo_model}: fetched={stats.fetched} created={stats.created} "
                f"updated={stats.updated} unchanged={stats.unchanged} deleted={stats.deleted}"
            )
        return results, skipped, related

    def _sync_model(
        self,
        connection: Connection,
        mapping: ModelMapping,
        stats: ModelSyncStats,
        related: RelatedIdSet,
        *,
        forced_ids: Optional[List[int]] = None,
    ) -> None:
        forced = forced_ids is not None
        watermark = self._tracker.compute(mapping)
        # Un modelo nuevo trae todo en su primer sync: no hace falta forzar sus relaciones.
        collect = related if (watermark.has_nodes and not forced) else None
        is_garbage = connection.config.is_garbage(mapping)

        if forced:
            pages = self._fetcher.iter_forced(connection, mapping, forced_ids)
        else:
            pages = self._fetcher.iter_incremental(connection, mapping, watermark)

        for page in pages:
            for raw in page.records:
                record = self._normalizer.normalize_record(raw, mapping, connection.metadata)
                resolved = self._resolver.resolve(record, mapping, connection, page.lang, collect)
                if is_garbage and self._garbage.collect(connection, record, page.lang):
                    stats.deleted += 1
                _, outcome = self._upsert.upsert(mapping, resolved, page.lang, forced=forced)
                stats.record(outcome)
