"""
DTOs del sync Odoo -> nodos (respuesta de la API y salida del CLI).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from odoo_source.application.services.sync_orchestrator import (
    ModelSyncStats,
    PassReport,
    SyncReport,
)


class ModelSyncStatsDTO(BaseModel):
    connection: str
    odoo_model: str
    node_type: str
    fetched: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    deleted: int = 0
    error: Optional[Dict[str, Any]] = None

    @classmethod
    def from_stats(cls, stats: ModelSyncStats) -> "ModelSyncStatsDTO":
        return cls(
            connection=stats.connection,
            odoo_model=stats.odoo_model,
            node_type=stats.node_type,
            fetched=stats.fetched,
            created=stats.created,
            updated=stats.updated,
            unchanged=stats.unchanged,
            deleted=stats.deleted,
            error=stats.error,
        )


class PassReportDTO(BaseModel):
    """Resumen de una pasada (incremental o forzada)."""

    phase: str
    created: int
    updated: int
    unchanged: int
    deleted: int
    models: List[ModelSyncStatsDTO] = Field(default_factory=list)
    skipped_models: List[str] = Field(default_factory=list)
    related_ids: Dict[str, Dict[str, List[int]]] = Field(
        default_factory=dict,
        description="Ids relacionados recolectados por conexión y modelo",
    )

    @classmethod
    def from_pass(cls, sync_pass: PassReport) -> "PassReportDTO":
        return cls(
            phase=sync_pass.phase.value,
            created=sync_pass.created,
            updated=sync_pass.updated,
            unchanged=sync_pass.unchanged,
            deleted=sync_pass.deleted,
            models=[ModelSyncStatsDTO.from_stats(s) for s in sync_pass.models],
            skipped_models=list(sync_pass.skipped_models),
            related_ids=dict(sync_pass.related_ids),
        )


class SyncReportDTO(BaseModel):
    """Resultado completo de una corrida de sync."""

    success: bool
    phase: str
    message: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: float = 0.0
    passes: List[PassReportDTO] = Field(default_factory=list)
    errors: List[Dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: SyncReport) -> "SyncReportDTO":
        passes = [PassReportDTO.from_pass(p) for p in report.passes]
        changed = sum(p.created + p.updated + p.deleted for p in passes)
        if not report.ok:
            message = f"Sync completado con {len(report.errors)} error(es)"
        elif changed:
            message = f"Sync completado: {changed} nodo(s) creado(s), actualizado(s) o borrado(s)"
        else:
            message = "Sin cambios en Odoo"
        return cls(
            success=report.ok,
            phase=report.phase.value,
            message=message,
            started_at=report.started_at,
            completed_at=report.completed_at,
            duration_seconds=report.duration_seconds,
            passes=passes,
            errors=report.errors,
        )


class SyncStatusDTO(BaseModel):
    """Estado actual del motor de sync (polling)."""

    running: bool
    connections: List[str] = Field(default_factory=list)
    last_report: Optional[SyncReportDTO] = None
    executor: Dict[str, Any] = Field(default_factory=dict)
