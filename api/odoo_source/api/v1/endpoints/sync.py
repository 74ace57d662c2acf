"""
Endpoints de sincronización Odoo -> nodos locales.
"""
from fastapi import APIRouter, Depends, status
from loguru import logger

from odoo_source.api.v1.dependencies.use_case_deps import get_sync_use_cases
from odoo_source.application.dto.sync_dto import SyncReportDTO, SyncStatusDTO
from odoo_source.application.use_cases.sync_use_cases import SyncUseCases
from odoo_source.infrastructure.executor.sync_executor import get_executor_stats, run_in_sync_executor
from odoo_source.shared.exceptions.sync import SyncAlreadyRunningError


router = APIRouter(prefix="/sync", tags=["Sync"])


@router.post(
    "",
    response_model=SyncReportDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincronizar Odoo con el store de nodos",
)
async def run_sync(use_cases: SyncUseCases = Depends(get_sync_use_cases)) -> SyncReportDTO:
    """
    Ejecuta una corrida completa: pasada incremental y pasada forzada.

    - Responde 409 si ya hay una corrida en curso
    - Los errores remotos por modelo no abortan la corrida: van en `errors`
    """
    if use_cases.is_running:
        raise SyncAlreadyRunningError()

    logger.info("Iniciando sincronización Odoo -> nodos desde API")
    # Thread dedicado para no bloquear el event loop
    report = await run_in_sync_executor(use_cases.run_sync)
    result = SyncReportDTO.from_report(report)
    logger.info(f"Sync completado: {result.message}")
    return result


@router.get(
    "/status",
    response_model=SyncStatusDTO,
    summary="Estado del motor de sync",
)
async def sync_status(use_cases: SyncUseCases = Depends(get_sync_use_cases)) -> SyncStatusDTO:
    status_data = use_cases.get_status()
    last_report = status_data["last_report"]
    return SyncStatusDTO(
        running=status_data["running"],
        connections=status_data["connections"],
        last_report=SyncReportDTO.from_report(last_report) if last_report else None,
        executor=get_executor_stats(),
    )
