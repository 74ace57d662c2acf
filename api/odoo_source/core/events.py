"""
Manejadores de inicio y cierre de la aplicación.
"""
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from loguru import logger

from odoo_source.application.use_cases.sync_use_cases import SyncUseCases, build_sync_use_cases
from odoo_source.core.config import Settings, settings


def configure_logging(app_settings: Settings = settings) -> None:
    """Configura loguru: consola al nivel LOG_LEVEL y archivo rotativo."""
    logger.remove()
    logger.add(sys.stderr, level=app_settings.LOG_LEVEL)
    if app_settings.LOG_FILE:
        logger.add(
            app_settings.LOG_FILE,
            rotation="500 MB",
            retention="10 days",
            level=app_settings.LOG_LEVEL,
        )


def startup(app: FastAPI, app_settings: Settings = settings) -> SyncUseCases:
    """Inicializa logging y el motor de sync (conexiones + store)."""
    try:
        configure_logging(app_settings)
        logger.info(f"Iniciando {app_settings.APP_NAME} v{app_settings.APP_VERSION}")
        logger.info(f"Entorno: {app_settings.ENVIRONMENT}")

        use_cases = build_sync_use_cases(app_settings)
        app.state.sync_use_cases = use_cases

        logger.success("Aplicación iniciada correctamente")
        _print_available_urls(app_settings)
        return use_cases
    except Exception as e:
        logger.error(f"Error durante startup: {e}")
        logger.exception("Detalle del error:")
        raise


def shutdown(app: FastAPI) -> None:
    """Libera recursos al cerrar la aplicación."""
    logger.info("Cerrando aplicación...")

    use_cases: Optional[SyncUseCases] = getattr(app.state, "sync_use_cases", None)
    if use_cases is not None:
        use_cases.close()
        logger.info("Store de nodos cerrado")

    logger.success("Aplicación cerrada correctamente")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Ciclo de vida de la app. Si `app.state.sync_use_cases` ya está definido
    (p. ej. en tests), no se construye el motor de sync.
    """
    if getattr(app.state, "sync_use_cases", None) is None:
        startup(app)
    try:
        yield
    finally:
        shutdown(app)


def _print_available_urls(app_settings: Settings) -> None:
    """Imprime las URLs disponibles de la aplicación."""
    if app_settings.HOST == "0.0.0.0":
        access_host = "localhost"
    else:
        access_host = app_settings.HOST

    base_url = f"http://{access_host}:{app_settings.PORT}"

    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info("<bold><green>URLS DISPONIBLES:</green></bold>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info(f"<cyan>  Swagger UI:  {base_url}/docs</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Sync:        {base_url}/api/v1/sync</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Health:      {base_url}/health</cyan>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
