"""
Ejecutor de corridas de sync en threads dedicados.

El motor de sync es síncrono (requests + store bloqueante). Este módulo lo
ejecuta en un ThreadPoolExecutor propio para que el servidor FastAPI siga
atendiendo requests (healthchecks, status) mientras corre una sincronización.

Características:
- ThreadPoolExecutor dedicado con límite explícito de workers
- Semáforo global que limita corridas concurrentes
- Threads con nombre prefijado para identificarlos en logs

Uso:
    from odoo_source.infrastructure.executor.sync_executor import run_in_sync_executor

    report = await run_in_sync_executor(use_cases.run_sync)
"""
import asyncio
import atexit
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, TypeVar

from loguru import logger


T = TypeVar("T")

SYNC_MAX_WORKERS = 2

SYNC_MAX_CONCURRENT_RUNS = 1

_sync_executor = ThreadPoolExecutor(
    max_workers=SYNC_MAX_WORKERS,
    thread_name_prefix="odoo-sync-"
)

_global_semaphore: asyncio.Semaphore | None = None


def _get_global_semaphore() -> asyncio.Semaphore:
    """
    Obtiene el semáforo global, creándolo si es necesario.

    Se crea lazy porque asyncio.Semaphore debe crearse dentro de un contexto
    con event loop activo.
    """
    global _global_semaphore
    if _global_semaphore is None:
        _global_semaphore = asyncio.Semaphore(SYNC_MAX_CONCURRENT_RUNS)
    return _global_semaphore


def shutdown_executor() -> None:
    """Cierra el executor de sync al terminar la aplicación."""
    logger.info("Cerrando ThreadPoolExecutor de sync...")
    _sync_executor.shutdown(wait=True)


atexit.register(shutdown_executor)


async def run_in_sync_executor(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """
    Ejecuta una función bloqueante en el ThreadPoolExecutor de sync.

    Args:
        func: Función o método síncrono a ejecutar
        *args: Argumentos posicionales
        **kwargs: Argumentos con nombre

    Returns:
        El resultado de la función ejecutada

    Raises:
        Cualquier excepción que la función original lance
    """
    if kwargs:
        func = partial(func, **kwargs)

    loop = asyncio.get_running_loop()
    semaphore = _get_global_semaphore()

    async with semaphore:
        try:
            return await loop.run_in_executor(_sync_executor, func, *args)
        except Exception as e:
            logger.error(f"Error en corrida de sync (thread): {type(e).__name__}: {e}")
            raise


def get_executor_stats() -> dict:
    """
    Estadísticas del executor y del semáforo, para el endpoint de status.
    """
    semaphore = _global_semaphore
    return {
        "thread_pool": {
            "max_workers": SYNC_MAX_WORKERS,
            "thread_name_prefix": "odoo-sync-",
        },
        "semaphore": {
            "max_concurrent_runs": SYNC_MAX_CONCURRENT_RUNS,
            "available_slots": semaphore._value if semaphore else SYNC_MAX_CONCURRENT_RUNS,
        },
    }
