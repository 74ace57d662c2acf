"""
Dependencias para inyección de casos de uso.
"""
from fastapi import HTTPException, Request, status

from odoo_source.application.use_cases.sync_use_cases import SyncUseCases


def get_sync_use_cases(request: Request) -> SyncUseCases:
    """
    Caso de uso de sync construido en el arranque (`app.state`).

    Raises:
        HTTPException 503: si el motor de sync no fue inicializado
    """
    use_cases = getattr(request.app.state, "sync_use_cases", None)
    if use_cases is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="El motor de sync no está inicializado",
        )
    return use_cases
