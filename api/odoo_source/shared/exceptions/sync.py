"""
Excepciones del motor de sincronización Odoo -> nodos.

Taxonomia:
- ConfigurationError: configuración inválida. Fatal al arrancar, nunca se reintenta.
- RemoteCallError: fallo de red/autenticación/RPC. Aborta el modelo en curso.
- ResolutionError: un campo relacional apunta a un modelo sin mapeo. Fatal.
"""
from typing import Any, Dict, Optional

from odoo_source.shared.exceptions.base import AppException


class ConfigurationError(AppException):
    """Excepción para configuraciones inválidas (tipos, dominios, nombres duplicados)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=500,
            error_code="CONFIGURATION_ERROR",
            details=details,
        )


class RemoteCallError(AppException):
    """
    Excepción para fallos de llamadas a Odoo.

    Lleva en `details` el contexto necesario para diagnosticar qué página o
    idioma falló: conexión, modelo, operación, offset y lang.
    """

    def __init__(
        self,
        message: str,
        *,
        connection: Optional[str] = None,
        model: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged: Dict[str, Any] = dict(details or {})
        for key, value in (("connection", connection), ("model", model), ("operation", operation)):
            if value is not None:
                merged[key] = value
        super().__init__(
            message=message,
            status_code=502,
            error_code="REMOTE_CALL_ERROR",
            details=merged,
        )

    @property
    def connection(self) -> Optional[str]:
        return self.details.get("connection")

    @property
    def model(self) -> Optional[str]:
        return self.details.get("model")

    @property
    def operation(self) -> Optional[str]:
        return self.details.get("operation")

    def with_context(self, **context: Any) -> "RemoteCallError":
        """
        Retorna una copia con contexto adicional.
        Los valores ya presentes no se pisan.
        """
        details = {key: value for key, value in context.items() if value is not None}
        details.update(self.details)
        return RemoteCallError(self.message, details=details)


class ResolutionError(AppException):
    """Excepción cuando un campo relacional no coincide con ningún modelo mapeado."""

    def __init__(self, odoo_model: str, field: str, relation: Optional[str]):
        super().__init__(
            message=(
                f"El campo '{field}' de '{odoo_model}' apunta a '{relation}', "
                f"que no tiene mapeo en la conexión"
            ),
            status_code=500,
            error_code="RESOLUTION_ERROR",
            details={"model": odoo_model, "field": field, "relation": relation},
        )


class SyncAlreadyRunningError(AppException):
    """Excepción cuando se solicita un sync mientras otro está en curso."""

    def __init__(self):
        super().__init__(
            message="Ya hay una sincronización en curso",
            status_code=409,
            error_code="SYNC_ALREADY_RUNNING",
        )
