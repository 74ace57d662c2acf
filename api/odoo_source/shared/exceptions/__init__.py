"""
Excepciones de la aplicación.
"""
from odoo_source.shared.exceptions.base import AppException
from odoo_source.shared.exceptions.sync import (
    ConfigurationError,
    RemoteCallError,
    ResolutionError,
    SyncAlreadyRunningError,
)

__all__ = [
    "AppException",
    "ConfigurationError",
    "RemoteCallError",
    "ResolutionError",
    "SyncAlreadyRunningError",
]
