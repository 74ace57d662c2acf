"""
Utilidades para manejo de fechas en el formato de Odoo.

Odoo serializa `write_date` como "YYYY-MM-DD HH:MM:SS" en UTC, sin zona y
con resolución de un segundo.
"""
from datetime import datetime, timezone
from typing import Any, Optional


ODOO_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normaliza datetime a UTC (aware).

    Odoo devuelve fechas naive que ya están en UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_odoo_datetime(dt: datetime) -> str:
    """Serializa un datetime al formato de dominio de Odoo (UTC, sin fracción)."""
    return ensure_utc(dt).strftime(ODOO_DATETIME_FORMAT)


def parse_odoo_datetime(value: Any) -> Optional[datetime]:
    """
    Convierte un `write_date` de Odoo a datetime UTC.

    Acepta también ISO 8601. Retorna None si el valor no es parseable
    (Odoo usa False para campos vacíos).
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str) or not value:
        return None
    try:
        return ensure_utc(datetime.strptime(value, ODOO_DATETIME_FORMAT))
    except ValueError:
        pass
    try:
        return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        return None
