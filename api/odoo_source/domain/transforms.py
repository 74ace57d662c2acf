"""
Transformaciones declarativas para FieldSpec.

El archivo de conexiones referencia transformaciones por nombre; cada una es
una función pura y total (nunca levanta excepción por el valor recibido).
Desde código se puede pasar cualquier callable directamente en FieldSpec.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any, Callable, Dict

from odoo_source.shared.exceptions.sync import ConfigurationError

Transform = Callable[[Any], Any]


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def _upper(value: Any) -> Any:
    return value.upper() if isinstance(value, str) else value


def _to_int(value: Any) -> Any:
    if value is None or value is False or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_float(value: Any) -> Any:
    if value is None or value is False or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_str(value: Any) -> str:
    if value is None or value is False:
        return ""
    return str(value)


def _slugify(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    ascii_value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    ascii_value = re.sub(r"[^\w\s-]", "", ascii_value).strip().lower()
    return re.sub(r"[-\s_]+", "-", ascii_value)


def _date_only(value: Any) -> Any:
    # "YYYY-MM-DD HH:MM:SS" -> "YYYY-MM-DD"
    return value[:10] if isinstance(value, str) else value


def _split_lines(value: Any) -> list[str]:
    if not isinstance(value, str):
        return []
    return [line.strip() for line in value.splitlines() if line.strip()]


TRANSFORMS: Dict[str, Transform] = {
    "strip": _strip,
    "lower": _lower,
    "upper": _upper,
    "int": _to_int,
    "float": _to_float,
    "str": _to_str,
    "slugify": _slugify,
    "date_only": _date_only,
    "split_lines": _split_lines,
}


def resolve_transform(name: str) -> Transform:
    """Obtiene la transformación registrada con ese nombre."""
    try:
        return TRANSFORMS[name]
    except KeyError:
        raise ConfigurationError(
            f"Transformación desconocida: '{name}'",
            details={"transform": name, "available": sorted(TRANSFORMS)},
        ) from None
