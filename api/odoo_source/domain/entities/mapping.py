"""
Configuración del sync (mapeo Odoo -> nodos locales).

Aquí se define, por conexión:
- modelo origen Odoo
- tipo de nodo destino
- campos, con default y transformación opcionales
- dominio que restringe los registros sincronizados

Este módulo no realiza I/O: solo define configuración y la valida.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from odoo_source.domain.domain_filter import TRUE, Expression
from odoo_source.shared.exceptions.sync import ConfigurationError

REMOTE_ID_FIELD = "id"
LAST_MODIFIED_FIELD = "write_date"

# Nombres que el nodo local reserva para si mismo.
RESERVED_FIELDS = frozenset({"id", "id_odoo", "lang", "write_date"})

# Campos obligatorios del modelo de borrados.
GARBAGE_FIELDS = ("model_id", "model_name")

Transform = Callable[[Any], Any]


class _NoDefault:
    def __repr__(self) -> str:
        return "NO_DEFAULT"

    def __bool__(self) -> bool:
        return False


NO_DEFAULT: Any = _NoDefault()


@dataclass(frozen=True)
class FieldSpec:
    """
    Define la representación local de un campo Odoo.

    - name: nombre del campo en Odoo (y en el nodo)
    - odoo_type: sobrescribe el tipo declarado por `fields_get`
    - default: valor a usar cuando el normalizado es falsy
    - transform: función pura aplicada después del default
    """

    name: str
    odoo_type: Optional[str] = None
    default: Any = NO_DEFAULT
    transform: Optional[Transform] = None

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT


@dataclass(frozen=True)
class ModelMapping:
    """
    Config de un modelo Odoo -> un tipo de nodo local.

    El id local de cada nodo deriva de (node_type, id Odoo, idioma), por lo
    que node_type no debe cambiar entre corridas.
    """

    odoo_model: str
    node_type: str
    fields: tuple[FieldSpec, ...] = ()
    domain: Expression = TRUE

    def __post_init__(self) -> None:
        if not self.odoo_model:
            raise ConfigurationError("Modelo sin nombre Odoo")
        if not self.node_type:
            raise ConfigurationError(f"Modelo '{self.odoo_model}' sin tipo de nodo")
        seen: set[str] = set()
        for spec in self.fields:
            if spec.name in RESERVED_FIELDS:
                raise ConfigurationError(
                    f"El campo '{spec.name}' de '{self.odoo_model}' es un nombre reservado",
                    details={"model": self.odoo_model, "field": spec.name},
                )
            if spec.name in seen:
                raise ConfigurationError(
                    f"Campo '{spec.name}' duplicado en '{self.odoo_model}'",
                    details={"model": self.odoo_model, "field": spec.name},
                )
            seen.add(spec.name)

    def field_names(self) -> list[str]:
        """Campos a pedir a Odoo: id, write_date y todos los declarados (sin repetir)."""
        names = [REMOTE_ID_FIELD, LAST_MODIFIED_FIELD]
        for spec in self.fields:
            if spec.name not in names:
                names.append(spec.name)
        return names

    def get_field(self, name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Endpoint Odoo (url, base de datos, credenciales) con sus mapeos.

    El modelo de borrados (garbage_model) es opcional; sus registros indican
    nodos de otros modelos que deben eliminarse.
    """

    url: str
    database: str
    username: str
    password: str = field(repr=False)
    models: tuple[ModelMapping, ...] = ()
    garbage_model: Optional[ModelMapping] = None

    def __post_init__(self) -> None:
        _ensure_unique(
            [m.odoo_model for m in self.all_models],
            f"Modelo Odoo duplicado en la conexión {self.label}",
        )
        _ensure_unique(
            [m.node_type for m in self.all_models],
            f"Tipo de nodo duplicado en la conexión {self.label}",
        )
        if self.garbage_model is not None:
            missing = [name for name in GARBAGE_FIELDS if self.garbage_model.get_field(name) is None]
            if missing:
                raise ConfigurationError(
                    f"El modelo de borrados '{self.garbage_model.odoo_model}' debe declarar {', '.join(missing)}",
                    details={"model": self.garbage_model.odoo_model, "missing": missing},
                )

    @property
    def label(self) -> str:
        """Identificador legible (sin credenciales) para logs y errores."""
        return f"{self.username}@{self.url}/{self.database}"

    @property
    def all_models(self) -> tuple[ModelMapping, ...]:
        """Mapeos ordinarios seguidos del modelo de borrados, si existe."""
        if self.garbage_model is None:
            return self.models
        return self.models + (self.garbage_model,)

    def is_garbage(self, mapping: ModelMapping) -> bool:
        return self.garbage_model is not None and mapping == self.garbage_model

    def find_by_odoo_model(self, odoo_model: Optional[str]) -> Optional[ModelMapping]:
        for mapping in self.all_models:
            if mapping.odoo_model == odoo_model:
                return mapping
        return None


def _ensure_unique(names: Iterable[str], message: str) -> None:
    seen: set[str] = set()
    duplicated: set[str] = set()
    for name in names:
        if name in seen:
            duplicated.add(name)
        seen.add(name)
    if duplicated:
        ordered = sorted(duplicated)
        raise ConfigurationError(f"{message}: {', '.join(ordered)}", details={"duplicated": ordered})


def validate_connections(connections: Iterable[ConnectionConfig]) -> list[ConnectionConfig]:
    """
    Reglas entre conexiones:
    - no puede haber dos conexiones al mismo (url, database, username)
    - un tipo de nodo pertenece a una sola conexión
    """
    connections = list(connections)
    _ensure_unique(
        [f"{c.url}|{c.database}|{c.username}" for c in connections],
        "Conexión duplicada",
    )
    _ensure_unique(
        [m.node_type for c in connections for m in c.all_models],
        "Tipo de nodo repetido entre conexiones",
    )
    return connections
