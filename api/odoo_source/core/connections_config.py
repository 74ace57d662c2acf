"""
Carga y validación del archivo de conexiones Odoo.

Formato (JSON):

    [
      {
        "url": "https://erp.example.com",
        "database": "prod",
        "username": "sync@example.com",
        "password": "...",
        "models": [
          {
            "odoo_model": "product.template",
            "node_type": "Product",
            "fields": {
              "name": {"transform": "strip"},
              "list_price": {"default": 0},
              "categ_id": {}
            },
            "domain": [["sale_ok", "=", true]]
          }
        ],
        "garbage_model": {
          "odoo_model": "x.deleted.record",
          "node_type": "DeletedRecord",
          "fields": {"model_id": {"type": "integer"}, "model_name": {}}
        }
      }
    ]

Los errores de esquema se reportan como ConfigurationError.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from odoo_source.domain.domain_filter import parse_odoo_domain, to_odoo_domain
from odoo_source.domain.entities.mapping import (
    NO_DEFAULT,
    ConnectionConfig,
    FieldSpec,
    ModelMapping,
    validate_connections,
)
from odoo_source.domain.transforms import TRANSFORMS, resolve_transform
from odoo_source.shared.exceptions.sync import ConfigurationError


class FieldSchema(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    odoo_type: Optional[str] = Field(default=None, alias="type")
    default: Any = None
    transform: Optional[str] = None


class ModelSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    odoo_model: str = Field(min_length=1)
    node_type: str = Field(min_length=1)
    fields: Dict[str, FieldSchema] = Field(default_factory=dict)
    domain: List[Any] = Field(default_factory=list)


class ConnectionSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: str = Field(min_length=1)
    database: str = Field(min_length=1)
    username: str = Field(min_length=1)
    password: str
    models: List[ModelSchema] = Field(default_factory=list)
    garbage_model: Optional[ModelSchema] = None


def _to_field_spec(name: str, schema: FieldSchema) -> FieldSpec:
    # default explícito (aunque sea null) vs ausente
    default = schema.default if "default" in schema.model_fields_set else NO_DEFAULT
    transform = resolve_transform(schema.transform) if schema.transform else None
    return FieldSpec(name=name, odoo_type=schema.odoo_type, default=default, transform=transform)


def _to_mapping(schema: ModelSchema) -> ModelMapping:
    return ModelMapping(
        odoo_model=schema.odoo_model,
        node_type=schema.node_type,
        fields=tuple(_to_field_spec(name, f) for name, f in schema.fields.items()),
        domain=parse_odoo_domain(schema.domain),
    )


def _to_connection(schema: ConnectionSchema) -> ConnectionConfig:
    return ConnectionConfig(
        url=schema.url.rstrip("/"),
        database=schema.database,
        username=schema.username,
        password=schema.password,
        models=tuple(_to_mapping(m) for m in schema.models),
        garbage_model=_to_mapping(schema.garbage_model) if schema.garbage_model else None,
    )


def parse_connections(raw: Any) -> List[ConnectionConfig]:
    """
    Convierte la estructura JSON ya cargada en ConnectionConfig validadas.

    Acepta una lista de conexiones o un objeto {"connections": [...]}.
    """
    if isinstance(raw, dict) and "connections" in raw:
        raw = raw["connections"]
    if not isinstance(raw, list):
        raise ConfigurationError("La configuración de conexiones debe ser una lista")
    try:
        schemas = [ConnectionSchema.model_validate(item) for item in raw]
    except ValidationError as e:
        raise ConfigurationError(
            "Configuración de conexiones inválida",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e
    return validate_connections(_to_connection(schema) for schema in schemas)


def load_connections_file(path: Union[str, Path]) -> List[ConnectionConfig]:
    """Lee y valida el archivo JSON de conexiones."""
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(
            f"No existe el archivo de conexiones: {path}",
            details={"path": str(path)},
        )
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Archivo de conexiones con JSON inválido: {path} ({e.msg}, línea {e.lineno})",
            details={"path": str(path)},
        ) from e
    return parse_connections(raw)


def describe_connections(connections: List[ConnectionConfig]) -> List[Dict[str, Any]]:
    """Vista de la configuración validada, sin credenciales (para --print-config)."""
    def describe_mapping(mapping: ModelMapping) -> Dict[str, Any]:
        return {
            "odoo_model": mapping.odoo_model,
            "node_type": mapping.node_type,
            "fields": {
                spec.name: {
                    "type": spec.odoo_type,
                    "default": None if not spec.has_default else spec.default,
                    "transform": _transform_name(spec.transform),
                }
                for spec in mapping.fields
            },
            "domain": to_odoo_domain(mapping.domain),
        }

    return [
        {
            "connection": c.label,
            "models": [describe_mapping(m) for m in c.models],
            "garbage_model": describe_mapping(c.garbage_model) if c.garbage_model else None,
        }
        for c in connections
    ]


def _transform_name(transform: Any) -> Optional[str]:
    if transform is None:
        return None
    for name, registered in TRANSFORMS.items():
        if registered is transform:
            return name
    return getattr(transform, "__name__", repr(transform))
