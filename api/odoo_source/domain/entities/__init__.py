"""
Entidades del dominio: mapeos de modelos, campos y nodos locales.

Módulo libre de I/O.
"""
from odoo_source.domain.entities.field_types import (
    DATE_TYPES,
    MULTI_RELATION_TYPES,
    NUMERIC_TYPES,
    RELATION_TYPES,
    SINGLE_RELATION_TYPES,
    SUPPORTED_TYPES,
    TEXT_TYPES,
)
from odoo_source.domain.entities.mapping import (
    LAST_MODIFIED_FIELD,
    NO_DEFAULT,
    REMOTE_ID_FIELD,
    RESERVED_FIELDS,
    ConnectionConfig,
    FieldSpec,
    ModelMapping,
    validate_connections,
)
from odoo_source.domain.entities.node import NODE_REFERENCE_SUFFIX, LocalNode

__all__ = [
    "DATE_TYPES",
    "MULTI_RELATION_TYPES",
    "NUMERIC_TYPES",
    "RELATION_TYPES",
    "SINGLE_RELATION_TYPES",
    "SUPPORTED_TYPES",
    "TEXT_TYPES",
    "LAST_MODIFIED_FIELD",
    "NO_DEFAULT",
    "REMOTE_ID_FIELD",
    "RESERVED_FIELDS",
    "ConnectionConfig",
    "FieldSpec",
    "ModelMapping",
    "validate_connections",
    "NODE_REFERENCE_SUFFIX",
    "LocalNode",
]
