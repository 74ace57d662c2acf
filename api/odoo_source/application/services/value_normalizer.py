"""
Normalizador de valores Odoo.

Odoo devuelve `False` para cualquier campo vacío, sin importar su tipo. Aquí
cada valor se coerciona según el tipo declarado del campo y después se
aplican, en este orden fijo, el default y la transformación del FieldSpec:

    normalizar -> default (si el resultado es falsy) -> transformar
"""
from __future__ import annotations

from typing import Any, Dict

from odoo_source.domain.entities.field_types import (
    DATE_TYPES,
    MULTI_RELATION_TYPES,
    NUMERIC_TYPES,
    SINGLE_RELATION_TYPES,
    TEXT_TYPES,
)
from odoo_source.domain.entities.mapping import FieldSpec, ModelMapping
from odoo_source.infrastructure.external.odoo.connection import FieldMetadataCache
from odoo_source.shared.exceptions.sync import ConfigurationError


def normalize_value(value: Any, odoo_type: str) -> Any:
    """
    Coerciona un valor crudo de Odoo según su tipo declarado.

    Args:
        value: Valor tal como llega de search_read
        odoo_type: Tipo Odoo del campo (char, integer, many2one, ...)

    Returns:
        El valor normalizado, o None si no corresponde al tipo

    Raises:
        ConfigurationError: Si el tipo no está soportado
    """
    if odoo_type in TEXT_TYPES or odoo_type in DATE_TYPES:
        return value if isinstance(value, str) else None
    if odoo_type in NUMERIC_TYPES:
        # bool es subclase de int; False de Odoo significa "vacío"
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        return None
    if odoo_type in MULTI_RELATION_TYPES:
        return value
    if odoo_type in SINGLE_RELATION_TYPES:
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return list(value)
        return None
    raise ConfigurationError(
        f"Tipo Odoo no soportado para normalizar: {odoo_type}",
        details={"type": odoo_type},
    )


class ValueNormalizer:
    """
    Aplica normalize -> default -> transform a cada campo declarado.

    Uso:
        normalizer = ValueNormalizer()
        record = normalizer.normalize_record(raw, mapping, connection.metadata)
    """

    def normalize_field(self, value: Any, spec: FieldSpec, odoo_type: str) -> Any:
        normalized = normalize_value(value, odoo_type)
        if not normalized and spec.has_default:
            normalized = spec.default
        if spec.transform is not None:
            normalized = spec.transform(normalized)
        return normalized

    def normalize_record(
        self,
        record: Dict[str, Any],
        mapping: ModelMapping,
        metadata: FieldMetadataCache,
    ) -> Dict[str, Any]:
        """
        Retorna una copia del registro con los campos declarados normalizados.
        `id` y `write_date` se conservan tal cual.
        """
        normalized = dict(record)
        for spec in mapping.fields:
            odoo_type = metadata.field_type(mapping, spec)
            normalized[spec.name] = self.normalize_field(record.get(spec.name), spec, odoo_type)
        return normalized
