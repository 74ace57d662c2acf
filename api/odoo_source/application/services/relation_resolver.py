"""
Resolución de campos relacionales a referencias entre nodos.

`author_ids: [3, 7]` se reescribe como `author_ids___NODE: [<id nodo 3>, <id nodo 7>]`
y el campo crudo desaparece del registro.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Set

from odoo_source.domain.entities.field_types import MULTI_RELATION_TYPES, RELATION_TYPES
from odoo_source.domain.entities.mapping import ModelMapping
from odoo_source.domain.entities.node import NODE_REFERENCE_SUFFIX
from odoo_source.infrastructure.external.odoo.connection import Connection
from odoo_source.infrastructure.node_store.identity import derive_node_id


class RelatedIdSet:
    """
    Ids Odoo referenciados por registros actualizados, agrupados por modelo
    destino. Alimenta la pasada forzada.
    """

    def __init__(self) -> None:
        self._ids: Dict[str, Set[int]] = {}

    def add(self, odoo_model: str, ids: Iterable[int]) -> None:
        bucket = self._ids.setdefault(odoo_model, set())
        bucket.update(int(i) for i in ids)

    def get(self, odoo_model: str) -> List[int]:
        return sorted(self._ids.get(odoo_model, ()))

    def models(self) -> List[str]:
        return sorted(model for model, ids in self._ids.items() if ids)

    def as_dict(self) -> Dict[str, List[int]]:
        return {model: self.get(model) for model in self.models()}

    def __bool__(self) -> bool:
        return any(self._ids.values())

    def __len__(self) -> int:
        return sum(len(ids) for ids in self._ids.values())


class RelationResolver:
    def resolve(
        self,
        record: Dict[str, Any],
        mapping: ModelMapping,
        connection: Connection,
        lang: str,
        related_ids: Optional[RelatedIdSet] = None,
    ) -> Dict[str, Any]:
        """
        Reescribe los campos relacionales de un registro ya normalizado.

        Args:
            record: Registro normalizado
            mapping: Mapeo del modelo del registro
            connection: Conexión (metadatos y mapeos destino)
            lang: Idioma de la lectura; forma parte del id de los nodos destino
            related_ids: Si se pasa, acumula los ids referenciados por modelo
                destino (solo se pasa para modelos que ya tenian nodos)

        Raises:
            ResolutionError: Si la relación no coincide con ningún mapeo
        """
        resolved = dict(record)
        for spec in mapping.fields:
            odoo_type = connection.metadata.field_type(mapping, spec)
            if odoo_type not in RELATION_TYPES:
                continue
            target = connection.resolve_relation(mapping, spec.name)
            raw = resolved.pop(spec.name, None)
            reference = spec.name + NODE_REFERENCE_SUFFIX

            if odoo_type in MULTI_RELATION_TYPES:
                remote_ids = list(raw) if isinstance(raw, (list, tuple)) else []
                resolved[reference] = [derive_node_id(target.node_type, rid, lang) for rid in remote_ids]
            else:
                remote_ids = [raw[0]] if isinstance(raw, (list, tuple)) and raw else []
                resolved[reference] = (
                    derive_node_id(target.node_type, remote_ids[0], lang) if remote_ids else None
                )

            if related_ids is not None and remote_ids:
                related_ids.add(target.odoo_model, remote_ids)
        return resolved
