"""
Creación/actualización idempotente de nodos locales.
"""
from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Tuple

from loguru import logger

from odoo_source.domain.entities.mapping import REMOTE_ID_FIELD, ModelMapping
from odoo_source.domain.entities.node import LocalNode
from odoo_source.domain.repositories.node_store import INodeStore
from odoo_source.infrastructure.node_store.identity import (
    content_digest,
    derive_node_id,
    format_lang_tag,
)


class UpsertOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class NodeUpsertEngine:
    """
    Decide crear, reemplazar o no tocar cada nodo.

    - Sin refresco forzado, el digest se calcula sobre el registro completo.
    - Con refresco forzado y un nodo ya existente, la base del digest es el
      digest almacenado.
    - Si el digest coincide con el del nodo existente, solo se marca vigente.
    """

    def __init__(self, store: INodeStore) -> None:
        self._store = store

    def upsert(
        self,
        mapping: ModelMapping,
        record: Dict[str, Any],
        lang: str,
        *,
        forced: bool = False,
    ) -> Tuple[LocalNode, UpsertOutcome]:
        remote_id = record[REMOTE_ID_FIELD]
        node_id = derive_node_id(mapping.node_type, remote_id, lang)
        existing = self._store.get(node_id)

        digest_basis: Any = record
        if forced and existing is not None:
            digest_basis = existing.content_digest
        digest = content_digest(digest_basis)

        if existing is not None and existing.content_digest == digest:
            self._store.touch(existing)
            return existing, UpsertOutcome.UNCHANGED

        logger.debug(f"Creating or updating node {mapping.node_type} {remote_id} {lang}")
        node = LocalNode(
            id=node_id,
            type=mapping.node_type,
            id_odoo=remote_id,
            lang=format_lang_tag(lang),
            fields={key: value for key, value in record.items() if key != REMOTE_ID_FIELD},
            content_digest=digest,
            content=json.dumps(record, default=str, ensure_ascii=False),
        )
        self._store.create_or_replace(node)
        outcome = UpsertOutcome.CREATED if existing is None else UpsertOutcome.UPDATED
        return node, outcome
