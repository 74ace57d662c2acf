"""
Borrado de nodos reportados por el modelo de borrados de Odoo.

Cada registro del modelo de borrados nombra una victima:
    {"model_name": "library.book", "model_id": 42}
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from loguru import logger

from odoo_source.domain.repositories.node_store import INodeStore
from odoo_source.infrastructure.external.odoo.connection import Connection
from odoo_source.infrastructure.node_store.identity import derive_node_id


class GarbageCollector:
    def __init__(self, store: INodeStore) -> None:
        self._store = store

    def collect(self, connection: Connection, record: Dict[str, Any], lang: str) -> Optional[str]:
        """
        Elimina el nodo victima en el idioma indicado.

        Returns:
            El id del nodo eliminado, o None si no había nada que borrar
        """
        victim_model = record.get("model_name")
        victim_id = record.get("model_id")
        if isinstance(victim_id, (list, tuple)):
            # model_id declarado como many2one: [id, etiqueta]
            victim_id = victim_id[0] if victim_id else None
        mapping = connection.config.find_by_odoo_model(victim_model)
        if mapping is None:
            logger.warning(f"Registro de borrado {record.get('id')} apunta a un modelo sin mapeo: {victim_model}")
            return None
        if not victim_id:
            logger.warning(f"Registro de borrado {record.get('id')} sin model_id")
            return None

        node_id = derive_node_id(mapping.node_type, victim_id, lang)
        logger.info(f"Deleting node {mapping.node_type} {victim_id} {lang}")
        if self._store.delete(node_id):
            return node_id
        return None
