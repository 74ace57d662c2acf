"""
Store de nodos en memoria.

Útil para corridas efímeras (un build completo por proceso) y para tests.
Seguro para uso desde varios threads (una conexión Odoo por thread).
"""

from __future__ import annotations

import copy
import threading
from typing import Dict, List, Optional, Set

from odoo_source.domain.entities.node import LocalNode
from odoo_source.domain.repositories.node_store import INodeStore


class InMemoryNodeStore(INodeStore):
    def __init__(self) -> None:
        self._nodes: Dict[str, LocalNode] = {}
        self._touched: Set[str] = set()
        self._lock = threading.Lock()

    def create_or_replace(self, node: LocalNode) -> None:
        with self._lock:
            self._nodes[node.id] = copy.deepcopy(node)
            self._touched.add(node.id)

    def delete(self, node_id: str) -> bool:
        with self._lock:
            self._touched.discard(node_id)
            return self._nodes.pop(node_id, None) is not None

    def get(self, node_id: str) -> Optional[LocalNode]:
        with self._lock:
            node = self._nodes.get(node_id)
            return copy.deepcopy(node) if node is not None else None

    def touch(self, node: LocalNode) -> None:
        with self._lock:
            if node.id in self._nodes:
                self._touched.add(node.id)

    def list_by_type(self, node_type: str) -> List[LocalNode]:
        with self._lock:
            return [copy.deepcopy(n) for n in self._nodes.values() if n.type == node_type]

    @property
    def touched_ids(self) -> Set[str]:
        with self._lock:
            return set(self._touched)

    def reset_touched(self) -> None:
        """Inicia una nueva corrida: ningún nodo marcado como vigente."""
        with self._lock:
            self._touched.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._nodes)
