"""
Entidad de nodo local materializado.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Sufijo de los campos que referencian a otros nodos.
NODE_REFERENCE_SUFFIX = "___NODE"


@dataclass
class LocalNode:
    """
    Nodo del grafo local.

    El id deriva de (tipo, id Odoo, idioma) y nunca se reasigna.
    `fields` contiene los valores normalizados (incluido write_date) y las
    referencias `<campo>___NODE` ya resueltas.
    """

    id: str
    type: str
    id_odoo: int
    lang: str
    fields: Dict[str, Any]
    content_digest: str
    content: str = ""
    parent: Optional[str] = None
    children: List[str] = field(default_factory=list)

    @property
    def write_date(self) -> Any:
        return self.fields.get("write_date")

    def to_dict(self) -> Dict[str, Any]:
        """Forma emitida al store (campos planos + metadatos internos)."""
        return {
            **self.fields,
            "id_odoo": self.id_odoo,
            "lang": self.lang,
            "id": self.id,
            "parent": self.parent,
            "children": list(self.children),
            "internal": {
                "type": self.type,
                "content": self.content,
                "content_digest": self.content_digest,
            },
        }
