"""
Identidad de nodos: ids deterministas y digest de contenido.

Funciones puras.
"""

from __future__ import annotations

import hashlib
import json
import uuid
from typing import Any

# Namespace fijo: los ids no deben cambiar entre versiones ni procesos.
NODE_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "odoo-node-source")


def derive_node_id(node_type: str, remote_id: Any, locale: str) -> str:
    """Id estable de un nodo a partir de (tipo, id Odoo, idioma)."""
    return str(uuid.uuid5(NODE_ID_NAMESPACE, f"{node_type}-{remote_id}-{locale}"))


def content_digest(content: Any) -> str:
    """
    Digest determinista del contenido.

    Los strings se hashean tal cual; cualquier otro valor se serializa a JSON
    canónico (claves ordenadas).
    """
    if isinstance(content, str):
        raw = content
    else:
        raw = json.dumps(content, sort_keys=True, default=str, ensure_ascii=False, separators=(",", ":"))
    return hashlib.md5(raw.encode("utf-8")).hexdigest()


def format_lang_tag(locale: str) -> str:
    """en_US -> en-us"""
    return locale.lower().replace("_", "-")
