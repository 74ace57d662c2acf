"""
Marca de agua por modelo, calculada a partir de los nodos ya materializados.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Set

from odoo_source.domain.domain_filter import TIMESTAMP_RESOLUTION
from odoo_source.domain.entities.mapping import ModelMapping
from odoo_source.domain.repositories.node_store import INodeStore
from odoo_source.shared.utils.datetime_utils import EPOCH, parse_odoo_datetime


@dataclass
class Watermark:
    """
    - max_write_date: mayor write_date entre los nodos locales del modelo
    - tie_ids: ids Odoo cuyo write_date es exactamente ese máximo
    - has_nodes: si el modelo tenía algún nodo antes de esta corrida
    """

    max_write_date: datetime = EPOCH
    tie_ids: Set[int] = field(default_factory=set)
    has_nodes: bool = False

    @property
    def next_second(self) -> datetime:
        return self.max_write_date + TIMESTAMP_RESOLUTION


class WatermarkTracker:
    """
    Recorre los nodos existentes de un tipo y calcula su marca de agua.

    Cada nodo recorrido se marca como vigente (touch), de modo que los nodos
    que no cambian en esta corrida no sean recolectados por el store.
    """

    def __init__(self, store: INodeStore) -> None:
        self._store = store

    def compute(self, mapping: ModelMapping) -> Watermark:
        watermark = Watermark()
        for node in self._store.list_by_type(mapping.node_type):
            self._store.touch(node)
            watermark.has_nodes = True

            write_date = parse_odoo_datetime(node.write_date)
            if write_date is None:
                continue
            if write_date > watermark.max_write_date:
                watermark.max_write_date = write_date
                watermark.tie_ids = {node.id_odoo}
            elif write_date == watermark.max_write_date:
                watermark.tie_ids.add(node.id_odoo)
        return watermark
