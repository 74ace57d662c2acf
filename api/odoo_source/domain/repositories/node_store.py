"""
Interfaz del store de nodos.
Define el contrato que debe cumplir cualquier implementación (memoria, Postgres, ...).
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from odoo_source.domain.entities.node import LocalNode


class INodeStore(ABC):
    """
    Interfaz del store de nodos locales.
    El store es la capa de persistencia; el motor de sync es su único escritor.
    """

    @abstractmethod
    def create_or_replace(self, node: LocalNode) -> None:
        """
        Crea el nodo o reemplaza el existente con el mismo id.
        Re-emitir contenido idéntico es válido.
        """

    @abstractmethod
    def delete(self, node_id: str) -> bool:
        """
        Elimina un nodo.

        Returns:
            bool: True si el nodo existía
        """

    @abstractmethod
    def get(self, node_id: str) -> Optional[LocalNode]:
        """Obtiene un nodo por su id, o None."""

    @abstractmethod
    def touch(self, node: LocalNode) -> None:
        """Marca un nodo como vigente en esta corrida (evita su recolección externa)."""

    @abstractmethod
    def list_by_type(self, node_type: str) -> List[LocalNode]:
        """Lista los nodos de un tipo."""

    def close(self) -> None:
        """Libera recursos del store."""
