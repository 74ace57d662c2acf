"""
Conexión Odoo establecida: cliente autenticado, idiomas activos y cache de
metadatos de campos.

Reemplaza el estado global indexado por conexión: cada operación del motor de
sync recibe explicitamente su `Connection`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from loguru import logger

from odoo_source.domain.entities.field_types import RELATION_TYPES, SUPPORTED_TYPES
from odoo_source.domain.entities.mapping import ConnectionConfig, FieldSpec, ModelMapping
from odoo_source.infrastructure.external.odoo.odoo_client import OdooClient, OdooCredentials
from odoo_source.shared.exceptions.sync import ConfigurationError, RemoteCallError, ResolutionError

# Atributos pedidos a fields_get.
METADATA_ATTRIBUTES = ["type", "relation", "required", "string"]


class RpcClient(Protocol):
    def login(self) -> int: ...

    def call(
        self,
        model: str,
        method: str,
        args: Optional[list[Any]] = None,
        kwargs: Optional[dict[str, Any]] = None,
    ) -> Any: ...


class FieldMetadataCache:
    """
    Metadatos de campos (fields_get) por modelo de una conexión.

    Se cargan una vez al abrir la conexión y se reutilizan en ambas pasadas
    del sync durante toda la vida del proceso.
    """

    def __init__(self) -> None:
        self._by_model: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def __contains__(self, odoo_model: str) -> bool:
        return odoo_model in self._by_model

    def store(self, odoo_model: str, metadata: Dict[str, Dict[str, Any]]) -> None:
        self._by_model[odoo_model] = metadata

    def get(self, odoo_model: str) -> Dict[str, Dict[str, Any]]:
        try:
            return self._by_model[odoo_model]
        except KeyError:
            raise ConfigurationError(
                f"No hay metadatos cargados para '{odoo_model}'",
                details={"model": odoo_model},
            ) from None

    def field_type(self, mapping: ModelMapping, spec: FieldSpec) -> str:
        """Tipo efectivo: el sobrescrito en FieldSpec o el declarado por Odoo."""
        if spec.odoo_type:
            return spec.odoo_type
        metadata = self.get(mapping.odoo_model).get(spec.name)
        if not metadata or "type" not in metadata:
            raise ConfigurationError(
                f"El campo '{spec.name}' no existe en '{mapping.odoo_model}'",
                details={"model": mapping.odoo_model, "field": spec.name},
            )
        return metadata["type"]

    def relation(self, odoo_model: str, field: str) -> Optional[str]:
        return (self.get(odoo_model).get(field) or {}).get("relation")


class Connection:
    """
    Endpoint Odoo listo para sincronizar.

    Uso:
        connection = Connection.open(config)
        connection.call("res.partner", "search", [[]], {"limit": 10})
    """

    def __init__(
        self,
        config: ConnectionConfig,
        client: RpcClient,
        languages: List[str],
        metadata: FieldMetadataCache,
    ) -> None:
        self.config = config
        self.client = client
        self.languages = languages
        self.metadata = metadata

    @property
    def label(self) -> str:
        return self.config.label

    @classmethod
    def open(
        cls,
        config: ConnectionConfig,
        *,
        client: Optional[RpcClient] = None,
        timeout_s: float = 30,
        max_retries: int = 3,
        min_backoff_s: float = 0.5,
        max_backoff_s: float = 10.0,
    ) -> "Connection":
        """
        Login, descubrimiento de idiomas y carga de metadatos.

        Cualquier error aquí es fatal para el arranque: no existe un modo
        con metadatos parciales.
        """
        if client is None:
            client = OdooClient(
                OdooCredentials(
                    url=config.url,
                    database=config.database,
                    username=config.username,
                    password=config.password,
                ),
                timeout_s=timeout_s,
                max_retries=max_retries,
                min_backoff_s=min_backoff_s,
                max_backoff_s=max_backoff_s,
            )
        try:
            client.login()
        except RemoteCallError as e:
            raise e.with_context(connection=config.label) from e

        connection = cls(config, client, languages=[], metadata=FieldMetadataCache())
        connection.languages = connection.fetch_languages()
        for mapping in config.all_models:
            connection.load_metadata(mapping)
        connection.validate()
        logger.info(
            f"Conexión {config.label} lista: {len(config.all_models)} modelo(s), "
            f"idiomas={connection.languages}"
        )
        return connection

    def call(
        self,
        model: str,
        method: str,
        args: Optional[list[Any]] = None,
        kwargs: Optional[dict[str, Any]] = None,
        **context: Any,
    ) -> Any:
        """
        Llamada RPC con contexto de diagnóstico.

        `context` (p. ej. offset, lang) se agrega a los detalles del error.
        """
        try:
            return self.client.call(model, method, args, kwargs)
        except RemoteCallError as e:
            raise e.with_context(connection=self.label, model=model, operation=method, **context) from e

    def fetch_languages(self) -> List[str]:
        """Códigos de los idiomas activos en Odoo (p. ej. en_US, es_ES)."""
        records = self.call(
            "res.lang",
            "search_read",
            [[["active", "=", True]], ["id", "code"]],
        )
        return [record["code"] for record in records or []]

    def load_metadata(self, mapping: ModelMapping) -> None:
        """fields_get de exactamente {id, write_date} + campos declarados."""
        metadata = self.call(
            mapping.odoo_model,
            "fields_get",
            [mapping.field_names()],
            {"attributes": METADATA_ATTRIBUTES},
        )
        self.metadata.store(mapping.odoo_model, metadata or {})

    def resolve_relation(self, mapping: ModelMapping, field: str) -> ModelMapping:
        """Mapeo destino de un campo relacional, por nombre de modelo Odoo."""
        relation = self.metadata.relation(mapping.odoo_model, field)
        target = self.config.find_by_odoo_model(relation)
        if target is None:
            raise ResolutionError(mapping.odoo_model, field, relation)
        return target

    def validate(self) -> None:
        """
        Verifica, con los metadatos ya cargados, que todos los tipos declarados
        son soportados y que cada relación apunta a un modelo mapeado.
        """
        for mapping in self.config.all_models:
            for spec in mapping.fields:
                odoo_type = self.metadata.field_type(mapping, spec)
                if odoo_type not in SUPPORTED_TYPES:
                    raise ConfigurationError(
                        f"Tipo Odoo no soportado '{odoo_type}' en {mapping.odoo_model}.{spec.name}",
                        details={"model": mapping.odoo_model, "field": spec.name, "type": odoo_type},
                    )
                if odoo_type in RELATION_TYPES:
                    self.resolve_relation(mapping, spec.name)
