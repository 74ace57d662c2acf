"""
Lectura paginada de Odoo.

Cada página de ids (search) se lee una vez por idioma activo (search_read con
`context.lang`). Los registros del mismo id en distintos idiomas son nodos
independientes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List

from loguru import logger

from odoo_source.domain.domain_filter import (
    Expression,
    and_,
    build_change_filter,
    build_forced_filter,
    to_odoo_domain,
)
from odoo_source.domain.entities.mapping import LAST_MODIFIED_FIELD, ModelMapping
from odoo_source.application.services.watermark_tracker import Watermark
from odoo_source.infrastructure.external.odoo.connection import Connection

DEFAULT_PAGE_SIZE = 50


@dataclass(frozen=True)
class FetchedPage:
    """Registros de una página de ids leídos en un idioma."""

    lang: str
    offset: int
    ids: List[int]
    records: List[Dict[str, Any]]


class PaginatedFetcher:
    """
    Busca ids con el filtro de cambios y los lee en cada idioma.

    Uso:
        fetcher = PaginatedFetcher(page_size=50)
        for page in fetcher.iter_incremental(connection, mapping, watermark):
            ...
    """

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size <= 0:
            raise ValueError("page_size debe ser positivo")
        self._page_size = page_size

    @property
    def page_size(self) -> int:
        return self._page_size

    def iter_incremental(
        self,
        connection: Connection,
        mapping: ModelMapping,
        watermark: Watermark,
    ) -> Iterator[FetchedPage]:
        """
        Pagina por offset, ordenado por write_date ascendente, hasta que una
        página trae menos ids que el tamaño de página.
        """
        domain = and_(
            mapping.domain,
            build_change_filter(
                watermark.max_write_date,
                watermark.tie_ids,
                write_date_field=LAST_MODIFIED_FIELD,
            ),
        )
        offset = 0
        while True:
            ids = self._search(connection, mapping, domain, offset)
            yield from self._read_in_languages(connection, mapping, ids, offset)
            offset += self._page_size
            if len(ids) < self._page_size:
                break

    def iter_forced(
        self,
        connection: Connection,
        mapping: ModelMapping,
        ids: Iterable[int],
    ) -> Iterator[FetchedPage]:
        """
        Modo forzado: solo los ids pedidos, sin marca de agua.

        El conjunto se parte en bloques del tamaño de página; cada bloque se
        busca con una sola llamada, sin paginar más allá de los ids pedidos.
        """
        wanted = sorted(set(ids))
        for start in range(0, len(wanted), self._page_size):
            chunk = wanted[start:start + self._page_size]
            domain = and_(mapping.domain, build_forced_filter(chunk))
            found = self._search(connection, mapping, domain, 0)
            yield from self._read_in_languages(connection, mapping, found, start)

    def _search(
        self,
        connection: Connection,
        mapping: ModelMapping,
        domain: Expression,
        offset: int,
    ) -> List[int]:
        ids = connection.call(
            mapping.odoo_model,
            "search",
            [to_odoo_domain(domain)],
            {
                "limit": self._page_size,
                "offset": offset,
                "order": f"{LAST_MODIFIED_FIELD} ASC",
                "context": {"active_test": False},
            },
            offset=offset,
        )
        return list(ids or [])

    def _read_in_languages(
        self,
        connection: Connection,
        mapping: ModelMapping,
        ids: List[int],
        offset: int,
    ) -> Iterator[FetchedPage]:
        if not ids:
            return
        for lang in connection.languages:
            logger.info(f"Fetching: {mapping.odoo_model} {lang} (offset={offset}, ids={len(ids)})")
            records = connection.call(
                mapping.odoo_model,
                "search_read",
                [to_odoo_domain(build_forced_filter(ids)), mapping.field_names()],
                {"context": {"active_test": False, "lang": lang}},
                offset=offset,
                lang=lang,
            )
            yield FetchedPage(lang=lang, offset=offset, ids=list(ids), records=list(records or []))
