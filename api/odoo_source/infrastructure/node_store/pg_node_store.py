"""
Store de nodos en PostgreSQL (psycopg v3).

Una fila por nodo en `odoo_nodes`. El UPSERT es idempotente: re-emitir un
nodo idéntico solo refresca `touched_at`.
"""

from __future__ import annotations

import json
import threading
from typing import Any, List, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from odoo_source.domain.entities.node import LocalNode
from odoo_source.domain.repositories.node_store import INodeStore

DEFAULT_TABLE = "odoo_nodes"


class PostgresNodeStore(INodeStore):
    """
    Mantiene una sola conexión (autocommit) protegida por lock; las
    operaciones son cortas y cada una es atómica por sí misma.
    """

    def __init__(self, dsn: str, *, schema: str = "public", table: str = DEFAULT_TABLE) -> None:
        self._dsn = dsn
        self._schema = schema
        self._table = table
        self._conn: Optional[psycopg.Connection] = None
        self._lock = threading.Lock()

    @property
    def qualified_table(self) -> str:
        return f'"{self._schema}"."{self._table}"'

    def connect(self) -> psycopg.Connection:
        """Abre la conexión (autocommit) y asegura la tabla."""
        try:
            conn = psycopg.connect(self._dsn, row_factory=dict_row, autocommit=True)
        except psycopg.OperationalError as e:
            raise psycopg.OperationalError(
                f"{e}\n"
                f"Sugerencia: verifica que DATABASE_URL sea accesible desde donde se ejecuta el sync."
            ) from e
        self.ensure_table(conn)
        return conn

    def _connection(self) -> Any:
        if self._conn is None:
            self._conn = self.connect()
        return self._conn

    def ensure_table(self, conn: Any) -> None:
        with conn.cursor() as cur:
            cur.execute(f'CREATE SCHEMA IF NOT EXISTS "{self._schema}";')
            cur.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.qualified_table} (
                    id              TEXT        PRIMARY KEY,
                    node_type       TEXT        NOT NULL,
                    id_odoo         INTEGER     NOT NULL,
                    lang            TEXT        NOT NULL,
                    fields          JSONB       NOT NULL,
                    content         TEXT        NOT NULL,
                    content_digest  TEXT        NOT NULL,
                    parent          TEXT        NULL,
                    touched_at      TIMESTAMPTZ NOT NULL DEFAULT now(),
                    updated_at      TIMESTAMPTZ NOT NULL DEFAULT now()
                );
                """
            )
            cur.execute(
                f'CREATE INDEX IF NOT EXISTS "{self._table}_node_type_idx" '
                f"ON {self.qualified_table} (node_type);"
            )

    def create_or_replace(self, node: LocalNode) -> None:
        sql = f"""
            INSERT INTO {self.qualified_table}
                (id, node_type, id_odoo, lang, fields, content, content_digest, parent)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (id)
            DO UPDATE SET
                node_type = EXCLUDED.node_type,
                id_odoo = EXCLUDED.id_odoo,
                lang = EXCLUDED.lang,
                fields = EXCLUDED.fields,
                content = EXCLUDED.content,
                content_digest = EXCLUDED.content_digest,
                parent = EXCLUDED.parent,
                touched_at = now(),
                updated_at = CASE
                    WHEN {self.qualified_table}.content_digest = EXCLUDED.content_digest
                    THEN {self.qualified_table}.updated_at
                    ELSE now()
                END
        """
        values = (
            node.id,
            node.type,
            node.id_odoo,
            node.lang,
            Jsonb(node.fields, dumps=_dumps),
            node.content,
            node.content_digest,
            node.parent,
        )
        with self._lock, self._connection().cursor() as cur:
            cur.execute(sql, values)

    def delete(self, node_id: str) -> bool:
        with self._lock, self._connection().cursor() as cur:
            cur.execute(f"DELETE FROM {self.qualified_table} WHERE id = %s", (node_id,))
            return bool(cur.rowcount)

    def get(self, node_id: str) -> Optional[LocalNode]:
        with self._lock, self._connection().cursor() as cur:
            cur.execute(f"SELECT * FROM {self.qualified_table} WHERE id = %s", (node_id,))
            row = cur.fetchone()
        return _row_to_node(row) if row else None

    def touch(self, node: LocalNode) -> None:
        with self._lock, self._connection().cursor() as cur:
            cur.execute(
                f"UPDATE {self.qualified_table} SET touched_at = now() WHERE id = %s",
                (node.id,),
            )

    def list_by_type(self, node_type: str) -> List[LocalNode]:
        with self._lock, self._connection().cursor() as cur:
            cur.execute(
                f"SELECT * FROM {self.qualified_table} WHERE node_type = %s ORDER BY id",
                (node_type,),
            )
            rows = cur.fetchall()
        return [_row_to_node(row) for row in rows]

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


def _row_to_node(row: dict) -> LocalNode:
    fields = row["fields"]
    if isinstance(fields, str):
        fields = json.loads(fields)
    return LocalNode(
        id=row["id"],
        type=row["node_type"],
        id_odoo=row["id_odoo"],
        lang=row["lang"],
        fields=fields,
        content_digest=row["content_digest"],
        content=row["content"],
        parent=row.get("parent"),
    )
