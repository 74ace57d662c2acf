from __future__ import annotations

import pytest

pytest.importorskip("psycopg")

from odoo_source.domain.entities.node import LocalNode
from odoo_source.infrastructure.node_store import _normalize_psycopg_dsn, create_node_store
from odoo_source.infrastructure.node_store.memory_store import InMemoryNodeStore
from odoo_source.infrastructure.node_store.pg_node_store import PostgresNodeStore
from odoo_source.shared.exceptions.sync import ConfigurationError


class _DummyCursor:
    def __init__(self) -> None:
        self.executed: list = []
        self.rowcount = 1
        self.rows: list = []

    def execute(self, sql: str, values=None) -> None:
        self.executed.append((sql, values))

    def fetchone(self):
        return self.rows[0] if self.rows else None

    def fetchall(self):
        return list(self.rows)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class _DummyConn:
    def __init__(self) -> None:
        self._cursor = _DummyCursor()
        self.closed = False

    def cursor(self):
        return self._cursor

    def close(self) -> None:
        self.closed = True


def _store_with_dummy_conn() -> tuple[PostgresNodeStore, _DummyConn]:
    store = PostgresNodeStore("postgresql://dummy")
    conn = _DummyConn()
    store._conn = conn
    return store, conn


def _node() -> LocalNode:
    return LocalNode(
        id="node-1",
        type="Book",
        id_odoo=1,
        lang="en-us",
        fields={"title": "Solaris", "write_date": "2024-01-01 10:00:00"},
        content_digest="abc",
        content='{"id": 1}',
    )


def test_upsert_generates_on_conflict() -> None:
    store, conn = _store_with_dummy_conn()
    store.create_or_replace(_node())

    sql, values = conn._cursor.executed[-1]
    assert 'INSERT INTO "public"."odoo_nodes"' in sql
    assert "ON CONFLICT (id)" in sql
    assert values[0] == "node-1"
    assert values[1] == "Book"
    assert values[6] == "abc"


def test_delete_reports_whether_a_row_was_removed() -> None:
    store, conn = _store_with_dummy_conn()
    assert store.delete("node-1") is True
    conn._cursor.rowcount = 0
    assert store.delete("node-1") is False


def test_get_maps_row_to_node() -> None:
    store, conn = _store_with_dummy_conn()
    conn._cursor.rows = [
        {
            "id": "node-1",
            "node_type": "Book",
            "id_odoo": 1,
            "lang": "en-us",
            "fields": '{"title": "Solaris"}',
            "content": "{}",
            "content_digest": "abc",
            "parent": None,
        }
    ]
    node = store.get("node-1")
    assert node.type == "Book"
    assert node.fields == {"title": "Solaris"}
    assert [n.id for n in store.list_by_type("Book")] == ["node-1"]


def test_ensure_table_creates_schema_table_and_index() -> None:
    store = PostgresNodeStore("postgresql://dummy", schema="mirror", table="nodes")
    conn = _DummyConn()
    store.ensure_table(conn)
    statements = " ".join(sql for sql, _ in conn._cursor.executed)
    assert 'CREATE SCHEMA IF NOT EXISTS "mirror"' in statements
    assert 'CREATE TABLE IF NOT EXISTS "mirror"."nodes"' in statements
    assert "nodes_node_type_idx" in statements


def test_close_releases_connection() -> None:
    store, conn = _store_with_dummy_conn()
    store.close()
    assert conn.closed
    assert store._conn is None


class TestCreateNodeStore:
    def test_memory_backend(self) -> None:
        assert isinstance(create_node_store("memory"), InMemoryNodeStore)

    def test_postgres_requires_dsn(self) -> None:
        with pytest.raises(ConfigurationError):
            create_node_store("postgres", "")

    def test_postgres_backend_is_lazy(self) -> None:
        store = create_node_store("postgres", "postgresql+asyncpg://u:p@db:5432/odoo")
        assert isinstance(store, PostgresNodeStore)
        assert store._conn is None

    def test_unknown_backend(self) -> None:
        with pytest.raises(ConfigurationError):
            create_node_store("redis")

    def test_normalize_dsn(self) -> None:
        assert _normalize_psycopg_dsn("postgresql+asyncpg://u:p@h/db") == "postgresql://u:p@h/db"
        assert _normalize_psycopg_dsn("dbname=odoo") == "dbname=odoo"
