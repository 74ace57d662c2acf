"""
Tests del orquestador: pasada incremental + pasada forzada contra el backend
Odoo falso.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Tuple

import pytest

from odoo_source.application.services.sync_orchestrator import SyncOrchestrator, SyncPhase
from odoo_source.domain.entities.node import LocalNode
from odoo_source.infrastructure.external.odoo.connection import Connection
from odoo_source.infrastructure.node_store.identity import derive_node_id
from odoo_source.infrastructure.node_store.memory_store import InMemoryNodeStore
from odoo_source.shared.exceptions.sync import ResolutionError

from tests.odoo_fakes import build_library_backend, build_library_config


class _RecordingStore(InMemoryNodeStore):
    """Store en memoria que registra el orden de escrituras y borrados."""

    def __init__(self) -> None:
        super().__init__()
        self.operations: List[Tuple[str, str]] = []

    def create_or_replace(self, node: LocalNode) -> None:
        self.operations.append(("create_or_replace", node.id))
        super().create_or_replace(node)

    def delete(self, node_id: str) -> bool:
        self.operations.append(("delete", node_id))
        return super().delete(node_id)


def _orchestrator(connections, store, page_size: int = 2) -> SyncOrchestrator:
    return SyncOrchestrator(connections, store, page_size=page_size, max_parallel_connections=2)


def _ids_by_type(store: InMemoryNodeStore, node_type: str) -> List[int]:
    return sorted(node.id_odoo for node in store.list_by_type(node_type))


def _digests(store: InMemoryNodeStore, node_type: str) -> Dict[str, str]:
    return {node.id: node.content_digest for node in store.list_by_type(node_type)}


class TestBootstrap:
    """Primera corrida contra un store vacío."""

    def test_every_record_in_scope_is_materialized(self, connection, store) -> None:
        report = _orchestrator([connection], store).run()

        assert report.phase is SyncPhase.DONE
        assert report.ok
        assert _ids_by_type(store, "Author") == [1, 2]
        assert _ids_by_type(store, "Publisher") == [1]
        assert _ids_by_type(store, "Book") == [1, 2, 3]

        incremental = report.get_pass(SyncPhase.INCREMENTAL)
        assert incremental.created == 6
        assert incremental.updated == 0

    def test_new_models_do_not_collect_related_ids(self, connection, store) -> None:
        report = _orchestrator([connection], store).run()

        forced = report.get_pass(SyncPhase.FORCED)
        assert forced.models == []
        assert forced.skipped_models == ["library.author", "library.publisher", "library.book", "x.deleted.record"]
        assert report.get_pass(SyncPhase.INCREMENTAL).related_ids == {}

    def test_node_content(self, connection, store) -> None:
        _orchestrator([connection], store).run()

        book = store.get(derive_node_id("Book", 1, "en_US")).to_dict()
        assert book["title"] == "The Dispossessed"
        assert book["pages"] == 387
        assert book["author_ids___NODE"] == [derive_node_id("Author", 1, "en_US")]
        assert book["publisher_id___NODE"] == derive_node_id("Publisher", 1, "en_US")
        assert "author_ids" not in book

        solaris = store.get(derive_node_id("Book", 2, "en_US")).to_dict()
        assert solaris["pages"] == 0
        assert solaris["publisher_id___NODE"] is None


class TestIncremental:
    def test_second_run_without_changes_fetches_nothing(self, connection, store, fake_odoo) -> None:
        orchestrator = _orchestrator([connection], store)
        orchestrator.run()
        fake_odoo.calls.clear()

        report = orchestrator.run()

        incremental = report.get_pass(SyncPhase.INCREMENTAL)
        assert incremental.created == incremental.updated == incremental.unchanged == 0
        assert fake_odoo.calls_for("library.book", "search_read") == []
        assert len(store) == 6

    def test_second_run_keeps_every_digest(self, connection, store) -> None:
        orchestrator = _orchestrator([connection], store)
        orchestrator.run()
        before = {t: _digests(store, t) for t in ("Author", "Publisher", "Book")}

        orchestrator.run()

        assert {t: _digests(store, t) for t in ("Author", "Publisher", "Book")} == before

    def test_field_metadata_is_fetched_once_per_model(self, connection, store, fake_odoo) -> None:
        orchestrator = _orchestrator([connection], store)
        orchestrator.run()
        # fuerza una pasada forzada en la segunda corrida
        fake_odoo.write("library.book", 3, "2024-02-01 00:00:00", title="The Lathe of Heaven (2nd ed.)")

        report = orchestrator.run()

        assert report.get_pass(SyncPhase.FORCED).models
        for mapping in connection.config.all_models:
            assert len(fake_odoo.calls_for(mapping.odoo_model, "fields_get")) == 1

    def test_record_tied_with_watermark_but_not_seen_is_fetched(self, connection, store, fake_odoo) -> None:
        orchestrator = _orchestrator([connection], store)
        orchestrator.run()
        # mismo segundo que el máximo local de autores, id nuevo
        fake_odoo.write("library.author", 3, "2024-01-01 09:00:05", name="Italo Calvino")

        report = orchestrator.run()

        author_stats = [s for s in report.get_pass(SyncPhase.INCREMENTAL).models if s.odoo_model == "library.author"]
        assert author_stats[0].created == 1
        assert author_stats[0].fetched == 1
        assert _ids_by_type(store, "Author") == [1, 2, 3]

    def test_changed_record_updates_its_node(self, connection, store, fake_odoo) -> None:
        orchestrator = _orchestrator([connection], store)
        orchestrator.run()
        fake_odoo.write("library.author", 2, "2024-03-01 12:00:00", name="Stanisław Lem")

        report = orchestrator.run()

        assert report.get_pass(SyncPhase.INCREMENTAL).updated == 1
        assert store.get(derive_node_id("Author", 2, "en_US")).fields["name"] == "Stanisław Lem"

    def test_run_touches_unchanged_nodes(self, connection, store) -> None:
        orchestrator = _orchestrator([connection], store)
        orchestrator.run()
        store.reset_touched()

        orchestrator.run()

        assert len(store.touched_ids) == len(store)


class TestForcedPass:
    def test_forced_pass_fetches_exactly_the_related_ids(self, connection, store, fake_odoo) -> None:
        orchestrator = _orchestrator([connection], store)
        orchestrator.run()
        # autor con write_date anterior a la marca de agua: el incremental no lo ve
        fake_odoo.write("library.author", 3, "2023-06-01 00:00:00", name="Italo Calvino")
        fake_odoo.write(
            "library.book", 1, "2024-02-01 00:00:00",
            title="The Dispossessed", pages=387, author_ids=[1, 3], publisher_id=[1, "Acme Press"],
        )
        fake_odoo.calls.clear()

        report = orchestrator.run()

        incremental = report.get_pass(SyncPhase.INCREMENTAL)
        assert incremental.related_ids == {
            connection.label: {"library.author": [1, 3], "library.publisher": [1]}
        }
        forced = report.get_pass(SyncPhase.FORCED)
        assert [s.odoo_model for s in forced.models] == ["library.author", "library.publisher"]
        assert forced.skipped_models == ["library.book", "x.deleted.record"]
        assert forced.created == 1
        assert store.get(derive_node_id("Author", 3, "en_US")) is not None

        author_searches = fake_odoo.calls_for("library.author", "search")
        assert author_searches[-1][2][0] == [["id", "in", [1, 3]]]
        # la pasada forzada nunca vuelve a buscar libros
        assert len(fake_odoo.calls_for("library.book", "search")) == 1

    def test_forced_pass_refreshes_existing_related_nodes(self, connection, store, fake_odoo) -> None:
        orchestrator = _orchestrator([connection], store)
        orchestrator.run()
        fake_odoo.write("library.book", 3, "2024-02-01 00:00:00", title="The Lathe of Heaven (2nd ed.)")

        report = orchestrator.run()

        forced = report.get_pass(SyncPhase.FORCED)
        author_stats = [s for s in forced.models if s.odoo_model == "library.author"][0]
        assert author_stats.fetched == 1
        assert author_stats.updated == 1


class TestGarbage:
    def test_garbage_record_deletes_victim_before_its_own_upsert(self, fake_odoo) -> None:
        store = _RecordingStore()
        connection = Connection.open(build_library_config(), client=fake_odoo)
        orchestrator = _orchestrator([connection], store)
        orchestrator.run()
        fake_odoo.unlink("library.book", 2)
        fake_odoo.write("x.deleted.record", 1, "2024-02-01 00:00:00", model_id=2, model_name="library.book")
        store.operations.clear()

        report = orchestrator.run()

        victim = derive_node_id("Book", 2, "en_US")
        garbage_node = derive_node_id("DeletedRecord", 1, "en_US")
        assert store.get(victim) is None
        assert store.get(garbage_node) is not None
        assert store.operations.index(("delete", victim)) < store.operations.index(("create_or_replace", garbage_node))
        assert report.get_pass(SyncPhase.INCREMENTAL).deleted == 1


class TestFailures:
    def test_remote_error_aborts_only_that_model(self, connection, store, fake_odoo) -> None:
        fake_odoo.fail_on("library.publisher", "search")

        report = _orchestrator([connection], store).run()

        assert not report.ok
        assert report.phase is SyncPhase.DONE
        [error] = report.errors
        assert error["error"] == "REMOTE_CALL_ERROR"
        assert error["details"]["model"] == "library.publisher"
        assert error["details"]["operation"] == "search"
        assert error["details"]["offset"] == 0
        assert error["details"]["connection"] == connection.label
        assert _ids_by_type(store, "Publisher") == []
        assert _ids_by_type(store, "Book") == [1, 2, 3]

    def test_remote_error_on_read_keeps_language_context(self, connection, store, fake_odoo) -> None:
        fake_odoo.fail_on("library.author", "search_read")

        report = _orchestrator([connection], store).run()

        [error] = report.errors
        assert error["details"]["lang"] == "en_US"
        assert error["details"]["operation"] == "search_read"

    def test_resolution_error_is_fatal(self, connection, store) -> None:
        metadata = dict(connection.metadata.get("library.book"))
        metadata["publisher_id"] = {"type": "many2one", "relation": "res.company"}
        connection.metadata.store("library.book", metadata)

        with pytest.raises(ResolutionError):
            _orchestrator([connection], store).run()


def test_each_language_produces_independent_nodes() -> None:
    odoo = build_library_backend(languages=["en_US", "es_ES"])
    odoo.translate("library.book", 1, "es_ES", title="Los desposeídos")
    connection = Connection.open(build_library_config(), client=odoo)
    store = InMemoryNodeStore()

    _orchestrator([connection], store).run()

    en = store.get(derive_node_id("Book", 1, "en_US"))
    es = store.get(derive_node_id("Book", 1, "es_ES"))
    assert en.fields["title"] == "The Dispossessed"
    assert es.fields["title"] == "Los desposeídos"
    assert es.lang == "es-es"
    assert es.fields["author_ids___NODE"] == [derive_node_id("Author", 1, "es_ES")]
    assert len(store) == 12


def test_connections_are_synced_independently() -> None:
    first = build_library_config("https://erp-a.example.com")
    second_base = build_library_config("https://erp-b.example.com")
    # un tipo de nodo pertenece a una sola conexión
    second = replace(
        second_base,
        models=tuple(replace(m, node_type=f"B{m.node_type}") for m in second_base.models),
        garbage_model=replace(second_base.garbage_model, node_type="BDeletedRecord"),
    )
    odoo_a, odoo_b = build_library_backend(), build_library_backend()
    odoo_b.fail_on("library.book", "search")
    connections = [Connection.open(first, client=odoo_a), Connection.open(second, client=odoo_b)]
    store = InMemoryNodeStore()

    report = _orchestrator(connections, store).run()

    assert _ids_by_type(store, "Book") == [1, 2, 3]
    assert _ids_by_type(store, "BBook") == []
    assert _ids_by_type(store, "BAuthor") == [1, 2]
    assert [e["details"]["connection"] for e in report.errors] == [connections[1].label]
