"""
Configuración de fixtures para pytest.
"""
from __future__ import annotations

import pytest

from odoo_source.domain.entities.mapping import ConnectionConfig
from odoo_source.infrastructure.external.odoo.connection import Connection
from odoo_source.infrastructure.node_store.memory_store import InMemoryNodeStore

from tests.odoo_fakes import FakeOdooClient, build_library_backend, build_library_config


@pytest.fixture
def fake_odoo() -> FakeOdooClient:
    return build_library_backend()


@pytest.fixture
def library_config() -> ConnectionConfig:
    return build_library_config()


@pytest.fixture
def connection(library_config: ConnectionConfig, fake_odoo: FakeOdooClient) -> Connection:
    return Connection.open(library_config, client=fake_odoo)


@pytest.fixture
def store() -> InMemoryNodeStore:
    return InMemoryNodeStore()
