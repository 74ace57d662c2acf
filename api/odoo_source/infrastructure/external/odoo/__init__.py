"""
Integración con Odoo vía JSON-RPC.

- odoo_client: transporte (login + execute_kw) con backoff
- connection: conexión establecida (cliente, idiomas activos y metadatos de campos)
"""
from odoo_source.infrastructure.external.odoo.connection import Connection, FieldMetadataCache
from odoo_source.infrastructure.external.odoo.odoo_client import OdooClient, OdooCredentials

__all__ = ["Connection", "FieldMetadataCache", "OdooClient", "OdooCredentials"]
