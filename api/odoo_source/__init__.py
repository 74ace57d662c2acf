"""
Fuente de nodos Odoo: espejo incremental de modelos Odoo (JSON-RPC)
hacia el grafo de nodos de un pipeline de build estático.
"""

__version__ = "1.0.0"
