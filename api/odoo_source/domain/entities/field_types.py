"""
Tipos de campo Odoo soportados por el normalizador.
"""

TEXT_TYPES = frozenset({"char", "text", "html", "selection"})
DATE_TYPES = frozenset({"date", "datetime"})
NUMERIC_TYPES = frozenset({"integer", "float", "monetary"})
MULTI_RELATION_TYPES = frozenset({"many2many", "one2many"})
SINGLE_RELATION_TYPES = frozenset({"many2one"})

RELATION_TYPES = MULTI_RELATION_TYPES | SINGLE_RELATION_TYPES

SUPPORTED_TYPES = TEXT_TYPES | DATE_TYPES | NUMERIC_TYPES | RELATION_TYPES
