"""
Dominios de búsqueda de Odoo como árbol de expresiones.

Odoo codifica los dominios en notación prefija plana:
    ['|', '&', A, B, C]  ==  (A AND B) OR C
donde cada operador consume un número fijo de operandos siguientes. Aquí se
construyen de forma programática con `Condition`, `And`, `Or` y `Not`, y solo
se serializan a la lista plana al momento de la llamada RPC.

Funciones puras, sin I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, Sequence, Union

from odoo_source.shared.exceptions.sync import ConfigurationError
from odoo_source.shared.utils.datetime_utils import format_odoo_datetime

AND_OPERATOR = "&"
OR_OPERATOR = "|"
NOT_OPERATOR = "!"

# Hoja que Odoo evalua siempre como falsa.
FALSE_LEAF = [0, "=", 1]

LEAF_OPERATORS = frozenset({
    "=", "!=", ">", ">=", "<", "<=",
    "in", "not in",
    "like", "not like", "ilike", "not ilike", "=like", "=ilike",
    "child_of", "parent_of", "=?",
})

# Resolución de write_date en Odoo.
TIMESTAMP_RESOLUTION = timedelta(seconds=1)


@dataclass(frozen=True)
class Condition:
    """Hoja del dominio: (campo, operador, valor)."""

    field: str
    operator: str
    value: Any

    def __post_init__(self) -> None:
        if self.operator not in LEAF_OPERATORS:
            raise ConfigurationError(
                f"Operador de dominio no soportado: '{self.operator}'",
                details={"field": self.field, "operator": self.operator},
            )


@dataclass(frozen=True)
class And:
    operands: tuple["Expression", ...]


@dataclass(frozen=True)
class Or:
    operands: tuple["Expression", ...]


@dataclass(frozen=True)
class Not:
    operand: "Expression"


Expression = Union[Condition, And, Or, Not]

# Dominio vacío: coincide con todos los registros.
TRUE: Expression = And(())


def and_(*operands: Expression) -> Expression:
    """Conjunción aplanada. Ignora operandos TRUE."""
    flat: list[Expression] = []
    for operand in operands:
        if isinstance(operand, And):
            flat.extend(operand.operands)
        else:
            flat.append(operand)
    if len(flat) == 1:
        return flat[0]
    return And(tuple(flat))


def or_(*operands: Expression) -> Expression:
    """Disyunción aplanada. Si algún operando es TRUE, el resultado es TRUE."""
    flat: list[Expression] = []
    for operand in operands:
        if operand == TRUE:
            return TRUE
        if isinstance(operand, Or):
            flat.extend(operand.operands)
        else:
            flat.append(operand)
    if len(flat) == 1:
        return flat[0]
    return Or(tuple(flat))


def to_odoo_domain(expression: Expression) -> list[Any]:
    """Serializa el árbol a la notación prefija que espera Odoo."""
    if isinstance(expression, Condition):
        return [[expression.field, expression.operator, _serialize_value(expression.value)]]
    if isinstance(expression, Not):
        operand = to_odoo_domain(expression.operand)
        if not operand:
            return [list(FALSE_LEAF)]
        return [NOT_OPERATOR] + operand
    if isinstance(expression, (And, Or)):
        parts = [to_odoo_domain(operand) for operand in expression.operands]
        if isinstance(expression, Or) and any(not part for part in parts):
            return []
        parts = [part for part in parts if part]
        if not parts:
            return []
        symbol = AND_OPERATOR if isinstance(expression, And) else OR_OPERATOR
        tokens: list[Any] = [symbol] * (len(parts) - 1)
        for part in parts:
            tokens.extend(part)
        return tokens
    raise ConfigurationError(f"Expresión de dominio desconocida: {expression!r}")


def _serialize_value(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, tuple):
        return list(value)
    if isinstance(value, datetime):
        return format_odoo_datetime(value)
    return value


def parse_odoo_domain(domain: Sequence[Any]) -> Expression:
    """
    Construye el árbol a partir de un dominio Odoo en notación prefija.

    Igual que en Odoo, los términos consecutivos de nivel superior se unen con
    AND implícito. Un dominio mal formado (aridad incorrecta, hojas inválidas)
    levanta ConfigurationError.
    """
    if not isinstance(domain, (list, tuple)):
        raise ConfigurationError(f"El dominio debe ser una lista, no {type(domain).__name__}")

    tokens = list(domain)
    position = 0

    def parse_term() -> Expression:
        nonlocal position
        if position >= len(tokens):
            raise ConfigurationError(
                f"Dominio mal formado: faltan operandos en {domain!r}",
                details={"domain": repr(domain)},
            )
        token = tokens[position]
        position += 1
        if token == AND_OPERATOR:
            left = parse_term()
            return And((left, parse_term()))
        if token == OR_OPERATOR:
            left = parse_term()
            return Or((left, parse_term()))
        if token == NOT_OPERATOR:
            return Not(parse_term())
        return _parse_leaf(token)

    terms: list[Expression] = []
    while position < len(tokens):
        terms.append(parse_term())
    return and_(*terms)


def _parse_leaf(token: Any) -> Condition:
    if not isinstance(token, (list, tuple)) or len(token) != 3:
        raise ConfigurationError(
            f"Término de dominio inválido: {token!r}",
            details={"term": repr(token)},
        )
    field, operator, value = token
    if not isinstance(field, str) or not isinstance(operator, str):
        raise ConfigurationError(
            f"Término de dominio inválido: {token!r}",
            details={"term": repr(token)},
        )
    if isinstance(value, list):
        value = tuple(value)
    return Condition(field, operator, value)


def build_change_filter(
    max_write_date: datetime,
    tie_ids: Iterable[int],
    *,
    write_date_field: str = "write_date",
) -> Expression:
    """
    Filtro de detección de cambios a partir de la marca de agua.

        (id NOT IN tie_ids AND write_date IN [max, max+1s))
        OR write_date >= max+1s

    Los registros del mismo segundo que el máximo pueden haberse escrito
    después de la corrida anterior, por lo que ese segundo se vuelve a
    consultar excluyendo solo los ids ya vistos en el.
    """
    next_second = max_write_date + TIMESTAMP_RESOLUTION
    return or_(
        and_(
            Condition("id", "not in", tuple(sorted(set(tie_ids)))),
            Condition(write_date_field, ">=", format_odoo_datetime(max_write_date)),
            Condition(write_date_field, "<", format_odoo_datetime(next_second)),
        ),
        Condition(write_date_field, ">=", format_odoo_datetime(next_second)),
    )


def build_forced_filter(ids: Iterable[int]) -> Expression:
    """Filtro del modo forzado: exactamente los ids pedidos, sin fechas."""
    return Condition("id", "in", tuple(sorted(set(ids))))
