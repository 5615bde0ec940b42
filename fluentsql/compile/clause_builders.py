"""Clause-level SQL builders.

Each class handles exactly one SQL clause.  Builders that bind values
receive the shared :class:`RuntimeContext` so placeholder numbering stays
global across the whole statement.

Classes
-------
ColumnListBuilder   - ``SELECT [DISTINCT] <columns>``
JoinClauseBuilder   - ``KIND JOIN <table> ON a op b``
GroupByBuilder      - ``GROUP BY <columns>``
OrderByBuilder      - ``ORDER BY <column direction | raw>``
AssignmentBuilder   - sorted column lists, VALUES tuples and SET lists
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from fluentsql.compile.expression_builder import RuntimeContext
from fluentsql.errors import CompilationError, NoColumnsError
from fluentsql.schema.clauses import (
    JoinClause,
    JoinType,
    OrderClause,
    OrderDirection,
    RawExpression,
)
from fluentsql.validate.identifier import validate_column_with_alias
from fluentsql.validate.operator import normalize_operator

if TYPE_CHECKING:
    from fluentsql.compile.base import Grammar


class ColumnListBuilder:
    """Builds the ``SELECT [DISTINCT] …`` prefix.

    Plain strings are always validated: ``"col"``, ``"t.col"`` or
    ``"col AS alias"``.  Expressions such as ``COUNT(*) AS total`` must be
    passed as :class:`RawExpression` (``Query.select_raw`` / ``fluentsql.raw``).
    """

    def __init__(self, grammar: Grammar, runtime: RuntimeContext) -> None:
        self._grammar = grammar
        self._runtime = runtime

    def build(self, columns: Sequence[str | RawExpression], distinct: bool) -> str:
        prefix = "SELECT DISTINCT" if distinct else "SELECT"
        if not columns:
            return f"{prefix} *"
        return f"{prefix} {', '.join(self._build_item(c) for c in columns)}"

    def _build_item(self, column: str | RawExpression) -> str:
        if isinstance(column, RawExpression):
            self._runtime.add_bindings(column.bindings)
            return column.sql
        if column == "*":
            return column
        if column.endswith(".*"):
            return f"{self._grammar.wrap(column[:-2])}.*"
        name, alias = validate_column_with_alias(column)
        wrapped = self._grammar.wrap(name)
        if alias:
            wrapped += f" AS {self._grammar.quote_identifier(alias)}"
        return wrapped


class JoinClauseBuilder:
    """Builds a single JOIN fragment.

    The ON operator goes through the same allowlist as predicate operators.
    """

    def __init__(self, grammar: Grammar) -> None:
        self._grammar = grammar

    def build(self, join: JoinClause) -> str:
        table = self._grammar.wrap_table(join.table)
        if join.type == JoinType.CROSS:
            return f"CROSS JOIN {table}"
        first = self._grammar.wrap(join.first)
        operator = self._grammar.render_operator(normalize_operator(join.operator))
        second = self._grammar.wrap_value(join.second)
        return f"{join.type.value} JOIN {table} ON {first} {operator} {second}"


class GroupByBuilder:
    """Builds the ``GROUP BY …`` fragment."""

    def __init__(self, grammar: Grammar) -> None:
        self._grammar = grammar

    def build(self, groups: Sequence[str]) -> str:
        return "GROUP BY " + ", ".join(self._grammar.wrap(g) for g in groups)


class OrderByBuilder:
    """Builds the ``ORDER BY …`` fragment; raw entries are emitted verbatim."""

    def __init__(self, grammar: Grammar) -> None:
        self._grammar = grammar

    def build(self, orders: Sequence[OrderClause]) -> str:
        return "ORDER BY " + ", ".join(self._build_item(o) for o in orders)

    def _build_item(self, order: OrderClause) -> str:
        if order.raw:
            return order.raw
        if not isinstance(order.direction, OrderDirection):
            raise CompilationError(
                f"Invalid order direction: {order.direction!r}", clause="ORDER BY"
            )
        return f"{self._grammar.wrap(order.column)} {order.direction.value}"


class AssignmentBuilder:
    """Builds column lists, VALUES tuples and SET lists for write statements.

    Columns are always emitted in sorted key order so identical data yields
    byte-identical SQL regardless of mapping iteration order.
    """

    def __init__(self, grammar: Grammar, runtime: RuntimeContext) -> None:
        self._grammar = grammar
        self._runtime = runtime

    @staticmethod
    def sorted_columns(data: Mapping[str, Any]) -> list[str]:
        if not data:
            raise NoColumnsError()
        return sorted(data)

    def column_list(self, columns: Sequence[str]) -> str:
        return "(" + ", ".join(self._grammar.wrap(c) for c in columns) + ")"

    def values_tuple(self, columns: Sequence[str], data: Mapping[str, Any]) -> str:
        placeholders = self._runtime.add_values(data[c] for c in columns)
        return "(" + ", ".join(placeholders) + ")"

    def set_list(self, columns: Sequence[str], data: Mapping[str, Any]) -> str:
        parts = []
        for column in columns:
            wrapped = self._grammar.wrap(column)
            parts.append(f"{wrapped} = {self._runtime.add_value(data[column])}")
        return ", ".join(parts)
