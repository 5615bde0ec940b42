"""Argument accumulator and predicate SQL compiler.

``PredicateBuilder`` compiles WHERE / HAVING lists (recursively for nested
groups).  It receives the dialect :class:`~fluentsql.compile.base.Grammar`
(static config) and a :class:`RuntimeContext` (per-statement argument state).
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from fluentsql.errors import CompilationError, EmptyWhereInError, InvalidBetweenError
from fluentsql.schema.clauses import WhereClause, WhereType
from fluentsql.schema.expressions import (
    MEMBERSHIP_OPERATORS,
    NULL_OPERATORS,
    RANGE_OPERATORS,
)
from fluentsql.validate.operator import normalize_operator

if TYPE_CHECKING:
    from fluentsql.compile.base import Grammar


# ---------------------------------------------------------------------------
# Runtime argument accumulator (shared across all sub-builders in one run)
# ---------------------------------------------------------------------------


@dataclass
class RuntimeContext:
    """Accumulates positional arguments during a single compilation run.

    A single instance is threaded through every sub-builder so placeholder
    numbering is global for the whole statement.  Raw bindings count
    towards the numbering even though their placeholders are written by the
    caller.
    """

    grammar: Grammar
    args: list[Any] = field(default_factory=list)

    def add_value(self, value: Any) -> str:
        """Store a bound value and return its placeholder."""
        placeholder = self.grammar.placeholder(len(self.args))
        self.args.append(value)
        return placeholder

    def add_values(self, values: Iterable[Any]) -> list[str]:
        return [self.add_value(v) for v in values]

    def add_bindings(self, bindings: Iterable[Any]) -> None:
        """Append raw-fragment bindings verbatim."""
        self.args.extend(bindings)


# ---------------------------------------------------------------------------
# Predicate builder
# ---------------------------------------------------------------------------

_DATE_KINDS = frozenset({WhereType.DATE, WhereType.YEAR, WhereType.MONTH, WhereType.DAY})


class PredicateBuilder:
    """Compiles WHERE / HAVING predicate lists to SQL.

    Every column goes through :meth:`Grammar.wrap` and every operator through
    :func:`~fluentsql.validate.operator.normalize_operator` before it is
    written.  Values only ever appear as placeholders.

    Args:
        grammar: Dialect grammar.
        runtime: Shared argument accumulator.
    """

    def __init__(self, grammar: Grammar, runtime: RuntimeContext) -> None:
        self._grammar = grammar
        self._runtime = runtime

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, wheres: Sequence[WhereClause]) -> str:
        """Compile a predicate list; returns ``""`` when nothing is emitted.

        The connector of the first emitted predicate is never written.
        """
        sql = ""
        for where in wheres:
            fragment = self._dispatch(where)
            if not fragment:
                continue
            if sql:
                sql += f" {where.boolean.value} "
            sql += fragment
        return sql

    # ------------------------------------------------------------------
    # Kind dispatch
    # ------------------------------------------------------------------

    def _dispatch(self, where: WhereClause) -> str:
        kind = where.type
        if kind == WhereType.BASIC:
            return self._basic(where)
        if kind in (WhereType.IN, WhereType.NOT_IN):
            return self._in(where.column, where.values, kind == WhereType.NOT_IN)
        if kind in (WhereType.BETWEEN, WhereType.NOT_BETWEEN):
            return self._between(where.column, where.values, kind == WhereType.NOT_BETWEEN)
        if kind in (WhereType.NULL, WhereType.NOT_NULL):
            return self._null(where.column, kind == WhereType.NOT_NULL)
        if kind == WhereType.RAW:
            if not where.raw.strip():
                raise CompilationError("raw predicate cannot be empty", clause="WHERE")
            self._runtime.add_bindings(where.bindings)
            return where.raw
        if kind == WhereType.NESTED:
            inner = self.build(where.nested)
            return f"({inner})" if inner else ""
        if kind in _DATE_KINDS:
            column = self._grammar.date_function(kind, self._grammar.wrap(where.column))
            return f"{column} = {self._runtime.add_value(where.value)}"
        raise CompilationError(f"Unknown where type: {kind!r}", clause="WHERE")

    def _basic(self, where: WhereClause) -> str:
        operator = normalize_operator(where.operator)

        # List-valued operators passed through where() keep their shape.
        if operator in MEMBERSHIP_OPERATORS:
            return self._in(where.column, _as_list(where.value), operator == "NOT IN")
        if operator in RANGE_OPERATORS:
            return self._between(where.column, _as_list(where.value), operator == "NOT BETWEEN")

        column = self._grammar.wrap(where.column)
        if operator in NULL_OPERATORS and where.value is None:
            return f"{column} {operator} NULL"

        rendered = self._grammar.render_operator(operator)
        return f"{column} {rendered} {self._runtime.add_value(where.value)}"

    def _in(self, column: str, values: Sequence[Any], negate: bool) -> str:
        if not values:
            raise EmptyWhereInError(column)
        wrapped = self._grammar.wrap(column)
        keyword = "NOT IN" if negate else "IN"
        placeholders = ", ".join(self._runtime.add_values(values))
        return f"{wrapped} {keyword} ({placeholders})"

    def _between(self, column: str, values: Sequence[Any], negate: bool) -> str:
        if len(values) != 2:
            raise InvalidBetweenError(len(values))
        wrapped = self._grammar.wrap(column)
        keyword = "NOT BETWEEN" if negate else "BETWEEN"
        low = self._runtime.add_value(values[0])
        high = self._runtime.add_value(values[1])
        return f"{wrapped} {keyword} {low} AND {high}"

    def _null(self, column: str, negate: bool) -> str:
        wrapped = self._grammar.wrap(column)
        return f"{wrapped} IS NOT NULL" if negate else f"{wrapped} IS NULL"


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    raise CompilationError(
        "IN / BETWEEN operators require a list of values", clause="WHERE"
    )
