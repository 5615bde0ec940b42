"""Statement templates: Query → parameterized SQL.

``StatementBuilder`` is the top-level orchestrator.  It wires together the
clause-level and predicate sub-builders and drives one template per
statement kind.  All dialect-specific behaviour is delegated to the injected
``Grammar``.

Sub-builder hierarchy
---------------------
StatementBuilder
  ├── PredicateBuilder     (expression_builder.py)
  ├── ColumnListBuilder    (clause_builders.py)
  ├── JoinClauseBuilder    (clause_builders.py)
  ├── GroupByBuilder       (clause_builders.py)
  ├── OrderByBuilder       (clause_builders.py)
  └── AssignmentBuilder    (clause_builders.py)

Runtime context sharing
-----------------------
A single :class:`~fluentsql.compile.expression_builder.RuntimeContext` is
created per statement and threaded through every sub-builder, so the
argument list always matches placeholder order.  Any error raised part-way
discards the context: compilation is all-or-nothing.

Before anything else every template re-raises the query's sticky error and
checks that a table is set.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from fluentsql.compile.base import CompiledSQL
from fluentsql.compile.clause_builders import (
    AssignmentBuilder,
    ColumnListBuilder,
    GroupByBuilder,
    JoinClauseBuilder,
    OrderByBuilder,
)
from fluentsql.compile.expression_builder import PredicateBuilder, RuntimeContext
from fluentsql.errors import (
    CompilationError,
    EmptyBatchError,
    InconsistentBatchError,
    MissingConflictTargetError,
    NoColumnsError,
    NoTableError,
)
from fluentsql.validate.identifier import validate_table_with_alias
from fluentsql.validate.operator import validate_aggregate_function

if TYPE_CHECKING:
    from fluentsql.compile.base import Grammar
    from fluentsql.query import Query


class StatementBuilder:
    """Compiles a :class:`~fluentsql.query.Query` to parameterized SQL.

    Args:
        grammar: Dialect-specific grammar instance.
    """

    def __init__(self, grammar: Grammar) -> None:
        self._grammar = grammar

    # ------------------------------------------------------------------
    # Read statements
    # ------------------------------------------------------------------

    def select(self, query: Query) -> CompiledSQL:
        self._check(query)
        runtime = RuntimeContext(self._grammar)
        parts = [
            ColumnListBuilder(self._grammar, runtime).build(query.columns, query.is_distinct),
            f"FROM {self._grammar.wrap_table(query.table_reference)}",
        ]
        parts.extend(self._joins(query))
        parts.extend(self._where(query, runtime))
        if query.groups:
            parts.append(GroupByBuilder(self._grammar).build(query.groups))
        having_sql = PredicateBuilder(self._grammar, runtime).build(query.havings)
        if having_sql:
            parts.append(f"HAVING {having_sql}")
        if query.orders:
            parts.append(OrderByBuilder(self._grammar).build(query.orders))
        parts.extend(self._grammar.limit_offset(query.limit_value, query.offset_value))
        return self._result(parts, runtime)

    def exists(self, query: Query) -> CompiledSQL:
        self._check(query)
        runtime = RuntimeContext(self._grammar)
        parts = [f"SELECT EXISTS(SELECT 1 FROM {self._grammar.wrap_table(query.table_reference)}"]
        parts.extend(self._joins(query))
        parts.extend(self._where(query, runtime))
        parts.append("LIMIT 1)")
        return self._result(parts, runtime)

    def count(self, query: Query, column: str = "") -> CompiledSQL:
        self._check(query)
        expr = "*" if column in ("", "*") else self._grammar.wrap(column)
        return self._scalar(query, f"COUNT({expr})")

    def aggregate(self, query: Query, fn: str, column: str) -> CompiledSQL:
        self._check(query)
        if not column:
            raise NoColumnsError("fluentsql: aggregate requires a column")
        function = validate_aggregate_function(fn)
        return self._scalar(query, f"{function}({self._grammar.wrap(column)})")

    # ------------------------------------------------------------------
    # Write statements
    # ------------------------------------------------------------------

    def insert(self, query: Query, data: Mapping[str, Any]) -> CompiledSQL:
        self._check(query)
        columns = AssignmentBuilder.sorted_columns(data)
        runtime = RuntimeContext(self._grammar)
        assign = AssignmentBuilder(self._grammar, runtime)
        parts = [
            f"INSERT INTO {self._insert_table(query)}",
            assign.column_list(columns),
            f"VALUES {assign.values_tuple(columns, data)}",
        ]
        return self._result(parts, runtime)

    def insert_batch(self, query: Query, rows: Sequence[Mapping[str, Any]]) -> CompiledSQL:
        self._check(query)
        if not rows:
            raise EmptyBatchError()
        if not rows[0]:
            raise NoColumnsError()
        columns = sorted(rows[0])
        for index, row in enumerate(rows[1:], start=1):
            if len(row) != len(columns) or any(c not in row for c in columns):
                raise InconsistentBatchError(index)

        runtime = RuntimeContext(self._grammar)
        assign = AssignmentBuilder(self._grammar, runtime)
        table = self._insert_table(query)
        column_list = assign.column_list(columns)
        tuples = ", ".join(assign.values_tuple(columns, row) for row in rows)
        return self._result([f"INSERT INTO {table}", column_list, f"VALUES {tuples}"], runtime)

    def insert_returning(
        self, query: Query, data: Mapping[str, Any], column: str
    ) -> CompiledSQL:
        if not self._grammar.supports_returning:
            raise CompilationError(
                f"RETURNING is not supported by the '{self._grammar.dialect_name}' grammar",
                clause="RETURNING",
            )
        compiled = self.insert(query, data)
        compiled.sql += f" RETURNING {self._grammar.wrap(column)}"
        return compiled

    def update(self, query: Query, data: Mapping[str, Any]) -> CompiledSQL:
        self._check(query)
        columns = AssignmentBuilder.sorted_columns(data)
        runtime = RuntimeContext(self._grammar)
        parts = [
            f"UPDATE {self._grammar.wrap_table(query.table_reference)}",
            f"SET {AssignmentBuilder(self._grammar, runtime).set_list(columns, data)}",
        ]
        parts.extend(self._where(query, runtime))
        return self._result(parts, runtime)

    def delete(self, query: Query) -> CompiledSQL:
        self._check(query)
        runtime = RuntimeContext(self._grammar)
        parts = [f"DELETE FROM {self._grammar.wrap_table(query.table_reference)}"]
        parts.extend(self._where(query, runtime))
        return self._result(parts, runtime)

    def truncate(self, query: Query) -> str:
        self._check(query)
        return self._grammar.truncate_statement(self._insert_table(query))

    def upsert(
        self,
        query: Query,
        data: Mapping[str, Any],
        update_columns: Sequence[str],
        conflict_columns: Sequence[str],
    ) -> CompiledSQL:
        self._check(query)
        if self._grammar.requires_conflict_target and not conflict_columns:
            raise MissingConflictTargetError(self._grammar.dialect_name)
        compiled = self.insert(query, data)
        targets = [self._grammar.wrap(c) for c in conflict_columns]
        updates = [self._grammar.wrap(c) for c in (update_columns or sorted(data))]
        compiled.sql += " " + self._grammar.upsert_clause(updates, targets)
        return compiled

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _check(self, query: Query) -> None:
        if query.error is not None:
            raise query.error
        if not query.table_name:
            raise NoTableError()

    def _insert_table(self, query: Query) -> str:
        # INSERT and TRUNCATE take the bare table; aliases are not portable there.
        name, _alias = validate_table_with_alias(query.table_name)
        return self._grammar.wrap(name)

    def _joins(self, query: Query) -> list[str]:
        join_builder = JoinClauseBuilder(self._grammar)
        return [join_builder.build(join) for join in query.joins]

    def _where(self, query: Query, runtime: RuntimeContext) -> list[str]:
        where_sql = PredicateBuilder(self._grammar, runtime).build(query.wheres)
        return [f"WHERE {where_sql}"] if where_sql else []

    def _scalar(self, query: Query, expr: str) -> CompiledSQL:
        runtime = RuntimeContext(self._grammar)
        parts = [f"SELECT {expr} FROM {self._grammar.wrap_table(query.table_reference)}"]
        parts.extend(self._joins(query))
        parts.extend(self._where(query, runtime))
        return self._result(parts, runtime)

    def _result(self, parts: list[str], runtime: RuntimeContext) -> CompiledSQL:
        return CompiledSQL(
            sql=" ".join(parts),
            args=runtime.args,
            dialect=self._grammar.dialect_name,
        )
