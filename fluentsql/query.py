"""The fluent query descriptor.

``Query`` accumulates clause-model nodes through chained calls and hands
itself to a :class:`~fluentsql.compile.base.Grammar` for compilation.
Nothing is validated while the chain is built; the grammar validates every
identifier and operator at compile time.  The only chain-level checks are
for limit, offset and order direction; the first of those failures is kept
as a sticky error that every later compile or execution call re-raises.

Usage::

    q = (
        Query(MySQLGrammar())
        .table("users")
        .where("status", "=", "active")
        .where_in("role", ["admin", "editor"])
        .order_by_desc("created_at")
        .limit(10)
    )
    sql, args = q.to_sql()

A ``Query`` is not safe for concurrent mutation; :meth:`clone` it before
handing a partially built query to another thread.
"""
from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from fluentsql.compile.base import CompiledSQL, Grammar
from fluentsql.compile.mysql import MySQLGrammar
from fluentsql.errors import CompilationError, FluentSQLError, NoExecutorError, NoRowsError
from fluentsql.pagination import Pagination
from fluentsql.schema.clauses import (
    Boolean,
    JoinClause,
    JoinType,
    OrderClause,
    OrderDirection,
    RawExpression,
    WhereClause,
    WhereType,
)

if TYPE_CHECKING:
    from fluentsql.executor import Executor, QueryResult, Rows
    from fluentsql.scanner import DefaultScanner

_MISSING: Any = object()


class Query:
    """Mutable accumulator of one query's clauses.

    Args:
        grammar: Dialect grammar used by the ``to_*_sql`` methods.  Defaults
            to :class:`~fluentsql.compile.mysql.MySQLGrammar`.
        executor: Optional executor (a ``Database`` or ``Transaction``) used
            by the execution helpers.
        scanner: Optional row scanner; defaults to the executor's scanner.
    """

    def __init__(
        self,
        grammar: Grammar | None = None,
        executor: Executor | None = None,
        scanner: DefaultScanner | None = None,
    ) -> None:
        self._grammar = grammar or MySQLGrammar()
        self._executor = executor
        self._scanner = scanner
        self._reset_state()

    def _reset_state(self) -> None:
        self._table = ""
        self._table_alias = ""
        self._columns: list[str | RawExpression] = []
        self._distinct = False
        self._wheres: list[WhereClause] = []
        self._joins: list[JoinClause] = []
        self._groups: list[str] = []
        self._havings: list[WhereClause] = []
        self._orders: list[OrderClause] = []
        self._limit: int | None = None
        self._offset: int | None = None
        self._error: FluentSQLError | None = None

    def __repr__(self) -> str:
        return f"Query(table={self._table!r}, grammar={self._grammar.dialect_name!r})"

    # ------------------------------------------------------------------
    # Table and columns
    # ------------------------------------------------------------------

    def table(self, name: str) -> Query:
        """Set the target table (``"users"``, ``"users u"`` or ``"users AS u"``)."""
        self._table = name
        return self

    def table_as(self, name: str, alias: str) -> Query:
        self._table = name
        self._table_alias = alias
        return self

    def from_(self, name: str) -> Query:
        return self.table(name)

    def select(self, *columns: str | RawExpression) -> Query:
        """Replace the selected columns; no columns means ``*``."""
        self._columns = list(columns)
        return self

    def add_select(self, *columns: str | RawExpression) -> Query:
        self._columns.extend(columns)
        return self

    def select_raw(self, expression: str, *bindings: Any) -> Query:
        """Append a raw SELECT expression; it is emitted without escaping."""
        self._columns.append(RawExpression(sql=expression, bindings=tuple(bindings)))
        return self

    def distinct(self, enabled: bool = True) -> Query:
        self._distinct = enabled
        return self

    # ------------------------------------------------------------------
    # WHERE
    # ------------------------------------------------------------------

    def _add_where(self, boolean: Boolean, **fields: Any) -> Query:
        self._wheres.append(WhereClause(boolean=boolean, **fields))
        return self

    def where(self, column: str, operator: Any = _MISSING, value: Any = _MISSING) -> Query:
        """Add ``column operator value``.

        The two-argument form ``where("status", "active")`` means ``=``.
        """
        operator, value = _operator_and_value(operator, value)
        return self._add_where(
            Boolean.AND, type=WhereType.BASIC, column=column, operator=operator, value=value
        )

    def or_where(self, column: str, operator: Any = _MISSING, value: Any = _MISSING) -> Query:
        operator, value = _operator_and_value(operator, value)
        return self._add_where(
            Boolean.OR, type=WhereType.BASIC, column=column, operator=operator, value=value
        )

    def where_in(self, column: str, values: Sequence[Any]) -> Query:
        return self._add_where(Boolean.AND, type=WhereType.IN, column=column, values=list(values))

    def or_where_in(self, column: str, values: Sequence[Any]) -> Query:
        return self._add_where(Boolean.OR, type=WhereType.IN, column=column, values=list(values))

    def where_not_in(self, column: str, values: Sequence[Any]) -> Query:
        return self._add_where(
            Boolean.AND, type=WhereType.NOT_IN, column=column, values=list(values)
        )

    def or_where_not_in(self, column: str, values: Sequence[Any]) -> Query:
        return self._add_where(
            Boolean.OR, type=WhereType.NOT_IN, column=column, values=list(values)
        )

    def where_between(self, column: str, low: Any, high: Any) -> Query:
        return self._add_where(
            Boolean.AND, type=WhereType.BETWEEN, column=column, values=[low, high]
        )

    def or_where_between(self, column: str, low: Any, high: Any) -> Query:
        return self._add_where(
            Boolean.OR, type=WhereType.BETWEEN, column=column, values=[low, high]
        )

    def where_not_between(self, column: str, low: Any, high: Any) -> Query:
        return self._add_where(
            Boolean.AND, type=WhereType.NOT_BETWEEN, column=column, values=[low, high]
        )

    def where_null(self, column: str) -> Query:
        return self._add_where(Boolean.AND, type=WhereType.NULL, column=column)

    def or_where_null(self, column: str) -> Query:
        return self._add_where(Boolean.OR, type=WhereType.NULL, column=column)

    def where_not_null(self, column: str) -> Query:
        return self._add_where(Boolean.AND, type=WhereType.NOT_NULL, column=column)

    def or_where_not_null(self, column: str) -> Query:
        return self._add_where(Boolean.OR, type=WhereType.NOT_NULL, column=column)

    def where_like(self, column: str, pattern: str) -> Query:
        return self.where(column, "LIKE", pattern)

    def where_not_like(self, column: str, pattern: str) -> Query:
        return self.where(column, "NOT LIKE", pattern)

    def where_raw(self, sql: str, *bindings: Any) -> Query:
        """Add a raw predicate.  ``sql`` is emitted verbatim; it is the
        caller's responsibility to keep it free of untrusted input."""
        return self._add_where(
            Boolean.AND, type=WhereType.RAW, raw=sql, bindings=list(bindings)
        )

    def or_where_raw(self, sql: str, *bindings: Any) -> Query:
        return self._add_where(Boolean.OR, type=WhereType.RAW, raw=sql, bindings=list(bindings))

    def where_nested(self, fn: Callable[[Query], Any]) -> Query:
        """Add a parenthesised group built by ``fn`` on a fresh query."""
        return self._add_where(Boolean.AND, type=WhereType.NESTED, nested=self._nested(fn))

    def or_where_nested(self, fn: Callable[[Query], Any]) -> Query:
        return self._add_where(Boolean.OR, type=WhereType.NESTED, nested=self._nested(fn))

    def _nested(self, fn: Callable[[Query], Any]) -> list[WhereClause]:
        inner = Query(self._grammar)
        fn(inner)
        if inner.error is not None and self._error is None:
            self._error = inner.error
        return inner._wheres

    def where_date(self, column: str, value: Any) -> Query:
        return self._add_where(Boolean.AND, type=WhereType.DATE, column=column, value=value)

    def where_year(self, column: str, value: int) -> Query:
        return self._add_where(Boolean.AND, type=WhereType.YEAR, column=column, value=value)

    def where_month(self, column: str, value: int) -> Query:
        return self._add_where(Boolean.AND, type=WhereType.MONTH, column=column, value=value)

    def where_day(self, column: str, value: int) -> Query:
        return self._add_where(Boolean.AND, type=WhereType.DAY, column=column, value=value)

    # ------------------------------------------------------------------
    # JOIN / GROUP BY / HAVING / ORDER BY
    # ------------------------------------------------------------------

    def _add_join(
        self, kind: JoinType, table: str, first: str, operator: str, second: str
    ) -> Query:
        self._joins.append(
            JoinClause(type=kind, table=table, first=first, operator=operator, second=second)
        )
        return self

    def join(self, table: str, first: str, operator: str, second: str) -> Query:
        return self._add_join(JoinType.INNER, table, first, operator, second)

    def left_join(self, table: str, first: str, operator: str, second: str) -> Query:
        return self._add_join(JoinType.LEFT, table, first, operator, second)

    def right_join(self, table: str, first: str, operator: str, second: str) -> Query:
        return self._add_join(JoinType.RIGHT, table, first, operator, second)

    def cross_join(self, table: str) -> Query:
        self._joins.append(JoinClause(type=JoinType.CROSS, table=table))
        return self

    def group_by(self, *columns: str) -> Query:
        self._groups.extend(columns)
        return self

    def having(self, column: str, operator: Any = _MISSING, value: Any = _MISSING) -> Query:
        operator, value = _operator_and_value(operator, value)
        self._havings.append(
            WhereClause(type=WhereType.BASIC, column=column, operator=operator, value=value)
        )
        return self

    def or_having(self, column: str, operator: Any = _MISSING, value: Any = _MISSING) -> Query:
        operator, value = _operator_and_value(operator, value)
        self._havings.append(
            WhereClause(
                type=WhereType.BASIC,
                boolean=Boolean.OR,
                column=column,
                operator=operator,
                value=value,
            )
        )
        return self

    def having_raw(self, sql: str, *bindings: Any) -> Query:
        self._havings.append(WhereClause(type=WhereType.RAW, raw=sql, bindings=list(bindings)))
        return self

    def order_by(self, column: str, direction: str | OrderDirection = OrderDirection.ASC) -> Query:
        """Add ``column direction``.  An unknown direction becomes the sticky error."""
        try:
            normalized = OrderDirection(str(getattr(direction, "value", direction)).upper())
        except ValueError:
            return self._fail(
                CompilationError(f"Invalid order direction: {direction!r}", clause="ORDER BY")
            )
        self._orders.append(OrderClause(column=column, direction=normalized))
        return self

    def order_by_asc(self, column: str) -> Query:
        return self.order_by(column, OrderDirection.ASC)

    def order_by_desc(self, column: str) -> Query:
        return self.order_by(column, OrderDirection.DESC)

    def order_by_raw(self, sql: str) -> Query:
        self._orders.append(OrderClause(raw=sql))
        return self

    def latest(self, column: str = "created_at") -> Query:
        return self.order_by_desc(column)

    def oldest(self, column: str = "created_at") -> Query:
        return self.order_by_asc(column)

    # ------------------------------------------------------------------
    # LIMIT / OFFSET
    # ------------------------------------------------------------------

    def limit(self, n: int) -> Query:
        """Set LIMIT.  A negative or non-integer value becomes the sticky error."""
        if not _is_count(n):
            return self._fail(CompilationError(f"Invalid limit: {n!r}", clause="LIMIT"))
        self._limit = n
        return self

    def offset(self, n: int) -> Query:
        if not _is_count(n):
            return self._fail(CompilationError(f"Invalid offset: {n!r}", clause="OFFSET"))
        self._offset = n
        return self

    def take(self, n: int) -> Query:
        return self.limit(n)

    def skip(self, n: int) -> Query:
        return self.offset(n)

    def for_page(self, page: int, per_page: int) -> Query:
        """Set LIMIT/OFFSET for a 1-based page; pages below 1 mean page 1."""
        page = max(page, 1)
        return self.limit(per_page).offset((page - 1) * per_page)

    # ------------------------------------------------------------------
    # Chain control
    # ------------------------------------------------------------------

    def when(
        self,
        condition: Any,
        fn: Callable[[Query], Any],
        default: Callable[[Query], Any] | None = None,
    ) -> Query:
        """Apply ``fn`` when ``condition`` is truthy, else ``default`` if given."""
        if condition:
            fn(self)
        elif default is not None:
            default(self)
        return self

    def unless(self, condition: Any, fn: Callable[[Query], Any]) -> Query:
        return self.when(not condition, fn)

    def clone(self) -> Query:
        """Return an independent copy; grammar, executor and scanner are shared."""
        copy = Query(self._grammar, self._executor, self._scanner)
        copy._table = self._table
        copy._table_alias = self._table_alias
        copy._columns = list(self._columns)
        copy._distinct = self._distinct
        copy._wheres = [w.model_copy(deep=True) for w in self._wheres]
        copy._joins = [j.model_copy(deep=True) for j in self._joins]
        copy._groups = list(self._groups)
        copy._havings = [h.model_copy(deep=True) for h in self._havings]
        copy._orders = [o.model_copy(deep=True) for o in self._orders]
        copy._limit = self._limit
        copy._offset = self._offset
        copy._error = self._error
        return copy

    def reset(self) -> Query:
        """Clear every clause and the sticky error; keep grammar and executor."""
        self._reset_state()
        return self

    def _fail(self, error: FluentSQLError) -> Query:
        if self._error is None:
            self._error = error
        return self

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def table_name(self) -> str:
        return self._table

    @property
    def table_alias(self) -> str:
        return self._table_alias

    @property
    def table_reference(self) -> str:
        """The table as the grammar should render it (``"users u"`` with an alias)."""
        if self._table_alias:
            return f"{self._table} {self._table_alias}"
        return self._table

    @property
    def columns(self) -> tuple[str | RawExpression, ...]:
        return tuple(self._columns)

    @property
    def is_distinct(self) -> bool:
        return self._distinct

    @property
    def wheres(self) -> tuple[WhereClause, ...]:
        return tuple(self._wheres)

    @property
    def joins(self) -> tuple[JoinClause, ...]:
        return tuple(self._joins)

    @property
    def groups(self) -> tuple[str, ...]:
        return tuple(self._groups)

    @property
    def havings(self) -> tuple[WhereClause, ...]:
        return tuple(self._havings)

    @property
    def orders(self) -> tuple[OrderClause, ...]:
        return tuple(self._orders)

    @property
    def limit_value(self) -> int | None:
        return self._limit

    @property
    def offset_value(self) -> int | None:
        return self._offset

    @property
    def error(self) -> FluentSQLError | None:
        """The first chain-level error, if any."""
        return self._error

    @property
    def grammar(self) -> Grammar:
        return self._grammar

    @property
    def executor(self) -> Executor | None:
        return self._executor

    # ------------------------------------------------------------------
    # Compilation shortcuts
    # ------------------------------------------------------------------

    def to_sql(self) -> CompiledSQL:
        return self.to_select_sql()

    def to_select_sql(self) -> CompiledSQL:
        return self._grammar.compile_select(self)

    def to_insert_sql(self, data: Mapping[str, Any]) -> CompiledSQL:
        return self._grammar.compile_insert(self, data)

    def to_insert_batch_sql(self, rows: Sequence[Mapping[str, Any]]) -> CompiledSQL:
        return self._grammar.compile_insert_batch(self, rows)

    def to_update_sql(self, data: Mapping[str, Any]) -> CompiledSQL:
        return self._grammar.compile_update(self, data)

    def to_delete_sql(self) -> CompiledSQL:
        return self._grammar.compile_delete(self)

    def to_exists_sql(self) -> CompiledSQL:
        return self._grammar.compile_exists(self)

    def to_count_sql(self, column: str = "") -> CompiledSQL:
        return self._grammar.compile_count(self, column)

    def to_aggregate_sql(self, fn: str, column: str) -> CompiledSQL:
        return self._grammar.compile_aggregate(self, fn, column)

    def to_truncate_sql(self) -> str:
        return self._grammar.compile_truncate(self)

    def to_upsert_sql(
        self,
        data: Mapping[str, Any],
        update_columns: Sequence[str] | None = None,
        conflict_columns: Sequence[str] | None = None,
    ) -> CompiledSQL:
        return self._grammar.compile_upsert(self, data, update_columns, conflict_columns)

    # ------------------------------------------------------------------
    # Execution helpers
    # ------------------------------------------------------------------

    def _require_executor(self) -> Executor:
        if self._executor is None:
            raise NoExecutorError()
        return self._executor

    def _get_scanner(self) -> DefaultScanner:
        return self._scanner or self._require_executor().scanner

    def _fetch(self, operation: str, compiled: CompiledSQL) -> Rows:
        return self._require_executor().fetch_all(
            compiled.sql, compiled.args, operation=operation, table=self._table
        )

    def _execute(self, operation: str, compiled: CompiledSQL | str) -> QueryResult:
        if isinstance(compiled, str):
            compiled = CompiledSQL(compiled, [], self._grammar.dialect_name)
        return self._require_executor().execute(
            compiled.sql, compiled.args, operation=operation, table=self._table
        )

    def get(self, model: type | None = None) -> list[Any]:
        """Run the SELECT and scan every row into ``model`` (dicts when None)."""
        self._require_executor()
        rows = self._fetch("select", self.to_select_sql())
        return self._get_scanner().scan_rows(rows, model)

    def first(self, model: type | None = None) -> Any:
        """Return the first row; the caller's query is left untouched.

        Raises:
            NoRowsError: If the query matches nothing.
        """
        self._require_executor()
        rows = self._fetch("select", self.clone().limit(1).to_select_sql())
        return self._get_scanner().scan_row(rows, model)

    def value(self, column: str) -> Any:
        """Return ``column`` of the first row, or None when nothing matches."""
        self._require_executor()
        rows = self._fetch("select", self.clone().select(column).limit(1).to_select_sql())
        try:
            return self._get_scanner().scan_value(rows)
        except NoRowsError:
            return None

    def pluck(self, column: str) -> list[Any]:
        self._require_executor()
        rows = self._fetch("select", self.clone().select(column).to_select_sql())
        return self._get_scanner().scan_column(rows)

    def insert(self, data: Mapping[str, Any]) -> QueryResult:
        self._require_executor()
        return self._execute("insert", self.to_insert_sql(data))

    def insert_batch(self, rows: Sequence[Mapping[str, Any]]) -> QueryResult:
        self._require_executor()
        return self._execute("insert_batch", self.to_insert_batch_sql(rows))

    def insert_get_id(self, data: Mapping[str, Any], column: str = "id") -> Any:
        """Insert ``data`` and return the new row's ``column``.

        Uses RETURNING where the grammar supports it, otherwise the driver's
        last-insert-id.
        """
        self._require_executor()
        if self._grammar.supports_returning:
            compiled = self._grammar.compile_insert_returning(self, data, column)
            return self._get_scanner().scan_value(self._fetch("insert", compiled))
        return self.insert(data).last_insert_id()

    def update(self, data: Mapping[str, Any]) -> QueryResult:
        self._require_executor()
        return self._execute("update", self.to_update_sql(data))

    def delete(self) -> QueryResult:
        self._require_executor()
        return self._execute("delete", self.to_delete_sql())

    def upsert(
        self,
        data: Mapping[str, Any],
        update_columns: Sequence[str] | None = None,
        conflict_columns: Sequence[str] | None = None,
    ) -> QueryResult:
        self._require_executor()
        return self._execute("upsert", self.to_upsert_sql(data, update_columns, conflict_columns))

    def truncate(self) -> QueryResult:
        self._require_executor()
        return self._execute("truncate", self.to_truncate_sql())

    def count(self, column: str = "") -> int:
        value = self._aggregate("count", lambda: self.to_count_sql(column))
        return int(value or 0)

    def exists(self) -> bool:
        return bool(self._aggregate("exists", self.to_exists_sql))

    def doesnt_exist(self) -> bool:
        return not self.exists()

    def sum(self, column: str) -> Any:
        return self._aggregate("sum", lambda: self.to_aggregate_sql("SUM", column))

    def avg(self, column: str) -> Any:
        return self._aggregate("avg", lambda: self.to_aggregate_sql("AVG", column))

    def min(self, column: str) -> Any:
        return self._aggregate("min", lambda: self.to_aggregate_sql("MIN", column))

    def max(self, column: str) -> Any:
        return self._aggregate("max", lambda: self.to_aggregate_sql("MAX", column))

    def _aggregate(self, operation: str, compile_fn: Callable[[], CompiledSQL]) -> Any:
        self._require_executor()
        return self._get_scanner().scan_value(self._fetch(operation, compile_fn()))

    def paginate(
        self, page: int = 1, per_page: int = 15, model: type | None = None
    ) -> tuple[list[Any], Pagination]:
        """Run a count and one page of the SELECT.

        Returns:
            ``(items, pagination)``.
        """
        total = self.clone().count()
        pagination = Pagination.create(page, per_page, total)
        items = self.clone().for_page(pagination.page, pagination.per_page).get(model)
        return items, pagination


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _operator_and_value(operator: Any, value: Any) -> tuple[str, Any]:
    if value is _MISSING:
        if operator is _MISSING:
            raise TypeError("where() requires a value")
        return "=", operator
    return operator, value


def _is_count(n: Any) -> bool:
    return isinstance(n, int) and not isinstance(n, bool) and n >= 0
