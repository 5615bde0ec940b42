"""Grammar abstractions: CompiledSQL and the Grammar ABC.

The Template Method pattern (GoF) is used:
- ``StatementBuilder`` (builder.py) defines the algorithm skeleton for every
  statement kind.
- ``Grammar`` subclasses override the dialect-specific steps: identifier
  quoting, placeholder style, operator rendering, date functions, upsert,
  TRUNCATE and LIMIT/OFFSET syntax.

Grammars hold no per-compilation state, so one instance may compile many
queries concurrently.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from fluentsql.errors import CompilationError
from fluentsql.schema.clauses import WhereType
from fluentsql.schema.column_reference import ColumnReference
from fluentsql.validate.identifier import validate_table_with_alias

if TYPE_CHECKING:
    from fluentsql.compile.builder import StatementBuilder
    from fluentsql.query import Query

#: PEP 249 paramstyles a grammar can emit.
PARAMSTYLES: frozenset[str] = frozenset({"qmark", "format", "numeric_dollar"})


@dataclass
class CompiledSQL:
    """The output of a successful compilation.

    Attributes:
        sql: The compiled SQL string with positional placeholders.
        args: Values for the placeholders, in placeholder order.
        dialect: The grammar that produced the statement.
    """

    sql: str
    args: list[Any] = field(default_factory=list)
    dialect: str = ""

    def __iter__(self) -> Iterator[Any]:
        # Allows ``sql, args = grammar.compile_select(query)``.
        yield self.sql
        yield self.args

    @property
    def placeholder_count(self) -> int:
        """Number of bound arguments the statement expects."""
        return len(self.args)


class Grammar(ABC):
    """Abstract base for dialect-specific grammars.

    Args:
        paramstyle: Placeholder style (``"qmark"``, ``"format"`` or
            ``"numeric_dollar"``).  Defaults to the dialect's native style.

    Raises:
        CompilationError: If ``paramstyle`` is not supported.
    """

    default_paramstyle: str = "qmark"
    requires_conflict_target: bool = False

    def __init__(self, paramstyle: str | None = None) -> None:
        style = paramstyle or self.default_paramstyle
        if style not in PARAMSTYLES:
            raise CompilationError(
                f"Unsupported paramstyle '{style}'. Supported: {sorted(PARAMSTYLES)}."
            )
        self.paramstyle = style

    def __repr__(self) -> str:
        return f"{type(self).__name__}(paramstyle={self.paramstyle!r})"

    # ------------------------------------------------------------------
    # Dialect hooks
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name (``'mysql'``, ``'postgres'``...)."""

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Return a quoted single-part identifier.

        Args:
            name: An already validated identifier part (no dots).
        """

    @abstractmethod
    def date_function(self, kind: WhereType, column_sql: str) -> str:
        """Return the SQL extracting a date part from ``column_sql``.

        Args:
            kind: One of DATE / YEAR / MONTH / DAY.
            column_sql: The wrapped column.
        """

    @abstractmethod
    def upsert_clause(
        self,
        update_columns: Sequence[str],
        conflict_columns: Sequence[str],
    ) -> str:
        """Return the conflict clause appended to an INSERT.

        Args:
            update_columns: Wrapped column names to overwrite, in order.
            conflict_columns: Wrapped conflict-target columns (empty for
                dialects that do not need one).
        """

    def placeholder(self, index: int) -> str:
        """Return the placeholder for the ``index``-th argument (0-based)."""
        if self.paramstyle == "numeric_dollar":
            return f"${index + 1}"
        if self.paramstyle == "format":
            return "%s"
        return "?"

    def render_operator(self, operator: str) -> str:
        """Return the SQL for a normalized, allowlisted operator."""
        return operator

    def truncate_statement(self, table_sql: str) -> str:
        return f"TRUNCATE TABLE {table_sql}"

    def limit_offset(self, limit: int | None, offset: int | None) -> list[str]:
        """Return the LIMIT / OFFSET fragments, in output order."""
        parts: list[str] = []
        if limit is not None:
            parts.append(f"LIMIT {limit}")
        if offset is not None:
            parts.append(f"OFFSET {offset}")
        return parts

    @property
    def supports_returning(self) -> bool:
        return False

    # ------------------------------------------------------------------
    # Identifier wrapping
    # ------------------------------------------------------------------

    def wrap(self, identifier: str) -> str:
        """Validate and quote ``column`` or ``table.column``.

        ``"*"`` is returned unchanged.

        Raises:
            InvalidIdentifierError: If the identifier is not safe.
        """
        if identifier == "*":
            return "*"
        ref = ColumnReference.parse(identifier)
        return ".".join(self.quote_identifier(part) for part in ref.parts())

    def wrap_table(self, table: str) -> str:
        """Validate and quote ``table``, ``table alias`` or ``table AS alias``."""
        name, alias = validate_table_with_alias(table)
        wrapped = self.wrap(name)
        if alias:
            wrapped += f" AS {self.quote_identifier(alias)}"
        return wrapped

    def wrap_value(self, value: str) -> str:
        """Wrap a column used as a value reference (e.g. the right side of ON)."""
        return self.wrap(value)

    # ------------------------------------------------------------------
    # Statement compilation
    # ------------------------------------------------------------------

    def _statements(self) -> StatementBuilder:
        from fluentsql.compile.builder import StatementBuilder

        return StatementBuilder(self)

    def compile_select(self, query: Query) -> CompiledSQL:
        return self._statements().select(query)

    def compile_insert(self, query: Query, data: Mapping[str, Any]) -> CompiledSQL:
        return self._statements().insert(query, data)

    def compile_insert_batch(
        self, query: Query, rows: Sequence[Mapping[str, Any]]
    ) -> CompiledSQL:
        return self._statements().insert_batch(query, rows)

    def compile_insert_returning(
        self, query: Query, data: Mapping[str, Any], column: str = "id"
    ) -> CompiledSQL:
        """Compile an INSERT that returns ``column`` of the new row.

        Raises:
            CompilationError: If the dialect has no RETURNING clause.
        """
        return self._statements().insert_returning(query, data, column)

    def compile_update(self, query: Query, data: Mapping[str, Any]) -> CompiledSQL:
        return self._statements().update(query, data)

    def compile_delete(self, query: Query) -> CompiledSQL:
        return self._statements().delete(query)

    def compile_exists(self, query: Query) -> CompiledSQL:
        return self._statements().exists(query)

    def compile_count(self, query: Query, column: str = "") -> CompiledSQL:
        return self._statements().count(query, column)

    def compile_aggregate(self, query: Query, fn: str, column: str) -> CompiledSQL:
        return self._statements().aggregate(query, fn, column)

    def compile_truncate(self, query: Query) -> str:
        """Compile TRUNCATE; returns SQL text only (no arguments are possible)."""
        return self._statements().truncate(query)

    def compile_upsert(
        self,
        query: Query,
        data: Mapping[str, Any],
        update_columns: Sequence[str] | None = None,
        conflict_columns: Sequence[str] | None = None,
    ) -> CompiledSQL:
        return self._statements().upsert(
            query, data, update_columns or [], conflict_columns or []
        )
