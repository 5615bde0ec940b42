"""SQLite dialect grammar."""
from __future__ import annotations

from collections.abc import Sequence

from fluentsql.compile.base import Grammar
from fluentsql.schema.clauses import WhereType

_STRFTIME_FORMATS = {
    WhereType.YEAR: "%Y",
    WhereType.MONTH: "%m",
    WhereType.DAY: "%d",
}


class SQLiteGrammar(Grammar):
    """Compiles queries to SQLite-flavoured parameterized SQL.

    Parameter style: ``?`` - compatible with Python's built-in ``sqlite3``
    positional execution (``cursor.execute(sql, args)``).

    Note: SQLite has no TRUNCATE; it is mapped to an unrestricted DELETE.
    Date parts are extracted with ``STRFTIME`` and cast to integers so they
    compare equal to Python ints.
    """

    requires_conflict_target = True

    @property
    def dialect_name(self) -> str:
        return "sqlite"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace('"', '""')
        return f'"{escaped}"'

    def render_operator(self, operator: str) -> str:
        if operator == "<=>":
            return "IS"  # SQLite's IS is null-safe equality
        return operator

    def date_function(self, kind: WhereType, column_sql: str) -> str:
        if kind == WhereType.DATE:
            return f"DATE({column_sql})"
        return f"CAST(STRFTIME('{_STRFTIME_FORMATS[kind]}', {column_sql}) AS INTEGER)"

    def upsert_clause(
        self,
        update_columns: Sequence[str],
        conflict_columns: Sequence[str],
    ) -> str:
        target = ", ".join(conflict_columns)
        assignments = ", ".join(f"{c} = excluded.{c}" for c in update_columns)
        return f"ON CONFLICT ({target}) DO UPDATE SET {assignments}"

    def truncate_statement(self, table_sql: str) -> str:
        return f"DELETE FROM {table_sql}"

    def limit_offset(self, limit: int | None, offset: int | None) -> list[str]:
        # SQLite only accepts OFFSET after a LIMIT; -1 means "no limit".
        if offset is not None and limit is None:
            return [f"LIMIT -1 OFFSET {offset}"]
        return super().limit_offset(limit, offset)

    @property
    def supports_returning(self) -> bool:
        return True
