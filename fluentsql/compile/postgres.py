"""PostgreSQL dialect grammar."""

from __future__ import annotations

from collections.abc import Sequence

from fluentsql.compile.base import Grammar
from fluentsql.schema.clauses import WhereType

_NULL_SAFE_EQ = "IS NOT DISTINCT FROM"


class PostgresGrammar(Grammar):
    """Compiles queries to PostgreSQL-flavoured parameterized SQL.

    Parameter style: ``$1, $2, ...`` by default, numbered across the whole
    statement.  Use ``paramstyle="format"`` for ``psycopg2`` / ``psycopg``,
    which expect ``%s``.
    """

    default_paramstyle = "numeric_dollar"
    requires_conflict_target = True

    @property
    def dialect_name(self) -> str:
        return "postgres"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace('"', '""')
        return f'"{escaped}"'

    def render_operator(self, operator: str) -> str:
        if operator == "<=>":
            return _NULL_SAFE_EQ
        return operator

    def date_function(self, kind: WhereType, column_sql: str) -> str:
        if kind == WhereType.DATE:
            return f"CAST({column_sql} AS DATE)"
        return f"EXTRACT({kind.name} FROM {column_sql})"

    def upsert_clause(
        self,
        update_columns: Sequence[str],
        conflict_columns: Sequence[str],
    ) -> str:
        target = ", ".join(conflict_columns)
        assignments = ", ".join(f"{c} = EXCLUDED.{c}" for c in update_columns)
        return f"ON CONFLICT ({target}) DO UPDATE SET {assignments}"

    @property
    def supports_returning(self) -> bool:
        return True
