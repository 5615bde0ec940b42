"""MySQL / MariaDB dialect grammar."""

from __future__ import annotations

from collections.abc import Sequence

from fluentsql.compile.base import Grammar
from fluentsql.schema.clauses import WhereType


class MySQLGrammar(Grammar):
    """Compiles queries to MySQL-flavoured parameterized SQL.

    Parameter style: ``?`` by default.  Use ``paramstyle="format"`` for
    ``PyMySQL`` / ``mysqlclient``, which expect ``%s``.

    Identifiers are quoted with backticks (`` ` ``) rather than double-quotes.
    """

    @property
    def dialect_name(self) -> str:
        return "mysql"

    def quote_identifier(self, name: str) -> str:
        escaped = name.replace("`", "``")
        return f"`{escaped}`"

    def date_function(self, kind: WhereType, column_sql: str) -> str:
        return f"{kind.name}({column_sql})"

    def upsert_clause(
        self,
        update_columns: Sequence[str],
        conflict_columns: Sequence[str],
    ) -> str:
        # MySQL resolves the conflict from the table's unique keys.
        assignments = ", ".join(f"{c} = VALUES({c})" for c in update_columns)
        return f"ON DUPLICATE KEY UPDATE {assignments}"
