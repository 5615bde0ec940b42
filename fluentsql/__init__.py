"""fluentsql - a fluent, injection-safe SQL query builder.

Chain calls to describe a query, then compile it to SQL text plus a
positional argument list, or run it through a database connection.

Public API
----------
``table`` / ``new``
    Start a :class:`Query` with no connection (compile-only).

``raw``
    Mark a SELECT expression as raw SQL.

``Database`` / ``connect``
    Run queries on a DB-API 2.0 connection or a SQLAlchemy engine.

Re-exported types
-----------------
``Query``, ``CompiledSQL``, the grammars, ``Transaction``, ``QueryResult``,
``DefaultScanner``, ``Pagination``, ``ConnectionSettings`` and all error
classes.

Extensibility
-------------
New dialect grammars can be registered via::

    from fluentsql.compile.registry import GrammarFactory

    @GrammarFactory.register("oracle")
    class OracleGrammar(Grammar):
        ...
"""

from __future__ import annotations

from typing import Any

from fluentsql.compile.base import CompiledSQL, Grammar
from fluentsql.compile.mysql import MySQLGrammar
from fluentsql.compile.postgres import PostgresGrammar
from fluentsql.compile.registry import GrammarFactory
from fluentsql.compile.sqlite import SQLiteGrammar
from fluentsql.errors import (
    CompilationError,
    EmptyBatchError,
    EmptyWhereInError,
    FluentSQLError,
    InconsistentBatchError,
    InvalidBetweenError,
    InvalidFunctionError,
    InvalidIdentifierError,
    InvalidOperatorError,
    MissingConflictTargetError,
    NoColumnsError,
    NoExecutorError,
    NoRowsError,
    NoTableError,
    QueryError,
    ResultUnavailableError,
    ScanError,
    StructuralError,
    TransactionActiveError,
    TransactionClosedError,
    ValidationError,
)
from fluentsql.executor import Database, QueryResult, Rows, connect
from fluentsql.pagination import Pagination
from fluentsql.query import Query
from fluentsql.scanner import DefaultScanner
from fluentsql.schema.clauses import JoinType, OrderDirection, RawExpression, WhereType
from fluentsql.settings import ConnectionSettings
from fluentsql.transaction import Transaction

# ---------------------------------------------------------------------------
# Register built-in grammars with GrammarFactory
# ---------------------------------------------------------------------------

GrammarFactory.register_class("mysql", MySQLGrammar)
GrammarFactory.register_class("postgres", PostgresGrammar)
GrammarFactory.register_class("sqlite", SQLiteGrammar)


def new(grammar: Grammar | str | None = None) -> Query:
    """Return an empty compile-only :class:`Query`.

    Args:
        grammar: A grammar instance or registered dialect name; MySQL when None.
    """
    if isinstance(grammar, str):
        grammar = GrammarFactory.create(grammar)
    return Query(grammar)


def table(name: str, grammar: Grammar | str | None = None) -> Query:
    """Return a compile-only :class:`Query` on ``name``."""
    return new(grammar).table(name)


def raw(sql: str, *bindings: Any) -> RawExpression:
    """Mark ``sql`` as a raw SELECT expression (emitted without escaping)."""
    return RawExpression(sql=sql, bindings=tuple(bindings))


__all__ = [
    # Entry points
    "new",
    "table",
    "raw",
    "connect",
    # Query building
    "Query",
    "RawExpression",
    "JoinType",
    "OrderDirection",
    "WhereType",
    # Compilation
    "CompiledSQL",
    "Grammar",
    "GrammarFactory",
    "MySQLGrammar",
    "PostgresGrammar",
    "SQLiteGrammar",
    # Execution
    "Database",
    "Transaction",
    "QueryResult",
    "Rows",
    "DefaultScanner",
    "Pagination",
    "ConnectionSettings",
    # Errors
    "FluentSQLError",
    "StructuralError",
    "NoTableError",
    "NoColumnsError",
    "EmptyBatchError",
    "InconsistentBatchError",
    "EmptyWhereInError",
    "InvalidBetweenError",
    "MissingConflictTargetError",
    "ValidationError",
    "InvalidIdentifierError",
    "InvalidOperatorError",
    "InvalidFunctionError",
    "CompilationError",
    "QueryError",
    "NoRowsError",
    "ResultUnavailableError",
    "NoExecutorError",
    "TransactionClosedError",
    "TransactionActiveError",
    "ScanError",
]
