"""Execution adapter: runs compiled SQL on a DB-API 2.0 connection.

:class:`Database` wraps one connection.  It can be built from any PEP 249
connection (``sqlite3``, ``psycopg``, ``PyMySQL``...) or borrowed from a
SQLAlchemy :class:`~sqlalchemy.engine.Engine`, which then owns pooling::

    pip install "fluentsql[sqlalchemy]"

Driver failures are wrapped in :class:`~fluentsql.errors.QueryError` with
the operation name and table.  Bound values never reach log records or
error messages.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from fluentsql.compile.base import Grammar
from fluentsql.compile.registry import GrammarFactory
from fluentsql.errors import QueryError, ResultUnavailableError, TransactionActiveError
from fluentsql.query import Query
from fluentsql.scanner import DefaultScanner

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from fluentsql.settings import ConnectionSettings
    from fluentsql.transaction import Transaction

T = TypeVar("T")

#: PEP 249 paramstyle → grammar paramstyle.
_PARAMSTYLE_MAP: dict[str, str] = {
    "qmark": "qmark",
    "format": "format",
    "pyformat": "format",
    "numeric_dollar": "numeric_dollar",
}


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class Rows:
    """Materialised result rows.

    Attributes:
        columns: Result column names, in cursor order.
        records: One tuple per row.
    """

    columns: list[str] = field(default_factory=list)
    records: list[tuple[Any, ...]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[tuple[Any, ...]]:
        return iter(self.records)

    def as_dicts(self) -> list[dict[str, Any]]:
        return [dict(zip(self.columns, record)) for record in self.records]


class QueryResult:
    """Outcome of an effectful statement.

    Args:
        rowcount: The cursor's ``rowcount`` (``-1`` when unknown).
        lastrowid: The cursor's ``lastrowid`` (``None`` when unknown).
    """

    def __init__(self, rowcount: int | None, lastrowid: Any = None) -> None:
        self._rowcount = rowcount
        self._lastrowid = lastrowid

    def __repr__(self) -> str:
        return f"QueryResult(rowcount={self._rowcount!r}, lastrowid={self._lastrowid!r})"

    def last_insert_id(self) -> Any:
        """Return the id generated by the last INSERT.

        Raises:
            ResultUnavailableError: If the driver did not report one.
        """
        if self._lastrowid is None:
            raise ResultUnavailableError("fluentsql: driver did not report a last insert id")
        return self._lastrowid

    def rows_affected(self) -> int:
        """Return the number of rows the statement changed.

        Raises:
            ResultUnavailableError: If the driver did not report a row count.
        """
        if self._rowcount is None or self._rowcount < 0:
            raise ResultUnavailableError("fluentsql: driver did not report rows affected")
        return self._rowcount


# ---------------------------------------------------------------------------
# Shared executor
# ---------------------------------------------------------------------------


class Executor:
    """Runs statements for :class:`Database` and :class:`Transaction`.

    Subclasses supply the live connection and decide what happens after a
    statement (autocommit for a database, nothing inside a transaction).
    """

    def __init__(
        self,
        grammar: Grammar,
        scanner: DefaultScanner,
        *,
        table_prefix: str = "",
        debug: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self.grammar = grammar
        self.scanner = scanner
        self.table_prefix = table_prefix
        self.debug = debug
        self.logger = logger or logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Query entry points
    # ------------------------------------------------------------------

    def table(self, name: str) -> Query:
        """Start a query on ``name`` (the table prefix is applied)."""
        return self.query().table(f"{self.table_prefix}{name}")

    def query(self) -> Query:
        return Query(self.grammar, self, self.scanner)

    # ------------------------------------------------------------------
    # Statement execution
    # ------------------------------------------------------------------

    def execute(
        self,
        sql: str,
        args: Sequence[Any] = (),
        *,
        operation: str = "exec",
        table: str = "",
    ) -> QueryResult:
        """Run an effectful statement."""
        return self._run(sql, args, operation, table, fetch=None)

    def fetch_all(
        self,
        sql: str,
        args: Sequence[Any] = (),
        *,
        operation: str = "select",
        table: str = "",
    ) -> Rows:
        """Run a row-returning statement and read every row."""
        return self._run(sql, args, operation, table, fetch="all")

    def fetch_one(
        self,
        sql: str,
        args: Sequence[Any] = (),
        *,
        operation: str = "select",
        table: str = "",
    ) -> Rows:
        """Run a row-returning statement and read at most one row."""
        return self._run(sql, args, operation, table, fetch="one")

    def _run(
        self,
        sql: str,
        args: Sequence[Any],
        operation: str,
        table: str,
        fetch: str | None,
    ) -> Any:
        connection = self._connection()
        started = time.perf_counter()
        cursor = connection.cursor()
        try:
            cursor.execute(sql, list(args))
            if fetch is None:
                result: Any = QueryResult(cursor.rowcount, getattr(cursor, "lastrowid", None))
            else:
                columns = [d[0] for d in cursor.description or ()]
                if fetch == "one":
                    record = cursor.fetchone()
                    records = [tuple(record)] if record is not None else []
                else:
                    records = [tuple(r) for r in cursor.fetchall()]
                result = Rows(columns=columns, records=records)
        except Exception as exc:
            self.logger.debug("fluentsql: %s on %r failed: %s", operation, table, exc)
            self._after_error()
            raise QueryError(operation, table, exc, sql) from exc
        finally:
            cursor.close()
        self._after_statement()
        if self.debug:
            elapsed_ms = (time.perf_counter() - started) * 1000
            self.logger.debug("fluentsql: [%s] %s (%.2f ms)", operation, sql, elapsed_ms)
        return result

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _connection(self) -> Any:
        raise NotImplementedError

    def _after_statement(self) -> None:
        """Called after a successful statement."""

    def _after_error(self) -> None:
        """Called after a driver failure, before it is re-raised."""


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


class Database(Executor):
    """A DB-API 2.0 connection with a grammar and a row scanner.

    Statements run outside a transaction are committed immediately.

    Args:
        connection: Any PEP 249 connection.
        grammar: Dialect grammar; defaults to MySQL.
        scanner: Row scanner; defaults to :class:`DefaultScanner`.
        table_prefix: Prepended to every name passed to :meth:`table`.
        debug: Log every statement (SQL text and duration, never values).
        logger: Logger to use instead of the module logger.
    """

    def __init__(
        self,
        connection: Any,
        grammar: Grammar | None = None,
        scanner: DefaultScanner | None = None,
        *,
        table_prefix: str = "",
        debug: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(
            grammar or GrammarFactory.create("mysql"),
            scanner or DefaultScanner(),
            table_prefix=table_prefix,
            debug=debug,
            logger=logger,
        )
        self.connection = connection
        self._active: Transaction | None = None
        self._engine: Engine | None = None

    @classmethod
    def from_engine(cls, engine: Engine, **kwargs: Any) -> Database:
        """Borrow a pooled DB-API connection from a SQLAlchemy engine.

        The grammar and its paramstyle are picked from the engine's dialect
        unless ``grammar`` is passed.  :meth:`close` returns the connection
        to the pool.
        """
        if "grammar" not in kwargs:
            paramstyle = _PARAMSTYLE_MAP.get(engine.dialect.paramstyle)
            kwargs["grammar"] = GrammarFactory.create(engine.dialect.name, paramstyle)
        db = cls(engine.raw_connection(), **kwargs)
        db._engine = engine
        return db

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @property
    def in_transaction(self) -> bool:
        return self._active is not None

    def _connection(self) -> Any:
        return self.connection

    def _after_statement(self) -> None:
        if self._active is None:
            self.connection.commit()

    def _after_error(self) -> None:
        if self._active is None:
            self.connection.rollback()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def begin(self) -> Transaction:
        """Start a transaction on this connection.

        Raises:
            TransactionActiveError: If a transaction is already open.
        """
        from fluentsql.transaction import Transaction

        if self._active is not None:
            raise TransactionActiveError()
        self._active = Transaction(self)
        self.logger.debug("fluentsql: transaction started")
        return self._active

    def transaction(self, fn: Callable[[Transaction], T]) -> T:
        """Run ``fn`` in a transaction: commit on return, roll back on error."""
        tx = self.begin()
        try:
            result = fn(tx)
        except BaseException:
            tx.rollback()
            raise
        tx.commit()
        return result

    def _release(self, tx: Transaction) -> None:
        if self._active is tx:
            self._active = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Run ``SELECT 1``; raises :class:`QueryError` if the connection is unusable."""
        self.fetch_one("SELECT 1", operation="ping")
        return True

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def connect(target: str | ConnectionSettings, **engine_options: Any) -> Database:
    """Create a SQLAlchemy engine for ``target`` and wrap one of its connections.

    Args:
        target: A SQLAlchemy URL string or :class:`ConnectionSettings`.
        **engine_options: Extra ``create_engine`` keyword arguments.

    Raises:
        ImportError: If ``sqlalchemy`` is not installed.
    """
    try:
        from sqlalchemy import create_engine
    except ImportError as exc:
        raise ImportError(
            "SQLAlchemy is required for connect(). "
            'Install it with: pip install "fluentsql[sqlalchemy]"'
        ) from exc

    if isinstance(target, str):
        engine = create_engine(target, **engine_options)
        return Database.from_engine(engine)

    options = {**target.engine_options(), **engine_options}
    engine = create_engine(target.url(), **options)
    return Database.from_engine(engine, table_prefix=target.table_prefix, debug=target.debug)
