"""Transaction handle.

A :class:`Transaction` shares its database's connection, grammar and
scanner.  It closes exactly once: ``commit`` succeeds at most once and
raises :class:`~fluentsql.errors.TransactionClosedError` afterwards, while
``rollback`` on a closed handle is a no-op.  Savepoints allow a partial
rollback without ending the transaction.

Usage::

    with db.begin() as tx:
        tx.table("accounts").where("id", 1).update({"balance": 90})
        tx.savepoint("before_fee")
        ...
"""
from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from fluentsql.errors import InvalidIdentifierError, QueryError, TransactionClosedError
from fluentsql.executor import Executor
from fluentsql.validate.identifier import validate_identifier

if TYPE_CHECKING:
    from fluentsql.executor import Database


class Transaction(Executor):
    """One logical transaction on a :class:`~fluentsql.executor.Database`.

    Usable as a context manager: commits on a clean exit, rolls back when
    the block raises.
    """

    def __init__(self, database: Database) -> None:
        super().__init__(
            database.grammar,
            database.scanner,
            table_prefix=database.table_prefix,
            debug=database.debug,
            logger=database.logger,
        )
        self._database = database
        self._lock = threading.Lock()
        self._closed = False

    def __repr__(self) -> str:
        return f"Transaction(closed={self._closed})"

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def _connection(self) -> Any:
        if self.closed:
            raise TransactionClosedError()
        return self._database.connection

    # ------------------------------------------------------------------
    # Commit / rollback
    # ------------------------------------------------------------------

    def commit(self) -> None:
        """Commit the transaction.

        Raises:
            TransactionClosedError: If the transaction was already closed.
            QueryError: If the driver rejects the commit.
        """
        with self._lock:
            if self._closed:
                raise TransactionClosedError()
            self._closed = True
        self._database._release(self)
        try:
            self._database.connection.commit()
        except Exception as exc:
            raise QueryError("commit", "", exc) from exc
        self.logger.debug("fluentsql: transaction committed")

    def rollback(self) -> None:
        """Roll back the transaction; does nothing if it is already closed."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._database._release(self)
        try:
            self._database.connection.rollback()
        except Exception as exc:
            raise QueryError("rollback", "", exc) from exc
        self.logger.debug("fluentsql: transaction rolled back")

    # ------------------------------------------------------------------
    # Savepoints
    # ------------------------------------------------------------------

    def savepoint(self, name: str) -> None:
        self.execute(f"SAVEPOINT {self._savepoint_name(name)}", operation="savepoint")

    def rollback_to(self, name: str) -> None:
        """Undo everything after savepoint ``name``; the transaction stays open."""
        self.execute(
            f"ROLLBACK TO SAVEPOINT {self._savepoint_name(name)}", operation="rollback_to"
        )

    def release_savepoint(self, name: str) -> None:
        self.execute(
            f"RELEASE SAVEPOINT {self._savepoint_name(name)}", operation="release_savepoint"
        )

    def _savepoint_name(self, name: str) -> str:
        validate_identifier(name)
        if "." in name:
            raise InvalidIdentifierError(name, "savepoint name cannot contain a dot")
        return self.grammar.quote_identifier(name)

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is not None:
            self.rollback()
        elif not self.closed:
            self.commit()
