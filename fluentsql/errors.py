"""Custom exception hierarchy for fluentsql.

All public errors inherit from FluentSQLError so callers can catch the base
class for any fluentsql-specific failure.

Compilation is all-or-nothing: every compile method either returns a complete
:class:`~fluentsql.compile.base.CompiledSQL` or raises one of the errors
below.  Offending identifiers and operators are carried on the exception and
are never echoed into generated SQL.
"""
from __future__ import annotations

from typing import Any


class FluentSQLError(Exception):
    """Base exception for all fluentsql errors."""


# ---------------------------------------------------------------------------
# Structural errors: the query is missing information for the statement kind
# ---------------------------------------------------------------------------


class StructuralError(FluentSQLError):
    """Raised when a query lacks what the requested statement needs.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (e.g. NO_TABLE).
    """

    code = "STRUCTURAL"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class NoTableError(StructuralError):
    """Raised when a statement is compiled without a table."""

    code = "NO_TABLE"

    def __init__(self) -> None:
        super().__init__("fluentsql: no table specified")


class NoColumnsError(StructuralError):
    """Raised when an insert/update has no data or an aggregate no column."""

    code = "NO_COLUMNS"

    def __init__(self, message: str = "fluentsql: no columns specified") -> None:
        super().__init__(message)


class EmptyBatchError(StructuralError):
    """Raised when a batch insert receives no rows."""

    code = "EMPTY_BATCH"

    def __init__(self) -> None:
        super().__init__("fluentsql: batch insert requires at least one row")


class InconsistentBatchError(StructuralError):
    """Raised when batch rows do not share the first row's column set.

    Args:
        row_index: Position of the first offending row.
    """

    code = "INCONSISTENT_BATCH"

    def __init__(self, row_index: int) -> None:
        super().__init__(
            f"fluentsql: batch row {row_index} does not match the columns of the first row"
        )
        self.row_index = row_index


class EmptyWhereInError(StructuralError):
    """Raised when an IN / NOT IN predicate has no values."""

    code = "EMPTY_WHERE_IN"

    def __init__(self, column: str) -> None:
        super().__init__("fluentsql: empty value list passed to WHERE IN")
        self.column = column


class InvalidBetweenError(StructuralError):
    """Raised when a BETWEEN predicate does not receive exactly two values."""

    code = "INVALID_BETWEEN"

    def __init__(self, count: int) -> None:
        super().__init__(f"fluentsql: BETWEEN requires exactly 2 values, got {count}")
        self.count = count


class MissingConflictTargetError(StructuralError):
    """Raised when a dialect needs ON CONFLICT columns and none were given."""

    code = "MISSING_CONFLICT_TARGET"

    def __init__(self, dialect: str) -> None:
        super().__init__(
            f"fluentsql: upsert on '{dialect}' requires conflict_columns"
        )
        self.dialect = dialect


# ---------------------------------------------------------------------------
# Validation errors: an identifier, operator or function failed the allowlist
# ---------------------------------------------------------------------------


class ValidationError(FluentSQLError):
    """Raised when user input fails a whitelist check.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (e.g. INVALID_IDENTIFIER).
        details: Extra diagnostic context.
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details: dict[str, Any] = details or {}

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured error response for diagnostics."""
        return {
            "error": self.code,
            "message": str(self),
            "details": self.details,
        }


class InvalidIdentifierError(ValidationError):
    """Raised when a table, column, alias or savepoint name is rejected."""

    def __init__(self, identifier: str, reason: str) -> None:
        if identifier:
            message = f"fluentsql: invalid identifier {identifier!r}: {reason}"
        else:
            message = f"fluentsql: invalid identifier: {reason}"
        super().__init__(
            message,
            code="INVALID_IDENTIFIER",
            details={"identifier": identifier, "reason": reason},
        )
        self.identifier = identifier
        self.reason = reason


class InvalidOperatorError(ValidationError):
    """Raised when a comparison operator is not in the allowlist."""

    def __init__(self, operator: str, reason: str = "operator not in allowed list") -> None:
        super().__init__(
            f"fluentsql: invalid operator {operator!r}: {reason}",
            code="INVALID_OPERATOR",
            details={"operator": operator, "reason": reason},
        )
        self.operator = operator
        self.reason = reason


class InvalidFunctionError(ValidationError):
    """Raised when an aggregate function name is not in the allowlist."""

    def __init__(self, function: str, allowed: list[str]) -> None:
        super().__init__(
            f"fluentsql: invalid aggregate function {function!r}",
            code="INVALID_FUNCTION",
            details={"function": function, "allowed_functions": allowed},
        )
        self.function = function


# ---------------------------------------------------------------------------
# Compilation / execution / transaction errors
# ---------------------------------------------------------------------------


class CompilationError(FluentSQLError):
    """Raised when SQL compilation fails for a reason other than the above.

    Args:
        message: Human-readable description.
        clause: The clause being compiled when the error occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause


class QueryError(FluentSQLError):
    """Wraps a driver failure with the attempted operation and table.

    Bound parameter values are deliberately not part of the error.

    Args:
        operation: Operation name (``"select"``, ``"insert"``, ...).
        table: Table the statement targeted (may be empty).
        cause: The underlying driver exception.
        sql: The SQL text that was sent to the driver.
    """

    def __init__(
        self,
        operation: str,
        table: str,
        cause: BaseException,
        sql: str | None = None,
    ) -> None:
        target = f" on '{table}'" if table else ""
        super().__init__(f"fluentsql: {operation}{target} failed: {cause}")
        self.operation = operation
        self.table = table
        self.cause = cause
        self.sql = sql


class NoRowsError(FluentSQLError):
    """Raised when a single-row read finds no row."""

    def __init__(self) -> None:
        super().__init__("fluentsql: no rows in result set")


class ResultUnavailableError(FluentSQLError):
    """Raised when the driver cannot report last-insert-id or rows-affected."""


class NoExecutorError(FluentSQLError):
    """Raised when an execution helper runs on a query without an executor."""

    def __init__(self) -> None:
        super().__init__("fluentsql: query has no executor; compile it with to_sql() instead")


class TransactionClosedError(FluentSQLError):
    """Raised when a closed transaction handle is used."""

    def __init__(self) -> None:
        super().__init__("fluentsql: transaction already closed")


class TransactionActiveError(FluentSQLError):
    """Raised when begin() is called while a transaction is still open."""

    def __init__(self) -> None:
        super().__init__("fluentsql: a transaction is already active on this connection")


class ScanError(FluentSQLError):
    """Raised when rows cannot be mapped onto the requested record type."""
