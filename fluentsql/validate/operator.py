"""Operator and aggregate-function validation.

Operators are normalised (trimmed, upper-cased) and then checked against a
fixed allowlist.  Nothing outside the list ever reaches SQL text: there is no
fallback to a default operator.
"""

from __future__ import annotations

from fluentsql.errors import InvalidFunctionError, InvalidOperatorError
from fluentsql.schema.expressions import (
    AGGREGATE_FUNCTIONS,
    ALLOWED_OPERATORS,
    COMPARISON_OPERATORS,
    NULL_OPERATORS,
    PATTERN_OPERATORS,
)


def _normalize(op: str) -> str:
    if not isinstance(op, str):
        return ""
    return op.strip().upper()


def validate_operator(op: str) -> None:
    """Raise :class:`InvalidOperatorError` unless ``op`` is allowlisted."""
    if _normalize(op) not in ALLOWED_OPERATORS:
        raise InvalidOperatorError(str(op))


def normalize_operator(op: str) -> str:
    """Return the canonical form of ``op``.

    Raises:
        InvalidOperatorError: If ``op`` is not allowlisted.
    """
    normalized = _normalize(op)
    if normalized not in ALLOWED_OPERATORS:
        raise InvalidOperatorError(str(op))
    return normalized


def is_comparison_operator(op: str) -> bool:
    """True for ``= != <> < > <= >= <=>``."""
    return _normalize(op) in COMPARISON_OPERATORS


def is_pattern_operator(op: str) -> bool:
    """True for ``LIKE`` / ``NOT LIKE``."""
    return _normalize(op) in PATTERN_OPERATORS


def is_null_operator(op: str) -> bool:
    """True for ``IS`` / ``IS NOT``."""
    return _normalize(op) in NULL_OPERATORS


def allowed_operators() -> list[str]:
    """Return the sorted operator allowlist (for docs and error messages)."""
    return sorted(ALLOWED_OPERATORS)


def validate_aggregate_function(fn: str) -> str:
    """Return the upper-cased function name if it is an allowed aggregate.

    Raises:
        InvalidFunctionError: If ``fn`` is not one of COUNT/SUM/AVG/MIN/MAX.
    """
    normalized = _normalize(fn)
    if normalized not in AGGREGATE_FUNCTIONS:
        raise InvalidFunctionError(str(fn), sorted(AGGREGATE_FUNCTIONS))
    return normalized
