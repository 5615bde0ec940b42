"""Constants for comparison operators and SQL function names.

These are process-wide immutable allowlists shared by the validator and the
grammars.  Operators are stored in their canonical (upper-cased, trimmed)
form.
"""

from __future__ import annotations

from enum import Enum

# ---------------------------------------------------------------------------
# Operator enums
# ---------------------------------------------------------------------------


class ComparisonOp(str, Enum):
    """Binary comparison operators."""

    EQ = "="
    NE = "!="
    NE_ANSI = "<>"
    LT = "<"
    GT = ">"
    LTE = "<="
    GTE = ">="
    NULL_SAFE_EQ = "<=>"


class PatternOp(str, Enum):
    """Pattern-match operators."""

    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"


class NullOp(str, Enum):
    """Null-check operators."""

    IS = "IS"
    IS_NOT = "IS NOT"


class MembershipOp(str, Enum):
    """Membership operators (values are bound separately)."""

    IN = "IN"
    NOT_IN = "NOT IN"


class RangeOp(str, Enum):
    """Range operators (values are bound separately)."""

    BETWEEN = "BETWEEN"
    NOT_BETWEEN = "NOT BETWEEN"


# ---------------------------------------------------------------------------
# Operator groups (frozenset for O(1) membership tests)
# ---------------------------------------------------------------------------

COMPARISON_OPERATORS: frozenset[str] = frozenset(op.value for op in ComparisonOp)

PATTERN_OPERATORS: frozenset[str] = frozenset(op.value for op in PatternOp)

NULL_OPERATORS: frozenset[str] = frozenset(op.value for op in NullOp)

MEMBERSHIP_OPERATORS: frozenset[str] = frozenset(op.value for op in MembershipOp)

RANGE_OPERATORS: frozenset[str] = frozenset(op.value for op in RangeOp)

#: Complete set of operators that may appear in generated SQL.
ALLOWED_OPERATORS: frozenset[str] = (
    COMPARISON_OPERATORS
    | PATTERN_OPERATORS
    | NULL_OPERATORS
    | MEMBERSHIP_OPERATORS
    | RANGE_OPERATORS
)

# ---------------------------------------------------------------------------
# Function groups
# ---------------------------------------------------------------------------

#: Aggregate functions accepted by ``compile_aggregate``.
AGGREGATE_FUNCTIONS: frozenset[str] = frozenset({"COUNT", "SUM", "AVG", "MIN", "MAX"})

#: Date-part functions used by the DATE / YEAR / MONTH / DAY predicates.
DATE_FUNCTIONS: frozenset[str] = frozenset({"DATE", "YEAR", "MONTH", "DAY"})
