"""fluentsql validation layer: identifier and operator allowlists."""
from fluentsql.validate.identifier import (
    RESERVED_WORDS,
    is_reserved_word,
    split_table_column,
    validate_column,
    validate_column_with_alias,
    validate_identifier,
    validate_table_with_alias,
)
from fluentsql.validate.operator import (
    allowed_operators,
    is_comparison_operator,
    is_null_operator,
    is_pattern_operator,
    normalize_operator,
    validate_aggregate_function,
    validate_operator,
)

__all__ = [
    "RESERVED_WORDS",
    "allowed_operators",
    "is_comparison_operator",
    "is_null_operator",
    "is_pattern_operator",
    "is_reserved_word",
    "normalize_operator",
    "split_table_column",
    "validate_aggregate_function",
    "validate_column",
    "validate_column_with_alias",
    "validate_identifier",
    "validate_operator",
    "validate_table_with_alias",
]
