"""Identifier validation: table names, column names, aliases.

This is a whitelist, not a blacklist.  An identifier is accepted only when it
matches ``name`` or ``table.name`` where each part starts with a letter or an
underscore and continues with letters, digits or underscores.  Anything else
(whitespace, quotes, semicolons, comment markers, control characters, extra
dots) is rejected before it can reach SQL text.

The single literal ``*`` is *not* accepted here; grammars treat it as the
"all columns" marker before calling into this module.
"""

from __future__ import annotations

import re

from fluentsql.errors import InvalidIdentifierError

#: Maximum identifier length accepted (bytes == characters for ASCII input).
MAX_IDENTIFIER_LENGTH = 128

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)?")

# "table alias" or "table AS alias" (case-insensitive AS).
_ALIAS_RE = re.compile(
    r"([A-Za-z_][A-Za-z0-9_]*)\s+(?:as\s+)?([A-Za-z_][A-Za-z0-9_]*)",
    re.IGNORECASE | re.ASCII,
)

# "col alias", "t.col AS alias".
_COLUMN_ALIAS_RE = re.compile(
    r"([A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)?)\s+(?:as\s+)?([A-Za-z_][A-Za-z0-9_]*)",
    re.IGNORECASE | re.ASCII,
)

#: Words that usually need quoting when used as identifiers.
RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "select", "from", "where", "and", "or",
        "insert", "update", "delete", "into", "values",
        "set", "order", "by", "asc", "desc",
        "limit", "offset", "join", "left", "right",
        "inner", "outer", "on", "as", "in",
        "between", "like", "is", "null", "not",
        "group", "having", "distinct", "union",
        "create", "drop", "alter", "table", "index",
        "primary", "key", "foreign", "references",
        "default", "constraint", "unique", "check",
    }
)


def validate_identifier(identifier: str) -> None:
    """Raise unless ``identifier`` is a safe ``name`` or ``table.name``.

    Args:
        identifier: Raw identifier text supplied by the caller.

    Raises:
        InvalidIdentifierError: If the identifier is empty, too long, or
            contains anything outside the allowed pattern.
    """
    if not isinstance(identifier, str):
        raise InvalidIdentifierError(repr(identifier), "identifier must be a string")
    if identifier == "":
        raise InvalidIdentifierError(identifier, "identifier cannot be empty")
    if len(identifier) > MAX_IDENTIFIER_LENGTH:
        raise InvalidIdentifierError(
            identifier,
            f"identifier exceeds maximum length of {MAX_IDENTIFIER_LENGTH} characters",
        )
    if _IDENTIFIER_RE.fullmatch(identifier) is None:
        raise InvalidIdentifierError(
            identifier,
            "identifier contains invalid characters; only letters, numbers, "
            "underscores, and a single dot are allowed",
        )


def validate_column(column: str) -> None:
    """Validate a ``column`` or ``table.column`` reference."""
    validate_identifier(column)


def validate_table_with_alias(table: str) -> tuple[str, str]:
    """Split and validate ``"table"``, ``"table alias"`` or ``"table AS alias"``.

    Both parts are validated independently.

    Args:
        table: Raw table reference.

    Returns:
        ``(name, alias)``; ``alias`` is ``""`` when none was given.

    Raises:
        InvalidIdentifierError: If either part is invalid or more than one
            alias token is present.
    """
    if not table:
        raise InvalidIdentifierError("", "table name cannot be empty")

    match = _ALIAS_RE.fullmatch(table) if isinstance(table, str) else None
    if match is not None:
        name, alias = match.group(1), match.group(2)
        validate_identifier(name)
        if alias.lower() == "as":
            raise InvalidIdentifierError(table, "alias cannot be the AS keyword")
        try:
            validate_identifier(alias)
        except InvalidIdentifierError as exc:
            raise InvalidIdentifierError(alias, f"invalid alias: {exc.reason}") from exc
        return name, alias

    validate_identifier(table)
    return table, ""


def validate_column_with_alias(column: str) -> tuple[str, str]:
    """Split and validate ``"col"``, ``"t.col alias"`` or ``"t.col AS alias"``.

    Returns:
        ``(column, alias)``; ``alias`` is ``""`` when none was given.

    Raises:
        InvalidIdentifierError: If either part is invalid.
    """
    match = _COLUMN_ALIAS_RE.fullmatch(column) if isinstance(column, str) else None
    if match is None:
        validate_identifier(column)
        return column, ""
    name, alias = match.group(1), match.group(2)
    validate_identifier(name)
    if alias.lower() == "as":
        raise InvalidIdentifierError(column, "alias cannot be the AS keyword")
    validate_identifier(alias)
    return name, alias


def split_table_column(ref: str) -> tuple[str, str]:
    """Split ``"table.column"`` (or bare ``"column"``) after validating it.

    Returns:
        ``(table, column)``; ``table`` is ``""`` for unqualified references.

    Raises:
        InvalidIdentifierError: If either part is invalid or there is more
            than one dot.
    """
    if isinstance(ref, str) and ref.count(".") > 1:
        raise InvalidIdentifierError(
            ref, "column reference can have at most one dot (table.column)"
        )
    validate_identifier(ref)
    if "." in ref:
        table, column = ref.split(".", 1)
        return table, column
    return "", ref


def is_reserved_word(identifier: str) -> bool:
    """Return True when ``identifier`` is a SQL reserved word (any case)."""
    return identifier.lower() in RESERVED_WORDS
