"""Pydantic models for the clause model (the query IR).

A :class:`~fluentsql.query.Query` accumulates these nodes; a grammar walks
them to emit SQL.  Nothing is validated here: identifiers and operators are
checked by the grammar at compile time, so a query may hold "invalid" state
while it is being built.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WhereType(str, Enum):
    """The predicate kind; selects which fields of a WhereClause are read."""

    BASIC = "basic"
    IN = "in"
    NOT_IN = "not_in"
    BETWEEN = "between"
    NOT_BETWEEN = "not_between"
    NULL = "null"
    NOT_NULL = "not_null"
    RAW = "raw"
    NESTED = "nested"
    DATE = "date"
    YEAR = "year"
    MONTH = "month"
    DAY = "day"


class Boolean(str, Enum):
    """Connector joining a predicate to the one before it."""

    AND = "AND"
    OR = "OR"


class WhereClause(BaseModel):
    """One WHERE / HAVING condition.

    Attributes:
        type: Predicate kind.
        boolean: Connector to the previous predicate (ignored for the first).
        column: Column reference (all kinds except RAW and NESTED).
        operator: Comparison operator (BASIC only).
        value: Scalar value (BASIC and the date-part kinds).
        values: Value list (IN / NOT IN, BETWEEN / NOT BETWEEN).
        nested: Parenthesised sub-group (NESTED only).
        raw: Caller-supplied SQL fragment (RAW only, not escaped).
        bindings: Positional bindings for ``raw``.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    type: WhereType
    boolean: Boolean = Boolean.AND
    column: str = ""
    operator: str = ""
    value: Any = None
    values: list[Any] = Field(default_factory=list)
    nested: list[WhereClause] = Field(default_factory=list)
    raw: str = ""
    bindings: list[Any] = Field(default_factory=list)


class OrderDirection(str, Enum):
    """Sort direction."""

    ASC = "ASC"
    DESC = "DESC"


class OrderClause(BaseModel):
    """A single ORDER BY entry: ``column direction`` or a raw expression.

    Attributes:
        column: Column to order by.
        direction: Sort direction.
        raw: Raw ORDER BY fragment; overrides column/direction when set.
    """

    model_config = ConfigDict(extra="forbid")

    column: str = ""
    direction: OrderDirection = OrderDirection.ASC
    raw: str = ""


class JoinType(str, Enum):
    """SQL join kind."""

    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    CROSS = "CROSS"


class JoinClause(BaseModel):
    """A single JOIN entry.

    Attributes:
        type: Join kind.
        table: Joined table, optionally with an alias (``"posts p"``).
        first: Left-hand column of the ON condition (not used by CROSS).
        operator: ON comparison operator (not used by CROSS).
        second: Right-hand column of the ON condition (not used by CROSS).
    """

    model_config = ConfigDict(extra="forbid")

    type: JoinType = JoinType.INNER
    table: str
    first: str = ""
    operator: str = "="
    second: str = ""


class RawExpression(BaseModel):
    """An explicitly raw SELECT column expression.

    Emitted verbatim; ``bindings`` are placed ahead of WHERE arguments.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    sql: str
    bindings: tuple[Any, ...] = ()

    def __str__(self) -> str:
        return self.sql
