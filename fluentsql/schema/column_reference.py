"""Typed column-reference class.

Owns both the parsing and the validation of ``table.column`` strings so that
grammars never split identifiers by hand.
"""

from __future__ import annotations

from dataclasses import dataclass

from fluentsql.validate.identifier import split_table_column


@dataclass(frozen=True)
class ColumnReference:
    """A parsed ``table.column`` or bare ``column`` reference.

    Attributes:
        table: Table qualifier, or ``None`` for unqualified references.
        column: Column name.
    """

    table: str | None
    column: str

    @classmethod
    def parse(cls, ref: str) -> ColumnReference:
        """Validate and parse a ``"table.column"`` or bare ``"column"`` string.

        Raises:
            InvalidIdentifierError: If ``ref`` is not a safe identifier.
        """
        table, column = split_table_column(ref)
        return cls(table=table or None, column=column)

    @property
    def qualified(self) -> bool:
        """True when the reference includes a table qualifier."""
        return self.table is not None

    def parts(self) -> tuple[str, ...]:
        """Return the identifier parts in output order."""
        if self.qualified:
            return (self.table, self.column)
        return (self.column,)

    def __str__(self) -> str:
        if self.qualified:
            return f"{self.table}.{self.column}"
        return self.column
