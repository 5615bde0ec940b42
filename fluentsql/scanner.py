"""Row scanning: result rows → dataclasses, pydantic models or dicts.

Column names come from field metadata::

    @dataclass
    class User:
        id: int = field(metadata={"db": "id,pk"})
        email: str = ""
        full_name: str = field(default="", metadata={"db": "name"})
        cache: dict = field(default_factory=dict, metadata={"db": "-"})

    class Post(BaseModel):
        id: int
        title: str = Field(json_schema_extra={"db": "headline"})

Without metadata a field maps to its lower-cased name (or its pydantic
alias).  ``"-"`` skips the field and a ``pk`` option marks the primary key.
Matching is case-insensitive.  Result columns with no field are ignored;
fields with no column keep their default or fall back to the zero value of
their type.
"""
from __future__ import annotations

import dataclasses
import threading
import typing
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from fluentsql.errors import NoRowsError, ScanError

if TYPE_CHECKING:
    from fluentsql.executor import Rows

_ZERO_VALUES: dict[Any, Any] = {int: 0, float: 0.0, str: "", bool: False, bytes: b""}


@dataclass(frozen=True)
class FieldInfo:
    """How one model field maps onto a result column."""

    attr: str
    column: str
    key: str
    primary_key: bool
    has_default: bool
    zero: Any


@dataclass(frozen=True)
class ModelInfo:
    fields: tuple[FieldInfo, ...]
    by_column: dict[str, FieldInfo]
    is_pydantic: bool


def _parse_tag(tag: str) -> tuple[str, bool]:
    name, *options = [part.strip() for part in tag.split(",")]
    return name, "pk" in options


def _zero_value(hint: Any) -> Any:
    return _ZERO_VALUES.get(hint)


class DefaultScanner:
    """Maps :class:`~fluentsql.executor.Rows` onto records.

    Model metadata is parsed once per type and cached; the cache is safe to
    share between threads.
    """

    def __init__(self) -> None:
        self._cache: dict[type, ModelInfo] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def scan_rows(self, rows: Rows, model: type | None = None) -> list[Any]:
        """Scan every row; dicts when ``model`` is None."""
        if model is None:
            return rows.as_dicts()
        info = self._info(model)
        columns = [c.lower() for c in rows.columns]
        return [self._build(model, info, columns, record) for record in rows.records]

    def scan_row(self, rows: Rows, model: type | None = None) -> Any:
        """Scan the first row.

        Raises:
            NoRowsError: If there are no rows.
        """
        if not rows.records:
            raise NoRowsError()
        if model is None:
            return dict(zip(rows.columns, rows.records[0]))
        columns = [c.lower() for c in rows.columns]
        return self._build(model, self._info(model), columns, rows.records[0])

    def scan_value(self, rows: Rows) -> Any:
        """Return the first column of the first row.

        Raises:
            NoRowsError: If there are no rows.
        """
        if not rows.records:
            raise NoRowsError()
        return rows.records[0][0]

    def scan_column(self, rows: Rows) -> list[Any]:
        """Return the first column of every row."""
        return [record[0] for record in rows.records]

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def field_names(self, model: type) -> list[str]:
        """Return the mapped column names of ``model``, in field order."""
        return [f.column for f in self._info(model).fields]

    def primary_key(self, model: type) -> str:
        """Return the primary-key column: a ``pk`` field, else ``"id"``, else ``""``."""
        info = self._info(model)
        for f in info.fields:
            if f.primary_key:
                return f.column
        return "id" if "id" in info.by_column else ""

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build(
        self, model: type, info: ModelInfo, columns: list[str], record: tuple[Any, ...]
    ) -> Any:
        values: dict[str, Any] = {}
        for column, value in zip(columns, record):
            f = info.by_column.get(column)
            if f is not None:
                values[f.key] = value
        for f in info.fields:
            if f.key not in values and not f.has_default:
                values[f.key] = f.zero
        if info.is_pydantic:
            return model.model_validate(values)
        return model(**values)

    def _info(self, model: type) -> ModelInfo:
        with self._lock:
            cached = self._cache.get(model)
            if cached is None:
                cached = self._parse(model)
                self._cache[model] = cached
            return cached

    def _parse(self, model: type) -> ModelInfo:
        if isinstance(model, type) and issubclass(model, BaseModel):
            fields = self._parse_pydantic(model)
            is_pydantic = True
        elif dataclasses.is_dataclass(model) and isinstance(model, type):
            fields = self._parse_dataclass(model)
            is_pydantic = False
        else:
            raise ScanError(
                f"fluentsql: cannot scan into {model!r}; expected a dataclass or pydantic model"
            )
        return ModelInfo(
            fields=tuple(fields),
            by_column={f.column.lower(): f for f in fields},
            is_pydantic=is_pydantic,
        )

    @staticmethod
    def _parse_dataclass(model: type) -> list[FieldInfo]:
        hints = typing.get_type_hints(model)
        fields = []
        for f in dataclasses.fields(model):
            if not f.init:
                continue
            tag = f.metadata.get("db", "")
            if tag == "-":
                continue
            column, pk = _parse_tag(tag) if tag else (f.name.lower(), False)
            fields.append(
                FieldInfo(
                    attr=f.name,
                    column=column,
                    key=f.name,
                    primary_key=pk or bool(f.metadata.get("primary_key")),
                    has_default=(
                        f.default is not dataclasses.MISSING
                        or f.default_factory is not dataclasses.MISSING
                    ),
                    zero=_zero_value(hints.get(f.name)),
                )
            )
        return fields

    @staticmethod
    def _parse_pydantic(model: type[BaseModel]) -> list[FieldInfo]:
        fields = []
        for name, f in model.model_fields.items():
            extra = f.json_schema_extra if isinstance(f.json_schema_extra, dict) else {}
            tag = str(extra.get("db", ""))
            if tag == "-":
                continue
            if tag:
                column, pk = _parse_tag(tag)
            else:
                column, pk = (f.alias or name).lower(), False
            fields.append(
                FieldInfo(
                    attr=name,
                    column=column,
                    key=f.alias or name,
                    primary_key=pk or bool(extra.get("primary_key")),
                    has_default=not f.is_required(),
                    zero=_zero_value(f.annotation),
                )
            )
        return fields
