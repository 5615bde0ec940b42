"""Test fixtures: sample DDL and record types used across the suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, Field

_FIXTURES_DIR = Path(__file__).parent


def load_ddl() -> str:
    """Return the sample SQLite DDL (users, posts, tags)."""
    return (_FIXTURES_DIR / "ddl_sqlite.sql").read_text()


@dataclass
class User:
    id: int = field(default=0, metadata={"db": "id,pk"})
    email: str = ""
    full_name: str = field(default="", metadata={"db": "name"})
    age: int | None = None
    status: str = ""
    cache: dict = field(default_factory=dict, metadata={"db": "-"})


class Post(BaseModel):
    id: int
    user_id: int = 0
    title: str = Field(default="", json_schema_extra={"db": "headline"})
    views: int = 0
