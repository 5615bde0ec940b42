"""Shared pytest fixtures for fluentsql unit and integration tests."""
from __future__ import annotations

import sqlite3
from collections.abc import Iterator

import pytest

from fluentsql import Database, Query
from fluentsql.compile.mysql import MySQLGrammar
from fluentsql.compile.postgres import PostgresGrammar
from fluentsql.compile.sqlite import SQLiteGrammar
from tests.fixtures import load_ddl


@pytest.fixture(scope="session")
def mysql() -> MySQLGrammar:
    return MySQLGrammar()


@pytest.fixture(scope="session")
def postgres() -> PostgresGrammar:
    return PostgresGrammar()


@pytest.fixture(scope="session")
def sqlite_grammar() -> SQLiteGrammar:
    return SQLiteGrammar()


@pytest.fixture()
def users(mysql: MySQLGrammar) -> Query:
    """A compile-only MySQL query on ``users``."""
    return Query(mysql).table("users")


@pytest.fixture()
def db() -> Iterator[Database]:
    """In-memory SQLite database seeded with three users and two posts."""
    conn = sqlite3.connect(":memory:")
    conn.executescript(load_ddl())
    conn.executemany(
        "INSERT INTO users (email, name, age, status, created_at) VALUES (?, ?, ?, ?, ?)",
        [
            ("ada@example.com", "Ada", 36, "active", "2024-03-10 09:00:00"),
            ("bob@example.com", "Bob", 25, "inactive", "2024-07-21 12:30:00"),
            ("cy@example.com", "Cy", None, "active", "2025-01-05 18:45:00"),
        ],
    )
    conn.executemany(
        "INSERT INTO posts (user_id, headline, views) VALUES (?, ?, ?)",
        [(1, "Hello", 10), (1, "Again", 5), (2, "Hi", 0)],
    )
    conn.commit()

    database = Database(conn, SQLiteGrammar())
    yield database
    database.close()
