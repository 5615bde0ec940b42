"""Unit tests for ConnectionSettings."""
from __future__ import annotations

import os

import pytest
from pydantic import ValidationError

from fluentsql.settings import ConnectionSettings

pytest.importorskip("sqlalchemy", reason="sqlalchemy required for URL building")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("FLUENTSQL_"):
            monkeypatch.delenv(key)


def test_defaults_follow_mysql_profile():
    s = ConnectionSettings(_env_file=None)
    assert s.driver == "mysql+pymysql"
    assert s.port == 3306
    assert s.charset == "utf8mb4"
    assert s.max_open_conns == 25
    assert s.max_idle_conns == 5
    assert s.conn_max_lifetime == 300
    assert s.dialect == "mysql"


def test_env_vars(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FLUENTSQL_DRIVER", "postgresql+psycopg")
    monkeypatch.setenv("FLUENTSQL_PORT", "5432")
    monkeypatch.setenv("FLUENTSQL_PASSWORD", "hunter2")
    monkeypatch.setenv("FLUENTSQL_TABLE_PREFIX", "app_")
    s = ConnectionSettings(_env_file=None)
    assert s.dialect == "postgres"
    assert s.port == 5432
    assert s.password.get_secret_value() == "hunter2"
    assert "hunter2" not in repr(s)
    assert s.table_prefix == "app_"


def test_pool_validation():
    with pytest.raises(ValidationError):
        ConnectionSettings(_env_file=None, max_open_conns=2, max_idle_conns=3)
    with pytest.raises(ValidationError):
        ConnectionSettings(_env_file=None, port=0)


def test_mysql_url():
    s = ConnectionSettings(
        _env_file=None,
        host="db.internal",
        database="app",
        username="svc",
        password="pw",
        tls=True,
    )
    url = s.url()
    assert url.drivername == "mysql+pymysql"
    assert url.host == "db.internal"
    assert url.port == 3306
    assert url.database == "app"
    assert url.username == "svc"
    assert url.password == "pw"
    assert url.query["charset"] == "utf8mb4"
    assert url.query["collation"] == "utf8mb4_unicode_ci"
    assert url.query["ssl_mode"] == "REQUIRED"


def test_port_follows_dialect():
    s = ConnectionSettings(_env_file=None, driver="postgresql+psycopg", host="h", database="d")
    assert s.port == 5432
    assert s.url().port == 5432
    assert ConnectionSettings(_env_file=None, driver="mariadb+pymysql").port == 3306
    assert ConnectionSettings(_env_file=None, driver="sqlite").port is None
    explicit = ConnectionSettings(_env_file=None, driver="postgresql+psycopg", port=6432)
    assert explicit.url().port == 6432


def test_postgres_url_tls():
    s = ConnectionSettings(_env_file=None, driver="postgresql+psycopg", port=5432, tls=True)
    url = s.url()
    assert url.query == {"sslmode": "require"}


def test_sqlite_url_and_options():
    s = ConnectionSettings(_env_file=None, driver="sqlite")
    assert s.url().database == ":memory:"
    assert s.engine_options() == {}


def test_engine_options():
    s = ConnectionSettings(_env_file=None, max_open_conns=10, max_idle_conns=4, conn_max_lifetime=60)
    assert s.engine_options() == {
        "pool_size": 4,
        "max_overflow": 6,
        "pool_recycle": 60,
        "pool_pre_ping": True,
    }
