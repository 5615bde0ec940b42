"""Connection settings loaded from the environment.

Every field can be set through a ``FLUENTSQL_`` environment variable (or a
``.env`` file)::

    FLUENTSQL_DRIVER=postgresql+psycopg
    FLUENTSQL_HOST=db.internal
    FLUENTSQL_PORT=5432
    FLUENTSQL_DATABASE=app
    FLUENTSQL_USERNAME=app
    FLUENTSQL_PASSWORD=...

Defaults follow the MySQL profile.  :meth:`ConnectionSettings.url` and
:meth:`ConnectionSettings.engine_options` feed SQLAlchemy's
``create_engine``; see :func:`fluentsql.executor.connect`.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fluentsql.compile.registry import GrammarFactory

if TYPE_CHECKING:
    from sqlalchemy.engine import URL

#: Standard server port per dialect; SQLite has none.
DEFAULT_PORTS: dict[str, int] = {"mysql": 3306, "postgres": 5432}


class ConnectionSettings(BaseSettings):
    """Database connection and pool configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FLUENTSQL_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    driver: str = Field(
        default="mysql+pymysql",
        description="SQLAlchemy driver name (e.g. mysql+pymysql, postgresql+psycopg, sqlite)",
    )
    host: str = "localhost"
    port: int | None = Field(
        default=None, ge=1, le=65535, description="Defaults to the dialect's standard port"
    )
    database: str = ""
    username: str = ""
    password: SecretStr = SecretStr("")
    charset: str = "utf8mb4"
    collation: str = "utf8mb4_unicode_ci"
    table_prefix: str = ""

    max_open_conns: int = Field(default=25, ge=1, description="Upper bound on open connections")
    max_idle_conns: int = Field(default=5, ge=0, description="Connections kept in the pool")
    conn_max_lifetime: int = Field(
        default=300, ge=0, description="Seconds before a pooled connection is recycled"
    )

    tls: bool = False
    debug: bool = False

    @model_validator(mode="after")
    def _check_pool(self) -> ConnectionSettings:
        if self.max_idle_conns > self.max_open_conns:
            raise ValueError("max_idle_conns cannot exceed max_open_conns")
        return self

    @model_validator(mode="after")
    def _default_port(self) -> ConnectionSettings:
        if self.port is None:
            self.port = DEFAULT_PORTS.get(self.dialect)
        return self

    @property
    def dialect(self) -> str:
        """Registered grammar name for :attr:`driver` (``mysql``, ``postgres``...)."""
        return GrammarFactory.resolve(self.driver)

    def url(self) -> URL:
        """Build the SQLAlchemy URL.

        Raises:
            ImportError: If ``sqlalchemy`` is not installed.
        """
        try:
            from sqlalchemy.engine import URL as _URL
        except ImportError as exc:
            raise ImportError(
                "SQLAlchemy is required for ConnectionSettings.url(). "
                'Install it with: pip install "fluentsql[sqlalchemy]"'
            ) from exc

        if self.dialect == "sqlite":
            return _URL.create(self.driver, database=self.database or ":memory:")

        query: dict[str, str] = {}
        if self.dialect == "mysql":
            if self.charset:
                query["charset"] = self.charset
            if self.collation:
                query["collation"] = self.collation
            if self.tls:
                query["ssl_mode"] = "REQUIRED"
        elif self.dialect == "postgres" and self.tls:
            query["sslmode"] = "require"

        return _URL.create(
            self.driver,
            username=self.username or None,
            password=self.password.get_secret_value() or None,
            host=self.host or None,
            port=self.port,
            database=self.database or None,
            query=query,
        )

    def engine_options(self) -> dict[str, Any]:
        """Pool keyword arguments for ``create_engine``.

        SQLite gets none; its pools do not take QueuePool sizing.
        """
        if self.dialect == "sqlite":
            return {}
        return {
            "pool_size": self.max_idle_conns,
            "max_overflow": self.max_open_conns - self.max_idle_conns,
            "pool_recycle": self.conn_max_lifetime,
            "pool_pre_ping": True,
        }
