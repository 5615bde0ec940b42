"""Grammar registry (Open/Closed Principle).

Adding a dialect means registering a :class:`~fluentsql.compile.base.Grammar`
subclass once; :class:`~fluentsql.executor.Database` and the package-level
helpers look it up by name.

Usage::

    from fluentsql.compile.registry import GrammarFactory

    @GrammarFactory.register("oracle")
    class OracleGrammar(Grammar):
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar

from fluentsql.compile.base import Grammar
from fluentsql.errors import CompilationError

#: Driver / SQLAlchemy dialect names that map onto a registered grammar.
DIALECT_ALIASES: dict[str, str] = {
    "mariadb": "mysql",
    "postgresql": "postgres",
    "pgsql": "postgres",
    "sqlite3": "sqlite",
}


class GrammarFactory:
    """Registry mapping dialect names to :class:`Grammar` classes.

    Example::

        @GrammarFactory.register("mysql")
        class MySQLGrammar(Grammar):
            ...

        grammar = GrammarFactory.create("mysql")
    """

    _grammars: ClassVar[dict[str, type[Grammar]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type[Grammar]], type[Grammar]]:
        """Decorator that registers a grammar class under ``name``."""

        def decorator(grammar_cls: type[Grammar]) -> type[Grammar]:
            cls._grammars[name] = grammar_cls
            return grammar_cls

        return decorator

    @classmethod
    def register_class(cls, name: str, grammar_cls: type[Grammar]) -> None:
        """Register a grammar class without using the decorator form."""
        cls._grammars[name] = grammar_cls

    @classmethod
    def resolve(cls, name: str) -> str:
        """Return the registered name for ``name`` or one of its aliases.

        ``"postgresql+psycopg"`` style SQLAlchemy driver names resolve too.
        """
        key = name.lower().split("+", 1)[0]
        return DIALECT_ALIASES.get(key, key)

    @classmethod
    def create(cls, name: str, paramstyle: str | None = None) -> Grammar:
        """Instantiate the grammar registered for ``name``.

        Args:
            name: Dialect name or alias.
            paramstyle: Optional placeholder style override.

        Raises:
            CompilationError: If no grammar is registered for ``name``.
        """
        grammar_cls = cls._grammars.get(cls.resolve(name))
        if grammar_cls is None:
            raise CompilationError(
                f"Unsupported dialect: '{name}'. Registered dialects: {cls.registered_dialects()}."
            )
        return grammar_cls(paramstyle=paramstyle)

    @classmethod
    def registered_dialects(cls) -> list[str]:
        return sorted(cls._grammars)
