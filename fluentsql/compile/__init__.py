"""fluentsql compilation layer: Query → parameterized SQL."""
from fluentsql.compile.base import CompiledSQL, Grammar
from fluentsql.compile.builder import StatementBuilder
from fluentsql.compile.mysql import MySQLGrammar
from fluentsql.compile.postgres import PostgresGrammar
from fluentsql.compile.registry import GrammarFactory
from fluentsql.compile.sqlite import SQLiteGrammar

__all__ = [
    "CompiledSQL",
    "Grammar",
    "GrammarFactory",
    "MySQLGrammar",
    "PostgresGrammar",
    "SQLiteGrammar",
    "StatementBuilder",
]
