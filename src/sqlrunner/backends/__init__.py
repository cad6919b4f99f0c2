"""
Database backends for the SQLRunner script engine

A backend supplies a connection pool implementing the contracts in
``sqlrunner.backends.base``; the registry maps database URL schemes to them.
"""

from .base import ConnectionPool, PreparedStatement, ResultCursor, TransactionalConnection
from .registry import BackendRegistry, parse_database_url
from .sqlite import SQLiteConnection, SQLiteConnectionPool, SQLitePreparedStatement

__all__ = [
    "BackendRegistry",
    "ConnectionPool",
    "PreparedStatement",
    "ResultCursor",
    "TransactionalConnection",
    "SQLiteConnection",
    "SQLiteConnectionPool",
    "SQLitePreparedStatement",
    "parse_database_url",
    "initialize_backends",
]


def initialize_backends() -> None:
    """Register the built-in backends (idempotent)"""
    if not BackendRegistry.has("sqlite"):
        BackendRegistry.register("sqlite", SQLiteConnectionPool.from_config)
