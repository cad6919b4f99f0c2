"""
Base backend contracts

Defines what the script runner needs from a database: a pool handing out
connections that are already inside a transaction, statements that can be
prepared, bound positionally and executed, and cursors that can be drained.
Backends implement these protocols to be usable by ``ScriptRunner``.
"""

from collections.abc import Iterator, Sequence
from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ResultCursor(Protocol):
    """Cursor returned by an executed statement (DB-API 2.0 subset)"""

    @property
    def description(self) -> Sequence[Sequence[Any]] | None:
        """Column metadata, or None when the statement produced no row set"""
        ...

    @property
    def rowcount(self) -> int: ...

    def __iter__(self) -> Iterator[Sequence[Any]]: ...

    def close(self) -> None: ...


@runtime_checkable
class PreparedStatement(Protocol):
    """A compiled statement waiting for its positional parameters"""

    sql: str

    def bind(self, index: int, value: Any) -> None:
        """Bind ``value`` to the 1-based positional placeholder ``index``"""
        ...

    def execute(self) -> ResultCursor:
        """Execute with the bound parameters

        Raises:
            Exception: Driver error if binding is incomplete or execution fails
        """
        ...


@runtime_checkable
class TransactionalConnection(Protocol):
    """A checked-out connection with an open transaction"""

    def prepare(self, sql: str) -> PreparedStatement:
        """Compile ``sql`` without executing it

        Raises:
            Exception: Driver error if the statement cannot be compiled
        """
        ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@runtime_checkable
class ConnectionPool(Protocol):
    """Source of transactional connections

    ``connection()`` is a scoped acquisition: the connection is released back
    to the pool exactly once when the context exits, on every exit path.
    """

    def connection(self) -> AbstractContextManager[TransactionalConnection]:
        """Acquire a connection and begin a transaction

        Raises:
            ConnectionAcquireError: If no connection can be supplied
        """
        ...

    def close(self) -> None: ...
