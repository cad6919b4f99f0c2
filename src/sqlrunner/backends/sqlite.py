"""
SQLite backend - pooled transactional connections for the script runner.

Connections are opened once and reused. Each checkout begins an IMMEDIATE
transaction, so every statement of a script commits or rolls back together,
DDL included, and scripts writing to the same database file take turns
(waiting up to the busy timeout) instead of failing halfway through. The
standard library driver is used in its legacy transaction mode
(``isolation_level=None``) so that it never opens or commits transactions on
its own.
"""

from __future__ import annotations

import logging
import queue
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Any

from sqlrunner.core.sql_utils import count_placeholders
from sqlrunner.domain.errors import ConnectionAcquireError

if TYPE_CHECKING:
    from sqlrunner.config import RunnerConfig

LOG = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"


class SQLitePreparedStatement:
    """A statement compiled against an SQLite connection.

    SQLite compiles statements when they are first executed, so preparing runs
    ``EXPLAIN`` over the statement: that compiles it (reporting syntax errors
    and unknown tables or columns) without touching any data.

    Attributes:
        sql: Statement text
        parameter_count: Number of positional placeholders declared by the statement
    """

    def __init__(self, connection: sqlite3.Connection, sql: str) -> None:
        self.sql = sql
        self.parameter_count = count_placeholders(sql)
        self._connection = connection
        self._bindings: dict[int, Any] = {}
        self._compile()

    def _compile(self) -> None:
        if self.sql.lstrip()[:7].upper() == "EXPLAIN":
            return
        cursor = self._connection.execute(f"EXPLAIN {self.sql}", [None] * self.parameter_count)
        cursor.close()

    def bind(self, index: int, value: Any) -> None:
        if index < 1:
            raise IndexError(f"Parameter index must be 1-based, got {index}")
        self._bindings[index] = value

    def execute(self) -> sqlite3.Cursor:
        parameters = [self._bindings[index] for index in sorted(self._bindings)]
        return self._connection.execute(self.sql, parameters)


class SQLiteConnection:
    """A pooled SQLite connection checked out with an open transaction."""

    def __init__(self, raw: sqlite3.Connection) -> None:
        self.raw = raw
        self.released = False

    @property
    def in_transaction(self) -> bool:
        return self.raw.in_transaction

    def prepare(self, sql: str) -> SQLitePreparedStatement:
        return SQLitePreparedStatement(self.raw, sql)

    def commit(self) -> None:
        self.raw.commit()

    def rollback(self) -> None:
        self.raw.rollback()


class SQLiteConnectionPool:
    """Bounded pool of SQLite connections with scoped checkout.

    At most ``size`` connections are checked out at once; further callers wait
    up to ``acquire_timeout`` seconds. Connections are created lazily and are
    usable from any thread, but only by the caller that checked them out.

    Attributes:
        database: Database file path, or ``:memory:``
        size: Maximum number of connections checked out at once
        acquire_timeout: Seconds to wait for a free connection
        busy_timeout: Seconds SQLite waits on a locked database before failing
    """

    def __init__(
        self,
        database: str | Path,
        *,
        size: int = 5,
        acquire_timeout: float = 30.0,
        busy_timeout: float = 5.0,
    ) -> None:
        self.database = str(database)
        if self.database == MEMORY_DATABASE and size != 1:
            # Every in-memory connection is a separate database
            LOG.debug(f"Using a single connection for '{MEMORY_DATABASE}' instead of {size}")
            size = 1
        if size < 1:
            raise ValueError(f"Pool size must be at least 1, got {size}")
        self.size = size
        self.acquire_timeout = acquire_timeout
        self.busy_timeout = busy_timeout
        self._slots = threading.BoundedSemaphore(size)
        self._idle: queue.LifoQueue[sqlite3.Connection] = queue.LifoQueue()
        self._closed = False

    @classmethod
    def from_config(cls, database: str, config: RunnerConfig) -> SQLiteConnectionPool:
        """Create a pool for ``database`` sized and timed by the runner configuration."""
        return cls(
            database,
            size=config.pool_size,
            acquire_timeout=config.acquire_timeout_seconds,
            busy_timeout=config.busy_timeout_seconds,
        )

    def _open(self) -> sqlite3.Connection:
        if self.database != MEMORY_DATABASE:
            Path(self.database).parent.mkdir(parents=True, exist_ok=True)

        LOG.debug(f"Opening SQLite connection to {self.database}")
        raw = sqlite3.connect(
            self.database,
            timeout=self.busy_timeout,
            check_same_thread=False,
            isolation_level=None,
        )
        try:
            if self.database != MEMORY_DATABASE:
                # WAL lets readers see the last committed state while a script runs
                raw.execute("PRAGMA journal_mode=WAL")
            raw.execute("PRAGMA foreign_keys=ON")
        except BaseException:
            raw.close()
            raise
        return raw

    def acquire(self) -> SQLiteConnection:
        """Check out a connection and begin a transaction on it.

        Returns:
            Connection with an open transaction

        Raises:
            ConnectionAcquireError: If the pool is closed or exhausted, or the
                database cannot be opened
        """
        if self._closed:
            raise ConnectionAcquireError(
                message=f"Connection pool for {self.database} is closed", code="pool_closed"
            )
        if not self._slots.acquire(timeout=self.acquire_timeout):
            raise ConnectionAcquireError(
                message=(
                    f"No connection to {self.database} became available within "
                    f"{self.acquire_timeout}s (pool size {self.size})"
                ),
                code="pool_exhausted",
            )

        raw: sqlite3.Connection | None = None
        try:
            try:
                raw = self._idle.get_nowait()
            except queue.Empty:
                raw = self._open()
            raw.execute("BEGIN IMMEDIATE")
        except (sqlite3.Error, OSError) as e:
            self._discard(raw)
            raise ConnectionAcquireError(
                message=f"Could not open a transaction on {self.database}: {e}",
                code="connection_failed",
            ) from e
        except BaseException:
            self._discard(raw)
            raise

        return SQLiteConnection(raw)

    def _discard(self, raw: sqlite3.Connection | None) -> None:
        """Close a connection that was never handed out and free its slot."""
        try:
            if raw is not None:
                raw.close()
        finally:
            self._slots.release()

    def release(self, connection: SQLiteConnection) -> None:
        """Return a checked-out connection to the pool.

        A connection still inside a transaction is rolled back first; one that
        cannot be rolled back is closed instead of being reused.

        Raises:
            ValueError: If the connection was already released
        """
        if connection.released:
            raise ValueError("Connection was already released to the pool")
        connection.released = True

        raw = connection.raw
        try:
            if raw.in_transaction:
                raw.rollback()
        except sqlite3.Error as e:
            LOG.warning(f"Discarding SQLite connection that could not be reset: {e}")
            raw.close()
        else:
            if self._closed:
                raw.close()
            else:
                self._idle.put(raw)
        finally:
            self._slots.release()

    @contextmanager
    def connection(self) -> Iterator[SQLiteConnection]:
        """Scoped checkout: the connection is released exactly once on exit."""
        connection = self.acquire()
        try:
            yield connection
        finally:
            self.release(connection)

    def close(self) -> None:
        """Close idle connections; checked-out ones are closed when released."""
        self._closed = True
        while True:
            try:
                raw = self._idle.get_nowait()
            except queue.Empty:
                break
            raw.close()

    def __enter__(self) -> SQLiteConnectionPool:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
