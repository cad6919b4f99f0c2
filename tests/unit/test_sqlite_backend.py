"""
Unit tests for sqlrunner.backends.sqlite (pool, connections, prepared statements).
"""

import sqlite3

import pytest

from sqlrunner.backends.base import ConnectionPool, TransactionalConnection
from sqlrunner.backends.sqlite import SQLiteConnectionPool
from sqlrunner.config import RunnerConfig
from sqlrunner.domain.errors import ConnectionAcquireError
from tests.utils.db_helpers import fetch_all


@pytest.fixture
def items_pool(database_path):
    pool = SQLiteConnectionPool(database_path, size=1, acquire_timeout=0.1)
    with pool.connection() as connection:
        connection.raw.execute("CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT)")
        connection.commit()
    yield pool
    pool.close()


class TestSQLiteConnectionPool:
    """Tests for pooled checkout and release"""

    def test_implements_backend_protocols(self, items_pool) -> None:
        assert isinstance(items_pool, ConnectionPool)
        with items_pool.connection() as connection:
            assert isinstance(connection, TransactionalConnection)

    def test_checkout_opens_transaction(self, items_pool) -> None:
        with items_pool.connection() as connection:
            assert connection.in_transaction

    def test_exhausted_pool_times_out(self, items_pool) -> None:
        held = items_pool.acquire()
        try:
            with pytest.raises(ConnectionAcquireError) as exc_info:
                items_pool.acquire()
            assert exc_info.value.code == "pool_exhausted"
        finally:
            items_pool.release(held)

    def test_connection_reused_after_release(self, items_pool) -> None:
        first = items_pool.acquire()
        raw = first.raw
        items_pool.release(first)

        second = items_pool.acquire()
        try:
            assert second.raw is raw
        finally:
            items_pool.release(second)

    def test_double_release_rejected(self, items_pool) -> None:
        connection = items_pool.acquire()
        items_pool.release(connection)

        with pytest.raises(ValueError):
            items_pool.release(connection)

    def test_release_rolls_back_open_transaction(self, items_pool, database_path) -> None:
        with items_pool.connection() as connection:
            connection.raw.execute("INSERT INTO items (name) VALUES ('uncommitted')")

        assert fetch_all(database_path, "SELECT * FROM items") == []

    def test_commit_persists(self, items_pool, database_path) -> None:
        with items_pool.connection() as connection:
            connection.raw.execute("INSERT INTO items (name) VALUES ('kept')")
            connection.commit()

        assert fetch_all(database_path, "SELECT name FROM items") == [("kept",)]

    def test_closed_pool_refuses_checkout(self, database_path) -> None:
        pool = SQLiteConnectionPool(database_path)
        pool.close()

        with pytest.raises(ConnectionAcquireError) as exc_info:
            pool.acquire()
        assert exc_info.value.code == "pool_closed"

    def test_memory_database_uses_single_connection(self) -> None:
        with SQLiteConnectionPool(":memory:", size=4) as pool:
            assert pool.size == 1

    def test_invalid_size_rejected(self, database_path) -> None:
        with pytest.raises(ValueError):
            SQLiteConnectionPool(database_path, size=0)

    def test_from_config(self, database_path) -> None:
        config = RunnerConfig(pool_size=3, acquire_timeout_seconds=2.5, busy_timeout_seconds=1.0)

        pool = SQLiteConnectionPool.from_config(str(database_path), config)

        assert (pool.size, pool.acquire_timeout, pool.busy_timeout) == (3, 2.5, 1.0)
        pool.close()

    def test_creates_missing_parent_directory(self, tmp_path) -> None:
        database = tmp_path / "nested" / "dir" / "app.db"

        with SQLiteConnectionPool(database) as pool:
            with pool.connection():
                pass

        assert database.exists()

    def test_unopenable_path_frees_slot(self, tmp_path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("not a directory", encoding="utf-8")
        pool = SQLiteConnectionPool(blocker / "db.sqlite", size=1, acquire_timeout=0.1)

        codes = []
        for _ in range(2):
            with pytest.raises(ConnectionAcquireError) as exc_info:
                pool.acquire()
            codes.append(exc_info.value.code)

        assert codes == ["connection_failed", "connection_failed"]
        assert isinstance(exc_info.value.__cause__, OSError)

        blocker.unlink()
        with pool.connection() as connection:
            assert connection.in_transaction
        pool.close()

    def test_locked_database_frees_slot(self, database_path) -> None:
        pool = SQLiteConnectionPool(database_path, size=2, acquire_timeout=0.1, busy_timeout=0.05)
        locker = sqlite3.connect(database_path, isolation_level=None)
        locker.execute("BEGIN IMMEDIATE")
        try:
            for _ in range(pool.size):
                with pytest.raises(ConnectionAcquireError) as exc_info:
                    pool.acquire()
                assert exc_info.value.code == "connection_failed"
                assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)
        finally:
            locker.rollback()
            locker.close()

        for _ in range(pool.size):
            with pool.connection() as connection:
                assert connection.in_transaction
        pool.close()


class TestSQLitePreparedStatement:
    """Tests for statement compilation, binding and execution"""

    def test_prepare_reports_syntax_errors(self, items_pool) -> None:
        with items_pool.connection() as connection:
            with pytest.raises(sqlite3.OperationalError):
                connection.prepare("SLECT * FROM items")

    def test_prepare_reports_unknown_tables(self, items_pool) -> None:
        with items_pool.connection() as connection:
            with pytest.raises(sqlite3.OperationalError):
                connection.prepare("SELECT * FROM missing")

    def test_prepare_does_not_execute(self, items_pool, database_path) -> None:
        with items_pool.connection() as connection:
            connection.prepare("INSERT INTO items (name) VALUES (?)")
            connection.commit()

        assert fetch_all(database_path, "SELECT * FROM items") == []

    def test_bound_statement_executes(self, items_pool) -> None:
        with items_pool.connection() as connection:
            statement = connection.prepare("INSERT INTO items (id, name) VALUES (?, ?)")
            statement.bind(2, "widget")
            statement.bind(1, 10)
            statement.execute()

            cursor = connection.prepare("SELECT id, name FROM items WHERE id = ?")
            cursor.bind(1, 10)
            result = cursor.execute()

            assert [column[0] for column in result.description] == ["id", "name"]
            assert list(result) == [(10, "widget")]

    def test_missing_binding_fails_on_execute(self, items_pool) -> None:
        with items_pool.connection() as connection:
            statement = connection.prepare("INSERT INTO items (id, name) VALUES (?, ?)")
            statement.bind(1, 1)

            with pytest.raises(sqlite3.ProgrammingError):
                statement.execute()

    def test_bind_index_is_one_based(self, items_pool) -> None:
        with items_pool.connection() as connection:
            statement = connection.prepare("SELECT ?")
            with pytest.raises(IndexError):
                statement.bind(0, "x")

    def test_statement_without_rows_has_no_description(self, items_pool) -> None:
        with items_pool.connection() as connection:
            cursor = connection.prepare("INSERT INTO items (name) VALUES ('a')").execute()
            assert cursor.description is None
            assert cursor.rowcount == 1
