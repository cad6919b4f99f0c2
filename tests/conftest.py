import pytest

from sqlrunner.backends.sqlite import SQLiteConnectionPool
from sqlrunner.core.loader import ScriptLoader
from sqlrunner.core.runner import ScriptRunner


@pytest.fixture
def database_path(tmp_path):
    """Path of a fresh on-disk SQLite database"""
    return tmp_path / "runner.db"


@pytest.fixture
def scripts_dir(tmp_path):
    """Directory for SQL script files"""
    scripts = tmp_path / "scripts"
    scripts.mkdir()
    return scripts


@pytest.fixture
def pool(database_path):
    """Connection pool over the test database"""
    pool = SQLiteConnectionPool(database_path, size=2, acquire_timeout=10.0)
    yield pool
    pool.close()


@pytest.fixture
def runner(pool, scripts_dir):
    """Script runner resolving relative script paths against ``scripts_dir``"""
    return ScriptRunner(pool, ScriptLoader(base_dir=scripts_dir))


@pytest.fixture
def users_table(runner):
    """``test`` table holding a single user (1, 'Bob')"""
    runner.run_script(
        """
        CREATE TABLE test (id INTEGER PRIMARY KEY, username TEXT NOT NULL);
        INSERT INTO test (id, username) VALUES (1, 'Bob');
        """
    )
    return "test"
