"""
SQLRunner

Transactional execution of multi-statement SQL scripts with positional
parameters and detached result snapshots.
"""

__version__ = "0.1.0"

from .core import (
    ResultSnapshot,
    ScriptLoader,
    ScriptOutcome,
    ScriptRunner,
    StatementUnit,
    allocate_parameters,
    count_placeholders,
    parse_script,
    split_sql_statements,
)
from .backends import BackendRegistry, SQLiteConnectionPool, initialize_backends
from .config import RunnerConfig
from .domain import (
    ConnectionAcquireError,
    MaterializationError,
    ParameterAllocationError,
    RollbackError,
    ScriptLoadError,
    SQLRunnerError,
    StatementExecutionError,
)

initialize_backends()

__all__ = [
    "__version__",
    "ScriptRunner",
    "ScriptOutcome",
    "ScriptLoader",
    "ResultSnapshot",
    "StatementUnit",
    "split_sql_statements",
    "parse_script",
    "count_placeholders",
    "allocate_parameters",
    "BackendRegistry",
    "SQLiteConnectionPool",
    "RunnerConfig",
    "SQLRunnerError",
    "ScriptLoadError",
    "ParameterAllocationError",
    "StatementExecutionError",
    "MaterializationError",
    "ConnectionAcquireError",
    "RollbackError",
]
