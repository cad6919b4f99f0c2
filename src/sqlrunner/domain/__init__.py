"""Domain types shared by the runner, the backends and the CLI."""

from .errors import (
    ConnectionAcquireError,
    MaterializationError,
    ParameterAllocationError,
    RollbackError,
    ScriptLoadError,
    SQLRunnerError,
    StatementExecutionError,
)

__all__ = [
    "SQLRunnerError",
    "ScriptLoadError",
    "ParameterAllocationError",
    "StatementExecutionError",
    "MaterializationError",
    "ConnectionAcquireError",
    "RollbackError",
]
