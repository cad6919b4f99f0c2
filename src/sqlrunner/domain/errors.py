"""Unified error taxonomy for script loading, execution and recovery."""

from dataclasses import dataclass


@dataclass(slots=True)
class SQLRunnerError(Exception):
    """Base class for every failure surfaced by the script runner.

    Attributes:
        message: Human-readable description of the failure
        code: Stable machine-readable failure code
        statement_index: Zero-based index of the failing statement, when one is to blame
    """

    message: str
    code: str
    statement_index: int | None = None

    def __str__(self) -> str:
        return self.message


class ScriptLoadError(SQLRunnerError):
    """Raised when a script cannot be read or one of its statements cannot be prepared."""


class ParameterAllocationError(SQLRunnerError):
    """Raised when the caller's parameters do not fit the script under strict allocation."""


class StatementExecutionError(SQLRunnerError):
    """Raised when binding, executing or committing a statement fails."""


class MaterializationError(StatementExecutionError):
    """Raised when reading the rows produced by a statement fails."""


class ConnectionAcquireError(SQLRunnerError):
    """Raised when the pool cannot supply a connection."""


@dataclass(slots=True)
class RollbackError(SQLRunnerError):
    """Raised when rolling back a failed script fails as well.

    The triggering failure is kept in ``original_error``; the driver's rollback
    exception is the ``__cause__``.
    """

    original_error: BaseException | None = None
