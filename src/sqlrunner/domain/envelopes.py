"""JSON envelopes printed by CLI commands run with ``--json``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .errors import RollbackError, SQLRunnerError


@dataclass(slots=True, frozen=True)
class EnvelopeError:
    """Machine-readable error entry for command envelopes."""

    code: str
    message: str
    details: dict[str, Any] | None = None

    @classmethod
    def from_exception(cls, error: SQLRunnerError) -> EnvelopeError:
        """Describe a runner failure, including the statement index and original cause."""
        details: dict[str, Any] = {"type": type(error).__name__}
        if error.statement_index is not None:
            details["statementIndex"] = error.statement_index
        if error.__cause__ is not None:
            details["cause"] = str(error.__cause__)
        if isinstance(error, RollbackError) and error.original_error is not None:
            details["originalError"] = str(error.original_error)
        return cls(code=error.code, message=error.message, details=details)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


@dataclass(slots=True, frozen=True)
class EnvelopeMeta:
    """Execution metadata shared by all command envelopes."""

    duration_ms: int
    database: str | None
    exit_code: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "durationMs": self.duration_ms,
            "database": self.database,
            "exitCode": self.exit_code,
        }


@dataclass(slots=True, frozen=True)
class CommandEnvelope:
    """Standardized command envelope structure for CLI JSON output."""

    command: str
    status: str
    data: Any
    warnings: list[str]
    errors: list[EnvelopeError]
    meta: EnvelopeMeta
    schema_version: str = "1"

    def to_dict(self) -> dict[str, Any]:
        return {
            "schemaVersion": self.schema_version,
            "command": self.command,
            "status": self.status,
            "data": self.data,
            "warnings": self.warnings,
            "errors": [error.to_dict() for error in self.errors],
            "meta": self.meta.to_dict(),
        }


def build_success_envelope(
    *,
    command: str,
    data: Any,
    warnings: list[str] | None,
    meta: EnvelopeMeta,
) -> dict[str, Any]:
    """Build a success envelope with normalized metadata."""
    envelope = CommandEnvelope(
        command=command,
        status="success",
        data=data,
        warnings=warnings or [],
        errors=[],
        meta=meta,
    )
    return envelope.to_dict()


def build_error_envelope(
    *,
    command: str,
    data: Any,
    error: EnvelopeError,
    warnings: list[str] | None,
    meta: EnvelopeMeta,
) -> dict[str, Any]:
    """Build an error envelope with normalized metadata."""
    envelope = CommandEnvelope(
        command=command,
        status="error",
        data=data,
        warnings=warnings or [],
        errors=[error],
        meta=meta,
    )
    return envelope.to_dict()
