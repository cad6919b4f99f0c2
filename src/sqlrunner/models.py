"""
Pydantic models summarising script runs for display and JSON output.
"""

from collections.abc import Sequence
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from .core.parameters import ParameterBatch
from .core.runner import ScriptOutcome
from .core.snapshot import ResultSnapshot
from .core.sql_utils import StatementUnit
from .domain.errors import SQLRunnerError

StatementStatus = Literal["success", "failed", "skipped", "rolled_back"]


class StatementReport(BaseModel):
    """Result of one statement of a script run

    Attributes:
        index: Zero-based position of the statement in the script
        sql: The SQL statement as sent to the database
        parameters: Values bound to the statement's placeholders
        status: success, failed, rolled_back (ran before a failure) or skipped (never ran)
        columns: Column labels for statements producing rows
        rows: Row data for statements producing rows
        row_count: Number of rows returned (if applicable)
    """

    model_config = ConfigDict(ser_json_bytes="base64")

    index: int = Field(..., description="Statement index")
    sql: str = Field(..., description="SQL statement")
    parameters: list[Any] = Field(default_factory=list, description="Bound parameters")
    status: StatementStatus = Field(..., description="Execution status")
    columns: list[str] | None = Field(None, description="Result columns")
    rows: list[dict[str, Any]] | None = Field(None, description="Result rows")
    row_count: int | None = Field(None, description="Rows returned")

    @classmethod
    def from_outcome(
        cls,
        unit: StatementUnit,
        batch: ParameterBatch,
        status: StatementStatus,
        snapshot: ResultSnapshot | None = None,
    ) -> "StatementReport":
        if snapshot is None:
            return cls(index=unit.index, sql=unit.sql, parameters=list(batch), status=status)
        return cls(
            index=unit.index,
            sql=unit.sql,
            parameters=list(batch),
            status=status,
            columns=list(snapshot.columns),
            rows=snapshot.to_list(),
            row_count=len(snapshot),
        )


class ScriptReport(BaseModel):
    """Result of a full script run

    Attributes:
        source: Where the script came from (path, resource or "<statement>")
        status: Overall status; a failed script left the database unchanged
        total_statements: Number of statements in the script
        successful_statements: Number of statements committed
        failed_statement_index: Index of the statement that failed (if any)
        statement_results: Detailed results for each statement
        discarded_parameters: Parameters left over after allocation
        total_execution_time_ms: Total execution time in milliseconds
        error_code: Machine-readable failure code (if failed)
        error_message: Failure description (if failed)
    """

    model_config = ConfigDict(ser_json_bytes="base64")

    source: str = Field(..., description="Script source")
    status: Literal["success", "failed"] = Field(..., description="Overall status")
    total_statements: int = Field(..., description="Total statements")
    successful_statements: int = Field(default=0, description="Committed statements")
    failed_statement_index: int | None = Field(None, description="Failed statement index")
    statement_results: list[StatementReport] = Field(
        default_factory=list, description="Statement results"
    )
    discarded_parameters: int = Field(default=0, description="Unused parameters")
    total_execution_time_ms: int = Field(default=0, description="Total execution time (ms)")
    error_code: str | None = Field(None, description="Error code")
    error_message: str | None = Field(None, description="Error summary")

    _error: SQLRunnerError | None = PrivateAttr(default=None)

    @property
    def error(self) -> SQLRunnerError | None:
        """The exception behind a failed run"""
        return self._error

    @classmethod
    def from_outcomes(
        cls,
        *,
        source: str,
        units: Sequence[StatementUnit],
        batches: Sequence[ParameterBatch],
        outcomes: ScriptOutcome,
        parameter_count: int,
        elapsed_ms: int,
    ) -> "ScriptReport":
        """Summarise a committed run."""
        results = [
            StatementReport.from_outcome(unit, batch, "success", snapshot)
            for unit, batch, snapshot in zip(units, batches, outcomes)
        ]
        return cls(
            source=source,
            status="success",
            total_statements=len(units),
            successful_statements=len(units),
            statement_results=results,
            discarded_parameters=parameter_count - sum(len(batch) for batch in batches),
            total_execution_time_ms=elapsed_ms,
        )

    @classmethod
    def from_failure(
        cls,
        *,
        source: str,
        units: Sequence[StatementUnit],
        batches: Sequence[ParameterBatch],
        error: SQLRunnerError,
        parameter_count: int,
        elapsed_ms: int,
    ) -> "ScriptReport":
        """Summarise a run that raised; nothing it did was committed.

        ``batches`` is empty when the failure happened during allocation.
        """
        results = []
        for position, unit in enumerate(units):
            batch = batches[position] if position < len(batches) else ()
            results.append(
                StatementReport.from_outcome(unit, batch, _failed_run_status(unit.index, error))
            )

        report = cls(
            source=source,
            status="failed",
            total_statements=len(units),
            failed_statement_index=error.statement_index,
            statement_results=results,
            discarded_parameters=(
                parameter_count - sum(len(batch) for batch in batches) if batches else 0
            ),
            total_execution_time_ms=elapsed_ms,
            error_code=error.code,
            error_message=error.message,
        )
        report._error = error
        return report


def _failed_run_status(index: int, error: SQLRunnerError) -> StatementStatus:
    if error.statement_index is None:
        # Commit failures happen after every statement ran
        return "rolled_back" if error.code == "commit_failed" else "skipped"
    if index < error.statement_index:
        return "rolled_back"
    if index == error.statement_index:
        return "failed"
    return "skipped"
