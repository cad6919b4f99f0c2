"""
Script Runner

Executes multi-statement SQL scripts atomically on a pooled connection.

For each call the runner acquires one connection (already inside a
transaction), then for every statement of the script: prepares it, binds its
slice of the caller's parameters, executes it and snapshots any rows it
produced. The transaction commits only if every statement succeeded; any
failure rolls the whole script back and surfaces a single error naming the
statement that failed.
"""

import logging
import time
from collections.abc import Iterator, Sequence
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Any

from sqlrunner.backends.base import ConnectionPool, TransactionalConnection
from sqlrunner.core.loader import ScriptLoader
from sqlrunner.core.parameters import ParameterBatch, allocate_parameters
from sqlrunner.core.snapshot import ResultSnapshot, materialize
from sqlrunner.core.sql_utils import (
    StatementUnit,
    parse_script,
    parse_statement,
    split_sql_statements,
)
from sqlrunner.domain.errors import (
    ConnectionAcquireError,
    RollbackError,
    ScriptLoadError,
    SQLRunnerError,
    StatementExecutionError,
)

LOG = logging.getLogger(__name__)

ScriptOutcome = list[ResultSnapshot | None]


class ScriptRunner:
    """Run SQL scripts and single statements against a connection pool.

    The runner keeps no per-call state, so one instance can serve concurrent
    callers; each call holds its own connection for its whole duration.

    Attributes:
        pool: Source of transactional connections
        loader: Resolves script identifiers for ``run_script_file``
        strict_parameters: Reject parameters left over after the last statement
    """

    def __init__(
        self,
        pool: ConnectionPool,
        loader: ScriptLoader | None = None,
        *,
        strict_parameters: bool = False,
    ) -> None:
        self.pool = pool
        self.loader = loader or ScriptLoader()
        self.strict_parameters = strict_parameters

    def run_script(self, script: str, *parameters: Any) -> ScriptOutcome:
        """Execute every statement of ``script`` in one transaction.

        Parameters are distributed left to right: each statement takes as many
        values as it declares ``?`` placeholders.

        Args:
            script: SQL text containing one or more ``;``-separated statements
            *parameters: Flat, ordered parameter values for the whole script

        Returns:
            One entry per statement: a ResultSnapshot for statements producing
            rows, None for the others

        Raises:
            ParameterAllocationError: If strict allocation finds unused parameters
            ConnectionAcquireError: If no connection could be acquired
            ScriptLoadError: If a statement could not be prepared (after rollback)
            StatementExecutionError: If binding, execution, materialization or
                commit failed (after rollback)
            RollbackError: If the rollback after a failure failed as well
        """
        units = parse_script(script)
        batches = allocate_parameters(units, parameters, strict=self.strict_parameters)
        return self.execute_units(units, batches)

    def run_script_file(self, identifier: str | Path, *parameters: Any) -> ScriptOutcome:
        """Load a script through the loader and run it (see ``run_script``).

        Raises:
            ScriptLoadError: If the script cannot be loaded; no connection is acquired
        """
        return self.run_script(self.loader.load(identifier), *parameters)

    def run_statement(self, statement: str, *parameters: Any) -> ResultSnapshot | None:
        """Execute a single statement in its own transaction, binding all parameters.

        Returns:
            ResultSnapshot if the statement produced rows, otherwise None
            (including a blank or comment-only statement, which is not executed)
        """
        if not split_sql_statements(statement):
            LOG.debug("Statement is empty; nothing to execute")
            return None
        return self.execute_units([parse_statement(statement)], [tuple(parameters)])[0]

    def execute_units(
        self, units: Sequence[StatementUnit], batches: Sequence[ParameterBatch]
    ) -> ScriptOutcome:
        """Execute already split statements with their parameter batches in one transaction.

        ``units`` and ``batches`` pair up by position; see ``run_script`` for the
        errors raised.

        Raises:
            ValueError: If ``batches`` does not hold exactly one entry per unit
        """
        if len(batches) != len(units):
            raise ValueError(
                f"Expected {len(units)} parameter batch(es), got {len(batches)}"
            )
        if not units:
            LOG.debug("Script contains no statements; nothing to execute")
            return []

        start_time = time.time()
        with self._transaction() as connection:
            results = [
                self._run_unit(connection, unit, batch)
                for unit, batch in zip(units, batches, strict=True)
            ]

        elapsed_ms = int((time.time() - start_time) * 1000)
        LOG.info(f"Committed {len(units)} statement(s) in {elapsed_ms}ms")
        return results

    @contextmanager
    def _transaction(self) -> Iterator[TransactionalConnection]:
        """Hold one pooled connection for the duration of a script.

        Commits when the body completes, rolls back when it raises. The pool's
        scoped checkout releases the connection on every path.
        """
        with ExitStack() as stack:
            try:
                connection = stack.enter_context(self.pool.connection())
            except SQLRunnerError:
                raise
            except Exception as e:
                raise ConnectionAcquireError(
                    message=f"Could not get a database connection: {e}", code="connection_failed"
                ) from e

            try:
                yield connection
            except BaseException as error:
                self._rollback(connection, error)
                raise
            self._commit(connection)

    def _run_unit(
        self, connection: TransactionalConnection, unit: StatementUnit, batch: ParameterBatch
    ) -> ResultSnapshot | None:
        LOG.debug(f"Statement {unit.index}: {unit.sql} with {len(batch)} parameter(s)")

        try:
            statement = connection.prepare(unit.sql)
        except Exception as e:
            raise ScriptLoadError(
                message=f"Statement {unit.index} could not be prepared: {e}",
                code="prepare_failed",
                statement_index=unit.index,
            ) from e

        try:
            for position, value in enumerate(batch, start=1):
                statement.bind(position, value)
            cursor = statement.execute()
        except Exception as e:
            raise StatementExecutionError(
                message=f"An error occurred while executing statement {unit.index}: {e}",
                code="execution_failed",
                statement_index=unit.index,
            ) from e

        if cursor.description is None:
            LOG.debug(f"Statement {unit.index} affected {cursor.rowcount} row(s)")
            cursor.close()
            return None
        return materialize(cursor, statement_index=unit.index)

    def _commit(self, connection: TransactionalConnection) -> None:
        try:
            connection.commit()
        except Exception as e:
            error = StatementExecutionError(
                message=f"Could not commit the script transaction: {e}", code="commit_failed"
            )
            self._rollback(connection, error)
            raise error from e

    def _rollback(self, connection: TransactionalConnection, cause: BaseException) -> None:
        """Roll back after ``cause``; a failing rollback is raised chained to both errors."""
        LOG.warning(f"Rolling back script transaction: {cause}")
        try:
            connection.rollback()
        except Exception as e:
            raise RollbackError(
                message=f"Could not roll back the failed script ({cause}): {e}",
                code="rollback_failed",
                statement_index=getattr(cause, "statement_index", None),
                original_error=cause,
            ) from e
