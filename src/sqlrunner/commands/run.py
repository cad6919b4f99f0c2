"""
Run Command

Executes a SQL script in one transaction and reports every statement's result.
"""

import logging
import time
from collections.abc import Callable, Sequence
from functools import partial
from typing import Any

from sqlrunner.core.parameters import ParameterBatch, allocate_parameters
from sqlrunner.core.runner import ScriptRunner
from sqlrunner.core.sql_utils import StatementUnit, parse_script
from sqlrunner.domain.errors import SQLRunnerError
from sqlrunner.models import ScriptReport

from ._render import print_report

LOG = logging.getLogger(__name__)


def execute_with_report(
    runner: ScriptRunner,
    units: Sequence[StatementUnit],
    parameters: Sequence[Any],
    allocate: Callable[[], list[ParameterBatch]],
    *,
    source: str,
) -> ScriptReport:
    """Execute statement units and summarise the run, successful or not.

    Runner failures are captured in the report (see ``ScriptReport.error``)
    rather than raised.

    Args:
        runner: Runner owning the connection pool
        units: Statements to execute
        parameters: The caller's flat parameter list
        allocate: Produces one parameter batch per unit; may raise under strict allocation
        source: Script description for the report
    """
    start_time = time.time()
    batches: list[ParameterBatch] = []
    try:
        batches = allocate()
        outcomes = runner.execute_units(units, batches)
    except SQLRunnerError as e:
        elapsed_ms = int((time.time() - start_time) * 1000)
        LOG.debug(f"Run of {source} failed with {e.code}")
        return ScriptReport.from_failure(
            source=source,
            units=units,
            batches=batches,
            error=e,
            parameter_count=len(parameters),
            elapsed_ms=elapsed_ms,
        )

    elapsed_ms = int((time.time() - start_time) * 1000)
    return ScriptReport.from_outcomes(
        source=source,
        units=units,
        batches=batches,
        outcomes=outcomes,
        parameter_count=len(parameters),
        elapsed_ms=elapsed_ms,
    )


def run_script_text(
    runner: ScriptRunner,
    script: str,
    parameters: Sequence[Any],
    *,
    source: str,
    show_output: bool = True,
) -> ScriptReport:
    """Run a script and print its results

    Args:
        runner: Runner owning the connection pool
        script: SQL script text
        parameters: Flat, ordered parameter values for the whole script
        source: Where the script came from, for display
        show_output: Print status lines and result tables

    Returns:
        ScriptReport describing the run
    """
    units = parse_script(script)
    allocate = partial(allocate_parameters, units, parameters, strict=runner.strict_parameters)
    report = execute_with_report(runner, units, parameters, allocate, source=source)

    if show_output:
        print_report(report)
    return report
