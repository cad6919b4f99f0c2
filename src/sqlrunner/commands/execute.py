"""
Exec Command

Executes a single statement in its own transaction, binding every parameter to it.
"""

from collections.abc import Sequence
from typing import Any

from sqlrunner.core.parameters import ParameterBatch
from sqlrunner.core.runner import ScriptRunner
from sqlrunner.core.sql_utils import parse_statement, split_sql_statements
from sqlrunner.models import ScriptReport

from ._render import print_report
from .run import execute_with_report

STATEMENT_SOURCE = "<statement>"


def run_single_statement(
    runner: ScriptRunner,
    statement: str,
    parameters: Sequence[Any],
    *,
    show_output: bool = True,
) -> ScriptReport:
    """Run one statement without splitting it on ``;``

    Returns:
        ScriptReport with a single statement result
    """
    units = [parse_statement(statement)] if split_sql_statements(statement) else []

    def allocate() -> list[ParameterBatch]:
        return [tuple(parameters)] if units else []

    report = execute_with_report(runner, units, parameters, allocate, source=STATEMENT_SOURCE)
    if show_output:
        print_report(report)
    return report
