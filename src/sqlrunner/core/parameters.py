"""
Parameter allocation - fans one flat argument list out across script statements.
"""

import logging
from collections.abc import Sequence
from typing import Any

from sqlrunner.core.sql_utils import StatementUnit
from sqlrunner.domain.errors import ParameterAllocationError

LOG = logging.getLogger(__name__)

ParameterBatch = tuple[Any, ...]


def allocate_parameters(
    statements: Sequence[StatementUnit],
    parameters: Sequence[Any],
    *,
    strict: bool = False,
) -> list[ParameterBatch]:
    """Slice the caller's parameters into one batch per statement.

    Statements consume parameters left to right: each takes as many values as
    it declares placeholders, or whatever is left if the caller supplied too
    few. A short batch is not rejected here; the driver reports the missing
    bindings when the statement executes.

    Args:
        statements: Statement units in execution order
        parameters: Flat, ordered parameter values for the whole script
        strict: Raise instead of discarding parameters left over after the last statement

    Returns:
        One batch per statement, in the same order

    Raises:
        ParameterAllocationError: If ``strict`` is set and parameters are left over
    """
    batches: list[ParameterBatch] = []
    offset = 0

    for unit in statements:
        take = min(unit.placeholder_count, len(parameters) - offset)
        batches.append(tuple(parameters[offset : offset + take]))
        offset += take

    leftover = len(parameters) - offset
    if leftover:
        message = (
            f"{leftover} parameter(s) left over after allocating {offset} "
            f"across {len(statements)} statement(s)"
        )
        if strict:
            raise ParameterAllocationError(message=message, code="excess_parameters")
        LOG.warning(f"{message}; discarding them.")

    return batches
