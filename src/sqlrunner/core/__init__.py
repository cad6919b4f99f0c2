"""
Core script execution: lexing, parameter allocation, result snapshots and the runner.
"""

from .sql_utils import (
    LexerState,
    SQLLexer,
    StatementUnit,
    count_placeholders,
    parse_script,
    parse_statement,
    split_sql_statements,
)
from .parameters import ParameterBatch, allocate_parameters
from .snapshot import ResultSnapshot, materialize, normalize_value
from .loader import ScriptLoader
from .runner import ScriptOutcome, ScriptRunner

__all__ = [
    "LexerState",
    "SQLLexer",
    "StatementUnit",
    "count_placeholders",
    "parse_script",
    "parse_statement",
    "split_sql_statements",
    "ParameterBatch",
    "allocate_parameters",
    "ResultSnapshot",
    "materialize",
    "normalize_value",
    "ScriptLoader",
    "ScriptOutcome",
    "ScriptRunner",
]
