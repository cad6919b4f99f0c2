"""
SQLRunner CLI Commands

Command implementations for the SQLRunner CLI. The CLI layer (cli.py) parses
options, builds the runner and routes to these functions.
"""

from .execute import run_single_statement
from .run import execute_with_report, run_script_text
from .split import split_script

__all__ = [
    "execute_with_report",
    "run_script_text",
    "run_single_statement",
    "split_script",
]
