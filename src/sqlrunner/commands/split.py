"""
Split Command

Previews how a script splits into statements without touching a database.
"""

from sqlrunner.core.sql_utils import StatementUnit, parse_script

from ._render import print_statement_units


def split_script(script: str, *, source: str, show_output: bool = True) -> list[StatementUnit]:
    """Split a script and list its statements with their placeholder counts"""
    units = parse_script(script)
    if show_output:
        print_statement_units(units, source)
    return units
