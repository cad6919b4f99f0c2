"""Shared CLI rendering helpers (result tables, statement listings)."""

from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sqlrunner.core.sql_utils import StatementUnit
from sqlrunner.models import ScriptReport, StatementReport

console = Console()

_STATUS_MARKERS = {
    "success": "[green]✓[/green]",
    "failed": "[red]✗[/red]",
    "rolled_back": "[yellow]↺[/yellow]",
    "skipped": "[dim]-[/dim]",
}


def _format_value(value: Any) -> str:
    if value is None:
        return "[dim]NULL[/dim]"
    if isinstance(value, bytes):
        return f"<{len(value)} bytes>"
    return escape(str(value))


def _statement_label(statement: StatementReport, total: int) -> str:
    sql_lines = statement.sql.splitlines() or [""]
    first_line = sql_lines[0] if len(sql_lines[0]) <= 60 else sql_lines[0][:57] + "..."
    return f"Statement {statement.index + 1}/{total}: {escape(first_line)}"


def print_result_table(statement: StatementReport) -> None:
    """Print the rows of one statement as a table."""
    table = Table(show_header=True, header_style="bold cyan")
    for column in statement.columns or []:
        table.add_column(column)
    for row in statement.rows or []:
        table.add_row(*(_format_value(row.get(column)) for column in statement.columns or []))
    console.print(table)


def print_report(report: ScriptReport) -> None:
    """Print a script run: one status line per statement and a table per row set."""
    if report.total_statements == 0 and report.status == "success":
        console.print(f"[yellow]No statements found in {report.source}[/yellow]")
        return

    for statement in report.statement_results:
        marker = _STATUS_MARKERS[statement.status]
        console.print(f"{marker} {_statement_label(statement, report.total_statements)}")
        if statement.status == "success" and statement.columns is not None:
            print_result_table(statement)
            console.print(f"  [dim]{statement.row_count} row(s)[/dim]")

    if report.discarded_parameters:
        console.print(
            f"[yellow]⚠ {report.discarded_parameters} unused parameter(s) discarded[/yellow]"
        )

    if report.status == "success":
        console.print(
            f"\n[green]✓ Committed {report.successful_statements} statement(s)[/green] "
            f"[dim]({report.total_execution_time_ms}ms)[/dim]"
        )
    else:
        console.print(f"\n[red]✗ Script rolled back:[/red] {escape(report.error_message or '')}")


def print_statement_units(units: Sequence[StatementUnit], source: str) -> None:
    """Print the statements a script splits into, with their placeholder counts."""
    console.print(f"[bold]{source}[/bold]: {len(units)} statement(s)")
    console.print("─" * 60)
    for unit in units:
        console.print(
            f"\n[cyan]Statement {unit.index + 1}/{len(units)}[/cyan] "
            f"[dim]({unit.placeholder_count} placeholder(s))[/dim]"
        )
        console.print(f"  {unit.sql}", markup=False, highlight=False)
