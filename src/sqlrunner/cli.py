"""
Click-based CLI for SQLRunner.
"""

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from . import __version__
from .backends import BackendRegistry
from .commands import run_script_text, run_single_statement, split_script
from .config import RunnerConfig
from .core.loader import ScriptLoader
from .core.runner import ScriptRunner
from .domain.envelopes import (
    EnvelopeError,
    EnvelopeMeta,
    build_error_envelope,
    build_success_envelope,
)
from .domain.errors import SQLRunnerError
from .models import ScriptReport

console = Console()

STDIN_SCRIPT = "-"


@dataclass
class CLIContext:
    """Settings shared by all commands of one invocation"""

    config: RunnerConfig


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("sqlrunner")
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def parse_parameter(raw: str) -> Any:
    """Interpret a ``-p`` value as a JSON scalar, falling back to the raw string."""
    try:
        value = json.loads(raw)
    except ValueError:
        return raw
    if isinstance(value, (list, dict)):
        return raw
    return value


def _loader(config: RunnerConfig) -> ScriptLoader:
    return ScriptLoader(base_dir=config.scripts_dir)


def _read_script(config: RunnerConfig, script: str) -> str:
    if script == STDIN_SCRIPT:
        return sys.stdin.read()
    return _loader(config).load(script)


@contextmanager
def _open_runner(config: RunnerConfig) -> Iterator[ScriptRunner]:
    pool = BackendRegistry.open_pool(config.database_url, config)
    try:
        yield ScriptRunner(pool, _loader(config), strict_parameters=config.strict_parameters)
    finally:
        pool.close()


def _meta(config: RunnerConfig | None, start_time: float, exit_code: int) -> EnvelopeMeta:
    return EnvelopeMeta(
        duration_ms=int((time.time() - start_time) * 1000),
        database=config.database_url if config is not None else None,
        exit_code=exit_code,
    )


def _report_warnings(report: ScriptReport) -> list[str]:
    if not report.discarded_parameters:
        return []
    return [f"{report.discarded_parameters} unused parameter(s) discarded"]


def _emit_report(
    command: str, report: ScriptReport, config: RunnerConfig, start_time: float
) -> None:
    """Print the JSON envelope for a finished run and exit non-zero on failure."""
    data = report.model_dump(mode="json")
    warnings = _report_warnings(report)
    if report.error is None:
        envelope = build_success_envelope(
            command=command, data=data, warnings=warnings, meta=_meta(config, start_time, 0)
        )
        print(json.dumps(envelope))
        return

    envelope = build_error_envelope(
        command=command,
        data=data,
        error=EnvelopeError.from_exception(report.error),
        warnings=warnings,
        meta=_meta(config, start_time, 1),
    )
    print(json.dumps(envelope))
    sys.exit(1)


def _fail(
    command: str,
    error: SQLRunnerError,
    json_output: bool,
    config: RunnerConfig | None,
    start_time: float,
) -> NoReturn:
    if json_output:
        envelope = build_error_envelope(
            command=command,
            data=None,
            error=EnvelopeError.from_exception(error),
            warnings=[],
            meta=_meta(config, start_time, 1),
        )
        print(json.dumps(envelope))
    else:
        console.print(f"[red]✗ Error:[/red] {escape(str(error))}")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="sqlrunner")
@click.option(
    "--database",
    "-d",
    help="Database URL or SQLite file path (default: $SQLRUNNER_DATABASE_URL)",
)
@click.option("--pool-size", type=int, help="Maximum number of pooled connections")
@click.option(
    "--scripts-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory relative script paths are resolved against",
)
@click.option("--strict", is_flag=True, help="Fail when parameters are left over")
@click.option("--verbose", "-v", is_flag=True, help="Log every statement")
@click.pass_context
def cli(
    ctx: click.Context,
    database: str | None,
    pool_size: int | None,
    scripts_dir: Path | None,
    strict: bool,
    verbose: bool,
) -> None:
    """SQLRunner CLI for transactional SQL script execution"""
    _configure_logging(verbose)
    try:
        config = RunnerConfig.from_env(
            database_url=database,
            pool_size=pool_size,
            scripts_dir=scripts_dir,
            strict_parameters=True if strict else None,
        )
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e
    ctx.obj = CLIContext(config=config)


@cli.command()
@click.argument("script")
@click.option(
    "--param",
    "-p",
    "params",
    multiple=True,
    help="Parameter value (JSON literal or text); repeat in placeholder order",
)
@click.option("--json", "json_output", is_flag=True, help="Output results as JSON")
@click.pass_obj
def run(obj: CLIContext, script: str, params: tuple[str, ...], json_output: bool) -> None:
    """Run a SQL script file in a single transaction

    SCRIPT is a file path, a package resource (package.name:path/to/script.sql)
    or - to read from stdin.

    Examples:

        sqlrunner run migrations/seed.sql -p 1 -p '"Alice"'

        cat seed.sql | sqlrunner --database app.db run - --json
    """
    start_time = time.time()
    config = obj.config
    try:
        script_text = _read_script(config, script)
        with _open_runner(config) as runner:
            report = run_script_text(
                runner,
                script_text,
                [parse_parameter(raw) for raw in params],
                source="<stdin>" if script == STDIN_SCRIPT else script,
                show_output=not json_output,
            )
    except SQLRunnerError as e:
        _fail("run", e, json_output, config, start_time)
    except ValueError as e:
        console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        sys.exit(1)

    if json_output:
        _emit_report("run", report, config, start_time)
    elif report.error is not None:
        sys.exit(1)


@cli.command(name="exec")
@click.argument("statement")
@click.option(
    "--param",
    "-p",
    "params",
    multiple=True,
    help="Parameter value (JSON literal or text); repeat in placeholder order",
)
@click.option("--json", "json_output", is_flag=True, help="Output results as JSON")
@click.pass_obj
def exec_statement(
    obj: CLIContext, statement: str, params: tuple[str, ...], json_output: bool
) -> None:
    """Execute a single SQL statement in its own transaction"""
    start_time = time.time()
    config = obj.config
    try:
        with _open_runner(config) as runner:
            report = run_single_statement(
                runner,
                statement,
                [parse_parameter(raw) for raw in params],
                show_output=not json_output,
            )
    except SQLRunnerError as e:
        _fail("exec", e, json_output, config, start_time)
    except ValueError as e:
        console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        sys.exit(1)

    if json_output:
        _emit_report("exec", report, config, start_time)
    elif report.error is not None:
        sys.exit(1)


@cli.command()
@click.argument("script")
@click.option("--json", "json_output", is_flag=True, help="Output statements as JSON")
@click.pass_obj
def split(obj: CLIContext, script: str, json_output: bool) -> None:
    """Show how a SQL script splits into statements (no database access)"""
    start_time = time.time()
    config = obj.config
    try:
        script_text = _read_script(config, script)
    except SQLRunnerError as e:
        _fail("split", e, json_output, None, start_time)

    source = "<stdin>" if script == STDIN_SCRIPT else script
    units = split_script(script_text, source=source, show_output=not json_output)
    if json_output:
        data = {
            "source": source,
            "statements": [
                {"index": unit.index, "sql": unit.sql, "placeholderCount": unit.placeholder_count}
                for unit in units
            ],
        }
        envelope = build_success_envelope(
            command="split", data=data, warnings=[], meta=_meta(None, start_time, 0)
        )
        print(json.dumps(envelope))


def main() -> None:
    """Entry point for CLI"""
    cli()


if __name__ == "__main__":
    main()
