"""Check command: compile in memory and report diagnostics."""

from __future__ import annotations

from dataclasses import dataclass

import typer

from airc.cli_common import compile_file
from airc.config import DEFAULT_CONFIG_NAME
from airc.tui import (
    build_console,
    format_diagnostics,
    format_stats_lines,
    print_lines,
    processing_status,
    setup_output,
)


@dataclass
class CheckArgs:
    """Arguments for the check command."""

    file: str
    config: str
    strict_handlers: bool
    color_flag: bool | None


def run_check(args: CheckArgs) -> None:
    """Run the check command.

    Strict-mode failures surface as usage errors; everything else the
    compiler degrades around is printed as a warning.
    """
    color_enabled = setup_output(args.color_flag)
    console = build_console(color_enabled)

    with processing_status(console, color_enabled, "Checking..."):
        result = compile_file(args.file, args.strict_handlers)

    print_lines(console, [*format_stats_lines(result.stats, color_enabled), ""], color_enabled)
    print_lines(console, format_diagnostics(result.warnings, result.errors, color_enabled), color_enabled)


def register(app: typer.Typer) -> None:
    """Register the check command."""

    @app.command("check")
    def check_command(
        file: str = typer.Argument(..., metavar="FILE", help="AIR source file to check"),
        config: str = typer.Option(
            DEFAULT_CONFIG_NAME,
            "--config",
            metavar="FILE",
            help="Config file name to load from current directory",
        ),
        strict_handlers: bool = typer.Option(
            False,
            "--strict-handlers",
            help="Fail on unresolved mutations and non-executable handler contracts",
        ),
        color_flag: bool | None = typer.Option(
            None,
            "--color/--no-color",
            help="Force colored output",
        ),
    ) -> None:
        """Parse and transpile an AIR file without writing anything."""
        args = CheckArgs(
            file=file,
            config=config,
            strict_handlers=strict_handlers,
            color_flag=color_flag,
        )
        run_check(args)
