"""Compile command: write the generated project to disk."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from airc.cli_common import compile_file, write_files
from airc.config import DEFAULT_CONFIG_NAME
from airc.tui import (
    build_console,
    format_diagnostics,
    format_files_table,
    format_stats_lines,
    print_lines,
    processing_status,
    setup_output,
)


DEFAULT_OUT_DIR = "out"


@dataclass
class CompileArgs:
    """Arguments for the compile command."""

    file: str
    config: str
    out: str
    strict_handlers: bool
    color_flag: bool | None


def run_compile(args: CompileArgs) -> None:
    """Run the compile command."""
    color_enabled = setup_output(args.color_flag)
    console = build_console(color_enabled)
    out_dir = Path(args.out)

    with processing_status(console, color_enabled):
        result = compile_file(args.file, args.strict_handlers)
        write_files(result.files, out_dir)

    print_lines(console, [f"Compiled {args.file} -> {out_dir}", ""], color_enabled=False)
    console.print(format_files_table(result.files, color_enabled))
    print_lines(console, ["", *format_stats_lines(result.stats, color_enabled), ""], color_enabled)
    print_lines(console, format_diagnostics(result.warnings, result.errors, color_enabled), color_enabled)


def register(app: typer.Typer) -> None:
    """Register the compile command."""

    @app.command("compile")
    def compile_command(
        file: str = typer.Argument(..., metavar="FILE", help="AIR source file to compile"),
        config: str = typer.Option(
            DEFAULT_CONFIG_NAME,
            "--config",
            metavar="FILE",
            help="Config file name to load from current directory",
        ),
        out: str = typer.Option(
            DEFAULT_OUT_DIR,
            "--out",
            "-o",
            metavar="DIR",
            help="Directory to write generated files into",
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
        """Compile an AIR file into a React client and an Express/Prisma server."""
        args = CompileArgs(
            file=file,
            config=config,
            out=out,
            strict_handlers=strict_handlers,
            color_flag=color_flag,
        )
        run_compile(args)
