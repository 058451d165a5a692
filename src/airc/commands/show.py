"""Inspection commands: dump the token stream or the parsed syntax tree."""

from __future__ import annotations

import json
from dataclasses import dataclass

import typer
from rich.syntax import Syntax

from airc.cli_common import load_app, load_tokens
from airc.config import DEFAULT_CONFIG_NAME
from airc.language import to_data
from airc.tui import build_console, format_tokens_table, print_lines, setup_output


DEFAULT_SYNTAX_THEME = "github-dark"


@dataclass
class ShowArgs:
    """Arguments for the ast and tokens commands."""

    file: str
    config: str
    color_flag: bool | None


def run_ast(args: ShowArgs) -> None:
    """Print the parsed document as JSON."""
    color_enabled = setup_output(args.color_flag)
    console = build_console(color_enabled)
    app = load_app(args.file)
    text = json.dumps(to_data(app), indent=2)
    if color_enabled:
        console.print(Syntax(text, "json", theme=DEFAULT_SYNTAX_THEME, word_wrap=True))
    else:
        print_lines(console, [text], color_enabled=False)


def run_tokens(args: ShowArgs) -> None:
    color_enabled = setup_output(args.color_flag)
    console = build_console(color_enabled)
    console.print(format_tokens_table(load_tokens(args.file), color_enabled))


def register(app: typer.Typer) -> None:
    """Register the ast and tokens commands."""

    @app.command("ast")
    def ast_command(
        file: str = typer.Argument(..., metavar="FILE", help="AIR source file to parse"),
        config: str = typer.Option(
            DEFAULT_CONFIG_NAME,
            "--config",
            metavar="FILE",
            help="Config file name to load from current directory",
        ),
        color_flag: bool | None = typer.Option(
            None,
            "--color/--no-color",
            help="Force colored output",
        ),
    ) -> None:
        """Print the syntax tree of an AIR file as JSON."""
        run_ast(ShowArgs(file=file, config=config, color_flag=color_flag))

    @app.command("tokens")
    def tokens_command(
        file: str = typer.Argument(..., metavar="FILE", help="AIR source file to tokenize"),
        config: str = typer.Option(
            DEFAULT_CONFIG_NAME,
            "--config",
            metavar="FILE",
            help="Config file name to load from current directory",
        ),
        color_flag: bool | None = typer.Option(
            None,
            "--color/--no-color",
            help="Force colored output",
        ),
    ) -> None:
        """Print the token stream of an AIR file."""
        run_tokens(ShowArgs(file=file, config=config, color_flag=color_flag))
