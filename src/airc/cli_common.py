"""Shared helpers for airc CLI commands."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import click
import typer

from airc.language import AirApp, AirError, Token, parse, tokenize
from airc.logging_config import get_logger
from airc.transpiler import TranspileOptions, TranspileResult, transpile
from airc.transpiler.output import OutputFile


logger = get_logger("cli")


def read_source(filepath: str) -> str:
    """Read an AIR source file.

    Args:
        filepath: Path to the ``.air`` file

    Returns:
        File contents

    Raises:
        typer.BadParameter: If the file cannot be read
    """
    try:
        with open(filepath, encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError as err:
        raise typer.BadParameter(f"File '{filepath}' not found") from err
    except IsADirectoryError as err:
        raise typer.BadParameter(f"'{filepath}' is a directory") from err
    except PermissionError as err:
        raise typer.BadParameter(f"Permission denied for '{filepath}'") from err
    except UnicodeDecodeError as err:
        raise typer.BadParameter(f"File '{filepath}' is not valid UTF-8") from err


def load_tokens(filepath: str) -> list[Token]:
    return tokenize(read_source(filepath))


def load_app(filepath: str) -> AirApp:
    """Read and parse a source file, reporting compiler errors as usage errors."""
    source = read_source(filepath)
    try:
        return parse(source)
    except AirError as exc:
        raise click.UsageError(str(exc)) from exc


def compile_file(filepath: str, strict_handlers: bool) -> TranspileResult:
    """Read, parse and transpile one source file."""
    source = read_source(filepath)
    logger.info("Processing %s...", filepath)
    options = TranspileOptions(strict_handlers=strict_handlers, source_lines=len(source.splitlines()))
    try:
        return transpile(parse(source), options)
    except AirError as exc:
        raise click.UsageError(str(exc)) from exc


def write_files(files: Sequence[OutputFile], out_dir: Path) -> list[Path]:
    """Write generated files below ``out_dir``, creating directories as needed."""
    written: list[Path] = []
    for file in files:
        target = out_dir / file.path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(file.content, encoding="utf-8")
        except OSError as err:
            raise click.UsageError(f"Cannot write '{target}': {err.strerror or err}") from err
        written.append(target)
    logger.info("Wrote %d files to %s", len(written), out_dir)
    return written
