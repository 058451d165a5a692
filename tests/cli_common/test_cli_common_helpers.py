"""Tests for shared CLI helpers."""

from __future__ import annotations

from pathlib import Path

import click
import pytest
import typer

from airc.cli_common import compile_file, load_app, load_tokens, read_source, write_files
from airc.transpiler.output import OutputFile


FIXTURES_DIR = Path(__file__).resolve().parent.parent / "fixtures"


def test_read_source_missing_file(tmp_path: Path) -> None:
    """Missing files should raise a parameter error naming the file."""
    missing = tmp_path / "nope.air"

    with pytest.raises(typer.BadParameter, match="not found"):
        read_source(str(missing))


def test_read_source_directory(tmp_path: Path) -> None:
    """Directories should be rejected."""
    with pytest.raises(typer.BadParameter, match="is a directory"):
        read_source(str(tmp_path))


def test_read_source_invalid_utf8(tmp_path: Path) -> None:
    """Undecodable files should be rejected."""
    path = tmp_path / "bad.air"
    path.write_bytes(b"@app:\xff\xfe")

    with pytest.raises(typer.BadParameter, match="not valid UTF-8"):
        read_source(str(path))


def test_load_tokens_and_app() -> None:
    """Helpers should tokenize and parse fixture files."""
    path = str(FIXTURES_DIR / "todo.air")

    assert load_tokens(path)[-1].kind == "eof"
    assert load_app(path).name == "todo"


def test_load_app_parse_error_is_usage_error() -> None:
    """Compiler errors should surface as click usage errors."""
    with pytest.raises(click.UsageError, match="Duplicate handler contract"):
        load_app(str(FIXTURES_DIR / "duplicate_contract.air"))


def test_compile_file_counts_source_lines() -> None:
    """compile_file should pass the source line count into the stats."""
    path = FIXTURES_DIR / "todo.air"

    result = compile_file(str(path), strict_handlers=False)

    assert result.stats.input_lines == len(path.read_text(encoding="utf-8").splitlines())


def test_compile_file_strict_error_is_usage_error() -> None:
    """Strict-mode failures should surface as click usage errors."""
    with pytest.raises(click.UsageError, match="AIR-E010"):
        compile_file(str(FIXTURES_DIR / "fullstack.air"), strict_handlers=True)


def test_write_files_creates_directories(tmp_path: Path) -> None:
    """Nested output paths should be created."""
    files = [OutputFile("server/prisma/schema.prisma", "model X {}\n"), OutputFile("a.txt", "a\n")]

    written = write_files(files, tmp_path / "out")

    assert written == [tmp_path / "out" / "server/prisma/schema.prisma", tmp_path / "out" / "a.txt"]
    assert (tmp_path / "out" / "server" / "prisma" / "schema.prisma").read_text(encoding="utf-8") == "model X {}\n"


def test_write_files_reports_os_errors(tmp_path: Path) -> None:
    """Write failures should become usage errors."""
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(click.UsageError, match="Cannot write"):
        write_files([OutputFile("x.txt", "x\n")], blocker)
