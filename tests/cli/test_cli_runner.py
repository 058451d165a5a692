"""CliRunner tests for the Typer CLI."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from airc.cli import app


FIXTURES_DIR = Path(__file__).resolve().parent.parent / "fixtures"


def test_cli_runner_compile_writes_files(tmp_path: Path) -> None:
    """compile should write every generated file and print the files table."""
    runner = CliRunner()
    fixture_path = str((FIXTURES_DIR / "todo.air").resolve())
    out_dir = tmp_path / "build"

    result = runner.invoke(app, ["compile", "--no-color", "--out", str(out_dir), fixture_path])

    assert result.exit_code == 0
    assert f"Compiled {fixture_path} -> {out_dir}" in result.stdout
    assert "src/App.jsx" in result.stdout
    assert "Total" in result.stdout
    assert "No diagnostics" in result.stdout
    assert (out_dir / "src" / "App.jsx").is_file()
    assert (out_dir / "src" / "index.css").read_text(encoding="utf-8").startswith("@tailwind base;")
    manifest = json.loads((out_dir / "_airc_manifest.json").read_text(encoding="utf-8"))
    assert manifest["generatedBy"] == "airc"


def test_cli_runner_compile_reports_diagnostics(tmp_path: Path) -> None:
    """compile should list degraded contracts as warnings without failing."""
    runner = CliRunner()
    fixture_path = str((FIXTURES_DIR / "fullstack.air").resolve())

    result = runner.invoke(app, ["compile", "--no-color", "-o", str(tmp_path), fixture_path])

    assert result.exit_code == 0
    assert "warning: AIR-W009" in result.stdout
    assert "warning: AIR-E010" in result.stdout
    assert "error:" not in result.stdout
    assert (tmp_path / "server" / "prisma" / "schema.prisma").is_file()


def test_cli_runner_compile_strict_handlers_fails(tmp_path: Path) -> None:
    """--strict-handlers should turn a non-executable contract into a usage error."""
    runner = CliRunner()
    fixture_path = str((FIXTURES_DIR / "fullstack.air").resolve())

    result = runner.invoke(
        app, ["compile", "--no-color", "--strict-handlers", "-o", str(tmp_path), fixture_path]
    )

    assert result.exit_code == 2
    assert "AIR-E010" in result.output
    assert not (tmp_path / "server").exists()


def test_cli_runner_check_clean() -> None:
    """check should print stats and succeed when there are no errors."""
    runner = CliRunner()
    fixture_path = str((FIXTURES_DIR / "todo.air").resolve())

    result = runner.invoke(app, ["check", "--no-color", fixture_path])

    assert result.exit_code == 0
    assert "Summary" in result.stdout
    assert "  Mutations: 2" in result.stdout
    assert "No diagnostics" in result.stdout


def test_cli_runner_check_warns_on_degraded_contract() -> None:
    """check should succeed on a valid program and warn about degraded contracts."""
    runner = CliRunner()
    fixture_path = str((FIXTURES_DIR / "fullstack.air").resolve())

    result = runner.invoke(app, ["check", "--no-color", fixture_path])

    assert result.exit_code == 0
    assert "warning: AIR-E010" in result.stdout
    assert "error:" not in result.stdout


def test_cli_runner_check_parse_error() -> None:
    """Parse errors should be reported as usage errors."""
    runner = CliRunner()
    fixture_path = str((FIXTURES_DIR / "duplicate_contract.air").resolve())

    result = runner.invoke(app, ["check", "--no-color", fixture_path])

    assert result.exit_code == 2
    assert "approveClaim" in result.output


def test_cli_runner_ast_json() -> None:
    """ast should print the syntax tree as JSON."""
    runner = CliRunner()
    fixture_path = str((FIXTURES_DIR / "todo.air").resolve())

    result = runner.invoke(app, ["ast", "--no-color", fixture_path])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["class"] == "AirApp"
    assert data["name"] == "todo"


def test_cli_runner_tokens_table() -> None:
    """tokens should print one row per token."""
    runner = CliRunner()
    fixture_path = str((FIXTURES_DIR / "todo.air").resolve())

    result = runner.invoke(app, ["tokens", "--no-color", fixture_path])

    assert result.exit_code == 0
    assert "Kind" in result.stdout
    assert "at_keyword" in result.stdout
    assert "1:1" in result.stdout or "2:1" in result.stdout


def test_cli_runner_missing_file() -> None:
    """Missing input files should fail with a parameter error."""
    runner = CliRunner()

    result = runner.invoke(app, ["check", "--no-color", "missing.air"])

    assert result.exit_code == 2
    assert "not found" in result.output
