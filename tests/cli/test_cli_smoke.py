"""Subprocess smoke tests for the CLI entrypoint."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path


PROJECT_ROOT = os.path.join(os.path.dirname(__file__), "..", "..")
FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "..", "fixtures")


def test_cli_check_smoke() -> None:
    """Ensure check runs via python -m airc."""
    fixture_path = os.path.join(FIXTURES_DIR, "todo.air")

    result = subprocess.run(
        [sys.executable, "-m", "airc", "check", "--no-color", fixture_path],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
    )

    assert result.returncode == 0
    assert "Summary" in result.stdout
    assert "No diagnostics" in result.stdout


def test_cli_compile_verbose_smoke(tmp_path: Path) -> None:
    """Ensure --verbose logs processing and files land in the output directory."""
    fixture_path = os.path.join(FIXTURES_DIR, "fullstack.air")
    out_dir = tmp_path / "out"

    result = subprocess.run(
        [
            sys.executable,
            "-m",
            "airc",
            "--verbose",
            "compile",
            "--no-color",
            "--out",
            str(out_dir),
            fixture_path,
        ],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
    )

    assert result.returncode == 0
    assert result.stdout.count("Processing") == 1
    assert "[cli] Processing" in result.stdout
    assert "[parser] Parsed app" in result.stdout
    assert (out_dir / "server" / "api.ts").is_file()
    assert (out_dir / "_airc_manifest.json").is_file()


def test_cli_malformed_config_smoke(tmp_path: Path) -> None:
    """A malformed config file should stop the CLI with a usage error."""
    fixture_path = os.path.abspath(os.path.join(FIXTURES_DIR, "todo.air"))
    (tmp_path / ".airc.json").write_text("{not json", encoding="utf-8")

    result = subprocess.run(
        [sys.executable, "-m", "airc", "check", "--no-color", fixture_path],
        cwd=tmp_path,
        capture_output=True,
        text=True,
    )

    assert result.returncode != 0
    assert "Malformed config" in result.stderr
