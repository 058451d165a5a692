"""Tests for tui formatting helpers."""

from __future__ import annotations

import pytest
from rich.console import Console

from airc.language import tokenize
from airc.transpiler import TranspileStats
from airc.transpiler.output import OutputFile
from airc.tui import (
    format_diagnostics,
    format_files_table,
    format_stats_lines,
    format_tokens_table,
    lines_to_text,
    print_lines,
)


STATS = TranspileStats(
    input_lines=10,
    output_lines=250,
    compression_ratio=25.0,
    components=3,
    pages=3,
    mutations=4,
    files=7,
)


def render(renderable: object) -> str:
    console = Console(no_color=True, width=120)
    with console.capture() as capture:
        console.print(renderable)
    return capture.get()


def test_format_stats_lines() -> None:
    """Stats should render one line per counter under a Summary heading."""
    lines = format_stats_lines(STATS, color_enabled=False)

    assert lines == [
        "Summary",
        "  Input lines: 10",
        "  Output lines: 250",
        "  Expansion: 25.0x",
        "  Pages: 3",
        "  Components: 3",
        "  Mutations: 4",
        "  Files: 7",
    ]


def test_format_stats_lines_without_input() -> None:
    """The expansion line should be omitted when the input size is unknown."""
    stats = TranspileStats(0, 20, 0.0, 1, 0, 0, 2)

    lines = format_stats_lines(stats, color_enabled=False)

    assert not any("Expansion" in line for line in lines)


def test_format_stats_lines_colored_heading() -> None:
    """The heading should carry markup when color is enabled."""
    assert format_stats_lines(STATS, color_enabled=True)[0] == "[bold white]Summary[/]"


def test_format_diagnostics_empty() -> None:
    """No warnings or errors should give a single success line."""
    assert format_diagnostics([], [], False) == ["No diagnostics"]


def test_format_diagnostics_lists_warnings_then_errors() -> None:
    """Warnings should precede errors."""
    lines = format_diagnostics(["AIR-W009: a"], ["AIR-E010: b"], False)

    assert lines == ["warning: AIR-W009: a", "error: AIR-E010: b"]


def test_format_files_table_total_row() -> None:
    """The files table should end with the total line count."""
    files = [OutputFile("src/App.jsx", "a\nb\n"), OutputFile("src/index.css", "c\n")]

    output = render(format_files_table(files, color_enabled=False))

    assert "src/App.jsx" in output
    assert "Total" in output
    assert output.strip().splitlines()[-1].split()[-1] == "3"


def test_format_tokens_table() -> None:
    """The tokens table should show position, kind and value."""
    output = render(format_tokens_table(tokenize("@app:demo"), color_enabled=False))

    assert "Pos" in output
    assert "at_keyword" in output
    assert "demo" in output
    assert "1:1" in output


def test_lines_to_text() -> None:
    """Lines should be joined with a trailing newline."""
    assert lines_to_text([]) == ""
    assert lines_to_text(["a", "b"]) == "a\nb\n"


def test_print_lines_plain(capsys: pytest.CaptureFixture[str]) -> None:
    """Plain output should print text without interpreting markup."""
    console = Console(no_color=True)

    print_lines(console, ["[x] literal"], color_enabled=False)

    assert capsys.readouterr().out == "[x] literal\n"
