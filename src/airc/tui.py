"""Terminal output formatting for the airc CLI."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from rich.console import Console
from rich.table import Table

from airc.color import bold, dim, error, should_use_color, success, warning
from airc.language.lexer import Token, TokenKind
from airc.transpiler import TranspileStats
from airc.transpiler.output import OutputFile


def setup_output(color_flag: bool | None) -> bool:
    """Resolve the effective color setting for a command."""
    return should_use_color(color_flag)


def build_console(color_enabled: bool) -> Console:
    return Console(
        no_color=not color_enabled,
        highlight=False,
        force_terminal=True if color_enabled else None,
    )


@contextmanager
def processing_status(console: Console, color_enabled: bool, message: str = "Compiling...") -> Iterator[None]:
    """Show a spinner while work runs; plain output gets no spinner."""
    if not color_enabled:
        yield
        return
    with console.status(message):
        yield


def lines_to_text(lines: Sequence[str]) -> str:
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def print_lines(console: Console, lines: Sequence[str], color_enabled: bool) -> None:
    text = lines_to_text(lines)
    if text:
        console.print(text, markup=color_enabled, highlight=False, soft_wrap=True, emoji=False, end="")


def format_files_table(files: Sequence[OutputFile], color_enabled: bool) -> Table:
    """Build the generated-files table with a trailing total row."""
    table = Table(show_header=True, header_style="bold" if color_enabled else "", box=None, pad_edge=False)
    table.add_column("File")
    table.add_column("Lines", justify="right")
    for file in files:
        table.add_row(file.path, str(file.line_count))
    table.add_row("Total", str(sum(file.line_count for file in files)), style="bold" if color_enabled else "")
    return table


def format_stats_lines(stats: TranspileStats, color_enabled: bool) -> list[str]:
    lines = [bold("Summary", color_enabled)]
    lines.append(f"  Input lines: {stats.input_lines}")
    lines.append(f"  Output lines: {stats.output_lines}")
    if stats.input_lines > 0:
        lines.append(f"  Expansion: {stats.compression_ratio}x")
    lines.append(f"  Pages: {stats.pages}")
    lines.append(f"  Components: {stats.components}")
    lines.append(f"  Mutations: {stats.mutations}")
    lines.append(f"  Files: {stats.files}")
    return lines


def format_diagnostics(warnings: Sequence[str], errors: Sequence[str], color_enabled: bool) -> list[str]:
    """Render warnings and errors, or a success line when there are none."""
    if not warnings and not errors:
        return [success("No diagnostics", color_enabled)]
    lines = [warning(f"warning: {message}", color_enabled) for message in warnings]
    lines.extend(error(f"error: {message}", color_enabled) for message in errors)
    return lines


def format_tokens_table(tokens: Sequence[Token], color_enabled: bool) -> Table:
    table = Table(show_header=True, header_style="bold" if color_enabled else "", box=None, pad_edge=False)
    table.add_column("Pos")
    table.add_column("Kind")
    table.add_column("Value")
    for token in tokens:
        value = "" if token.kind in (TokenKind.NEWLINE, TokenKind.EOF) else token.value
        table.add_row(
            dim(f"{token.line}:{token.col}", color_enabled),
            token.kind.value,
            value,
        )
    return table
