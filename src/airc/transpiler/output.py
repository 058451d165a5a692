"""Generated-file records shared by the backends."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class OutputFile:
    """One generated file, addressed by its path relative to the output root."""

    path: str
    content: str

    @property
    def line_count(self) -> int:
        return self.content.count("\n") + (0 if self.content.endswith("\n") or not self.content else 1)


def indent(lines: list[str], spaces: int) -> list[str]:
    pad = " " * spaces
    return [f"{pad}{line}" if line else line for line in lines]


def join_lines(lines: list[str]) -> str:
    """Join lines and guarantee exactly one trailing newline."""
    return "\n".join(lines).rstrip("\n") + "\n"
