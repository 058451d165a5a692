"""Errors raised by the AIR compiler."""

from __future__ import annotations


class AirError(Exception):
    """Base exception for AIR compiler failures."""


class AirParseError(AirError):
    """Raised when source text cannot be parsed."""

    def __init__(
        self,
        message: str,
        line: int,
        col: int,
        token: str | None = None,
        source_line: str | None = None,
    ) -> None:
        token_info = f" (token: '{token}')" if token else ""
        text = f"[AIR Parse Error] Line {line}:{col}: {message}{token_info}"
        if source_line is not None:
            pointer = " " * max(col - 1, 0) + "^"
            text = f"{text}\n\n{source_line}\n{pointer}"
        super().__init__(text)
        self.reason = message
        self.line = line
        self.col = col
        self.token = token
        self.source_line = source_line


class AirContextError(AirError):
    """Raised when a parsed document violates semantic rules."""


class AirStrictModeError(AirError):
    """Raised in strict-handler mode for unresolved references."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
