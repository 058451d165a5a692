"""Tests for airc.color utilities."""

from __future__ import annotations

import sys

import pytest

from airc import color


def test_should_use_color_respects_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    """Explicit color flag should override TTY detection."""
    monkeypatch.setattr(sys.stdout, "isatty", lambda: False)

    assert color.should_use_color(True) is True
    assert color.should_use_color(False) is False


def test_should_use_color_uses_tty(monkeypatch: pytest.MonkeyPatch) -> None:
    """When flag is None, use TTY detection."""
    monkeypatch.setattr(sys.stdout, "isatty", lambda: True)

    assert color.should_use_color(None) is True


def test_colorize_noop_when_disabled() -> None:
    """colorize should return original text when disabled."""
    assert color.colorize("hello", "green", False) == "hello"


def test_colorize_wraps_when_enabled() -> None:
    """colorize should wrap text with markup when enabled."""
    assert color.colorize("hello", "green", True) == "[green]hello[/]"


def test_colorize_escapes_markup() -> None:
    """Brackets in diagnostics should not be read as markup."""
    assert color.colorize("[bold]x", "red", True) == "[red]\\[bold]x[/]"


def test_diagnostic_styles() -> None:
    """Warning, error and success helpers should use distinct styles."""
    assert color.warning("w", True) == "[bright_yellow]w[/]"
    assert color.error("e", True) == "[bright_red]e[/]"
    assert color.success("ok", True) == "[bright_green]ok[/]"
