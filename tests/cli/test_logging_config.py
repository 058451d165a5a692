"""Tests for per-stage logging configuration."""

from __future__ import annotations

import logging

import pytest

from airc.logging_config import LOGGER_NAME, StageFormatter, configure_logging, get_logger


def make_record(name: str, message: str) -> logging.LogRecord:
    return logging.LogRecord(name, logging.INFO, __file__, 1, message, None, None)


def test_stage_formatter_prefixes_stage_name() -> None:
    """Records from stage loggers should be tagged with the stage."""
    formatter = StageFormatter("%(message)s")

    assert formatter.format(make_record("airc.parser", "Parsed app 'todo'")) == "[parser] Parsed app 'todo'"
    assert formatter.format(make_record("airc", "Done")) == "Done"


def test_get_logger_is_child_of_airc() -> None:
    """Stage loggers should hang off the airc logger."""
    logger = get_logger("lexer")

    assert logger.name == "airc.lexer"
    assert logger.parent is logging.getLogger(LOGGER_NAME)


def test_configure_logging_verbose_writes_stage_lines(capsys: pytest.CaptureFixture[str]) -> None:
    """Verbose mode should print stage INFO lines to stdout."""
    configure_logging(False)
    configure_logging(True)
    try:
        get_logger("seed").info("Seed order: %s", "User, Post")
    finally:
        configure_logging(False)

    assert capsys.readouterr().out == "[seed] Seed order: User, Post\n"


def test_configure_logging_quiet_clears_handlers() -> None:
    """Non-verbose mode should drop handlers and only pass warnings."""
    configure_logging(True)
    configure_logging(False)

    logger = logging.getLogger(LOGGER_NAME)
    assert logger.handlers == []
    assert logger.level == logging.WARNING
    assert not get_logger("ui").isEnabledFor(logging.INFO)
