"""Logging configuration for the airc CLI.

Every compiler stage logs through its own child of the ``airc`` logger
(``airc.lexer``, ``airc.parser``, ``airc.context``, ``airc.ui``,
``airc.server``, ``airc.seed``). Only the ``airc`` logger carries a handler,
so ``--verbose`` shows the whole pipeline with each line tagged by the
stage that wrote it::

    [cli] Processing todo.air...
    [lexer] Tokenized 412 characters into 133 tokens
    [parser] Parsed app 'todo' with 4 blocks
"""

from __future__ import annotations

import logging
import sys


LOGGER_NAME = "airc"


class StageFormatter(logging.Formatter):
    """Prefix records from stage loggers with ``[stage]``."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        stage = record.name.removeprefix(f"{LOGGER_NAME}.")
        if stage == record.name:
            return message
        return f"[{stage}] {message}"


def get_logger(stage: str) -> logging.Logger:
    """Return the logger for one compiler stage, e.g. ``get_logger("parser")``."""
    return logging.getLogger(f"{LOGGER_NAME}.{stage}")


def configure_logging(verbose: bool) -> None:
    """Configure logging output based on verbosity.

    Args:
        verbose: Whether to enable INFO logging from every stage to stdout
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.propagate = False

    if verbose:
        logger.setLevel(logging.INFO)
        if not any(isinstance(handler, logging.StreamHandler) for handler in logger.handlers):
            handler = logging.StreamHandler(sys.stdout)
            handler.setLevel(logging.INFO)
            handler.setFormatter(StageFormatter("%(message)s"))
            logger.addHandler(handler)
    else:
        logger.setLevel(logging.WARNING)
        logger.handlers.clear()
