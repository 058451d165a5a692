"""Configuration handling for the airc CLI.

The config file is JSON with a single ``defaults`` section keyed by option
names as typed on the command line::

    {"defaults": {"--out": "build", "--strict-handlers": true, "--no-color": true}}
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import cast

import typer

from airc.logging_config import get_logger


DEFAULT_CONFIG_NAME = ".airc.json"

COMMAND_OPTION_NAMES = {
    "color_flag",
    "out",
    "strict_handlers",
    "verbose",
}

BOOL_OPTIONS: dict[str, str] = {
    "--strict-handlers": "strict_handlers",
    "--verbose": "verbose",
}

STR_OPTIONS: dict[str, str] = {
    "--out": "out",
}

# Options each command accepts.
COMMAND_DEFAULT_KEYS: dict[str, frozenset[str]] = {
    "compile": frozenset({"color_flag", "out", "strict_handlers"}),
    "check": frozenset({"color_flag", "strict_handlers"}),
    "ast": frozenset({"color_flag"}),
    "tokens": frozenset({"color_flag"}),
}


CONFIG_DEFAULTS: dict[str, object] = {}


logger = get_logger("config")


@dataclass
class LoadedCliConfig:
    """Fully parsed CLI config payload."""

    defaults: dict[str, object]


def load_config(filepath: str) -> tuple[dict[str, object], bool]:
    """Load config from JSON file.

    Args:
        filepath: Path to config file

    Returns:
        Tuple of (config dict, malformed flag)
    """
    try:
        with open(filepath, encoding="utf-8") as f:
            config = json.load(f)
    except FileNotFoundError:
        return ({}, False)
    except OSError:
        return ({}, True)
    except json.JSONDecodeError:
        return ({}, True)

    if not isinstance(config, dict):
        return ({}, True)

    return (config, False)


def parse_color_defaults(config: dict[str, object]) -> tuple[dict[str, object], bool]:
    """Parse color-related config defaults."""
    defaults: dict[str, object] = {}
    color_value = config.get("--color")
    no_color_value = config.get("--no-color")

    if "--color" in config and not isinstance(color_value, bool):
        return ({}, False)
    if "--no-color" in config and not isinstance(no_color_value, bool):
        return ({}, False)
    if color_value is True and no_color_value is True:
        return ({}, False)

    if color_value is True:
        defaults["color_flag"] = True
    if no_color_value is True:
        defaults["color_flag"] = False

    return (defaults, True)


def parse_config_sections(raw_config: dict[str, object]) -> dict[str, object] | None:
    """Return the ``defaults`` section, or None when the top level is malformed."""
    if any(key != "defaults" for key in raw_config):
        return None

    defaults_section = raw_config.get("defaults", {})
    if not isinstance(defaults_section, dict):
        return None

    return cast(dict[str, object], defaults_section)


def build_config_defaults(config: dict[str, object]) -> dict[str, object] | None:
    """Validate config values and build defaults.

    Args:
        config: Raw ``defaults`` section

    Returns:
        Defaults keyed by option destination, or None if malformed
    """
    color_defaults, color_valid = parse_color_defaults(config)
    if not color_valid:
        return None

    defaults: dict[str, object] = dict(color_defaults)
    known = {"--color", "--no-color", *BOOL_OPTIONS, *STR_OPTIONS}

    for key, value in config.items():
        if key not in known:
            logger.info("Unknown config option %s", key)
            return None
        if key in BOOL_OPTIONS:
            if not isinstance(value, bool):
                return None
            defaults[BOOL_OPTIONS[key]] = value
        elif key in STR_OPTIONS:
            if not isinstance(value, str) or not value.strip():
                return None
            defaults[STR_OPTIONS[key]] = value

    return defaults


def parse_config_argument(argv: list[str]) -> str:
    """Parse only the --config argument from argv."""
    for idx, arg in enumerate(argv[1:], start=1):
        if arg == "--config" and idx + 1 < len(argv):
            return argv[idx + 1]
        if arg.startswith("--config="):
            return arg.split("=", 1)[1]
    return DEFAULT_CONFIG_NAME


def load_cli_config(argv: list[str]) -> LoadedCliConfig:
    """Load config defaults from the configured file path."""
    config_name = parse_config_argument(argv)
    config_path = Path(config_name)
    if not config_path.is_absolute():
        config_path = Path.cwd() / config_name
    config, load_error = load_config(str(config_path))

    if load_error:
        raise typer.BadParameter("Malformed config")

    defaults_section = parse_config_sections(config)
    if defaults_section is None:
        raise typer.BadParameter("Malformed config")

    defaults = build_config_defaults(defaults_section)
    if defaults is None:
        raise typer.BadParameter("Malformed config")

    return LoadedCliConfig(
        defaults={key: value for key, value in defaults.items() if key in COMMAND_OPTION_NAMES}
    )


def build_default_map(defaults: dict[str, object]) -> dict[str, dict[str, object]]:
    """Build Click default_map for Typer commands."""
    return {
        command: {key: value for key, value in defaults.items() if key in keys}
        for command, keys in COMMAND_DEFAULT_KEYS.items()
    }
