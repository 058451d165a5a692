"""Tests for airc.cli main entrypoint wiring."""

from __future__ import annotations

import sys
from types import SimpleNamespace

import pytest
import typer

from airc import cli, config


def test_cli_main_builds_default_map(monkeypatch: pytest.MonkeyPatch) -> None:
    """main should load config defaults and pass default_map to Typer command."""
    recorded: dict[str, object] = {}

    class DummyCommand:
        def main(
            self, args: list[str], prog_name: str, standalone_mode: bool, default_map: object
        ) -> None:
            recorded["args"] = args
            recorded["prog_name"] = prog_name
            recorded["standalone_mode"] = standalone_mode
            recorded["default_map"] = default_map

    def fake_get_command(_app: object) -> DummyCommand:
        return DummyCommand()

    monkeypatch.setattr(
        config, "load_cli_config", lambda _argv: config.LoadedCliConfig(defaults={"out": "build"})
    )
    monkeypatch.setattr(config, "build_default_map", lambda _defaults: {"compile": _defaults})
    monkeypatch.setattr(typer.main, "get_command", fake_get_command)

    monkeypatch.setattr(sys, "argv", ["airc", "compile", "--no-color", "app.air"])
    cli.main()

    assert recorded["args"] == ["compile", "--no-color", "app.air"]
    assert recorded["prog_name"] == "airc"
    assert recorded["standalone_mode"] is True
    assert recorded["default_map"] == {"compile": {"out": "build"}}


def test_cli_main_without_defaults_passes_no_map(monkeypatch: pytest.MonkeyPatch) -> None:
    """An empty config should not build a default_map."""
    recorded: dict[str, object] = {}

    def fake_main(**kwargs: object) -> None:
        recorded.update(kwargs)

    monkeypatch.setattr(config, "load_cli_config", lambda _argv: config.LoadedCliConfig(defaults={}))
    monkeypatch.setattr(typer.main, "get_command", lambda _app: SimpleNamespace(main=fake_main))
    monkeypatch.setattr(sys, "argv", ["airc", "check", "app.air"])

    cli.main()

    assert recorded["default_map"] is None


def test_cli_main_updates_config_globals(monkeypatch: pytest.MonkeyPatch) -> None:
    """main should move verbose into DEFAULT_VERBOSE and keep the rest as defaults."""
    original_defaults = dict(config.CONFIG_DEFAULTS)
    original_verbose = cli.DEFAULT_VERBOSE["value"]

    def fake_get_command(_app: object) -> SimpleNamespace:
        return SimpleNamespace(main=lambda **_: None)

    monkeypatch.setattr(
        config,
        "load_cli_config",
        lambda _argv: config.LoadedCliConfig(defaults={"verbose": True, "strict_handlers": True}),
    )
    monkeypatch.setattr(config, "build_default_map", lambda _defaults: {})
    monkeypatch.setattr(typer.main, "get_command", fake_get_command)
    monkeypatch.setattr(sys, "argv", ["airc", "check", "app.air"])

    try:
        cli.main()

        assert cli.DEFAULT_VERBOSE["value"] is True
        assert config.CONFIG_DEFAULTS == {"strict_handlers": True}
    finally:
        cli.DEFAULT_VERBOSE["value"] = original_verbose
        config.CONFIG_DEFAULTS.clear()
        config.CONFIG_DEFAULTS.update(original_defaults)
