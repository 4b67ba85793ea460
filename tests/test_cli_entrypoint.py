from __future__ import annotations

import importlib

import pytest


def test_console_entrypoint_exposes_app() -> None:
    pytest.importorskip("typer")

    module = importlib.import_module("nexus_builder.main")

    assert hasattr(module, "app")
    assert module.app is not None


def _invoke(*args: str):
    typer_testing = pytest.importorskip("typer.testing")
    from nexus_builder.main import app

    return typer_testing.CliRunner().invoke(app, list(args))


def test_validate_command_exit_codes() -> None:
    valid = _invoke("validate", "DeployAgent[3] north patrol")
    invalid = _invoke("validate", "ScanArea 100 100 5")

    assert valid.exit_code == 0
    assert "'is_valid': True" in valid.output
    assert invalid.exit_code == 1
    assert "X coordinate 100 is out of bounds" in invalid.output


def test_generate_prints_summary() -> None:
    result = _invoke("generate", "--seed", "alpha", "--width", "20", "--height", "20", "--biome", "corrupted")

    assert result.exit_code == 0
    assert "generated_corrupted_" in result.output
    assert "corrupted_world_alpha" in result.output


def test_event_prints_seeded_event() -> None:
    result = _invoke("event", "--seed", "storm")

    assert result.exit_code == 0
    assert "event_" in result.output


def test_run_executes_commands_in_order() -> None:
    result = _invoke("run", "DeployAgent[2] center", "Status")

    assert result.exit_code == 0
    assert "succeeded" in result.output
    assert "'score': 20" in result.output


def test_resolve_without_model_uses_heuristics(monkeypatch: pytest.MonkeyPatch) -> None:
    from nexus_builder.config import settings

    monkeypatch.setattr(settings, "model_api_key", None)
    result = _invoke("resolve", "deploy three agents north patrol")

    assert result.exit_code == 0
    assert "DeployAgent[3] north patrol" in result.output
    assert "heuristic" in result.output


def test_terminal_history_and_forget(monkeypatch: pytest.MonkeyPatch) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from nexus_builder.config import settings
    from nexus_builder.main import app

    monkeypatch.setattr(settings, "model_api_key", None)
    monkeypatch.setattr(settings, "history_path", None)
    result = typer_testing.CliRunner().invoke(
        app,
        ["terminal", "--session-id", "s1"],
        input="Status\ndeploy two agents east patrol\nhistory\nforget\nforget\nexit\n",
    )

    assert result.exit_code == 0
    assert "'succeeded: DeployAgent[2] east patrol'" in result.output
    assert "'succeeded: Status'" in result.output
    assert "'forgotten': True" in result.output
    assert "'forgotten': False" in result.output
    assert "'terminal': 'stopped'" in result.output
