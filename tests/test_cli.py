from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from samantha.cli import app

runner = CliRunner()


def test_providers_lists_bundled_providers() -> None:
    result = runner.invoke(app, ["providers"])

    assert result.exit_code == 0
    assert result.output.splitlines() == ["frontend telegram", "backend echo", "backend watson"]


def test_run_exits_with_error_on_bad_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    frontend = tmp_path / "frontend.yaml"
    frontend.write_text("- label: unknown\n", encoding="utf-8")

    result = runner.invoke(
        app, ["run", "--frontend-config", str(frontend), "--backend-config", str(tmp_path / "backend.yaml")]
    )

    assert result.exit_code == 1
    assert "error:" in result.output


def test_run_exits_with_error_on_bad_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SAMANTHA_ENVIRONMENT", "staging")

    result = runner.invoke(app, ["run"])

    assert result.exit_code == 1
    assert "error: invalid settings" in result.output
