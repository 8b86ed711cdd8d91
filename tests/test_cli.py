"""Tests for the switchboard CLI."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from switchboard.cli import main


@pytest.fixture(autouse=True)
def home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    monkeypatch.setenv("SWITCHBOARD_HOME", str(tmp_path))
    monkeypatch.delenv("SWITCHBOARD_TIMEOUT", raising=False)
    return tmp_path


def test_version() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_init(home: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["init"])
    assert result.exit_code == 0
    assert "initialized" in result.output.lower()
    assert (home / "handlers.toml").exists()


def test_init_keeps_existing(home: Path) -> None:
    (home / "handlers.toml").write_text('[[handlers]]\nname = "mine"\n')
    runner = CliRunner()
    result = runner.invoke(main, ["init"])
    assert result.exit_code == 0
    assert "Keeping existing" in result.output
    assert "mine" in (home / "handlers.toml").read_text()


def test_handlers() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["handlers"])
    assert result.exit_code == 0
    assert "Handlers" in result.output


def test_classify() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["classify", "terraform the AKS cluster"])
    assert result.exit_code == 0
    assert "terraform-expert" in result.output
    assert "kubernetes-sme" in result.output


def test_plan() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["plan", "Build a docker image and deploy it to AKS"])
    assert result.exit_code == 0
    assert "sequential" in result.output
    assert "Stage 2: kubernetes-sme" in result.output


def test_plan_no_match() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["plan", "bake bread"])
    assert result.exit_code == 1
    assert "NoMatch" in result.output


def test_route_then_history(home: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["route", "Write a README for the petclinic app"])
    assert result.exit_code == 0
    assert "Status: success" in result.output
    assert "## documentation-writer" in result.output
    assert (home / "data" / "ledger.db").exists()

    result = runner.invoke(main, ["history"])
    assert result.exit_code == 0
    assert "Routing History" in result.output


def test_route_no_record(home: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["route", "--no-record", "--hint", "docs", "help me"])
    assert result.exit_code == 0
    assert "documentation-writer" in result.output
    assert not (home / "data" / "ledger.db").exists()


def test_history_empty() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["history"])
    assert result.exit_code == 0
    assert "No routing history" in result.output
