"""CLI commands against a file-backed SQLite database."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from consult_review.cli import app

runner = CliRunner()


@pytest.fixture
def cli_config(tmp_path: Path) -> str:
    config_file = tmp_path / "cli_config.yaml"
    config_file.write_text(
        f"""
database:
  url: "sqlite:///{tmp_path / 'cli.db'}"
"""
    )
    return str(config_file)


def test_seed_and_list(cli_config: str) -> None:
    result = runner.invoke(app, ["seed", "-c", cli_config])
    assert result.exit_code == 0, result.output
    result = runner.invoke(app, ["list-cases", "-c", cli_config])
    assert result.exit_code == 0, result.output
    assert "4 case(s); 1 new and unassigned." in result.output
    assert "Cefalea recurrente" in result.output


def test_create_assign_and_resolve(cli_config: str, monkeypatch) -> None:
    monkeypatch.setenv("CONSULT_ACTOR", "dr_garcia")
    result = runner.invoke(
        app,
        [
            "create-case", "-c", cli_config,
            "--title", "Tos crónica",
            "--sex", "M",
            "--age-range", "51-65",
            "--query", "¿Espirometría?",
            "--urgency", "HIGH",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Created case 1" in result.output

    result = runner.invoke(
        app, ["assign", "-c", cli_config, "--id", "1", "--expert", "dra_rodriguez"]
    )
    assert result.exit_code == 0, result.output
    assert "status=IN_REVIEW" in result.output

    result = runner.invoke(
        app,
        ["change-status", "-c", cli_config, "--id", "1", "--status", "RESOLVED", "--role", "SUBMITTER"],
    )
    assert result.exit_code == 1
    assert "reason is required" in result.output

    result = runner.invoke(
        app,
        [
            "change-status", "-c", cli_config,
            "--id", "1", "--status", "RESOLVED", "--role", "SUBMITTER",
            "--reason", "Caso resuelto por médico de cabecera",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "status=RESOLVED" in result.output


def test_assign_blank_expert_exits_1(cli_config: str) -> None:
    runner.invoke(app, ["seed", "-c", cli_config])
    result = runner.invoke(app, ["assign", "-c", cli_config, "--id", "1", "--expert", ""])
    assert result.exit_code == 1
    assert "must not be blank" in result.output
    result = runner.invoke(app, ["list-cases", "-c", cli_config])
    assert "1 new and unassigned." in result.output


def test_unknown_case_exits_1(cli_config: str) -> None:
    result = runner.invoke(app, ["mark-read", "-c", cli_config, "--id", "77"])
    assert result.exit_code == 1
    assert "Case 77 not found" in result.output
