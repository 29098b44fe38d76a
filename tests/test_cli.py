"""End-to-end smoke tests for the Typer-based ossgames CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import pytest
import typer
from rich.console import Console
from typer.testing import CliRunner

from ossgames.cli.common import CLIError, parse_overrides
from ossgames.cli.main import app
from ossgames.entities import CanonicalDataset, RunReport
from ossgames.orchestration import FatalPipelineError, RunOptions, RunResult


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def cli_env(tmp_path: Path) -> dict[str, str]:
    return {
        "OSSGAMES_SETTINGS__PATHS__DATA_DIR": str(tmp_path / "data"),
        "OSSGAMES_SETTINGS__PATHS__LOGS_DIR": str(tmp_path / "logs"),
        "OSSGAMES_SETTINGS__PATHS__DATASET_FILE": str(tmp_path / "data" / "games.json"),
    }


@pytest.fixture(autouse=True)
def quiet_cli(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("ossgames.cli.main.configure_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr("ossgames.cli.pipeline.console", Console(width=240))


@pytest.fixture()
def captured(monkeypatch: pytest.MonkeyPatch) -> Dict[str, Any]:
    calls: Dict[str, Any] = {}

    def fake_run_ingestion(options: RunOptions, *, settings: Any) -> RunResult:
        calls["options"] = options
        calls["settings"] = settings
        report = RunReport(run_id=options.run_id or "fake")
        report.for_source("leereilly-games").parsed = 3
        return RunResult(report=report, dataset=CanonicalDataset())

    monkeypatch.setattr("ossgames.cli.pipeline.run_ingestion", fake_run_ingestion)
    return calls


def test_parse_overrides_builds_nested_mapping() -> None:
    assert parse_overrides(["enrichment.batch_size=5", "enrichment.fetch_releases=false", "search.sort=updated"]) == {
        "enrichment": {"batch_size": 5, "fetch_releases": False},
        "search": {"sort": "updated"},
    }
    assert parse_overrides(["paths.logs_dir=/tmp/logs"]) == {"paths": {"logs_dir": "/tmp/logs"}}


def test_parse_overrides_rejects_malformed_items() -> None:
    with pytest.raises(typer.BadParameter):
        parse_overrides(["enrichment.batch_size"])
    with pytest.raises(CLIError):
        parse_overrides(["enrichmnt.batch_size=5"])


def test_sources_command_lists_catalogue(runner: CliRunner, cli_env: dict[str, str]) -> None:
    result = runner.invoke(app, ["sources"], env=cli_env)

    assert result.exit_code == 0, result.output
    assert "awesome-open-source-games" in result.output
    assert "itchio-open-source-tag" in result.output


def test_run_command_builds_options(
    runner: CliRunner, cli_env: dict[str, str], captured: Dict[str, Any], tmp_path: Path
) -> None:
    result = runner.invoke(
        app,
        [
            "--run-id",
            "cli-test",
            "-o",
            "search.min_stars=50",
            "run",
            "--sources",
            "leereilly-games,github-topic-open-source-game",
            "--limit",
            "5",
            "--no-api",
            "--report",
            str(tmp_path / "report.md"),
            "--report-format",
            "Markdown",
            "--dry-run",
        ],
        env=cli_env,
    )

    assert result.exit_code == 0, result.output
    options = captured["options"]
    assert options.sources == ["leereilly-games", "github-topic-open-source-game"]
    assert options.limit == 5
    assert options.enrich is False
    assert options.report_format == "markdown"
    assert options.report_path == (tmp_path / "report.md").resolve()
    assert options.dry_run is True
    assert options.run_id == "cli-test"
    assert captured["settings"].policies.search.min_stars == 50
    assert "leereilly-games" in result.output


def test_run_command_rejects_unknown_source(
    runner: CliRunner, cli_env: dict[str, str], captured: Dict[str, Any]
) -> None:
    result = runner.invoke(app, ["run", "--sources", "nope"], env=cli_env)

    assert result.exit_code != 0
    assert isinstance(result.exception, CLIError)
    assert "options" not in captured


def test_run_command_rejects_unknown_report_format(
    runner: CliRunner, cli_env: dict[str, str], captured: Dict[str, Any]
) -> None:
    result = runner.invoke(app, ["run", "--report-format", "csv"], env=cli_env)

    assert isinstance(result.exception, CLIError)


def test_run_command_requires_existing_context_files(
    runner: CliRunner, cli_env: dict[str, str], captured: Dict[str, Any], tmp_path: Path
) -> None:
    result = runner.invoke(app, ["run", "--existing", str(tmp_path / "absent.json")], env=cli_env)

    assert isinstance(result.exception, CLIError)


def test_fatal_pipeline_error_propagates(
    runner: CliRunner, cli_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
) -> None:
    def failing_run(options: RunOptions, *, settings: Any) -> RunResult:
        raise FatalPipelineError("Dataset not found")

    monkeypatch.setattr("ossgames.cli.pipeline.run_ingestion", failing_run)

    result = runner.invoke(app, ["run", "--require-dataset"], env=cli_env)

    assert result.exit_code == 1
    assert isinstance(result.exception, FatalPipelineError)


def test_run_log_opened_only_for_run_command(
    runner: CliRunner, cli_env: dict[str, str], captured: Dict[str, Any], monkeypatch: pytest.MonkeyPatch
) -> None:
    opened: list[Any] = []

    def fake_configure_logging(settings: Any, *, run_id: str | None = None, level: str = "INFO") -> Path | None:
        opened.append((run_id, level))
        return Path("/logs") / f"run-{run_id}.log" if run_id else None

    monkeypatch.setattr("ossgames.cli.main.configure_logging", fake_configure_logging)

    run_result = runner.invoke(app, ["--run-id", "nightly", "-v", "run", "--dry-run"], env=cli_env)
    sources_result = runner.invoke(app, ["sources"], env=cli_env)

    assert run_result.exit_code == 0, run_result.output
    assert sources_result.exit_code == 0, sources_result.output
    assert opened == [("nightly", "DEBUG"), (None, "INFO")]
    assert captured["options"].run_id == "nightly"
    assert "run-nightly.log" in run_result.output


@pytest.mark.parametrize(
    ("args", "failure", "code", "message"),
    [
        (["run"], FatalPipelineError("Dataset not found"), 1, "Run aborted"),
        (["run", "--sources", "nope"], None, 2, "Unknown source"),
    ],
)
def test_app_maps_failures_to_exit_codes(
    cli_env: dict[str, str],
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    args: list[str],
    failure: Exception | None,
    code: int,
    message: str,
) -> None:
    for key, value in cli_env.items():
        monkeypatch.setenv(key, value)

    def failing_run(options: RunOptions, *, settings: Any) -> RunResult:
        raise failure or AssertionError("pipeline must not start")

    monkeypatch.setattr("ossgames.cli.pipeline.run_ingestion", failing_run)

    with pytest.raises(SystemExit) as excinfo:
        app(prog_name="ossgames", args=args)

    assert excinfo.value.code == code
    assert message in capsys.readouterr().out
