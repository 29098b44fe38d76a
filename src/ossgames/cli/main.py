"""Typer application for the ossgames command line."""

from __future__ import annotations

from typing import Any, List, Optional

import typer
from rich.table import Table

from ossgames.orchestration import FatalPipelineError, new_run_id
from ossgames.utils.logging import configure_logging, get_logger

from . import pipeline
from .common import CLIError, CLIState, console, load_settings, parse_overrides

_LOGGER = get_logger(module=__name__)

EXIT_FATAL = 1
EXIT_USAGE = 2


class OssGamesTyper(typer.Typer):
    """Typer application that turns pipeline failures into exit codes.

    A :class:`CLIError` exits with ``EXIT_USAGE`` and a
    :class:`FatalPipelineError` with ``EXIT_FATAL``. Both print one line
    instead of a traceback; any other exception propagates unchanged.
    """

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        try:
            return super().__call__(*args, **kwargs)
        except CLIError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            raise SystemExit(EXIT_USAGE) from exc
        except FatalPipelineError as exc:
            _LOGGER.error("Run aborted", error=str(exc))
            console.print(f"[bold red]Run aborted:[/bold red] {exc}")
            raise SystemExit(EXIT_FATAL) from exc


app = OssGamesTyper(
    add_completion=False,
    help="""
    Collect open-source game entries from curated lists and topic searches,
    enrich them with repository metadata and merge them into the dataset.
    """.strip(),
    no_args_is_help=True,
)


def _context_table(state: CLIState) -> Table:
    settings = state.settings
    table = Table(title="Run context", show_header=False, box=None)
    table.add_row("Environment", settings.environment)
    table.add_row("Run ID", state.run_id)
    table.add_row("Policy version", settings.policy_version)
    table.add_row("Dataset", str(settings.dataset_file))
    table.add_row("Run log", str(state.log_path) if state.log_path else "-")
    table.add_row("API token", "yes" if settings.github_token else "no (unauthenticated quota)")
    return table


@app.callback()
def main(
    ctx: typer.Context,
    environment: Optional[str] = typer.Option(
        None,
        "--environment",
        "-e",
        help="Configuration environment (development, testing, production).",
        show_default=False,
    ),
    override: List[str] = typer.Option(  # noqa: B008 - Typer callback signature
        [],
        "--override",
        "-o",
        metavar="SECTION.KEY=VALUE",
        help="Settings or policy override, e.g. enrichment.batch_size=5 (repeatable).",
    ),
    run_id: Optional[str] = typer.Option(
        None,
        "--run-id",
        help="Run identifier used in logs, the run log file name and the report.",
        show_default=False,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and a run context table."),
) -> None:
    """Resolve settings and open the run log before any subcommand executes."""

    settings = load_settings(environment, parse_overrides(override))
    resolved_run_id = run_id or new_run_id()
    log_path = configure_logging(
        settings,
        run_id=resolved_run_id if ctx.invoked_subcommand == "run" else None,
        level="DEBUG" if verbose else "INFO",
    )
    state = CLIState(settings=settings, run_id=resolved_run_id, log_path=log_path, verbose=verbose)
    ctx.obj = state
    if verbose:
        console.print(_context_table(state))


app.command("run", help="Run the ingestion pipeline over the selected sources.")(pipeline.run_command)
app.command("sources", help="List the configured sources.")(pipeline.sources_command)


__all__ = ["EXIT_FATAL", "EXIT_USAGE", "OssGamesTyper", "app", "main"]
