"""Pipeline execution commands for the ossgames CLI."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from ossgames.orchestration import RunOptions, RunResult, run_ingestion

from .common import CLIError, console, get_state, resolve_path

_REPORT_FORMATS = {"json", "markdown"}


def _parse_sources(raw: Optional[str], known: List[str]) -> List[str]:
    if not raw:
        return []
    names = [item.strip() for item in raw.split(",") if item.strip()]
    unknown = [name for name in names if name not in known]
    if unknown:
        raise CLIError(f"Unknown source(s): {', '.join(unknown)}. Known sources: {', '.join(known)}")
    return names


def _summary_table(result: RunResult) -> Table:
    table = Table(title=f"Run {result.report.run_id}")
    table.add_column("Source")
    for column in ("Parsed", "New", "Duplicates", "Invalid", "Not found", "Errors"):
        table.add_column(column, justify="right")
    for report in result.report.sources:
        table.add_row(
            report.source,
            str(report.parsed),
            str(report.new),
            str(report.duplicates),
            str(report.invalid),
            str(report.not_found),
            str(report.errors),
        )
    totals = result.report.totals()
    table.add_row(
        "[bold]Total[/bold]",
        str(totals["parsed"]),
        str(totals["new"]),
        str(totals["duplicates"]),
        str(totals["invalid"]),
        str(totals["not_found"]),
        str(totals["errors"]),
    )
    return table


def run_command(
    ctx: typer.Context,
    sources: Optional[str] = typer.Option(
        None,
        "--sources",
        "-s",
        help="Comma-separated source names; defaults to every enabled source.",
        show_default=False,
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-l",
        min=1,
        help="Maximum number of new entries accepted per source.",
        show_default=False,
    ),
    no_api: bool = typer.Option(False, "--no-api", help="Skip metadata enrichment."),
    dataset: Optional[Path] = typer.Option(
        None,
        "--dataset",
        help="Canonical dataset to merge into; defaults to the configured path.",
        show_default=False,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        help="Where to write the merged dataset; defaults to the dataset path.",
        show_default=False,
    ),
    existing: List[Path] = typer.Option(  # noqa: B008 - Typer option signature
        [],
        "--existing",
        help="Additional dataset whose entries count as already known (repeatable).",
    ),
    require_dataset: bool = typer.Option(
        False,
        "--require-dataset",
        help="Abort instead of starting empty when the dataset cannot be read.",
    ),
    report: Optional[Path] = typer.Option(None, "--report", help="Write the run report to this path."),
    report_format: str = typer.Option("json", "--report-format", help="Report format: json or markdown."),
    curated: Optional[Path] = typer.Option(
        None,
        "--curated",
        help="Write a markdown list of the top new entries to this path.",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Run every stage but do not write the dataset."),
) -> None:
    state = get_state(ctx)
    known = [source.name for source in state.settings.policies.sources]
    selected = _parse_sources(sources, known)
    fmt = report_format.strip().lower()
    if fmt not in _REPORT_FORMATS:
        raise CLIError(f"Unknown report format '{report_format}'. Expected json or markdown")

    options = RunOptions(
        sources=selected,
        limit=limit,
        enrich=not no_api,
        dataset_path=resolve_path(dataset, must_exist=require_dataset) if dataset else None,
        output_path=resolve_path(output, must_exist=False) if output else None,
        existing_paths=[resolve_path(path) for path in existing],
        require_dataset=require_dataset,
        report_path=resolve_path(report, must_exist=False) if report else None,
        report_format=fmt,
        curated_path=resolve_path(curated, must_exist=False) if curated else None,
        dry_run=dry_run,
        run_id=state.run_id,
    )

    with console.status("Running ingestion"):
        result = run_ingestion(options, settings=state.settings)

    console.print(_summary_table(result))
    console.print(f"[green]{len(result.added)} new entries; dataset holds {result.dataset.total_games}[/green]")
    if result.output_path:
        console.print(f"Dataset written to {result.output_path}")
    elif dry_run:
        console.print("[yellow]Dry run: dataset not written[/yellow]")
    if result.report_path:
        console.print(f"Report written to {result.report_path}")
    if result.curated_path:
        console.print(f"Curated list written to {result.curated_path}")
    if state.log_path:
        console.print(f"Run log: {state.log_path}")


def sources_command(ctx: typer.Context) -> None:
    state = get_state(ctx)
    table = Table(title="Sources")
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Locator")
    table.add_column("Enabled")
    for source in state.settings.policies.sources:
        table.add_row(
            source.name,
            source.kind.value,
            source.locator,
            "yes" if source.enabled_by_default else "no",
        )
    console.print(table)


__all__ = ["run_command", "sources_command"]
