"""Tests for run report rendering."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ossgames.config.policies import MergePolicy
from ossgames.entities import EnrichedEntry, RunError, RunReport
from ossgames.pipeline.merge import (
    language_distribution,
    render_curated,
    render_markdown,
    report_document,
    write_curated,
    write_report,
)


@pytest.fixture
def report() -> RunReport:
    run = RunReport(run_id="run-1", policy_version="test")
    first = run.for_source("list-a")
    first.parsed, first.new, first.duplicates, first.invalid = 5, 2, 2, 1
    run.for_source("topic").parsed = 1
    run.record_error(RunError(resource_url="https://github.com/o/broken", message="HTTP 502", source="topic"))
    return run


@pytest.fixture
def added() -> list[EnrichedEntry]:
    return [
        EnrichedEntry(
            title="Small",
            resource_owner="o",
            resource_name="small",
            stars=3,
            source_id="list-a",
            category="Puzzle",
        ),
        EnrichedEntry(
            title="Huge",
            resource_owner="o",
            resource_name="huge",
            stars=900,
            language="Rust",
            description="A big one",
            source_id="list-a",
            category="Strategy",
        ),
    ]


def test_report_document_has_totals_and_added(report: RunReport, added: list[EnrichedEntry]) -> None:
    document = report_document(report, added)

    assert document["run_id"] == "run-1"
    assert document["totals"]["parsed"] == 6
    assert document["totals"]["errors"] == 1
    assert [item["title"] for item in document["added"]] == ["Small", "Huge"]


def test_markdown_contains_summary_and_sorted_entries(report: RunReport, added: list[EnrichedEntry]) -> None:
    text = render_markdown(report, added)

    assert "| list-a | 5 | 2 | 2 | 1 |" in text
    assert "**Total new games: 2**" in text
    assert text.index("[Huge]") < text.index("[Small]")
    assert "(Language: Unknown, Stars: 3)" in text
    assert "- https://github.com/o/broken: HTTP 502" in text


def test_curated_list_applies_threshold(added: list[EnrichedEntry]) -> None:
    text = render_curated(added, MergePolicy(curated_min_stars=100))

    assert "## Strategy" in text
    assert "Huge" in text
    assert "Small" not in text


def test_language_distribution(added: list[EnrichedEntry]) -> None:
    assert language_distribution(added) == {"Unknown": 1, "Rust": 1}


def test_write_report_formats(tmp_path: Path, report: RunReport, added: list[EnrichedEntry]) -> None:
    json_path = write_report(report, added, tmp_path / "report.json")
    md_path = write_report(report, added, tmp_path / "md" / "report.md", fmt="markdown")
    curated_path = write_curated(added, tmp_path / "curated.md")

    assert json.loads(json_path.read_text(encoding="utf-8"))["policy_version"] == "test"
    assert md_path.read_text(encoding="utf-8").startswith("# Newly Discovered Open Source Games")
    assert curated_path.exists()
    with pytest.raises(ValueError):
        write_report(report, added, tmp_path / "report.txt", fmt="csv")
