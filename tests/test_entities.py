"""Tests for the core entity models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ossgames.entities import (
    CandidateEntry,
    CanonicalDataset,
    CanonicalRecord,
    EnrichedEntry,
    RunError,
    RunReport,
)


def test_candidate_rebuilds_resource_url() -> None:
    entry = CandidateEntry(
        title=" Cataclysm DDA ",
        resource_owner="CleverRaven",
        resource_name="Cataclysm-DDA",
        resource_url="https://example.org/ignored",
        source_id="list-a",
    )

    assert entry.title == "Cataclysm DDA"
    assert entry.resource_url == "https://github.com/CleverRaven/Cataclysm-DDA"
    assert entry.key == "cleverraven/cataclysm-dda"


def test_candidate_rejects_blank_fields() -> None:
    with pytest.raises(ValidationError):
        CandidateEntry(title="  ", resource_owner="a", resource_name="b")


def test_candidate_accepts_legacy_field_names() -> None:
    entry = CandidateEntry.model_validate(
        {"name": "Mindustry", "owner": "Anuken", "repo": "Mindustry", "source": "topic", "description": ""}
    )

    assert entry.title == "Mindustry"
    assert entry.source_id == "topic"
    assert entry.description is None


def test_enriched_entry_defaults_to_absent_metadata() -> None:
    candidate = CandidateEntry(title="Game", resource_owner="o", resource_name="n", source_id="s")

    enriched = EnrichedEntry.from_candidate(candidate, enrichment_status="skipped")

    assert enriched.stars == 0
    assert enriched.language is None
    assert enriched.topics == []
    assert enriched.enrichment_status == "skipped"
    assert enriched.resource_url == candidate.resource_url


def test_canonical_record_fills_identity_for_legacy_rows() -> None:
    record = CanonicalRecord.model_validate(
        {"name": "0 A.D.", "owner": "0ad", "repo": "0ad", "stargazers_count": 3000}
    )

    assert record.id == "0ad-0ad"
    assert record.slug == "0ad-0ad"
    assert record.stars == 3000


def test_run_report_counters_and_errors() -> None:
    report = RunReport(run_id="r1")
    report.for_source("a").parsed = 3
    report.for_source("b").parsed = 2
    report.record_error(RunError(resource_url="https://github.com/o/n", message="boom", source="b"))

    assert [source.source for source in report.sources] == ["a", "b"]
    assert report.totals()["parsed"] == 5
    assert report.for_source("b").errors == 1
    assert report.totals()["errors"] == 1


def test_run_error_accepts_legacy_aliases() -> None:
    error = RunError.model_validate(
        {"repoUrl": "https://github.com/o/n", "error": "HTTP 500", "timestamp": "2024-05-01T00:00:00Z"}
    )

    assert error.message == "HTTP 500"
    assert error.occurred_at.year == 2024


def test_dataset_document_shape() -> None:
    record = CanonicalRecord(
        title="Game",
        resource_owner="Owner",
        resource_name="Name",
        id="owner-name",
        slug="game",
        source_id="s",
    )
    dataset = CanonicalDataset.from_records([record])

    document = dataset.to_document()

    assert set(document) == {"scraped_at", "total_games", "games", "errors"}
    assert document["total_games"] == 1
    assert document["games"][0]["resource_url"] == "https://github.com/Owner/Name"
    assert dataset.keys() == {"owner/name"}
    assert dataset.slugs() == {"game"}


def test_dataset_accepts_camel_case_timestamp() -> None:
    dataset = CanonicalDataset.model_validate({"scrapedAt": "2024-01-02T03:04:05Z", "games": []})

    assert dataset.scraped_at.day == 2
    assert dataset.total_games == 0
