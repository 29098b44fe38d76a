"""Tests for the keyword denylist and locator validation."""

from __future__ import annotations

import pytest

from ossgames.config.policies import FilterPolicy
from ossgames.entities import CandidateEntry
from ossgames.pipeline.filtering import CandidateFilter


def _entry(title: str, owner: str = "owner", name: str = "name", description: str | None = None) -> CandidateEntry:
    return CandidateEntry(
        title=title,
        resource_owner=owner,
        resource_name=name,
        description=description,
        source_id="list-a",
    )


@pytest.fixture
def candidate_filter() -> CandidateFilter:
    return CandidateFilter()


def test_engine_title_rejected(candidate_filter: CandidateFilter) -> None:
    decision = candidate_filter.evaluate(_entry("Awesome Game Engine"))

    assert not decision.accepted
    assert decision.reason == "keyword_title"
    assert decision.keyword == "engine"


def test_substring_match_rejects_modern_titles(candidate_filter: CandidateFilter) -> None:
    decision = candidate_filter.evaluate(_entry("Modern Siege"))

    assert not decision.accepted
    assert decision.keyword == "mod"


def test_description_keyword_suffix(candidate_filter: CandidateFilter) -> None:
    rejected = candidate_filter.evaluate(_entry("Voxel Builder", description="A toolkit for voxel games"))
    kept = candidate_filter.evaluate(_entry("Voxel Builder", description="Build with a toolkit of blocks"))

    assert not rejected.accepted
    assert rejected.reason == "keyword_description"
    assert kept.accepted


def test_plain_game_accepted(candidate_filter: CandidateFilter) -> None:
    assert candidate_filter.evaluate(_entry("Cataclysm DDA", description="A survival game")).accepted


def test_non_resource_owner_rejected(candidate_filter: CandidateFilter) -> None:
    decision = candidate_filter.evaluate(_entry("Roguelike", owner="topics", name="roguelike"))

    assert not decision.accepted
    assert decision.reason == "non_resource_path"


def test_malformed_locator_rejected(candidate_filter: CandidateFilter) -> None:
    decision = candidate_filter.evaluate(_entry("Quake", owner="id%20software", name="quake"))

    assert not decision.accepted
    assert decision.reason == "malformed_locator"


def test_apply_preserves_order_and_counts(candidate_filter: CandidateFilter) -> None:
    entries = [
        _entry("Wesnoth", name="wesnoth"),
        _entry("Godot Engine", name="godot"),
        _entry("Pingus", name="pingus"),
        _entry("Awesome Games List", name="list"),
    ]

    accepted, rejected = candidate_filter.apply(entries)

    assert [entry.title for entry in accepted] == ["Wesnoth", "Pingus"]
    assert [entry.title for entry, _ in rejected] == ["Godot Engine", "Awesome Games List"]
    assert candidate_filter.metrics.evaluated == 4
    assert candidate_filter.metrics.rejected == {"keyword_title": 2}


def test_custom_keywords_are_normalised() -> None:
    candidate_filter = CandidateFilter(FilterPolicy(skip_keywords=[" Remaster "]))

    assert not candidate_filter.evaluate(_entry("Doom REMASTER")).accepted
    assert candidate_filter.evaluate(_entry("Godot Engine")).accepted
