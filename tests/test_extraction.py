"""Tests for the pattern-cascade entry extractor."""

from __future__ import annotations

from typing import List

import pytest

from ossgames.config.policies import ExtractionPolicy
from ossgames.entities import BlockKind, RawBlock
from ossgames.pipeline.extraction import EntryExtractor, SectionContext
from ossgames.pipeline.extraction.links import find_homepage, parse_resource_url, scan_resource_links
from ossgames.pipeline.extraction.matchers import (
    TITLE_MATCHERS,
    any_link_title,
    first_match,
    locator_matchers,
)


def _lines(text: str, source: str = "list-a") -> List[RawBlock]:
    return [RawBlock(text=line, source_id=source, kind=BlockKind.LINE) for line in text.splitlines()]


@pytest.fixture
def extractor() -> EntryExtractor:
    return EntryExtractor(ExtractionPolicy())


def test_bold_link_line_extracts_every_field(extractor: EntryExtractor) -> None:
    blocks = _lines(
        "## Roguelike\n"
        "* **[Cataclysm DDA](https://github.com/CleverRaven/Cataclysm-DDA)** - A turn-based survival game."
    )

    entries = list(extractor.iter_entries(blocks))

    assert len(entries) == 1
    entry = entries[0]
    assert entry.title == "Cataclysm DDA"
    assert entry.resource_owner == "CleverRaven"
    assert entry.resource_name == "Cataclysm-DDA"
    assert entry.resource_url == "https://github.com/CleverRaven/Cataclysm-DDA"
    assert entry.description == "A turn-based survival game"
    assert entry.category == "Roguelike"
    assert entry.source_id == "list-a"


def test_source_reference_wins_over_homepage_link(extractor: EntryExtractor) -> None:
    line = "- [Xonotic](https://xonotic.org) - Arena shooter. [[source]](https://github.com/xonotic/xonotic)"

    entry = extractor.extract_block(_lines(line)[0], SectionContext())

    assert entry is not None
    assert entry.title == "Xonotic"
    assert entry.key == "xonotic/xonotic"
    assert entry.homepage == "https://xonotic.org"
    assert entry.description == "Arena shooter"


def test_bare_url_locator(extractor: EntryExtractor) -> None:
    line = "* **OpenTTD** transport simulation https://github.com/OpenTTD/OpenTTD"

    entry = extractor.extract_block(_lines(line)[0], SectionContext())

    assert entry is not None
    assert entry.title == "OpenTTD"
    assert entry.key == "openttd/openttd"


def test_trailing_git_suffix_and_slash_removed() -> None:
    ref = parse_resource_url("https://github.com/owner/project.git/")

    assert ref is not None
    assert (ref.owner, ref.name) == ("owner", "project")


def test_line_without_resource_link_is_a_miss(extractor: EntryExtractor) -> None:
    blocks = _lines("* [Website only](https://example.org) - no repository here\nplain prose line")

    assert list(extractor.iter_entries(blocks)) == []
    assert extractor.metrics.misses == 2


def test_skipped_section_resets_category(extractor: EntryExtractor) -> None:
    blocks = _lines(
        "## Strategy\n"
        "* [Wesnoth](https://github.com/wesnoth/wesnoth) - Turn-based strategy\n"
        "## Contributing\n"
        "* [Helper](https://github.com/someone/helper) - Something else"
    )

    entries = list(extractor.iter_entries(blocks))

    assert [entry.category for entry in entries] == ["Strategy", None]


def test_block_category_used_without_heading(extractor: EntryExtractor) -> None:
    block = RawBlock(
        text="* [Wesnoth](https://github.com/wesnoth/wesnoth) - Turn-based strategy",
        source_id="remakes",
        category="Remakes",
    )

    entry = extractor.extract_block(block, SectionContext())

    assert entry is not None
    assert entry.category == "Remakes"


def test_section_context_does_not_leak_between_calls(extractor: EntryExtractor) -> None:
    list(extractor.iter_entries(_lines("## Puzzle")))

    entries = list(extractor.iter_entries(_lines("* [Pingus](https://github.com/Pingus/pingus) - Lemmings clone")))

    assert entries[0].category is None


def test_table_row_extraction(extractor: EntryExtractor) -> None:
    blocks = _lines(
        "### Racing\n"
        "| Name | Description |\n"
        "|------|-------------|\n"
        "| [SuperTuxKart](https://github.com/supertuxkart/stk-code) | Kart racing |"
    )

    entries = list(extractor.iter_entries(blocks))

    assert len(entries) == 1
    assert entries[0].title == "SuperTuxKart"
    assert entries[0].key == "supertuxkart/stk-code"
    assert entries[0].description == "Kart racing"
    assert entries[0].category == "Racing"


def test_short_description_is_absent(extractor: EntryExtractor) -> None:
    entry = extractor.extract_block(
        _lines("* [Pong](https://github.com/a/pong) - ok")[0],
        SectionContext(),
    )

    assert entry is not None
    assert entry.description is None


def test_page_scan_keeps_duplicates_in_order(extractor: EntryExtractor) -> None:
    html = (
        '<a href="https://github.com/foo/bar">bar</a>'
        '<a href="https://github.com/baz/qux.git">qux</a>'
        '<a href="https://github.com/foo/bar">again</a>'
    )
    block = RawBlock(text=html, source_id="wiki", kind=BlockKind.PAGE, category="Listing")

    entries = extractor.scan_page(block)

    assert [entry.key for entry in entries] == ["foo/bar", "baz/qux", "foo/bar"]
    assert entries[0].title == "bar"
    assert entries[0].category == "Listing"


def test_item_page_uses_title_hint(extractor: EntryExtractor) -> None:
    block = RawBlock(
        text='<a href="https://github.com/studio/space-game">Source</a>',
        source_id="itch",
        kind=BlockKind.ITEM_PAGE,
        title_hint="Space Game",
    )

    entries = list(extractor.iter_entries([block]))

    assert [entry.title for entry in entries] == ["Space Game"]


def test_search_item_maps_payload(extractor: EntryExtractor) -> None:
    block = RawBlock(
        text="Anuken/Mindustry",
        source_id="topic",
        kind=BlockKind.SEARCH_ITEM,
        payload={
            "name": "Mindustry",
            "owner": {"login": "Anuken"},
            "html_url": "https://github.com/Anuken/Mindustry",
            "description": "Factory game",
            "homepage": "",
        },
    )

    entry = extractor.from_search_item(block)

    assert entry is not None
    assert entry.title == "Mindustry"
    assert entry.key == "anuken/mindustry"
    assert entry.description == "Factory game"
    assert entry.homepage is None
    assert entry.category == "GitHub Search"


def test_title_cascade_precedence() -> None:
    line = "* [Plain](https://a.example) **Bold** text"

    assert first_match(TITLE_MATCHERS, line).value == "Bold"


def test_any_link_skips_reserved_labels() -> None:
    match = any_link_title("see [source](https://github.com/a/b) and [Game](https://game.example)")

    assert match is not None
    assert match.value == "Game"


def test_locator_cascade_prefers_source_reference() -> None:
    line = "[Other](https://github.com/other/repo) [[source]](https://github.com/real/repo)"

    assert first_match(locator_matchers(), line).value == "https://github.com/real/repo"


def test_scan_resource_links_and_homepage() -> None:
    text = "[Home](https://game.example) https://github.com/one/two and https://www.github.com/three/four"

    assert [ref.key for ref in scan_resource_links(text)] == ["one/two", "three/four"]
    assert find_homepage(text) == "https://game.example"


def test_round_trip_with_source_reference(extractor: EntryExtractor) -> None:
    line = "- **[Foo](http://example.com)** - A cool game. [[source]](https://github.com/acme/foo)"

    entry = extractor.extract_block(_lines(line)[0], SectionContext())

    assert entry is not None
    assert (entry.title, entry.resource_owner, entry.resource_name) == ("Foo", "acme", "foo")
    assert entry.description == "A cool game"
    assert entry.homepage == "http://example.com"
