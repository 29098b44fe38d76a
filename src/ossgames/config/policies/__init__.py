"""Policy configuration primitives for the ingestion pipeline."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, List, Mapping, MutableMapping, Sequence

import yaml
from pydantic import BaseModel, Field, model_validator

from .extraction import (
    DEFAULT_NON_RESOURCE_OWNERS,
    DEFAULT_SKIP_KEYWORDS,
    DEFAULT_SKIP_SECTIONS,
    ExtractionPolicy,
    FilterPolicy,
)
from .merge import MergePolicy
from .sources import SourceDescriptor, SourceKind
from .web import EnrichmentPolicy, HttpPolicy, SearchPolicy


def default_sources() -> List[SourceDescriptor]:
    """Return the built-in source catalogue in processing order."""

    raw = [
        {
            "name": "awesome-open-source-games",
            "kind": "document",
            "owner": "michelpereira",
            "repo": "awesome-open-source-games",
        },
        {
            "name": "bobeff-open-source-games",
            "kind": "document",
            "owner": "bobeff",
            "repo": "open-source-games",
        },
        {"name": "leereilly-games", "kind": "document", "owner": "leereilly", "repo": "games"},
        {
            "name": "github-topic-open-source-game",
            "kind": "topic-search",
            "topic": "open-source-game",
        },
        {
            "name": "wikipedia-open-source-video-games",
            "kind": "html-listing",
            "url": "https://en.wikipedia.org/wiki/List_of_open-source_video_games",
            "enabled_by_default": False,
        },
        {
            "name": "libregamewiki-list-of-games",
            "kind": "html-listing",
            "url": "https://libregamewiki.org/List_of_games",
            "enabled_by_default": False,
        },
        {
            "name": "osgameclones",
            "kind": "html-listing",
            "url": "https://osgameclones.com/",
            "enabled_by_default": False,
        },
        {
            "name": "awesome-game-remakes",
            "kind": "document",
            "owner": "radek-sprta",
            "repo": "awesome-game-remakes",
            "enabled_by_default": False,
        },
        {
            "name": "gamesdev-directory",
            "kind": "html-listing",
            "url": "https://gamesdev.github.io/",
            "enabled_by_default": False,
        },
        {
            "name": "libregames-directory",
            "kind": "html-listing",
            "url": "https://libregames.gitlab.io/",
            "enabled_by_default": False,
        },
        {
            "name": "itchio-open-source-tag",
            "kind": "tag-listing",
            "url": "https://itch.io/games/tag-open-source",
            "max_pages": 1,
            "max_items": 20,
            "enabled_by_default": False,
        },
        {
            "name": "p2pfoundation-open-source-games",
            "kind": "html-listing",
            "url": "https://wiki.p2pfoundation.net/Open_Source_Games",
            "enabled_by_default": False,
        },
    ]
    return [SourceDescriptor.model_validate(entry) for entry in raw]


class TagListingPolicy(BaseModel):
    """Patterns used by the two-level tag-listing adapter."""

    item_url_pattern: str = Field(
        default=r"https?://[a-z0-9-]+\.itch\.io/[a-z0-9-]+",
        min_length=1,
    )
    title_suffix_pattern: str = Field(default=r"\s*-\s*itch\.io\s*$", min_length=1)
    page_query_parameter: str = Field(default="page", min_length=1)


class Policies(BaseModel):
    """Root policy container."""

    policy_version: str = Field(default="2025-01-15")
    sources: List[SourceDescriptor] = Field(default_factory=default_sources)
    extraction: ExtractionPolicy = Field(default_factory=ExtractionPolicy)
    filtering: FilterPolicy = Field(default_factory=FilterPolicy)
    search: SearchPolicy = Field(default_factory=SearchPolicy)
    tag_listing: TagListingPolicy = Field(default_factory=TagListingPolicy)
    http: HttpPolicy = Field(default_factory=HttpPolicy)
    enrichment: EnrichmentPolicy = Field(default_factory=EnrichmentPolicy)
    merge: MergePolicy = Field(default_factory=MergePolicy)

    @model_validator(mode="after")
    def _validate_sources(self) -> "Policies":
        if not self.policy_version:
            raise ValueError("policy_version must be provided")
        seen: set[str] = set()
        for source in self.sources:
            if source.name in seen:
                raise ValueError(f"Duplicate source name '{source.name}'")
            seen.add(source.name)
        return self

    def select_sources(self, names: Sequence[str] | None = None) -> List[SourceDescriptor]:
        """Return sources in configured order, filtered by name or default flag.

        Unknown names raise ``KeyError`` so typos never silently shrink a run.
        """

        if not names:
            return [source for source in self.sources if source.enabled_by_default]
        wanted = {name.strip() for name in names if name.strip()}
        known = {source.name for source in self.sources}
        missing = sorted(wanted - known)
        if missing:
            raise KeyError(f"Unknown source(s): {', '.join(missing)}")
        return [source for source in self.sources if source.name in wanted]


def _ensure_nested_mapping(
    cursor: MutableMapping[str, Any], part: str, full_path: Sequence[str]
) -> MutableMapping[str, Any]:
    existing = cursor.get(part)
    if existing is None:
        next_cursor: MutableMapping[str, Any] = {}
        cursor[part] = next_cursor
        return next_cursor
    if not isinstance(existing, MutableMapping):
        raise ValueError(
            "Cannot override policy path '"
            f"{'/'.join(full_path)}"
            "' because segment '"
            f"{part}"
            "' resolves to a non-mapping value"
        )
    return existing


def _resolve_env_overrides(raw: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Apply OSSGAMES_POLICY__ environment variable overrides.

    Keys are split on double underscores into a lowercased traversal path and
    values are JSON-decoded when possible, otherwise kept as raw strings.
    """

    prefix = "OSSGAMES_POLICY__"
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        parts = [segment.lower() for segment in key[len(prefix) :].split("__") if segment]
        if not parts:
            continue
        cursor: MutableMapping[str, Any] = raw
        for index, part in enumerate(parts[:-1], start=1):
            cursor = _ensure_nested_mapping(cursor, part, parts[: index + 1])
        try:
            parsed = json.loads(value)
        except (TypeError, json.JSONDecodeError):
            parsed = value
        cursor[parts[-1]] = parsed
    return raw


def load_policies(source: os.PathLike[str] | str | Mapping[str, Any]) -> Policies:
    """Load policies from a mapping or YAML file with environment overrides."""

    if isinstance(source, Mapping):
        raw: MutableMapping[str, Any] = dict(source)
    else:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Policy file not found: {path}")
        with path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle)
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, MutableMapping):
            raise ValueError(f"Policy file '{path}' must contain a mapping at the top level")
        raw = dict(loaded)
    hydrated = _resolve_env_overrides(raw)
    return Policies.model_validate(hydrated)


__all__ = [
    "DEFAULT_NON_RESOURCE_OWNERS",
    "DEFAULT_SKIP_KEYWORDS",
    "DEFAULT_SKIP_SECTIONS",
    "EnrichmentPolicy",
    "ExtractionPolicy",
    "FilterPolicy",
    "HttpPolicy",
    "MergePolicy",
    "Policies",
    "SearchPolicy",
    "SourceDescriptor",
    "SourceKind",
    "TagListingPolicy",
    "default_sources",
    "load_policies",
]
