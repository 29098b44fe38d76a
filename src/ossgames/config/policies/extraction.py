"""Extraction and filtering policy models."""

from __future__ import annotations

from typing import Any, Iterable, List

from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticUndefined


def _sanitize_string_sequence(value: Any) -> List[str]:
    """Normalise diverse inputs into a trimmed, lowercased list of strings."""

    if value is None or value is PydanticUndefined:
        return []
    if isinstance(value, str):
        items = [value]
    elif isinstance(value, Iterable) and not isinstance(value, (bytes, bytearray)):
        items = list(value)
    else:
        items = [value]

    cleaned: List[str] = []
    for item in items:
        if not isinstance(item, str):
            raise TypeError("Expected string entries, but received non-string input")
        stripped = item.strip().lower()
        if stripped:
            cleaned.append(stripped)
    return cleaned


DEFAULT_SKIP_SECTIONS = [
    "contributing",
    "license",
    "table of contents",
    "other lists",
    "see also",
    "references",
    "footnotes",
    "footer",
    "acknowledgments",
    "changelog",
]

DEFAULT_NON_RESOURCE_OWNERS = [
    "about",
    "apps",
    "collections",
    "contact",
    "customer-stories",
    "explore",
    "features",
    "issues",
    "login",
    "marketplace",
    "notifications",
    "orgs",
    "pricing",
    "pulls",
    "search",
    "security",
    "settings",
    "sponsors",
    "topics",
    "trending",
]

DEFAULT_SKIP_KEYWORDS = [
    "engine",
    "framework",
    "library",
    "sdk",
    "toolkit",
    "template",
    "boilerplate",
    "tutorial",
    "course",
    "example",
    "demo",
    "sample",
    "asset",
    "pack",
    "bundle",
    "collection",
    "list",
    "awesome",
    "curated",
    "directory",
    "database",
    "api",
    "wrapper",
    "binding",
    "plugin",
    "extension",
    "mod",
    "addon",
]


class ExtractionPolicy(BaseModel):
    """Controls for the markdown/HTML entry extraction cascade."""

    resource_host: str = Field(default="github.com", min_length=3)
    skip_sections: List[str] = Field(default_factory=lambda: list(DEFAULT_SKIP_SECTIONS))
    non_resource_owners: List[str] = Field(
        default_factory=lambda: list(DEFAULT_NON_RESOURCE_OWNERS),
        description="First path segments on the resource host that never name an owner.",
    )
    min_description_length: int = Field(default=3, ge=0)
    heading_min_level: int = Field(default=2, ge=1, le=6)
    heading_max_level: int = Field(default=4, ge=1, le=6)

    @field_validator("skip_sections", "non_resource_owners", mode="before")
    @classmethod
    def _normalize_lists(cls, value: Any) -> List[str]:
        return _sanitize_string_sequence(value)

    @field_validator("resource_host")
    @classmethod
    def _normalize_host(cls, value: str) -> str:
        return value.strip().lower()


class FilterPolicy(BaseModel):
    """Keyword denylist used to drop non-software entries."""

    skip_keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_SKIP_KEYWORDS))
    description_suffix: str = Field(
        default=" for",
        description="Descriptions containing '<keyword><suffix>' are rejected as well.",
    )

    @field_validator("skip_keywords", mode="before")
    @classmethod
    def _normalize_keywords(cls, value: Any) -> List[str]:
        return _sanitize_string_sequence(value)


__all__ = [
    "DEFAULT_NON_RESOURCE_OWNERS",
    "DEFAULT_SKIP_KEYWORDS",
    "DEFAULT_SKIP_SECTIONS",
    "ExtractionPolicy",
    "FilterPolicy",
]
