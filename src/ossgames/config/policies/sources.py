"""Source descriptor models selecting the adapter used for each origin."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator


class SourceKind(str, Enum):
    """Discriminator for the four supported adapter strategies."""

    DOCUMENT = "document"
    TOPIC_SEARCH = "topic-search"
    HTML_LISTING = "html-listing"
    TAG_LISTING = "tag-listing"


class SourceDescriptor(BaseModel):
    """Configured origin from which candidate entries are extracted.

    ``document`` sources are located either by ``owner``/``repo`` (the README
    at ``path`` is fetched through the metadata API) or by a raw ``url``.
    ``topic-search`` sources need a ``topic``; the two listing kinds need a
    ``url``.
    """

    name: str = Field(..., min_length=1)
    kind: SourceKind
    owner: str | None = Field(default=None)
    repo: str | None = Field(default=None)
    path: str = Field(default="README.md", min_length=1)
    url: str | None = Field(default=None)
    topic: str | None = Field(default=None)
    max_pages: int = Field(default=1, ge=1)
    max_items: int = Field(default=20, ge=1)
    page_size: int = Field(default=100, ge=1, le=100)
    category: str | None = Field(
        default=None,
        description="Category label attached to entries that carry no section heading.",
    )
    enabled_by_default: bool = Field(default=True)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip()

    @model_validator(mode="after")
    def _validate_locator(self) -> "SourceDescriptor":
        if self.kind is SourceKind.DOCUMENT:
            if not self.url and not (self.owner and self.repo):
                raise ValueError(f"document source '{self.name}' needs owner/repo or url")
        elif self.kind is SourceKind.TOPIC_SEARCH:
            if not self.topic:
                raise ValueError(f"topic-search source '{self.name}' needs a topic")
        elif not self.url:
            raise ValueError(f"{self.kind.value} source '{self.name}' needs a url")
        return self

    @property
    def locator(self) -> str:
        """Human-readable locator used in logs and listings."""

        if self.kind is SourceKind.TOPIC_SEARCH:
            return f"topic:{self.topic}"
        if self.url:
            return self.url
        return f"{self.owner}/{self.repo}:{self.path}"


__all__ = ["SourceDescriptor", "SourceKind"]
