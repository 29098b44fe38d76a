"""Core domain entities used throughout the ingestion pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

RESOURCE_BASE_URL = "https://github.com"


def resource_key(owner: str, name: str) -> str:
    """Return the normalized ``owner/name`` key shared by every dedup pass."""

    return f"{owner.strip().lower()}/{name.strip().lower()}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BlockKind(str, Enum):
    """Shape of the text carried by a :class:`RawBlock`."""

    LINE = "line"
    PAGE = "page"
    SEARCH_ITEM = "search_item"
    ITEM_PAGE = "item_page"


class RawBlock(BaseModel):
    """Opaque unit of source text emitted by a source adapter."""

    text: str = Field(default="")
    source_id: str = Field(..., min_length=1)
    kind: BlockKind = Field(default=BlockKind.LINE)
    locator: str | None = Field(
        default=None,
        description="URL the block was fetched from, when it came from a page.",
    )
    title_hint: str | None = Field(
        default=None,
        description="Display title recovered by a second-level fetch (tag listings).",
    )
    category: str | None = Field(
        default=None,
        description="Category assigned by the adapter for blocks without section headings.",
    )
    payload: Dict[str, Any] = Field(
        default_factory=dict,
        description="Structured payload for search result blocks.",
    )


class CandidateEntry(BaseModel):
    """Normalized output of extraction for one external resource."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(
        ...,
        min_length=1,
        description="Display name",
        validation_alias=AliasChoices("title", "name"),
    )
    resource_owner: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("resource_owner", "owner"),
    )
    resource_name: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("resource_name", "repo"),
    )
    resource_url: str = Field(
        default="",
        description="Canonical URL, always rebuilt from owner and name.",
    )
    description: str | None = Field(default=None)
    category: str | None = Field(default=None)
    homepage: str | None = Field(default=None)
    source_id: str = Field(
        default="unknown",
        min_length=1,
        validation_alias=AliasChoices("source_id", "source"),
    )

    @field_validator("title", "resource_owner", "resource_name", "source_id")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("value must contain non-whitespace characters")
        return cleaned

    @field_validator("description", "category", "homepage")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    @model_validator(mode="after")
    def _rebuild_url(self) -> "CandidateEntry":
        self.resource_url = f"{RESOURCE_BASE_URL}/{self.resource_owner}/{self.resource_name}"
        return self

    @property
    def key(self) -> str:
        return resource_key(self.resource_owner, self.resource_name)


EnrichmentStatus = Literal["pending", "enriched", "not_found", "skipped"]


class EnrichedEntry(CandidateEntry):
    """Candidate plus metadata retrieved from the metadata API.

    Metadata fields stay at their absent or zero defaults when the lookup did
    not happen (``skipped``) or the resource was missing (``not_found``).
    """

    stars: int = Field(default=0, ge=0, validation_alias=AliasChoices("stars", "stargazers_count"))
    forks: int = Field(default=0, ge=0)
    open_issues: int = Field(default=0, ge=0)
    language: str | None = Field(default=None)
    topics: List[str] = Field(default_factory=list)
    license: str | None = Field(default=None)
    archived: bool = Field(default=False)
    is_multiplayer: bool = Field(default=False)
    latest_release: str | None = Field(default=None)
    release_downloads: int = Field(default=0, ge=0)
    created_at: datetime | None = Field(default=None)
    updated_at: datetime | None = Field(default=None)
    pushed_at: datetime | None = Field(default=None)
    last_commit_at: datetime | None = Field(default=None)
    enrichment_status: EnrichmentStatus = Field(default="pending")

    @classmethod
    def from_candidate(cls, candidate: CandidateEntry, **metadata: Any) -> "EnrichedEntry":
        data = candidate.model_dump()
        data.update(metadata)
        return cls.model_validate(data)


class CanonicalRecord(EnrichedEntry):
    """Persisted representation of an entry in the canonical dataset."""

    id: str = Field(..., min_length=1, description="Stable lowercase owner-name identifier")
    slug: str = Field(..., min_length=1, description="Globally unique URL-safe slug")
    added_at: datetime = Field(default_factory=_utc_now)

    @model_validator(mode="before")
    @classmethod
    def _fill_identity(cls, values: Any) -> Any:
        # Legacy dataset rows carry only owner/repo and a display name.
        if not isinstance(values, dict):
            return values
        owner = values.get("resource_owner") or values.get("owner")
        name = values.get("resource_name") or values.get("repo")
        if owner and name:
            values = dict(values)
            values.setdefault("id", cls.build_id(owner, name))
            values.setdefault("slug", values["id"])
        return values

    @staticmethod
    def build_id(owner: str, name: str) -> str:
        return f"{owner.strip().lower()}-{name.strip().lower()}"


class RunError(BaseModel):
    """Non-fatal error captured during a run."""

    model_config = ConfigDict(populate_by_name=True)

    resource_url: str = Field(..., validation_alias=AliasChoices("resource_url", "repoUrl"))
    message: str = Field(..., validation_alias=AliasChoices("message", "error"))
    occurred_at: datetime = Field(
        default_factory=_utc_now,
        validation_alias=AliasChoices("occurred_at", "timestamp"),
    )
    source: str | None = Field(default=None)


class SourceReport(BaseModel):
    """Per-source counters accumulated during one run."""

    source: str = Field(..., min_length=1)
    parsed: int = Field(default=0, ge=0)
    new: int = Field(default=0, ge=0)
    duplicates: int = Field(default=0, ge=0)
    invalid: int = Field(default=0, ge=0)
    capped: int = Field(default=0, ge=0)
    not_found: int = Field(default=0, ge=0)
    errors: int = Field(default=0, ge=0)
    fetch_failures: int = Field(default=0, ge=0)


class RunReport(BaseModel):
    """Report produced fresh for each run."""

    run_id: str = Field(..., min_length=1)
    policy_version: str = Field(default="unknown")
    started_at: datetime = Field(default_factory=_utc_now)
    finished_at: datetime | None = Field(default=None)
    enrichment_enabled: bool = Field(default=True)
    dataset_rows_dropped: int = Field(default=0, ge=0)
    sources: List[SourceReport] = Field(default_factory=list)
    errors: List[RunError] = Field(default_factory=list)

    def for_source(self, name: str) -> SourceReport:
        """Return the report for ``name``, creating it in first-seen order."""

        for report in self.sources:
            if report.source == name:
                return report
        report = SourceReport(source=name)
        self.sources.append(report)
        return report

    def totals(self) -> Dict[str, int]:
        fields = ("parsed", "new", "duplicates", "invalid", "capped", "not_found", "errors", "fetch_failures")
        return {name: sum(getattr(report, name) for report in self.sources) for name in fields}

    def record_error(self, error: RunError) -> None:
        self.errors.append(error)
        if error.source:
            self.for_source(error.source).errors += 1


class CanonicalDataset(BaseModel):
    """Structured dataset document persisted between runs."""

    model_config = ConfigDict(populate_by_name=True)

    scraped_at: datetime = Field(
        default_factory=_utc_now,
        validation_alias=AliasChoices("scraped_at", "scrapedAt"),
    )
    games: List[CanonicalRecord] = Field(default_factory=list)
    errors: List[RunError] = Field(default_factory=list)

    @property
    def total_games(self) -> int:
        return len(self.games)

    def keys(self) -> set[str]:
        return {record.key for record in self.games}

    def slugs(self) -> set[str]:
        return {record.slug for record in self.games}

    def to_document(self) -> Dict[str, Any]:
        payload = self.model_dump(mode="json")
        return {
            "scraped_at": payload["scraped_at"],
            "total_games": self.total_games,
            "games": payload["games"],
            "errors": payload["errors"],
        }

    @classmethod
    def from_records(cls, records: Iterable[CanonicalRecord], errors: Iterable[RunError] = ()) -> "CanonicalDataset":
        return cls(games=list(records), errors=list(errors))


__all__ = [
    "BlockKind",
    "CandidateEntry",
    "CanonicalDataset",
    "CanonicalRecord",
    "EnrichedEntry",
    "EnrichmentStatus",
    "RESOURCE_BASE_URL",
    "RawBlock",
    "RunError",
    "RunReport",
    "SourceReport",
    "resource_key",
]
