"""HTTP, metadata API and topic-search policy models."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, field_validator


class HttpPolicy(BaseModel):
    """Defaults for plain page fetches performed by the source adapters."""

    user_agent: str = Field(default="ossgames-fetcher/1.0", min_length=3)
    timeout_seconds: float = Field(default=20.0, ge=1.0)
    requests_per_second: float = Field(
        default=2.0,
        ge=0.0,
        description="Politeness limit for listing and item page fetches; 0 disables throttling.",
    )
    accept: str = Field(
        default="text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        min_length=1,
    )


class SearchPolicy(BaseModel):
    """Relevance filter applied to topic searches."""

    min_stars: int = Field(default=10, ge=0)
    min_forks: int = Field(default=2, ge=0)
    exclude_archived: bool = Field(default=True)
    terms: List[str] = Field(
        default_factory=lambda: ["game", "game-engine", "gamedev", "game-development"],
    )
    sort: str = Field(default="stars")
    order: str = Field(default="desc")
    category: str = Field(default="GitHub Search", min_length=1)

    @field_validator("terms", mode="before")
    @classmethod
    def _strip_terms(cls, value: List[str] | None) -> List[str]:
        return [term.strip() for term in value or [] if term and term.strip()]


class EnrichmentPolicy(BaseModel):
    """Batching and quota discipline for the metadata API."""

    api_url: str = Field(default="https://api.github.com", min_length=8)
    token_env_var: str = Field(default="GITHUB_TOKEN", min_length=1)
    user_agent: str = Field(default="ossgames-fetcher/1.0", min_length=3)
    request_timeout_seconds: float = Field(default=20.0, ge=1.0)
    batch_size: int = Field(default=10, ge=1, le=100)
    batch_delay_seconds: float = Field(default=1.0, ge=0.0)
    quota_threshold: int = Field(
        default=10,
        ge=0,
        description="Remaining requests below which the client sleeps until the quota resets.",
    )
    reset_margin_seconds: float = Field(default=1.0, ge=0.0)
    fetch_releases: bool = Field(default=True)
    multiplayer_keywords: List[str] = Field(
        default_factory=lambda: [
            "multiplayer",
            "multi-player",
            "online",
            "mmo",
            "mmorpg",
            "co-op",
            "coop",
            "pvp",
            "server",
            "netcode",
            "networking",
            "lan",
        ]
    )

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


__all__ = ["EnrichmentPolicy", "HttpPolicy", "SearchPolicy"]
