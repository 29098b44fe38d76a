"""Merge and output policy models."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, field_validator


class MergePolicy(BaseModel):
    """Slug assignment and curated-output controls."""

    min_slug_length: int = Field(default=2, ge=1)
    generic_slugs: List[str] = Field(
        default_factory=lambda: ["game", "games", "app"],
        description="Derived slugs that are too generic and fall back to owner-name.",
    )
    curated_min_stars: int = Field(default=100, ge=0)
    curated_limit: int = Field(default=100, ge=1)
    summary_top_n: int = Field(default=20, ge=0)

    @field_validator("generic_slugs", mode="before")
    @classmethod
    def _lower_generic(cls, value: List[str] | None) -> List[str]:
        return [item.strip().lower() for item in value or [] if item and item.strip()]


__all__ = ["MergePolicy"]
