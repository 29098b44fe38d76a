"""Metadata enrichment for surviving candidates."""

from .processor import (
    EnrichmentMetrics,
    EnrichmentProcessor,
    EnrichmentResult,
    ItemOutcome,
    is_multiplayer,
    metadata_from_repository,
    release_metadata,
)

__all__ = [
    "EnrichmentMetrics",
    "EnrichmentProcessor",
    "EnrichmentResult",
    "ItemOutcome",
    "is_multiplayer",
    "metadata_from_repository",
    "release_metadata",
]
