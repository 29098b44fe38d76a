"""Layered deduplication over normalized resource keys."""

from .stages import (
    DeduplicationOutcome,
    Deduplicator,
    StageResult,
    against_canonical,
    across_sources,
    within_source,
)

__all__ = [
    "DeduplicationOutcome",
    "Deduplicator",
    "StageResult",
    "against_canonical",
    "across_sources",
    "within_source",
]
