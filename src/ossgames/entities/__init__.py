"""Domain entities for the open-source games ingestion pipeline."""

from .core import (
    BlockKind,
    CandidateEntry,
    CanonicalDataset,
    CanonicalRecord,
    EnrichedEntry,
    RawBlock,
    RunError,
    RunReport,
    SourceReport,
    resource_key,
)

__all__ = [
    "BlockKind",
    "RawBlock",
    "CandidateEntry",
    "EnrichedEntry",
    "CanonicalRecord",
    "CanonicalDataset",
    "RunError",
    "RunReport",
    "SourceReport",
    "resource_key",
]
