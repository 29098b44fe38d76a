"""Configuration utilities for the ingestion pipeline."""

from .policies import (
    EnrichmentPolicy,
    ExtractionPolicy,
    FilterPolicy,
    HttpPolicy,
    MergePolicy,
    Policies,
    SearchPolicy,
    SourceDescriptor,
    SourceKind,
    TagListingPolicy,
    load_policies,
)
from .settings import PathsConfig, Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "PathsConfig",
    "Policies",
    "load_policies",
    "EnrichmentPolicy",
    "ExtractionPolicy",
    "FilterPolicy",
    "HttpPolicy",
    "MergePolicy",
    "SearchPolicy",
    "SourceDescriptor",
    "SourceKind",
    "TagListingPolicy",
]
