"""Entry extraction from raw source blocks."""

from .extractor import EntryExtractor, ExtractionMetrics, SectionContext
from .links import ResourceRef, find_homepage, is_resource_path, parse_resource_url, scan_resource_links
from .matchers import TITLE_MATCHERS, FieldMatch, first_match, locator_matchers

__all__ = [
    "EntryExtractor",
    "ExtractionMetrics",
    "FieldMatch",
    "ResourceRef",
    "SectionContext",
    "TITLE_MATCHERS",
    "find_homepage",
    "first_match",
    "is_resource_path",
    "locator_matchers",
    "parse_resource_url",
    "scan_resource_links",
]
