"""Source adapters and page fetching."""

from .adapters import ADAPTERS, build_search_query, iter_blocks, page_title
from .http import FetchError, PageFetcher, RateLimiter
from .models import AdapterContext, AdapterMetrics

__all__ = [
    "ADAPTERS",
    "AdapterContext",
    "AdapterMetrics",
    "FetchError",
    "PageFetcher",
    "RateLimiter",
    "build_search_query",
    "iter_blocks",
    "page_title",
]
