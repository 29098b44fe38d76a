"""Metadata API access and quota discipline."""

from .client import GitHubClient
from .errors import GitHubAPIError, NotFoundError, RateLimitedError
from .quota import QuotaGuard, QuotaSnapshot

__all__ = [
    "GitHubAPIError",
    "GitHubClient",
    "NotFoundError",
    "QuotaGuard",
    "QuotaSnapshot",
    "RateLimitedError",
]
