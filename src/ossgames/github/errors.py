"""Exceptions raised by the metadata API client."""

from __future__ import annotations


class GitHubAPIError(Exception):
    """Non-success response or transport failure from the metadata API."""

    def __init__(self, message: str, *, status_code: int | None = None, retryable: bool = True) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class NotFoundError(GitHubAPIError):
    """The requested resource does not exist (HTTP 404)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=404, retryable=False)


class RateLimitedError(GitHubAPIError):
    """The request budget is exhausted until ``reset_at`` (epoch seconds)."""

    def __init__(self, message: str, *, status_code: int, reset_at: float | None = None) -> None:
        super().__init__(message, status_code=status_code, retryable=True)
        self.reset_at = reset_at


__all__ = ["GitHubAPIError", "NotFoundError", "RateLimitedError"]
