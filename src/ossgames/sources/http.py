"""Plain page fetching for source adapters."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

import requests
from requests.exceptions import RequestException

from ..config.policies import HttpPolicy
from ..utils.logging import get_logger


class FetchError(Exception):
    """Exception raised when a network fetch fails."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


def _monotonic() -> float:
    return time.monotonic()


@dataclass
class RateLimiter:
    """Simple token-bucket rate limiter for politeness constraints."""

    rate_per_second: float
    burst: int = 1

    _tokens: float = field(default=0.0, init=False)
    _last_check: float = field(default_factory=_monotonic, init=False)

    def __post_init__(self) -> None:
        self._tokens = float(self.burst)
        self._last_check = time.monotonic()

    def _refill(self, now: float) -> None:
        elapsed = max(0.0, now - self._last_check)
        if elapsed == 0:
            return
        if self.rate_per_second > 0:
            self._tokens = min(self.burst, self._tokens + elapsed * self.rate_per_second)
        self._last_check = now

    def acquire(self) -> None:
        if self.rate_per_second <= 0:
            return

        self._refill(time.monotonic())
        if self._tokens < 1:
            sleep_time = (1 - self._tokens) / self.rate_per_second
            if sleep_time > 0:
                time.sleep(sleep_time)
            self._refill(time.monotonic())
        self._tokens = max(0.0, self._tokens - 1)


class PageFetcher:
    """Fetches documents and listing pages as text.

    Every call is throttled by the shared :class:`RateLimiter`; failures are
    raised as :class:`FetchError` and never retried here.
    """

    def __init__(self, policy: HttpPolicy | None = None, *, session: requests.Session | None = None) -> None:
        self.policy = policy or HttpPolicy()
        self.session = session or requests.Session()
        self.session.headers.update(
            {"User-Agent": self.policy.user_agent, "Accept": self.policy.accept}
        )
        self.rate_limiter = RateLimiter(rate_per_second=self.policy.requests_per_second)
        self._logger = get_logger(component="page_fetcher")

    def fetch_text(self, url: str, *, params: dict | None = None) -> str:
        self.rate_limiter.acquire()
        try:
            response = self.session.get(url, params=params, timeout=self.policy.timeout_seconds)
        except RequestException as exc:
            raise FetchError(f"Request failed for {url}: {exc}", retryable=True) from exc

        if response.status_code >= 400:
            raise FetchError(
                f"HTTP {response.status_code} for {url}",
                status_code=response.status_code,
                retryable=response.status_code >= 500 or response.status_code == 429,
            )
        self._logger.debug("Fetched page", url=url, status=response.status_code, size=len(response.content))
        return response.text

    def close(self) -> None:
        self.session.close()


__all__ = ["FetchError", "PageFetcher", "RateLimiter"]
