"""Request-budget tracking for the metadata API."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Mapping, Protocol

from ..utils.logging import get_logger
from .errors import GitHubAPIError


@dataclass(frozen=True)
class QuotaSnapshot:
    """Remaining request budget and the epoch second at which it resets."""

    remaining: int
    reset_at: float
    limit: int | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "QuotaSnapshot | None":
        remaining = headers.get("X-RateLimit-Remaining")
        reset = headers.get("X-RateLimit-Reset")
        if remaining is None or reset is None:
            return None
        try:
            limit_header = headers.get("X-RateLimit-Limit")
            return cls(
                remaining=int(remaining),
                reset_at=float(reset),
                limit=int(limit_header) if limit_header is not None else None,
            )
        except ValueError:
            return None


class QuotaSource(Protocol):
    def get_rate_limit(self) -> QuotaSnapshot: ...


class QuotaGuard:
    """Decides whether the next batch may proceed and sleeps when it may not.

    The guard refreshes its view from ``source`` on every check. When that call
    fails it falls back to the last observed snapshot minus the usage recorded
    since, so a flaky quota endpoint never disables the backoff.
    """

    def __init__(
        self,
        source: QuotaSource | None,
        *,
        threshold: int = 10,
        reset_margin_seconds: float = 1.0,
        clock: Callable[[], float] | None = None,
        sleeper: Callable[[float], None] | None = None,
    ) -> None:
        self.source = source
        self.threshold = threshold
        self.reset_margin_seconds = reset_margin_seconds
        self._clock = clock
        self._sleeper = sleeper
        self._snapshot: QuotaSnapshot | None = None
        self._used_since_snapshot = 0
        self._lock = threading.Lock()
        self.total_waited_seconds = 0.0
        self.waits = 0
        self._logger = get_logger(component="quota_guard")

    def _now(self) -> float:
        return self._clock() if self._clock is not None else time.time()

    def _sleep(self, seconds: float) -> None:
        if self._sleeper is not None:
            self._sleeper(seconds)
        else:
            time.sleep(seconds)

    @property
    def estimated_remaining(self) -> int | None:
        with self._lock:
            if self._snapshot is None:
                return None
            return max(0, self._snapshot.remaining - self._used_since_snapshot)

    def observe(self, snapshot: QuotaSnapshot | None) -> None:
        """Adopt a fresher snapshot, e.g. parsed from response headers."""

        if snapshot is None:
            return
        with self._lock:
            self._snapshot = snapshot
            self._used_since_snapshot = 0

    def record_usage(self, count: int = 1) -> None:
        if count < 0:
            raise ValueError("count must be non-negative")
        with self._lock:
            self._used_since_snapshot += count

    def refresh(self) -> None:
        if self.source is None:
            return
        try:
            snapshot = self.source.get_rate_limit()
        except GitHubAPIError as exc:
            self._logger.warning("Quota lookup failed; using local estimate", error=str(exc))
            return
        self.observe(snapshot)

    def check_and_wait_if_needed(self) -> float:
        """Block until the budget is above the threshold; return seconds slept."""

        self.refresh()
        remaining = self.estimated_remaining
        if remaining is None or remaining >= self.threshold:
            return 0.0

        with self._lock:
            reset_at = self._snapshot.reset_at if self._snapshot else self._now()
        wait = max(0.0, reset_at - self._now()) + self.reset_margin_seconds
        self._logger.warning(
            "Quota below threshold; waiting for reset",
            remaining=remaining,
            threshold=self.threshold,
            wait_seconds=round(wait, 1),
        )
        self._sleep(wait)
        self.waits += 1
        self.total_waited_seconds += wait
        with self._lock:
            # The old snapshot is stale once the reset time has passed.
            self._snapshot = None
            self._used_since_snapshot = 0
        return wait


__all__ = ["QuotaGuard", "QuotaSnapshot", "QuotaSource"]
