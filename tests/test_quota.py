"""Tests for the quota guard backoff behaviour."""

from __future__ import annotations

from typing import List

import pytest

from ossgames.github import GitHubAPIError, QuotaGuard, QuotaSnapshot


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class StubQuotaSource:
    def __init__(self, *snapshots: QuotaSnapshot) -> None:
        self.snapshots = list(snapshots)
        self.calls = 0

    def get_rate_limit(self) -> QuotaSnapshot:
        self.calls += 1
        if not self.snapshots:
            raise GitHubAPIError("rate_limit unavailable")
        return self.snapshots.pop(0)


def test_no_wait_above_threshold() -> None:
    clock = FakeClock()
    guard = QuotaGuard(
        StubQuotaSource(QuotaSnapshot(remaining=50, reset_at=2000.0)),
        threshold=10,
        clock=clock,
        sleeper=clock.sleep,
    )

    assert guard.check_and_wait_if_needed() == 0.0
    assert clock.sleeps == []


def test_waits_until_reset_plus_margin() -> None:
    clock = FakeClock(now=1000.0)
    guard = QuotaGuard(
        StubQuotaSource(QuotaSnapshot(remaining=3, reset_at=1060.0)),
        threshold=10,
        reset_margin_seconds=1.0,
        clock=clock,
        sleeper=clock.sleep,
    )

    waited = guard.check_and_wait_if_needed()

    assert waited == pytest.approx(61.0)
    assert clock.sleeps == [pytest.approx(61.0)]
    assert guard.waits == 1
    assert guard.estimated_remaining is None


def test_reset_in_the_past_only_waits_margin() -> None:
    clock = FakeClock(now=5000.0)
    guard = QuotaGuard(
        StubQuotaSource(QuotaSnapshot(remaining=0, reset_at=4000.0)),
        threshold=1,
        reset_margin_seconds=2.0,
        clock=clock,
        sleeper=clock.sleep,
    )

    assert guard.check_and_wait_if_needed() == pytest.approx(2.0)


def test_local_estimate_used_when_lookup_fails() -> None:
    clock = FakeClock(now=0.0)
    guard = QuotaGuard(StubQuotaSource(), threshold=10, clock=clock, sleeper=clock.sleep)
    guard.observe(QuotaSnapshot(remaining=15, reset_at=30.0))

    assert guard.check_and_wait_if_needed() == 0.0

    guard.record_usage(10)
    assert guard.estimated_remaining == 5
    assert guard.check_and_wait_if_needed() == pytest.approx(31.0)


def test_unknown_quota_never_waits() -> None:
    guard = QuotaGuard(None, threshold=10, sleeper=lambda seconds: pytest.fail("should not sleep"))

    assert guard.check_and_wait_if_needed() == 0.0


def test_snapshot_from_headers() -> None:
    snapshot = QuotaSnapshot.from_headers({"X-RateLimit-Remaining": "7", "X-RateLimit-Reset": "99"})

    assert snapshot == QuotaSnapshot(remaining=7, reset_at=99.0)
    assert QuotaSnapshot.from_headers({"X-RateLimit-Remaining": "x", "X-RateLimit-Reset": "1"}) is None
    assert QuotaSnapshot.from_headers({}) is None


def test_record_usage_rejects_negative_counts() -> None:
    with pytest.raises(ValueError):
        QuotaGuard(None).record_usage(-1)
