"""Batch enrichment of candidates with metadata from the GitHub API."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from ...config.policies import EnrichmentPolicy
from ...entities.core import CandidateEntry, EnrichedEntry, RunError
from ...github.errors import GitHubAPIError, NotFoundError
from ...github.quota import QuotaGuard
from ...utils import chunked, get_logger


class MetadataClient(Protocol):
    def get_repository(self, owner: str, name: str) -> Dict[str, Any]: ...

    def get_latest_release(self, owner: str, name: str) -> Dict[str, Any] | None: ...


def _parse_timestamp(value: Any) -> datetime | None:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def is_multiplayer(topics: Iterable[str], keywords: Iterable[str]) -> bool:
    """Return whether any topic, or any hyphen-separated part of one, is a keyword."""

    wanted = {keyword.lower() for keyword in keywords}
    for topic in topics:
        lowered = topic.lower()
        if lowered in wanted or any(part in wanted for part in lowered.split("-")):
            return True
    return False


def metadata_from_repository(payload: Mapping[str, Any], *, multiplayer_keywords: Iterable[str] = ()) -> Dict[str, Any]:
    """Map a repository payload onto :class:`EnrichedEntry` field names."""

    license_info = payload.get("license") or {}
    license_id = None
    if isinstance(license_info, Mapping):
        spdx = license_info.get("spdx_id")
        license_id = spdx if spdx and spdx != "NOASSERTION" else license_info.get("key")
    topics = [str(topic) for topic in payload.get("topics") or []]
    pushed_at = _parse_timestamp(payload.get("pushed_at"))
    return {
        "stars": int(payload.get("stargazers_count") or 0),
        "forks": int(payload.get("forks_count") or 0),
        "open_issues": int(payload.get("open_issues_count") or 0),
        "language": payload.get("language") or None,
        "topics": topics,
        "license": license_id or None,
        "archived": bool(payload.get("archived")),
        "is_multiplayer": is_multiplayer(topics, multiplayer_keywords),
        "created_at": _parse_timestamp(payload.get("created_at")),
        "updated_at": _parse_timestamp(payload.get("updated_at")),
        "pushed_at": pushed_at,
        "last_commit_at": pushed_at,
    }


def release_metadata(payload: Mapping[str, Any] | None) -> Dict[str, Any]:
    if not payload or not isinstance(payload, Mapping):
        return {}
    assets = payload.get("assets") or []
    downloads = sum(int(asset.get("download_count") or 0) for asset in assets if isinstance(asset, Mapping))
    return {
        "latest_release": payload.get("tag_name") or payload.get("name") or None,
        "release_downloads": downloads,
    }


@dataclass
class ItemOutcome:
    """Result for one candidate; exactly one of ``entry``/``error`` is set."""

    candidate: CandidateEntry
    entry: Optional[EnrichedEntry] = None
    error: Optional[RunError] = None
    requests_used: int = 0


@dataclass
class EnrichmentMetrics:
    """Counters describing an enrichment run."""

    candidates: int = 0
    batches: int = 0
    enriched: int = 0
    not_found: int = 0
    failed: int = 0
    requests: int = 0
    quota_waits: int = 0
    releases_found: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "candidates": self.candidates,
            "batches": self.batches,
            "enriched": self.enriched,
            "not_found": self.not_found,
            "failed": self.failed,
            "requests": self.requests,
            "quota_waits": self.quota_waits,
            "releases_found": self.releases_found,
        }


@dataclass
class EnrichmentResult:
    """Retained entries in input order plus the errors of dropped ones."""

    entries: List[EnrichedEntry] = field(default_factory=list)
    errors: List[RunError] = field(default_factory=list)
    metrics: EnrichmentMetrics = field(default_factory=EnrichmentMetrics)


class EnrichmentProcessor:
    """Fetch metadata in fixed-size concurrent batches under a quota guard.

    The quota guard is consulted before every batch, the first included. A
    missing repository keeps the entry with absent metadata; any other API
    failure records a :class:`RunError` and drops the entry.
    """

    def __init__(
        self,
        client: MetadataClient,
        policy: EnrichmentPolicy | None = None,
        *,
        quota: QuotaGuard | None = None,
        sleeper: Callable[[float], None] | None = None,
    ) -> None:
        self.client = client
        self.policy = policy or EnrichmentPolicy()
        self.quota = quota
        self._sleeper = sleeper
        self.metrics = EnrichmentMetrics()
        self._logger = get_logger(component="enrichment")

    def _sleep(self, seconds: float) -> None:
        if seconds <= 0:
            return
        if self._sleeper is not None:
            self._sleeper(seconds)
        else:
            time.sleep(seconds)

    def enrich_one(self, candidate: CandidateEntry) -> ItemOutcome:
        owner, name = candidate.resource_owner, candidate.resource_name
        try:
            payload = self.client.get_repository(owner, name)
        except NotFoundError:
            self._logger.info("Repository not found", resource=candidate.key)
            entry = EnrichedEntry.from_candidate(candidate, enrichment_status="not_found")
            return ItemOutcome(candidate=candidate, entry=entry, requests_used=1)
        except GitHubAPIError as exc:
            self._logger.warning("Enrichment failed", resource=candidate.key, error=str(exc))
            error = RunError(
                resource_url=candidate.resource_url,
                message=str(exc),
                source=candidate.source_id,
            )
            return ItemOutcome(candidate=candidate, error=error, requests_used=1)

        used = 1
        if not isinstance(payload, Mapping):
            self._logger.warning("Repository payload is not an object", resource=candidate.key)
            error = RunError(
                resource_url=candidate.resource_url,
                message=f"Unexpected repository payload of type {type(payload).__name__}",
                source=candidate.source_id,
            )
            return ItemOutcome(candidate=candidate, error=error, requests_used=used)
        try:
            metadata = metadata_from_repository(payload, multiplayer_keywords=self.policy.multiplayer_keywords)
            metadata["description"] = payload.get("description") or candidate.description
            metadata["homepage"] = payload.get("homepage") or candidate.homepage
            metadata["enrichment_status"] = "enriched"
            if self.policy.fetch_releases:
                used += 1
                try:
                    metadata.update(release_metadata(self.client.get_latest_release(owner, name)))
                except GitHubAPIError as exc:
                    self._logger.debug("Release lookup failed", resource=candidate.key, error=str(exc))
            entry = EnrichedEntry.from_candidate(candidate, **metadata)
        except (AttributeError, TypeError, ValueError) as exc:
            self._logger.warning("Unexpected repository payload", resource=candidate.key, error=str(exc))
            error = RunError(
                resource_url=candidate.resource_url,
                message=f"Unexpected repository payload: {exc}",
                source=candidate.source_id,
            )
            return ItemOutcome(candidate=candidate, error=error, requests_used=used)
        return ItemOutcome(candidate=candidate, entry=entry, requests_used=used)

    def enrich_batch(self, batch: Sequence[CandidateEntry]) -> List[ItemOutcome]:
        """Enrich ``batch`` concurrently; the result has one slot per input, in order."""

        if not batch:
            return []
        slots: List[Optional[ItemOutcome]] = [None] * len(batch)
        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            futures = {executor.submit(self.enrich_one, candidate): index for index, candidate in enumerate(batch)}
            for future in as_completed(futures):
                index = futures[future]
                try:
                    slots[index] = future.result()
                except Exception as exc:
                    candidate = batch[index]
                    self._logger.exception("Enrichment worker failed", resource=candidate.key)
                    error = RunError(
                        resource_url=candidate.resource_url,
                        message=f"Enrichment failed: {exc}",
                        source=candidate.source_id,
                    )
                    slots[index] = ItemOutcome(candidate=candidate, error=error, requests_used=1)
        return [outcome for outcome in slots if outcome is not None]

    def process(self, candidates: Sequence[CandidateEntry]) -> EnrichmentResult:
        result = EnrichmentResult(metrics=self.metrics)
        self.metrics.candidates += len(candidates)
        batches = list(chunked(candidates, self.policy.batch_size))
        for index, batch in enumerate(batches):
            if self.quota is not None:
                waited = self.quota.check_and_wait_if_needed()
                if waited > 0:
                    self.metrics.quota_waits += 1
            outcomes = self.enrich_batch(batch)
            self.metrics.batches += 1
            used = sum(outcome.requests_used for outcome in outcomes)
            self.metrics.requests += used
            if self.quota is not None:
                self.quota.record_usage(used)
            for outcome in outcomes:
                if outcome.error is not None:
                    self.metrics.failed += 1
                    result.errors.append(outcome.error)
                    continue
                entry = outcome.entry
                if entry.enrichment_status == "not_found":
                    self.metrics.not_found += 1
                else:
                    self.metrics.enriched += 1
                    if entry.latest_release:
                        self.metrics.releases_found += 1
                result.entries.append(entry)
            self._logger.info(
                "Enriched batch",
                batch=index + 1,
                batches=len(batches),
                enriched=self.metrics.enriched,
                failed=self.metrics.failed,
            )
            if index + 1 < len(batches):
                self._sleep(self.policy.batch_delay_seconds)
        return result

    @staticmethod
    def passthrough(candidates: Iterable[CandidateEntry]) -> List[EnrichedEntry]:
        """Wrap candidates without any lookup, leaving metadata absent."""

        return [EnrichedEntry.from_candidate(candidate, enrichment_status="skipped") for candidate in candidates]


__all__ = [
    "EnrichmentMetrics",
    "EnrichmentProcessor",
    "EnrichmentResult",
    "ItemOutcome",
    "MetadataClient",
    "is_multiplayer",
    "metadata_from_repository",
    "release_metadata",
]
