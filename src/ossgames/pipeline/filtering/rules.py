"""Exclusion rules applied to candidates before deduplication."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from ...config.policies import ExtractionPolicy, FilterPolicy
from ...entities.core import CandidateEntry
from ...utils.logging import get_logger
from ..extraction.links import ResourceRef, is_resource_path

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass(frozen=True)
class FilterDecision:
    """Outcome of evaluating a single candidate."""

    accepted: bool
    reason: str | None = None
    keyword: str | None = None


@dataclass
class FilterMetrics:
    """Counts of rejections grouped by reason."""

    evaluated: int = 0
    accepted: int = 0
    rejected: Dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, object]:
        return {
            "evaluated": self.evaluated,
            "accepted": self.accepted,
            "rejected": dict(self.rejected),
        }


class CandidateFilter:
    """Drop non-entries: malformed locators and denylisted keywords.

    Keyword checks are plain case-insensitive substring tests against the
    title, plus ``"<keyword> for"`` against the description. Titles such as
    "Modern Siege" are rejected because they contain ``mod``.
    """

    def __init__(
        self,
        policy: FilterPolicy | None = None,
        *,
        extraction_policy: ExtractionPolicy | None = None,
    ) -> None:
        self.policy = policy or FilterPolicy()
        self.extraction_policy = extraction_policy or ExtractionPolicy()
        self.metrics = FilterMetrics()
        self._non_resource_owners = frozenset(self.extraction_policy.non_resource_owners)
        self._logger = get_logger(module=__name__)

    def check_locator(self, entry: CandidateEntry) -> FilterDecision:
        ref = ResourceRef(owner=entry.resource_owner, name=entry.resource_name)
        if not is_resource_path(ref, self._non_resource_owners):
            return FilterDecision(False, reason="non_resource_path")
        if not _NAME_PATTERN.match(ref.owner) or not _NAME_PATTERN.match(ref.name):
            return FilterDecision(False, reason="malformed_locator")
        return FilterDecision(True)

    def check_keywords(self, title: str, description: str | None = None) -> FilterDecision:
        lowered_title = title.lower()
        lowered_description = (description or "").lower()
        for keyword in self.policy.skip_keywords:
            if keyword in lowered_title or lowered_title == keyword:
                return FilterDecision(False, reason="keyword_title", keyword=keyword)
            if f"{keyword}{self.policy.description_suffix}" in lowered_description:
                return FilterDecision(False, reason="keyword_description", keyword=keyword)
        return FilterDecision(True)

    def evaluate(self, entry: CandidateEntry) -> FilterDecision:
        decision = self.check_locator(entry)
        if not decision.accepted:
            return decision
        return self.check_keywords(entry.title, entry.description)

    def apply(self, entries: Iterable[CandidateEntry]) -> Tuple[List[CandidateEntry], List[Tuple[CandidateEntry, FilterDecision]]]:
        """Split ``entries`` into accepted and rejected, preserving order."""

        accepted: List[CandidateEntry] = []
        rejected: List[Tuple[CandidateEntry, FilterDecision]] = []
        for entry in entries:
            self.metrics.evaluated += 1
            decision = self.evaluate(entry)
            if decision.accepted:
                self.metrics.accepted += 1
                accepted.append(entry)
                continue
            reason = decision.reason or "rejected"
            self.metrics.rejected[reason] = self.metrics.rejected.get(reason, 0) + 1
            self._logger.debug(
                "Rejected candidate",
                resource=entry.key,
                reason=reason,
                keyword=decision.keyword,
            )
            rejected.append((entry, decision))
        return accepted, rejected


__all__ = ["CandidateFilter", "FilterDecision", "FilterMetrics"]
