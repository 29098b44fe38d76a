"""Three explicit deduplication stages over normalized resource keys.

Each stage takes an entry list plus an immutable key snapshot and returns the
kept entries, the duplicates and a new snapshot. Nothing is mutated in place,
so the order in which stages and sources run is the only state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, FrozenSet, Iterable, List, Sequence

from ...entities.core import CandidateEntry
from ...utils.logging import get_logger

_LOGGER = get_logger(module=__name__)


@dataclass(frozen=True)
class StageResult:
    """Output of a single deduplication stage."""

    kept: List[CandidateEntry]
    duplicates: List[CandidateEntry]
    keys: FrozenSet[str]
    capped: List[CandidateEntry] = field(default_factory=list)


def within_source(entries: Iterable[CandidateEntry]) -> StageResult:
    """Keep the first occurrence of each key inside one source's output."""

    seen: set[str] = set()
    kept: List[CandidateEntry] = []
    duplicates: List[CandidateEntry] = []
    for entry in entries:
        key = entry.key
        if key in seen:
            duplicates.append(entry)
            continue
        seen.add(key)
        kept.append(entry)
    return StageResult(kept=kept, duplicates=duplicates, keys=frozenset(seen))


def against_canonical(entries: Sequence[CandidateEntry], canonical_keys: AbstractSet[str]) -> StageResult:
    """Drop entries whose key already exists in the canonical dataset."""

    kept = [entry for entry in entries if entry.key not in canonical_keys]
    duplicates = [entry for entry in entries if entry.key in canonical_keys]
    return StageResult(kept=kept, duplicates=duplicates, keys=frozenset(canonical_keys))


def across_sources(
    entries: Sequence[CandidateEntry],
    run_keys: AbstractSet[str],
    *,
    limit: int | None = None,
) -> StageResult:
    """Drop keys accepted by an earlier source and apply the per-source cap.

    Entries beyond ``limit`` are returned as ``capped``; their keys are not
    added to the snapshot so a later source may still contribute them.
    """

    seen = set(run_keys)
    kept: List[CandidateEntry] = []
    duplicates: List[CandidateEntry] = []
    capped: List[CandidateEntry] = []
    for entry in entries:
        if entry.key in seen:
            duplicates.append(entry)
            continue
        if limit is not None and len(kept) >= limit:
            capped.append(entry)
            continue
        seen.add(entry.key)
        kept.append(entry)
    return StageResult(kept=kept, duplicates=duplicates, keys=frozenset(seen), capped=capped)


@dataclass(frozen=True)
class DeduplicationOutcome:
    """Combined result of the three stages for one source."""

    accepted: List[CandidateEntry]
    within_source_duplicates: int
    canonical_duplicates: int
    run_duplicates: int
    capped: int

    @property
    def duplicates(self) -> int:
        return self.within_source_duplicates + self.canonical_duplicates + self.run_duplicates


class Deduplicator:
    """Sequence the stages across sources processed in configured order."""

    def __init__(self, canonical_keys: Iterable[str] = ()) -> None:
        self.canonical_keys: FrozenSet[str] = frozenset(key.lower() for key in canonical_keys)
        self.run_keys: FrozenSet[str] = frozenset()

    def process_source(
        self,
        source: str,
        entries: Iterable[CandidateEntry],
        *,
        limit: int | None = None,
    ) -> DeduplicationOutcome:
        first = within_source(entries)
        second = against_canonical(first.kept, self.canonical_keys)
        third = across_sources(second.kept, self.run_keys, limit=limit)
        self.run_keys = third.keys
        outcome = DeduplicationOutcome(
            accepted=third.kept,
            within_source_duplicates=len(first.duplicates),
            canonical_duplicates=len(second.duplicates),
            run_duplicates=len(third.duplicates),
            capped=len(third.capped),
        )
        _LOGGER.debug(
            "Deduplicated source",
            source=source,
            accepted=len(outcome.accepted),
            duplicates=outcome.duplicates,
            capped=outcome.capped,
        )
        return outcome


__all__ = [
    "DeduplicationOutcome",
    "Deduplicator",
    "StageResult",
    "against_canonical",
    "across_sources",
    "within_source",
]
