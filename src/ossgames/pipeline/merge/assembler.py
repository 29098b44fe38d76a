"""Append-only merge of enriched entries into the canonical dataset."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Sequence, Set

from ...config.policies import MergePolicy
from ...entities.core import CanonicalDataset, CanonicalRecord, EnrichedEntry, RunError
from ...utils import get_logger, slugify

_FALLBACK_SLUG = "resource"


@dataclass
class MergeResult:
    """Updated dataset plus the records appended during this merge."""

    dataset: CanonicalDataset
    added: List[CanonicalRecord] = field(default_factory=list)
    skipped_ids: List[str] = field(default_factory=list)
    collisions: List[RunError] = field(default_factory=list)


class MergeAssembler:
    """Assign slugs and ids, append new records and order by popularity.

    Existing records are never modified or removed. The merged list is sorted
    by ``stars`` descending with Python's stable sort, so ties keep discovery
    order with existing records ahead of new ones.
    """

    def __init__(self, policy: MergePolicy | None = None) -> None:
        self.policy = policy or MergePolicy()
        self._logger = get_logger(module=__name__)

    def base_slug(self, title: str, owner: str, name: str) -> str:
        slug = slugify(title)
        if not slug or len(slug) < self.policy.min_slug_length or slug in self.policy.generic_slugs:
            slug = slugify(f"{owner}-{name}")
        return slug or _FALLBACK_SLUG

    def unique_slug(self, base: str, taken: Set[str]) -> str:
        candidate = base
        suffix = 1
        while candidate in taken:
            candidate = f"{base}-{suffix}"
            suffix += 1
        return candidate

    def build_record(self, entry: EnrichedEntry, taken_slugs: Set[str], *, added_at: datetime) -> CanonicalRecord:
        slug = self.unique_slug(
            self.base_slug(entry.title, entry.resource_owner, entry.resource_name),
            taken_slugs,
        )
        taken_slugs.add(slug)
        data = entry.model_dump()
        data.update(
            id=CanonicalRecord.build_id(entry.resource_owner, entry.resource_name),
            slug=slug,
            added_at=added_at,
        )
        return CanonicalRecord.model_validate(data)

    def assemble(
        self,
        existing: CanonicalDataset,
        entries: Sequence[EnrichedEntry],
        *,
        errors: Iterable[RunError] = (),
    ) -> MergeResult:
        now = datetime.now(timezone.utc)
        taken_slugs = existing.slugs()
        known_ids = {record.id for record in existing.games}
        added: List[CanonicalRecord] = []
        skipped: List[str] = []
        collisions: List[RunError] = []
        for entry in entries:
            record_id = CanonicalRecord.build_id(entry.resource_owner, entry.resource_name)
            if record_id in known_ids:
                self._logger.warning("Skipping entry with existing id", id=record_id, resource=entry.key)
                skipped.append(record_id)
                collisions.append(
                    RunError(
                        resource_url=entry.resource_url,
                        message=f"Record id {record_id} is already taken by another resource",
                        source=entry.source_id,
                    )
                )
                continue
            record = self.build_record(entry, taken_slugs, added_at=now)
            known_ids.add(record.id)
            added.append(record)

        merged = sorted([*existing.games, *added], key=lambda record: record.stars, reverse=True)
        dataset = CanonicalDataset(
            scraped_at=now,
            games=merged,
            errors=[*existing.errors, *errors, *collisions],
        )
        self._logger.info(
            "Merged dataset",
            existing=existing.total_games,
            added=len(added),
            total=dataset.total_games,
        )
        return MergeResult(dataset=dataset, added=added, skipped_ids=skipped, collisions=collisions)


__all__ = ["MergeAssembler", "MergeResult"]
