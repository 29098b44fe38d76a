"""Pattern-cascade extraction of candidate entries from raw source blocks."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

from pydantic import ValidationError

from ...config.policies import ExtractionPolicy, SearchPolicy
from ...entities.core import BlockKind, CandidateEntry, RawBlock
from ...utils import get_logger, normalize_whitespace
from .links import find_homepage, parse_resource_url, scan_resource_links
from .matchers import TITLE_MATCHERS, first_match, locator_matchers

_BULLET_PATTERN = re.compile(r"^[*\-+]\s+")
_TABLE_ROW_PATTERN = re.compile(r"\|\s*\[([^\]]+)\]\(([^)]+)\)\s*\|\s*([^|]+)\s*\|")
_SOURCE_REFERENCE = re.compile(r"\[\[source\]\]", re.IGNORECASE)
_MARKDOWN_LINK = re.compile(r"\[[^\]]*\]\([^)]*\)")
_EMPHASIS = re.compile(r"\*\*|__|`")
_LEADING_SEPARATOR = re.compile(r"^[\s\-–—:|]+")


@dataclass
class SectionContext:
    """Nearest preceding section heading for the block being extracted."""

    category: Optional[str] = None


@dataclass
class ExtractionMetrics:
    """Counters tracked for observability and testing."""

    blocks_in: int = 0
    headings: int = 0
    entries_out: int = 0
    misses: int = 0
    kinds: Dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "blocks_in": self.blocks_in,
            "headings": self.headings,
            "entries_out": self.entries_out,
            "misses": self.misses,
            "kinds": dict(self.kinds),
        }


class EntryExtractor:
    """Turn raw blocks into :class:`CandidateEntry` objects.

    Line blocks go through the markdown cascade and yield at most one entry;
    page blocks go through the shared link scan and may yield several; search
    items map directly from their structured payload. Extraction misses are
    routine and only counted.
    """

    def __init__(
        self,
        policy: ExtractionPolicy | None = None,
        *,
        search_policy: SearchPolicy | None = None,
    ) -> None:
        self.policy = policy or ExtractionPolicy()
        self.search_policy = search_policy or SearchPolicy()
        self.metrics = ExtractionMetrics()
        self._locators = locator_matchers(self.policy.resource_host)
        self._heading_pattern = re.compile(
            rf"^#{{{self.policy.heading_min_level},{self.policy.heading_max_level}}}\s+(.+)$"
        )
        self._logger = get_logger(module=__name__)

    # ------------------------------------------------------------------
    # Section headings
    # ------------------------------------------------------------------
    def update_context(self, line: str, context: SectionContext) -> bool:
        """Update ``context`` when ``line`` is a heading; return whether it was one."""

        match = self._heading_pattern.match(line.strip())
        if not match:
            return False
        heading = match.group(1).strip().strip("#").strip()
        lowered = heading.lower()
        if any(skip in lowered for skip in self.policy.skip_sections):
            context.category = None
        else:
            context.category = heading or None
        self.metrics.headings += 1
        return True

    # ------------------------------------------------------------------
    # Field extraction
    # ------------------------------------------------------------------
    def extract_description(self, line: str, title_span: tuple[int, int] | None = None) -> Optional[str]:
        body = line.strip()
        if title_span is not None:
            start, end = title_span
            body = f"{body[:start]} {body[end:]}"
        body = _BULLET_PATTERN.sub("", body.strip())
        reference = _SOURCE_REFERENCE.search(body)
        if reference:
            body = body[: reference.start()]
        body = _MARKDOWN_LINK.sub("", body)
        body = _EMPHASIS.sub("", body)
        body = _LEADING_SEPARATOR.sub("", normalize_whitespace(body))
        body = body.strip().rstrip(".").strip()
        if len(body) < self.policy.min_description_length:
            return None
        return body

    def _build(self, **fields: Any) -> Optional[CandidateEntry]:
        try:
            return CandidateEntry(**fields)
        except ValidationError as exc:
            self._logger.debug("Discarded malformed candidate", error=str(exc).splitlines()[0])
            return None

    def _extract_table_row(self, line: str, block: RawBlock, context: SectionContext) -> Optional[CandidateEntry]:
        match = _TABLE_ROW_PATTERN.search(line)
        if not match:
            return None
        url = match.group(2).strip()
        if self.policy.resource_host not in url.lower():
            return None
        ref = parse_resource_url(url, self.policy.resource_host)
        if ref is None:
            return None
        return self._build(
            title=match.group(1).strip(),
            resource_owner=ref.owner,
            resource_name=ref.name,
            description=match.group(3).strip() or None,
            category=context.category or block.category,
            source_id=block.source_id,
        )

    def _extract_list_item(self, line: str, block: RawBlock, context: SectionContext) -> Optional[CandidateEntry]:
        if not _BULLET_PATTERN.match(line):
            return None
        title = first_match(TITLE_MATCHERS, line)
        if title is None:
            return None
        locator = first_match(self._locators, line)
        if locator is None:
            return None
        ref = parse_resource_url(locator.value, self.policy.resource_host)
        if ref is None:
            return None
        return self._build(
            title=title.value,
            resource_owner=ref.owner,
            resource_name=ref.name,
            description=self.extract_description(line, title.span),
            category=context.category or block.category,
            homepage=find_homepage(line, self.policy.resource_host),
            source_id=block.source_id,
        )

    def extract_block(self, block: RawBlock, context: SectionContext) -> Optional[CandidateEntry]:
        """Return zero or one entry for a line block, updating ``context`` on headings."""

        line = block.text.strip()
        if not line or self.update_context(line, context):
            return None
        if line.startswith("|"):
            return self._extract_table_row(line, block, context)
        return self._extract_list_item(line, block, context)

    def scan_page(self, block: RawBlock) -> List[CandidateEntry]:
        """Extract every resource link from an unstructured page block."""

        entries: List[CandidateEntry] = []
        for ref in scan_resource_links(block.text, self.policy.resource_host):
            entry = self._build(
                title=block.title_hint or ref.name,
                resource_owner=ref.owner,
                resource_name=ref.name,
                category=block.category,
                source_id=block.source_id,
            )
            if entry is not None:
                entries.append(entry)
        return entries

    def from_search_item(self, block: RawBlock) -> Optional[CandidateEntry]:
        item = block.payload
        owner_info = item.get("owner")
        owner = owner_info.get("login") if isinstance(owner_info, dict) else None
        name = item.get("name")
        if not owner or not name:
            ref = parse_resource_url(str(item.get("html_url") or ""), self.policy.resource_host)
            if ref is None:
                return None
            owner, name = ref.owner, ref.name
        return self._build(
            title=name,
            resource_owner=owner,
            resource_name=name,
            description=item.get("description"),
            category=block.category or self.search_policy.category,
            homepage=item.get("homepage") or None,
            source_id=block.source_id,
        )

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------
    def iter_entries(self, blocks: Iterable[RawBlock]) -> Iterator[CandidateEntry]:
        """Extract entries from one source's blocks, preserving source order.

        Section context is scoped to a single call, so every source starts
        without a category.
        """

        context = SectionContext()
        for block in blocks:
            self.metrics.blocks_in += 1
            self.metrics.kinds[block.kind.value] = self.metrics.kinds.get(block.kind.value, 0) + 1
            if block.kind is BlockKind.LINE:
                entry = self.extract_block(block, context)
                found = [entry] if entry is not None else []
            elif block.kind is BlockKind.SEARCH_ITEM:
                entry = self.from_search_item(block)
                found = [entry] if entry is not None else []
            else:
                found = self.scan_page(block)
            if not found:
                self.metrics.misses += 1
            for entry in found:
                self.metrics.entries_out += 1
                yield entry


__all__ = [
    "EntryExtractor",
    "ExtractionMetrics",
    "SectionContext",
]
