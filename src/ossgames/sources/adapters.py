"""Source adapters producing raw blocks, dispatched on the descriptor kind."""

from __future__ import annotations

import re
from typing import Callable, Dict, Iterator, List

from bs4 import BeautifulSoup

from ..config.policies import SearchPolicy, SourceDescriptor, SourceKind
from ..entities.core import BlockKind, RawBlock
from ..github.errors import GitHubAPIError
from ..utils.logging import get_logger
from .http import FetchError
from .models import AdapterContext

_LOGGER = get_logger(module=__name__)

Adapter = Callable[[SourceDescriptor, AdapterContext], Iterator[RawBlock]]


def _fetch_page(url: str, page: int, ctx: AdapterContext) -> str | None:
    """Fetch one listing page; failures are logged and yield ``None``."""

    ctx.metrics.units_attempted += 1
    params = None
    if page > 1:
        params = {ctx.policies.tag_listing.page_query_parameter: page}
    try:
        return ctx.fetcher.fetch_text(url, params=params)
    except FetchError as exc:
        _LOGGER.warning("Page fetch failed", url=url, page=page, error=str(exc))
        ctx.metrics.record_failure(f"{url}#page={page}", str(exc))
        return None


def build_search_query(topic: str, policy: SearchPolicy) -> str:
    parts = [f"topic:{topic}"]
    if policy.terms:
        parts.append("(" + " OR ".join(policy.terms) + ")")
    parts.append(f"stars:>{policy.min_stars}")
    parts.append(f"forks:>{policy.min_forks}")
    if policy.exclude_archived:
        parts.append("archived:false")
    return " ".join(parts)


def page_title(html: str, suffix_pattern: str) -> str | None:
    soup = BeautifulSoup(html, "html.parser")
    if soup.title is None or soup.title.string is None:
        return None
    title = re.sub(suffix_pattern, "", soup.title.string, flags=re.IGNORECASE).strip()
    return title or None


def read_document(source: SourceDescriptor, ctx: AdapterContext) -> Iterator[RawBlock]:
    """Fetch one markdown document and emit one block per line."""

    ctx.metrics.units_attempted += 1
    try:
        if source.url:
            text = ctx.fetcher.fetch_text(source.url)
        else:
            text = ctx.api.get_readme(source.owner or "", source.repo or "", source.path)
    except (FetchError, GitHubAPIError) as exc:
        _LOGGER.warning("Document fetch failed", source=source.name, locator=source.locator, error=str(exc))
        ctx.metrics.record_failure(source.locator, str(exc))
        return

    for line in text.splitlines():
        if not line.strip():
            continue
        ctx.metrics.blocks_emitted += 1
        yield RawBlock(
            text=line,
            source_id=source.name,
            kind=BlockKind.LINE,
            locator=source.locator,
            category=source.category,
        )


def search_topic(source: SourceDescriptor, ctx: AdapterContext) -> Iterator[RawBlock]:
    """Query repository search for a topic and emit one block per result."""

    policy = ctx.policies.search
    query = build_search_query(source.topic or "", policy)
    ctx.metrics.units_attempted += 1
    try:
        items = ctx.api.search_repositories(
            query,
            per_page=min(source.page_size, 100),
            sort=policy.sort,
            order=policy.order,
        )
    except GitHubAPIError as exc:
        _LOGGER.warning("Topic search failed", source=source.name, query=query, error=str(exc))
        ctx.metrics.record_failure(source.locator, str(exc))
        return

    for item in items[: source.page_size]:
        ctx.metrics.blocks_emitted += 1
        yield RawBlock(
            text=str(item.get("full_name") or ""),
            source_id=source.name,
            kind=BlockKind.SEARCH_ITEM,
            locator=item.get("html_url"),
            category=source.category or policy.category,
            payload=dict(item),
        )


def read_html_listing(source: SourceDescriptor, ctx: AdapterContext) -> Iterator[RawBlock]:
    """Fetch up to ``max_pages`` listing pages and emit each page unparsed."""

    url = source.url or ""
    for page in range(1, source.max_pages + 1):
        html = _fetch_page(url, page, ctx)
        if html is None:
            continue
        ctx.metrics.blocks_emitted += 1
        yield RawBlock(
            text=html,
            source_id=source.name,
            kind=BlockKind.PAGE,
            locator=url,
            category=source.category,
        )


def read_tag_listing(source: SourceDescriptor, ctx: AdapterContext) -> Iterator[RawBlock]:
    """Collect item URLs from listing pages, then fetch each item page."""

    policy = ctx.policies.tag_listing
    item_pattern = re.compile(policy.item_url_pattern, re.IGNORECASE)
    url = source.url or ""
    item_urls: List[str] = []
    for page in range(1, source.max_pages + 1):
        html = _fetch_page(url, page, ctx)
        if html is None:
            continue
        for match in item_pattern.finditer(html):
            if match.group(0) not in item_urls:
                item_urls.append(match.group(0))

    for item_url in item_urls[: source.max_items]:
        ctx.metrics.units_attempted += 1
        try:
            html = ctx.fetcher.fetch_text(item_url)
        except FetchError as exc:
            _LOGGER.warning("Item page fetch failed", url=item_url, error=str(exc))
            ctx.metrics.record_failure(item_url, str(exc))
            continue
        ctx.metrics.blocks_emitted += 1
        yield RawBlock(
            text=html,
            source_id=source.name,
            kind=BlockKind.ITEM_PAGE,
            locator=item_url,
            title_hint=page_title(html, policy.title_suffix_pattern),
            category=source.category,
        )


ADAPTERS: Dict[SourceKind, Adapter] = {
    SourceKind.DOCUMENT: read_document,
    SourceKind.TOPIC_SEARCH: search_topic,
    SourceKind.HTML_LISTING: read_html_listing,
    SourceKind.TAG_LISTING: read_tag_listing,
}


def iter_blocks(source: SourceDescriptor, ctx: AdapterContext) -> Iterator[RawBlock]:
    """Dispatch ``source`` to the adapter registered for its kind."""

    return ADAPTERS[source.kind](source, ctx)


__all__ = [
    "ADAPTERS",
    "Adapter",
    "build_search_query",
    "iter_blocks",
    "page_title",
    "read_document",
    "read_html_listing",
    "read_tag_listing",
    "search_topic",
]
