"""Resource-link parsing shared by the line cascade and the page link scan."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Iterator, Optional
from urllib.parse import urlparse

_MARKDOWN_LINK_URL = re.compile(r"\]\((https?://[^)\s]+)\)")


@dataclass(frozen=True)
class ResourceRef:
    """Owner and name parsed from a resource-host URL."""

    owner: str
    name: str

    @property
    def key(self) -> str:
        return f"{self.owner.lower()}/{self.name.lower()}"


@lru_cache(maxsize=8)
def _url_pattern(host: str) -> re.Pattern[str]:
    return re.compile(rf"{re.escape(host)}/([^/\s]+)/([^/\s#?)]+)", re.IGNORECASE)


@lru_cache(maxsize=8)
def _scan_pattern(host: str) -> re.Pattern[str]:
    return re.compile(rf"https?://(?:www\.)?{re.escape(host)}/([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)")


def _clean_name(name: str) -> str:
    cleaned = name.rstrip("/")
    if cleaned.lower().endswith(".git"):
        cleaned = cleaned[:-4]
    return cleaned


def parse_resource_url(url: str, host: str = "github.com") -> Optional[ResourceRef]:
    """Extract ``owner``/``name`` from a URL on ``host``.

    Trailing slashes and a ``.git`` suffix are dropped. Returns ``None`` when
    either segment is missing.
    """

    match = _url_pattern(host).search(url)
    if not match:
        return None
    owner = match.group(1).strip()
    name = _clean_name(match.group(2).strip())
    if not owner or not name:
        return None
    return ResourceRef(owner=owner, name=name)


def is_resource_path(ref: ResourceRef, non_resource_owners: Iterable[str]) -> bool:
    """Return ``False`` for navigational site sections such as ``/topics/...``."""

    if not ref.owner or not ref.name:
        return False
    if ref.name in {".", ".."}:
        return False
    return ref.owner.lower() not in {owner.lower() for owner in non_resource_owners}


def scan_resource_links(text: str, host: str = "github.com") -> Iterator[ResourceRef]:
    """Yield every resource link in ``text`` in document order, duplicates included."""

    for match in _scan_pattern(host).finditer(text):
        name = _clean_name(match.group(2))
        if not name:
            continue
        yield ResourceRef(owner=match.group(1), name=name)


def find_homepage(text: str, host: str = "github.com") -> Optional[str]:
    """Return the first markdown link URL that does not point at ``host``."""

    for match in _MARKDOWN_LINK_URL.finditer(text):
        url = match.group(1)
        netloc = (urlparse(url).hostname or "").lower()
        if not netloc:
            continue
        if netloc == host or netloc.endswith("." + host):
            continue
        return url
    return None


__all__ = [
    "ResourceRef",
    "find_homepage",
    "is_resource_path",
    "parse_resource_url",
    "scan_resource_links",
]
