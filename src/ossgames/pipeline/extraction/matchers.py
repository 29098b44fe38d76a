"""Ordered field matchers folded first-match-wins by the extractor.

Every matcher has the signature ``text -> FieldMatch | None`` so each pattern
can be tested on its own and precedence is just list order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple


@dataclass(frozen=True)
class FieldMatch:
    """Matched value plus the span of the full match in the input."""

    value: str
    span: Tuple[int, int]


Matcher = Callable[[str], Optional[FieldMatch]]

_BOLD_LINK = re.compile(r"\*\*\[([^\]]+)\]\(([^)]+)\)\*\*")
_BOLD = re.compile(r"\*\*([^*\[]+)\*\*")
_LEADING_LINK = re.compile(r"^[*\-+]\s+\[([^\]]+)\](\([^)]*\))?")
_ANY_LINK = re.compile(r"\[([^\[\]]+)\]\(([^)]*)\)")
_RESERVED_LINK_LABELS = frozenset({"source", "src", "code"})


def _match(pattern: re.Pattern[str], text: str, group: int = 1) -> Optional[FieldMatch]:
    found = pattern.search(text)
    if not found:
        return None
    value = found.group(group).strip()
    if not value:
        return None
    return FieldMatch(value=value, span=found.span())


def bold_link_title(text: str) -> Optional[FieldMatch]:
    return _match(_BOLD_LINK, text)


def bold_title(text: str) -> Optional[FieldMatch]:
    return _match(_BOLD, text)


def leading_link_title(text: str) -> Optional[FieldMatch]:
    return _match(_LEADING_LINK, text)


def any_link_title(text: str) -> Optional[FieldMatch]:
    for found in _ANY_LINK.finditer(text):
        value = found.group(1).strip()
        if value and value.lower() not in _RESERVED_LINK_LABELS:
            return FieldMatch(value=value, span=found.span())
    return None


TITLE_MATCHERS: Tuple[Matcher, ...] = (
    bold_link_title,
    bold_title,
    leading_link_title,
    any_link_title,
)


def locator_matchers(host: str = "github.com") -> Tuple[Matcher, ...]:
    """Build the resource-locator cascade for ``host``.

    The explicit ``[[source]](...)`` cross-reference comes first, then any
    markdown link to the host, then a bare host URL.
    """

    escaped = re.escape(host)
    source_reference = re.compile(rf"\[\[source\]\]\((https?://(?:www\.)?{escaped}/[^)]+)\)", re.IGNORECASE)
    host_link = re.compile(rf"\[([^\]]*)\]\((https?://(?:www\.)?{escaped}/[^/\s)]+/[^/\s)]+)/?\)")
    bare_url = re.compile(rf"https?://(?:www\.)?{escaped}/[^/\s)\]]+/[^/\s)\]]+")

    def source_reference_locator(text: str) -> Optional[FieldMatch]:
        return _match(source_reference, text)

    def host_link_locator(text: str) -> Optional[FieldMatch]:
        return _match(host_link, text, group=2)

    def bare_url_locator(text: str) -> Optional[FieldMatch]:
        return _match(bare_url, text, group=0)

    return (source_reference_locator, host_link_locator, bare_url_locator)


def first_match(matchers: Sequence[Matcher], text: str) -> Optional[FieldMatch]:
    """Return the result of the first matcher that succeeds."""

    for matcher in matchers:
        result = matcher(text)
        if result is not None:
            return result
    return None


__all__ = [
    "FieldMatch",
    "Matcher",
    "TITLE_MATCHERS",
    "any_link_title",
    "bold_link_title",
    "bold_title",
    "first_match",
    "leading_link_title",
    "locator_matchers",
]
