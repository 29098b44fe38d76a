"""Shared state handed to the source adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol

from ..config.policies import Policies


class TextFetcher(Protocol):
    def fetch_text(self, url: str, *, params: dict | None = None) -> str: ...


class SourceAPI(Protocol):
    def get_readme(self, owner: str, name: str, path: str = "README.md") -> str: ...

    def search_repositories(
        self,
        query: str,
        *,
        per_page: int = 100,
        sort: str = "stars",
        order: str = "desc",
    ) -> List[Dict[str, Any]]: ...


@dataclass
class AdapterMetrics:
    """Per-source fetch counters."""

    units_attempted: int = 0
    units_failed: int = 0
    blocks_emitted: int = 0
    failures: List[str] = field(default_factory=list)

    def record_failure(self, locator: str, message: str) -> None:
        self.units_failed += 1
        self.failures.append(f"{locator}: {message}")

    def as_dict(self) -> Dict[str, Any]:
        return {
            "units_attempted": self.units_attempted,
            "units_failed": self.units_failed,
            "blocks_emitted": self.blocks_emitted,
        }


@dataclass
class AdapterContext:
    """Collaborators available to every adapter."""

    fetcher: TextFetcher
    api: SourceAPI
    policies: Policies = field(default_factory=Policies)
    metrics: AdapterMetrics = field(default_factory=AdapterMetrics)


__all__ = ["AdapterContext", "AdapterMetrics", "SourceAPI", "TextFetcher"]
