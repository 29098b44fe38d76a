"""Thin requests-based client for the GitHub REST API."""

from __future__ import annotations

import base64
import threading
from typing import Any, Callable, Dict, List

import requests
from requests import Response
from requests.exceptions import RequestException

from ..config.policies import EnrichmentPolicy
from ..utils.logging import get_logger
from .errors import GitHubAPIError, NotFoundError, RateLimitedError
from .quota import QuotaSnapshot


class GitHubClient:
    """Issues the handful of read-only calls the pipeline needs.

    The client is safe to share across the enrichment worker threads: the
    underlying session is only used for independent GET requests and the last
    observed quota headers are guarded by a lock.
    """

    def __init__(
        self,
        policy: EnrichmentPolicy | None = None,
        *,
        token: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.policy = policy or EnrichmentPolicy()
        self.session = session or requests.Session()
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": self.policy.user_agent,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.session.headers.update(headers)
        self.authenticated = bool(token)
        self._lock = threading.Lock()
        self._last_quota: QuotaSnapshot | None = None
        self._quota_listeners: List[Callable[[QuotaSnapshot], None]] = []
        self._logger = get_logger(component="github_client")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def add_quota_listener(self, listener: Callable[[QuotaSnapshot], None]) -> None:
        self._quota_listeners.append(listener)

    def remove_quota_listener(self, listener: Callable[[QuotaSnapshot], None]) -> None:
        if listener in self._quota_listeners:
            self._quota_listeners.remove(listener)

    @property
    def last_quota(self) -> QuotaSnapshot | None:
        with self._lock:
            return self._last_quota

    def _record_quota(self, response: Response) -> None:
        snapshot = QuotaSnapshot.from_headers(response.headers)
        if snapshot is None:
            return
        with self._lock:
            self._last_quota = snapshot
        for listener in self._quota_listeners:
            listener(snapshot)

    def _get(self, path: str, *, params: Dict[str, Any] | None = None) -> Response:
        url = f"{self.policy.api_url}/{path.lstrip('/')}"
        try:
            response = self.session.get(url, params=params, timeout=self.policy.request_timeout_seconds)
        except RequestException as exc:
            raise GitHubAPIError(f"Request failed for {url}: {exc}", retryable=True) from exc

        self._record_quota(response)
        status = response.status_code
        if status < 400:
            return response
        if status == 404:
            raise NotFoundError(f"Not found: {path}")
        if status in {403, 429}:
            snapshot = QuotaSnapshot.from_headers(response.headers)
            if status == 429 or (snapshot is not None and snapshot.remaining == 0):
                raise RateLimitedError(
                    f"Rate limited on {path}",
                    status_code=status,
                    reset_at=snapshot.reset_at if snapshot else None,
                )
        raise GitHubAPIError(
            f"HTTP {status} for {path}",
            status_code=status,
            retryable=status >= 500,
        )

    def _get_json(self, path: str, *, params: Dict[str, Any] | None = None) -> Any:
        response = self._get(path, params=params)
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubAPIError(f"Invalid JSON from {path}", status_code=response.status_code) from exc

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------
    def get_repository(self, owner: str, name: str) -> Dict[str, Any]:
        return self._get_json(f"repos/{owner}/{name}")

    def get_latest_release(self, owner: str, name: str) -> Dict[str, Any] | None:
        """Return the latest release payload, or ``None`` when there is none."""

        try:
            return self._get_json(f"repos/{owner}/{name}/releases/latest")
        except NotFoundError:
            return None

    def get_rate_limit(self) -> QuotaSnapshot:
        payload = self._get_json("rate_limit")
        try:
            core = payload["resources"]["core"]
            return QuotaSnapshot(
                remaining=int(core["remaining"]),
                reset_at=float(core["reset"]),
                limit=int(core["limit"]) if "limit" in core else None,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise GitHubAPIError("Malformed rate_limit payload") from exc

    def search_repositories(
        self,
        query: str,
        *,
        per_page: int = 100,
        sort: str = "stars",
        order: str = "desc",
    ) -> List[Dict[str, Any]]:
        payload = self._get_json(
            "search/repositories",
            params={"q": query, "sort": sort, "order": order, "per_page": min(per_page, 100)},
        )
        items = payload.get("items") if isinstance(payload, dict) else None
        return list(items or [])

    def get_readme(self, owner: str, name: str, path: str = "README.md") -> str:
        payload = self._get_json(f"repos/{owner}/{name}/contents/{path}")
        if not isinstance(payload, dict) or "content" not in payload:
            raise GitHubAPIError(f"{owner}/{name}:{path} is not a file")
        try:
            return base64.b64decode(payload["content"]).decode("utf-8", errors="replace")
        except (ValueError, TypeError) as exc:
            raise GitHubAPIError(f"Undecodable content for {owner}/{name}:{path}") from exc

    def close(self) -> None:
        self.session.close()


__all__ = ["GitHubClient"]
