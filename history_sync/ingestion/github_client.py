"""
GitHub activity client.

Fetches a user's public (or, with a token, private) activity from the GitHub
events API and maps it to canonical ``github-api`` events.
"""

from __future__ import annotations

import logging
from datetime import timezone, tzinfo
from typing import Any
from urllib.parse import quote

import httpx

from history_sync.ingestion.errors import GitHubSyncError
from history_sync.ingestion.parsers.github_events import map_events
from history_sync.schemas.event import EventSchema

logger = logging.getLogger(__name__)

USER_AGENT = "History-Sync-Visualizer"


class GitHubEventsClient:
    """Thin wrapper over ``GET /users/{username}/events``."""

    def __init__(
        self,
        *,
        base_url: str = "https://api.github.com",
        token: str | None = None,
        timeout_s: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ):
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        if token:
            headers["Authorization"] = f"token {token}"
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout_s,
            follow_redirects=True,
            headers=headers,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings, token: str | None = None) -> "GitHubEventsClient":
        """Build a client; an explicit ``token`` wins over GITHUB_TOKEN."""
        default_token = (
            settings.GITHUB_TOKEN.get_secret_value() if settings.GITHUB_TOKEN else None
        )
        return cls(
            base_url=settings.GITHUB_API_URL,
            token=token or default_token,
            timeout_s=settings.GITHUB_TIMEOUT_SECONDS,
        )

    def fetch_user_events(self, username: str, per_page: int = 100) -> list[dict[str, Any]]:
        """
        Raw event objects for ``username``.

        Raises:
            GitHubSyncError: On transport errors, non-2xx responses or a
                body that is not a JSON list
        """
        try:
            resp = self._client.get(
                f"/users/{quote(username, safe='')}/events", params={"per_page": per_page}
            )
        except httpx.HTTPError as exc:
            raise GitHubSyncError(f"GitHub API request failed: {exc}") from exc

        if resp.is_error:
            raise GitHubSyncError(f"GitHub API error: {resp.status_code} {resp.text}")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise GitHubSyncError("Invalid response from GitHub API") from exc
        if not isinstance(payload, list):
            raise GitHubSyncError("Invalid response from GitHub API")

        logger.info(f"Fetched {len(payload)} GitHub events for {username}")
        return payload

    def sync_user(self, username: str, tz: tzinfo = timezone.utc) -> list[EventSchema]:
        """Fetch and map a user's activity."""
        return map_events(self.fetch_user_events(username), tz)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GitHubEventsClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
