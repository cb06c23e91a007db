"""Notion API client: query a database and create pages."""
from __future__ import annotations

from typing import Any

import httpx

_PAGE_SIZE = 100


class NotionError(RuntimeError):
    """A Notion request failed (network error or non-2xx response)."""

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class NotionClient:
    """Sync client for the Notion API."""

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.notion.com/v1",
        version: str = "2022-06-28",
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Notion-Version": version,
            "Content-Type": "application/json",
        }
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "NotionClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            r = self._client.post(
                f"{self.base_url}{path}",
                json=payload,
                headers=self._headers,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise NotionError(f"Notion request {path} failed: {e}") from e
        if r.is_error:
            # Notion error bodies: {"object": "error", "status": 400, "code": "...", "message": "..."}
            try:
                body = r.json()
            except ValueError:
                body = {}
            message = body.get("message") or r.text or r.reason_phrase
            raise NotionError(
                f"Notion {path} returned {r.status_code}: {message}",
                status_code=r.status_code,
                code=body.get("code"),
            )
        return r.json()

    def query_database(self, database_id: str, filter: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Return every page matching filter, following has_more/next_cursor pagination."""
        results: list[dict[str, Any]] = []
        cursor: str | None = None
        while True:
            payload: dict[str, Any] = {"page_size": _PAGE_SIZE}
            if filter:
                payload["filter"] = filter
            if cursor:
                payload["start_cursor"] = cursor
            data = self._post(f"/databases/{database_id}/query", payload)
            results.extend(data.get("results") or [])
            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                return results

    def create_page(self, database_id: str, properties: dict[str, Any]) -> dict[str, Any]:
        """Create a page in database_id and return the created page object."""
        return self._post(
            "/pages",
            {"parent": {"database_id": database_id}, "properties": properties},
        )
