"""LINE Messaging API reply client.

Uses httpx for async HTTP.  Only the reply endpoint is needed: every
message the bot sends answers an inbound event.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.line.me"


class LineClientError(Exception):
    """Base error for LINE API failures."""


class LineConnectionError(LineClientError):
    """Raised when the LINE API is network-unreachable."""


class LineAuthError(LineClientError):
    """Raised when LINE returns 401 or 403."""


class LineClient:
    """Thin async wrapper around the reply endpoint.

    A single :class:`httpx.AsyncClient` is reused across calls.  Call
    :meth:`aclose` (or use as an async context manager) when done.
    """

    def __init__(
        self,
        channel_access_token: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._token = channel_access_token
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers=self._headers(),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "LineClient":
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def reply(self, reply_token: str, messages: list[dict[str, Any]]) -> None:
        """Send *messages* (max 5) as the reply to *reply_token*."""
        await self._post(
            "/v2/bot/message/reply",
            {"replyToken": reply_token, "messages": messages[:5]},
        )

    async def _post(self, path: str, data: dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.post(url, json=data)
        except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
            raise LineConnectionError(f"Cannot reach LINE at {url}: {exc}") from exc
        if response.status_code in (401, 403):
            raise LineAuthError(f"LINE returned {response.status_code} — check the channel access token")
        if response.is_error:
            raise LineClientError(f"LINE returned {response.status_code}: {response.text[:200]}")
        return response.json() if response.content else {}

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }
