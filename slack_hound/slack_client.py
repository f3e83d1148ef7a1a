"""HTTP client for interacting with Slack Web API."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

SLACK_API_BASE = "https://slack.com/api"


class SlackApiError(RuntimeError):
    """Raised when Slack returns an error response."""

    def __init__(self, method: str, error: str) -> None:
        super().__init__(f"Slack API error for {method}: {error}")
        self.method = method
        self.error = error


class SlackClient:
    """Simple async wrapper around Slack Web API endpoints used by Slack Hound."""

    def __init__(
        self,
        token: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=SLACK_API_BASE,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )
        self._dm_channels: Dict[str, str] = {}

    async def close(self) -> None:
        await self._client.aclose()

    async def _call(self, method: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = await self._client.post(method, json=payload or {})
        return self._unwrap(method, response)

    async def _get(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._client.get(method, params=params)
        return self._unwrap(method, response)

    @staticmethod
    def _unwrap(method: str, response: httpx.Response) -> Dict[str, Any]:
        response.raise_for_status()
        data = response.json()
        if not data.get("ok"):
            raise SlackApiError(method, data.get("error", "unknown_error"))
        return data

    async def user_info(self, user_id: str) -> dict[str, Any]:
        data = await self._get("users.info", {"user": user_id})
        return data.get("user", {})

    async def channel_info(self, channel_id: str) -> dict[str, Any]:
        data = await self._get("conversations.info", {"channel": channel_id})
        return data.get("channel", {})

    async def open_dm(self, user_id: str) -> str:
        if user_id not in self._dm_channels:
            data = await self._call("conversations.open", {"users": user_id})
            self._dm_channels[user_id] = data["channel"]["id"]
        return self._dm_channels[user_id]

    async def post_message(self, channel: str, text: str) -> Dict[str, Any]:
        return await self._call("chat.postMessage", {"channel": channel, "text": text})

    async def direct_message(self, user_id: str, text: str) -> Dict[str, Any]:
        channel = await self.open_dm(user_id)
        return await self.post_message(channel, text)

    async def add_reaction(self, channel: str, timestamp: str, name: str) -> None:
        await self._call("reactions.add", {"channel": channel, "timestamp": timestamp, "name": name})


__all__ = ["SlackClient", "SlackApiError"]
