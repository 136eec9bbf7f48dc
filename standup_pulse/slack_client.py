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
    """Async wrapper around the Slack Web API endpoints used by Standup Pulse.

    Every team installs the app separately, so the bot token is passed per
    call instead of being bound to the client.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=SLACK_API_BASE,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _call(
        self,
        method: str,
        token: Optional[str] = None,
        *,
        json: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers: Dict[str, str] = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        response = await self._client.post(method, headers=headers, json=json, data=data)
        response.raise_for_status()
        payload = response.json()
        if not payload.get("ok"):
            raise SlackApiError(method, payload.get("error", "unknown_error"))
        return payload

    async def open_direct_message_channel(self, token: str, slack_user_id: str) -> str:
        """Open (or fetch the existing) DM channel with a user and return its id."""

        method = "conversations.open"
        payload = await self._call(method, token, json={"users": slack_user_id})
        channel = payload.get("channel") or {}
        channel_id = channel.get("id") if isinstance(channel, dict) else None
        if not channel_id:
            raise SlackApiError(method, "no_channel_returned")
        return channel_id

    async def send_message(self, token: str, channel: str, content: Dict[str, Any]) -> str:
        """Post ``content`` (``text`` and optional ``blocks``) and return the message ts."""

        payload = await self._call("chat.postMessage", token, json={"channel": channel, **content})
        return str(payload.get("ts", ""))

    async def oauth_access(
        self,
        client_id: str,
        client_secret: str,
        code: str,
        redirect_uri: Optional[str] = None,
    ) -> Dict[str, Any]:
        data = {"client_id": client_id, "client_secret": client_secret, "code": code}
        if redirect_uri:
            data["redirect_uri"] = redirect_uri
        return await self._call("oauth.v2.access", data=data)


__all__ = ["SlackClient", "SlackApiError", "SLACK_API_BASE"]
