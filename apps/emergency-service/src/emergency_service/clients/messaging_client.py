from __future__ import annotations

import asyncio
from typing import Any

import aiohttp
from twilio.base.exceptions import TwilioException
from twilio.http.async_http_client import AsyncTwilioHttpClient
from twilio.rest import Client

from emergency_service.errors import MessagingError


class TwilioMessagingClient:
    """Sends one message per call through the Twilio Messages API."""

    def __init__(
        self,
        account_sid: str | None,
        auth_token: str | None,
        timeout_seconds: float = 10.0,
        client: Any | None = None,
    ) -> None:
        self._http_client: AsyncTwilioHttpClient | None = None
        if client is None and account_sid and auth_token:
            self._http_client = AsyncTwilioHttpClient(timeout=timeout_seconds)
            client = Client(account_sid, auth_token, http_client=self._http_client)
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def send(self, *, sender: str, recipient: str, body: str) -> str:
        if self._client is None:
            raise MessagingError("messaging provider credentials are not configured")
        try:
            message = await self._client.messages.create_async(from_=sender, to=recipient, body=body)
        except TwilioException as exc:
            raise MessagingError(f"messaging provider rejected the message: {exc}") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise MessagingError("messaging provider request failed") from exc

        sid = getattr(message, "sid", None)
        if not isinstance(sid, str) or not sid:
            raise MessagingError("messaging provider returned no message sid")
        return sid

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.close()
