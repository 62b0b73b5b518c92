"""LINE Messaging API wrapper.

Provides async helper methods for fetching message content and replying
to events. Signature checks for inbound webhooks live here as well so
the handler and the tests share one implementation.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from typing import Any, Iterable, Optional

import httpx

from grayrelay.models import ImageContent, ReplyMessage

logger = logging.getLogger(__name__)


class LineAPIError(Exception):
    """Raised when the LINE Messaging API returns an error status."""

    def __init__(self, status: int, message: str, response_json: Optional[dict[str, Any]] = None):
        super().__init__(f"LINE API error {status}: {message}")
        self.status = status
        self.response_json = response_json or {}


def compute_signature(channel_secret: str, body: bytes) -> str:
    digest = hmac.new(channel_secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def validate_signature(channel_secret: str, body: bytes, signature: str) -> bool:
    return hmac.compare_digest(compute_signature(channel_secret, body), signature)


class LineClient:  # pylint: disable=too-few-public-methods
    """Minimal async client for the LINE Messaging API."""

    def __init__(
        self,
        *,
        token: str,
        api_base: str = "https://api.line.me",
        data_api_base: str = "https://api-data.line.me",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_base = api_base.rstrip("/")
        self._data_api_base = data_api_base.rstrip("/")
        self._headers = {"Authorization": f"Bearer {token}"}
        self._client = httpx.AsyncClient(timeout=timeout, headers=self._headers, transport=transport)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_message_content(self, message_id: str) -> ImageContent:
        """Download the binary content attached to a message."""

        url = f"{self._data_api_base}/v2/bot/message/{message_id}/content"
        logger.debug("GET %s", url)
        resp = await self._client.get(url)
        if resp.status_code >= 400:
            raise LineAPIError(resp.status_code, "Failed to download message content")
        return ImageContent(
            data=resp.content,
            content_type=resp.headers.get("Content-Type", "application/octet-stream"),
        )

    async def reply_message(self, reply_token: str, messages: Iterable[ReplyMessage]) -> None:
        payload = {
            "replyToken": reply_token,
            "messages": [m.to_line() for m in messages],
        }
        url = f"{self._api_base}/v2/bot/message/reply"
        logger.debug("POST %s -> %s", url, payload)
        resp = await self._client.post(url, json=payload)
        if resp.status_code >= 400:
            try:
                err_json = resp.json()
            except ValueError:
                err_json = None
            raise LineAPIError(resp.status_code, resp.text, err_json)

    async def close(self) -> None:
        await self._client.aclose()
