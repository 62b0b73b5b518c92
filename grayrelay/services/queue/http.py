from __future__ import annotations

import logging
from typing import Sequence

import httpx

from grayrelay.models import Event

from .base import TASK_TOKEN_HEADER, TaskQueue, encode_task

logger = logging.getLogger(__name__)


class HttpTaskQueue(TaskQueue):
    """Push queue: each event is POSTed as form field ``data`` to the task endpoint."""

    name = "http"

    def __init__(
        self,
        endpoint_url: str,
        *,
        token: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint_url = endpoint_url
        self._client = httpx.AsyncClient(
            timeout=timeout, headers={TASK_TOKEN_HEADER: token}, transport=transport
        )

    async def enqueue(self, events: Sequence[Event]) -> None:
        for event in events:
            data = encode_task(event)
            try:
                resp = await self._client.post(self._endpoint_url, data={"data": data})
            except httpx.HTTPError as exc:
                logger.error("Task push failed: %s", exc)
                continue
            if resp.status_code >= 400:
                logger.error("Task push rejected with status %s", resp.status_code)

    async def close(self) -> None:
        await self._client.aclose()
