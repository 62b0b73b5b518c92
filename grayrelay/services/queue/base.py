from __future__ import annotations

import base64
import binascii
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Sequence

from pydantic import ValidationError

from grayrelay.models import Event

logger = logging.getLogger(__name__)

EventHandler = Callable[[Event], Awaitable[object]]

# Shared secret between the push queue and the internal task endpoint.
TASK_TOKEN_HEADER = "X-Task-Token"


class TaskDecodeError(Exception):
    """Raised when a task payload is not base64-encoded event JSON."""


def encode_task(event: Event) -> str:
    raw = event.model_dump_json(by_alias=True, exclude_none=True)
    return base64.b64encode(raw.encode()).decode()


def decode_task(data: str) -> Event:
    if not data:
        raise TaskDecodeError("No data")
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise TaskDecodeError(f"base64 decode: {exc}") from exc
    try:
        return Event.model_validate_json(raw)
    except ValidationError as exc:
        raise TaskDecodeError(f"json decode: {exc}") from exc


class TaskQueue(ABC):
    """Fan-out between the webhook receiver and the event worker.

    Producers call :meth:`enqueue`; the consuming side hands one encoded
    payload at a time to :meth:`consume`.
    """

    name: str = "abstract"

    @abstractmethod
    async def enqueue(self, events: Sequence[Event]) -> None:
        """Schedule each event as an independent unit of work."""

    async def consume(self, data: str, handler: EventHandler) -> bool:
        """Decode one payload and run *handler* on it.

        Returns ``False`` when the payload was malformed and dropped.
        """

        try:
            event = decode_task(data)
        except TaskDecodeError as exc:
            logger.error("Dropping task: %s", exc)
            return False
        await handler(event)
        return True
