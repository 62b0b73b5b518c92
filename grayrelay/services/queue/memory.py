from __future__ import annotations

import logging
from collections import deque
from typing import Sequence

from grayrelay.models import Event

from .base import EventHandler, TaskQueue, encode_task

logger = logging.getLogger(__name__)


class InMemoryTaskQueue(TaskQueue):
    """Process-local queue; payloads wait until :meth:`drain` is called."""

    name = "inline"

    def __init__(self) -> None:
        self._pending: deque[str] = deque()

    def __len__(self) -> int:
        return len(self._pending)

    async def enqueue(self, events: Sequence[Event]) -> None:
        for event in events:
            self._pending.append(encode_task(event))

    async def drain(self, handler: EventHandler) -> int:
        """Consume every pending payload in FIFO order and return how many ran."""

        processed = 0
        while self._pending:
            data = self._pending.popleft()
            try:
                if await self.consume(data, handler):
                    processed += 1
            except Exception as exc:  # pragma: no cover
                logger.exception("Task failed: %s", exc)
        return processed
