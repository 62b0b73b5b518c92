"""Per-event worker: turns one webhook event into one reply."""
from __future__ import annotations

import logging
from typing import assert_never

import httpx
from starlette.concurrency import run_in_threadpool

from grayrelay.models import Event, ImageMessage, OtherMessage, ReplyMessage, TextMessage, TextReply
from grayrelay.services.imaging import ImageProcessingError
from grayrelay.services.line import LineAPIError, LineClient
from grayrelay.services.pipeline import ImagePipeline

logger = logging.getLogger(__name__)


class MessageRelay:
    """Dispatches an event by message kind and sends the resulting reply.

    Every failure is terminal for the event. Only upload failures reach the
    user (as the pipeline's failure text); fetch and decode failures are
    logged and the event is dropped without a reply. Events without a reply
    token are still processed (images included); only the reply is skipped.
    """

    def __init__(self, line_client: LineClient, pipeline: ImagePipeline, *, unsupported_text: str) -> None:
        self._line = line_client
        self._pipeline = pipeline
        self._unsupported_text = unsupported_text

    async def handle_event(self, event: Event) -> ReplyMessage | None:
        message = event.message
        logger.info("EventType: %s Message: %r", event.type, message)

        reply = await self.build_reply(event)
        if reply is None:
            return None

        if not event.reply_token:
            logger.info("Event %s has no reply token; not replying", event.type)
            return reply

        try:
            await self._line.reply_message(event.reply_token, [reply])
        except (LineAPIError, httpx.HTTPError) as exc:
            logger.error("ReplyMessage: %s", exc)
        return reply

    async def build_reply(self, event: Event) -> ReplyMessage | None:
        message = event.message
        if message is None:
            return TextReply(text=self._unsupported_text)
        if isinstance(message, TextMessage):
            return TextReply(text=message.text)
        if isinstance(message, ImageMessage):
            return await self._handle_image(message)
        if isinstance(message, OtherMessage):
            return TextReply(text=self._unsupported_text)
        assert_never(message)

    async def _handle_image(self, message: ImageMessage) -> ReplyMessage | None:
        try:
            content = await self._line.get_message_content(message.id)
        except (LineAPIError, httpx.HTTPError) as exc:
            logger.error("Load error: %s", exc)
            return None

        try:
            return await run_in_threadpool(self._pipeline.process, message.id, content)
        except ImageProcessingError as exc:
            logger.error("Load error: %s", exc)
            return None
