"""Webhook handler for the LINE Messaging API."""
from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, Request
from pydantic import ValidationError

from grayrelay.models import WebhookPayload
from grayrelay.services.line import validate_signature
from grayrelay.services.queue import InMemoryTaskQueue

router = APIRouter()
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def verify_signature(channel_secret: str, body: bytes, signature_header: str | None) -> None:
    if signature_header is None:
        raise HTTPException(status_code=400, detail="Missing signature header")
    if not validate_signature(channel_secret, body, signature_header):
        raise HTTPException(status_code=400, detail="Invalid signature")


# ---------------------------------------------------------------------------
# POST webhook
# ---------------------------------------------------------------------------


@router.post("/callback")
async def receive_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_line_signature: str | None = Header(None, alias="X-Line-Signature"),
):
    settings = request.app.state.settings
    raw_body = await request.body()
    verify_signature(settings.line_channel_secret, raw_body, x_line_signature)

    try:
        payload = WebhookPayload.model_validate_json(raw_body)
    except ValidationError as exc:
        logger.error("Malformed webhook payload: %s", exc)
        raise HTTPException(status_code=400, detail="Bad payload") from exc

    logger.debug("Webhook payload: %s", payload)

    # Acknowledge first; the events are pushed (and, inline, worked on)
    # once the response has been sent.
    task_queue = request.app.state.task_queue
    if payload.events:
        background_tasks.add_task(task_queue.enqueue, payload.events)
        if isinstance(task_queue, InMemoryTaskQueue):
            background_tasks.add_task(task_queue.drain, request.app.state.relay.handle_event)

    return {"status": "received", "events": len(payload.events)}
