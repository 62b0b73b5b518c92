"""Internal endpoint fed by the HTTP task queue."""
from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, BackgroundTasks, Form, Header, HTTPException, Request

from grayrelay.services.queue import TASK_TOKEN_HEADER, TaskDecodeError, decode_task

router = APIRouter()
logger = logging.getLogger(__name__)


def _check_token(expected: str, header_token: str | None) -> None:
    if header_token is None or not hmac.compare_digest(expected, header_token):
        raise HTTPException(status_code=403, detail="Forbidden")


@router.post("/task")
async def handle_task(
    request: Request,
    background_tasks: BackgroundTasks,
    data: str = Form(""),
    task_token: str | None = Header(None, alias=TASK_TOKEN_HEADER),
):
    _check_token(request.app.state.settings.task_token, task_token)

    # Always 200: a malformed or failed task is dropped, not redelivered.
    try:
        event = decode_task(data)
    except TaskDecodeError as exc:
        logger.error("Dropping task: %s", exc)
        return {"status": "dropped"}

    background_tasks.add_task(request.app.state.relay.handle_event, event)
    return {"status": "accepted"}
