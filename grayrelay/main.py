"""Application factory.

Run locally with::

    uvicorn grayrelay.main:create_app --factory --port 8080
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from grayrelay.config import Settings, get_settings
from grayrelay.handlers import task_handler, webhook_handler
from grayrelay.services.line import LineClient
from grayrelay.services.pipeline import ImagePipeline
from grayrelay.services.queue import TaskQueue, get_task_queue
from grayrelay.services.relay import MessageRelay
from grayrelay.services.storage import StorageWriter

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    line_client: LineClient | None = None,
    storage_writer: StorageWriter | None = None,
    task_queue: TaskQueue | None = None,
) -> FastAPI:
    """Build the relay app from an explicit configuration.

    Collaborators may be passed in to replace the network-backed defaults.
    """

    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    line_client = line_client or LineClient(
        token=settings.line_channel_token,
        api_base=settings.line_api_base,
        data_api_base=settings.line_data_api_base,
        timeout=settings.http_timeout,
    )
    storage_writer = storage_writer or StorageWriter(settings.bucket_name, base_url=settings.storage_base_url)
    task_queue = task_queue or get_task_queue(settings)

    pipeline = ImagePipeline(
        storage_writer,
        thumbnail_max_dim=settings.thumbnail_max_dim,
        failure_text=settings.failure_text,
    )
    relay = MessageRelay(line_client, pipeline, unsupported_text=settings.unsupported_text)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        await line_client.close()
        close = getattr(task_queue, "close", None)
        if close is not None:
            await close()

    app = FastAPI(title="GrayRelay API", lifespan=lifespan)
    app.state.settings = settings
    app.state.relay = relay
    app.state.task_queue = task_queue

    app.include_router(webhook_handler.router)
    app.include_router(task_handler.router)

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    logger.info("Relay ready (bucket=%s, queue=%s)", settings.bucket_name, task_queue.name)
    return app
