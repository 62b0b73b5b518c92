from __future__ import annotations

from grayrelay.config import Settings

from .base import TaskQueue
from .http import HttpTaskQueue
from .memory import InMemoryTaskQueue


def get_task_queue(settings: Settings) -> TaskQueue:
    backend = settings.task_queue_backend.lower()
    if backend == "http":
        return HttpTaskQueue(
            settings.task_endpoint_url, token=settings.task_token, timeout=settings.http_timeout
        )
    if backend == "inline":
        return InMemoryTaskQueue()
    raise ValueError(f"Unsupported task queue backend: {backend}")
