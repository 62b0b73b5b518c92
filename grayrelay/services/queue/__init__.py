from __future__ import annotations

from .base import TASK_TOKEN_HEADER, EventHandler, TaskDecodeError, TaskQueue, decode_task, encode_task
from .http import HttpTaskQueue
from .memory import InMemoryTaskQueue
from .registry import get_task_queue

__all__ = [
    "TASK_TOKEN_HEADER",
    "EventHandler",
    "TaskDecodeError",
    "TaskQueue",
    "decode_task",
    "encode_task",
    "HttpTaskQueue",
    "InMemoryTaskQueue",
    "get_task_queue",
]
