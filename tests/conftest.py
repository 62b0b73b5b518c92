from __future__ import annotations

import io
import json
from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from grayrelay.config import Settings
from grayrelay.main import create_app
from grayrelay.models import ImageContent
from grayrelay.services.line import compute_signature
from grayrelay.services.storage import StorageWriter

BUCKET = "test-bucket"
BASE_URL = "https://storage.googleapis.com"
CHANNEL_SECRET = "test-secret"
TASK_TOKEN = "task-secret"


def make_image_bytes(size=(600, 300), color=(200, 40, 90), fmt="JPEG", mode="RGB") -> bytes:
    img = Image.new(mode, size, color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def make_content(size=(600, 300), fmt="JPEG") -> ImageContent:
    content_type = "image/jpeg" if fmt == "JPEG" else "image/png"
    return ImageContent(data=make_image_bytes(size, fmt=fmt), content_type=content_type)


# ---------------------------------------------------------------------------
# Cloud Storage fakes
# ---------------------------------------------------------------------------


class FakeBlobWriter:
    def __init__(self, store: dict[str, dict[str, Any]], path: str, options: dict[str, Any]):
        self._store = store
        self._path = path
        self._options = options
        self._chunks: list[bytes] = []
        self.closed = False

    def write(self, data: bytes) -> int:
        self._chunks.append(data)
        return len(data)

    def __enter__(self) -> "FakeBlobWriter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.closed = True
        self._store[self._path] = {"data": b"".join(self._chunks), **self._options}


class FakeBlob:
    def __init__(self, client: "FakeStorageClient", bucket: str, path: str):
        self._client = client
        self._bucket = bucket
        self.name = path

    def open(self, mode: str, **options: Any) -> FakeBlobWriter:
        assert mode == "wb"
        if self.name in self._client.failing_paths:
            raise OSError(f"simulated failure for {self.name}")
        writer = FakeBlobWriter(self._client.objects, f"{self._bucket}/{self.name}", options)
        self._client.writers.append(writer)
        return writer


class FakeBucket:
    def __init__(self, client: "FakeStorageClient", name: str):
        self._client = client
        self.name = name

    def blob(self, path: str) -> FakeBlob:
        return FakeBlob(self._client, self.name, path)


class FakeStorageClient:
    """Stands in for google.cloud.storage.Client; paths in failing_paths raise."""

    def __init__(self, failing_paths: set[str] | None = None):
        self.failing_paths = failing_paths or set()
        self.objects: dict[str, dict[str, Any]] = {}
        self.writers: list[FakeBlobWriter] = []

    def bucket(self, name: str) -> FakeBucket:
        return FakeBucket(self, name)


# ---------------------------------------------------------------------------
# LINE client fake
# ---------------------------------------------------------------------------


class FakeLineClient:
    def __init__(self, content: ImageContent | None = None, content_error: Exception | None = None,
                 reply_error: Exception | None = None):
        self.content = content
        self.content_error = content_error
        self.reply_error = reply_error
        self.content_requests: list[str] = []
        self.replies: list[tuple[str, list[Any]]] = []

    async def get_message_content(self, message_id: str) -> ImageContent:
        self.content_requests.append(message_id)
        if self.content_error is not None:
            raise self.content_error
        assert self.content is not None
        return self.content

    async def reply_message(self, reply_token: str, messages) -> None:
        self.replies.append((reply_token, list(messages)))
        if self.reply_error is not None:
            raise self.reply_error

    async def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(
        line_channel_secret=CHANNEL_SECRET,
        line_channel_token="test-token",
        bucket_name=BUCKET,
        storage_base_url=BASE_URL,
        task_queue_backend="inline",
        task_token=TASK_TOKEN,
    )


@pytest.fixture
def storage_client() -> FakeStorageClient:
    return FakeStorageClient()


@pytest.fixture
def writer(storage_client: FakeStorageClient) -> StorageWriter:
    return StorageWriter(BUCKET, base_url=BASE_URL, client=storage_client)


@pytest.fixture
def line_client() -> FakeLineClient:
    return FakeLineClient(content=make_content())


@pytest.fixture
def client(settings, line_client, writer) -> Generator[TestClient, None, None]:
    app = create_app(settings, line_client=line_client, storage_writer=writer)
    with TestClient(app) as c:
        yield c


def message_event(message: dict[str, Any] | None, reply_token: str | None = "reply-token") -> dict[str, Any]:
    event: dict[str, Any] = {
        "type": "message",
        "timestamp": 1700000000000,
        "source": {"type": "user", "userId": "U123"},
    }
    if reply_token is not None:
        event["replyToken"] = reply_token
    if message is not None:
        event["message"] = message
    return event


def signed_body(events: list[dict[str, Any]], secret: str = CHANNEL_SECRET) -> tuple[bytes, str]:
    body = json.dumps({"destination": "U999", "events": events}).encode()
    return body, compute_signature(secret, body)


async def post_asgi(app, path: str, body: bytes, headers: dict[str, str], log: list[str]) -> int:
    """Drive one POST through *app*, appending "response" to *log* when the body is sent.

    Unlike TestClient, this shows whether work scheduled by the endpoint ran
    before or after the response went out.
    """

    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "POST",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
    }
    messages = [{"type": "http.request", "body": body, "more_body": False}]
    status: list[int] = []

    async def receive():
        if messages:
            return messages.pop(0)
        return {"type": "http.disconnect"}

    async def send(message):
        if message["type"] == "http.response.start":
            status.append(message["status"])
        elif message["type"] == "http.response.body" and not message.get("more_body", False):
            log.append("response")

    await app(scope, receive, send)
    return status[0]
