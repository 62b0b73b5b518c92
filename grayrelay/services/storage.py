"""Google Cloud Storage writer for processed images.

Objects are JPEG-encoded and stored under caller-chosen keys, e.g.

    images/{message_id}.jpg
    thumbnails/{message_id}.jpg

Every object is written with the ``publicRead`` predefined ACL so that the
platform can fetch it through ``<storage_base_url>/<bucket>/<path>``.
"""
from __future__ import annotations

import logging
from typing import Any

from google.cloud import storage
from PIL import Image

from grayrelay.services.imaging import JPEG_CONTENT_TYPE, encode_jpeg

logger = logging.getLogger(__name__)


class StorageWriteError(Exception):
    """Raised when an object could not be written, whatever the cause."""

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"Failed to write {path}: {cause}")
        self.path = path
        self.cause = cause


class StorageWriter:
    """Encodes images and uploads them as public objects in a single bucket."""

    _PUBLIC_ACL = "publicRead"

    def __init__(self, bucket_name: str, *, base_url: str, client: Any | None = None) -> None:
        self._bucket_name = bucket_name
        self._base_url = base_url.rstrip("/")
        self._client = client

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    def public_url(self, path: str) -> str:
        return f"{self._base_url}/{self._bucket_name}/{path}"

    def write_image(self, img: Image.Image, path: str) -> None:
        """Encode *img* as JPEG and upload it to *path*.

        The blob writer is used as a context manager so the upload is
        finalised (or abandoned) on every exit path. A failed write may
        leave a partial object behind.
        """

        try:
            data = encode_jpeg(img)
            blob = self._get_client().bucket(self._bucket_name).blob(path)
            with blob.open("wb", content_type=JPEG_CONTENT_TYPE, predefined_acl=self._PUBLIC_ACL) as writer:
                writer.write(data)
        except Exception as exc:
            raise StorageWriteError(path, exc) from exc

        logger.debug("Uploaded %d bytes to gs://%s/%s", len(data), self._bucket_name, path)

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = storage.Client()
        return self._client
