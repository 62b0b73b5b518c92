"""Grayscale/thumbnail pipeline for a single image message."""
from __future__ import annotations

import logging

from grayrelay.models import ImageContent, ImageReply, ReplyMessage, TextReply
from grayrelay.services.imaging import convert_to_gray, decode_image, make_thumbnail
from grayrelay.services.storage import StorageWriteError, StorageWriter

logger = logging.getLogger(__name__)

ORIGINAL_PREFIX = "images"
THUMBNAIL_PREFIX = "thumbnails"


def original_path(message_id: str) -> str:
    return f"{ORIGINAL_PREFIX}/{message_id}.jpg"


def thumbnail_path(message_id: str) -> str:
    return f"{THUMBNAIL_PREFIX}/{message_id}.jpg"


class ImagePipeline:
    """Decode -> grayscale -> thumbnail -> upload both -> compose reply."""

    def __init__(self, writer: StorageWriter, *, thumbnail_max_dim: int, failure_text: str) -> None:
        self._writer = writer
        self._max_dim = thumbnail_max_dim
        self._failure_text = failure_text

    def process(self, message_id: str, content: ImageContent) -> ReplyMessage:
        """Run the pipeline and return the reply to send.

        Decode failures propagate (``DecodeError`` or
        ``UnsupportedContentTypeError``). Upload failures do not: they turn
        into the fixed failure text, even when only one of the two uploads
        failed.
        """

        gray = convert_to_gray(decode_image(content))
        thumbnail = make_thumbnail(gray, self._max_dim, self._max_dim)

        orig_key = original_path(message_id)
        thumb_key = thumbnail_path(message_id)

        # Both uploads are attempted even if the first one fails.
        errors: list[StorageWriteError] = []
        for img, key in ((gray, orig_key), (thumbnail, thumb_key)):
            try:
                self._writer.write_image(img, key)
            except StorageWriteError as exc:
                logger.error("Write error: %s", exc)
                errors.append(exc)

        if errors:
            return TextReply(text=self._failure_text)

        return ImageReply(
            original_url=self._writer.public_url(orig_key),
            preview_url=self._writer.public_url(thumb_key),
        )
