"""Pillow-based image stages used by the relay pipeline.

Every stage returns a new ``PIL.Image.Image`` and leaves its input
untouched:

    decode_image     ImageContent -> native-mode image (JPEG/PNG only)
    convert_to_gray  any mode     -> 16-bit grayscale ("I;16")
    make_thumbnail   any mode     -> copy bounded by a box, Lanczos resampled
    encode_jpeg      any mode     -> JPEG bytes (16-bit gray reduced to 8-bit)
"""
from __future__ import annotations

import io
import logging
from typing import Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from grayrelay.models import ImageContent

logger = logging.getLogger(__name__)

JPEG_CONTENT_TYPE = "image/jpeg"

_DECODERS = {
    "image/jpeg": "JPEG",
    "image/png": "PNG",
}

# Luminance weights on 16-bit channels; they sum to 1 << 16.
_R_WEIGHT = 19595
_G_WEIGHT = 38470
_B_WEIGHT = 7471


class ImageProcessingError(Exception):
    """Base class for failures in the image stages."""


class UnsupportedContentTypeError(ImageProcessingError):
    def __init__(self, content_type: str):
        super().__init__(f"Unsupported content type: {content_type!r}")
        self.content_type = content_type


class DecodeError(ImageProcessingError):
    """Raised when the byte stream is not a valid image of the declared format."""


def decode_image(content: ImageContent) -> Image.Image:
    fmt = _DECODERS.get(content.mime_type)
    if fmt is None:
        raise UnsupportedContentTypeError(content.content_type)

    try:
        img = Image.open(io.BytesIO(content.data), formats=[fmt])
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
        raise DecodeError(f"Cannot decode {content.mime_type} data: {exc}") from exc

    logger.debug("Decoded %s image %dx%d (mode %s)", fmt, img.width, img.height, img.mode)
    return img


def convert_to_gray(img: Image.Image) -> Image.Image:
    """Return a 16-bit grayscale copy of *img* with identical dimensions.

    Alpha is premultiplied before weighting, so transparent pixels come out
    black. An image that is already 16-bit gray is copied as is, which makes
    the transform idempotent.
    """

    if img.mode == "I;16":
        return img.copy()
    if img.mode == "I":
        gray = np.clip(np.asarray(img, dtype=np.int64), 0, 0xFFFF)
        return Image.fromarray(gray.astype(np.uint16))

    has_alpha = img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info
    rgba = np.asarray(img.convert("RGBA" if has_alpha else "RGB"), dtype=np.int64)

    # Widen 8-bit channels to 16 bits (0xAB -> 0xABAB).
    channels = rgba[..., :3] * 257
    if has_alpha:
        alpha = rgba[..., 3:4]
        channels = channels * alpha // 255

    r, g, b = channels[..., 0], channels[..., 1], channels[..., 2]
    y = (_R_WEIGHT * r + _G_WEIGHT * g + _B_WEIGHT * b + (1 << 15)) >> 16
    return Image.fromarray(y.astype(np.uint16))


def thumbnail_size(width: int, height: int, max_width: int, max_height: int) -> Tuple[int, int]:
    """Fit (width, height) inside the box, keeping aspect ratio, never growing."""

    if width <= max_width and height <= max_height:
        return width, height

    new_width, new_height = width, height
    if width > max_width:
        new_height = max(height * max_width // width, 1)
        new_width = max_width
    if new_height > max_height:
        new_width = max(new_width * max_height // new_height, 1)
        new_height = max_height
    return new_width, new_height


def make_thumbnail(img: Image.Image, max_width: int = 300, max_height: int = 300) -> Image.Image:
    size = thumbnail_size(img.width, img.height, max_width, max_height)
    if size == img.size:
        return img.copy()

    if img.mode == "I;16":
        # Resample on 32-bit ints, then narrow back to 16-bit gray.
        resized = img.convert("I").resize(size, Image.Resampling.LANCZOS)
        gray = np.clip(np.asarray(resized, dtype=np.int64), 0, 0xFFFF)
        return Image.fromarray(gray.astype(np.uint16))

    return img.resize(size, Image.Resampling.LANCZOS)


def encode_jpeg(img: Image.Image) -> bytes:
    """Encode *img* as JPEG with Pillow's default quality."""

    if img.mode in ("I;16", "I"):
        # JPEG carries 8-bit gray: keep the high byte of each sample.
        gray = np.clip(np.asarray(img, dtype=np.int64), 0, 0xFFFF) >> 8
        img = Image.fromarray(gray.astype(np.uint8))
    elif img.mode not in ("L", "RGB"):
        img = img.convert("RGB")

    buffer = io.BytesIO()
    img.save(buffer, format="JPEG")
    return buffer.getvalue()
