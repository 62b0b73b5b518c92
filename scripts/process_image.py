#!/usr/bin/env python
"""Run the grayscale/thumbnail stages on a local image file."""
from __future__ import annotations

import argparse
import mimetypes
from pathlib import Path

from grayrelay.models import ImageContent
from grayrelay.services.imaging import convert_to_gray, decode_image, encode_jpeg, make_thumbnail
from grayrelay.services.pipeline import ImagePipeline


def main() -> None:
    parser = argparse.ArgumentParser(description="Process an image the way the relay does")
    parser.add_argument("input", type=Path)
    parser.add_argument("--message_id", default=None, help="Defaults to the input file stem")
    parser.add_argument("--out_dir", type=Path, default=Path("out"))
    parser.add_argument("--max_dim", type=int, default=300)
    parser.add_argument("--upload", action="store_true", help="Upload to the configured bucket instead")
    args = parser.parse_args()

    content_type, _ = mimetypes.guess_type(args.input.name)
    content = ImageContent(data=args.input.read_bytes(), content_type=content_type or "")
    message_id = args.message_id or args.input.stem

    if args.upload:
        from grayrelay.config import get_settings
        from grayrelay.services.storage import StorageWriter

        settings = get_settings()
        writer = StorageWriter(settings.bucket_name, base_url=settings.storage_base_url)
        pipeline = ImagePipeline(writer, thumbnail_max_dim=args.max_dim, failure_text=settings.failure_text)
        reply = pipeline.process(message_id, content)
        print(reply.model_dump_json(indent=2))
        return

    gray = convert_to_gray(decode_image(content))
    thumbnail = make_thumbnail(gray, args.max_dim, args.max_dim)

    args.out_dir.mkdir(parents=True, exist_ok=True)
    (args.out_dir / f"{message_id}.jpg").write_bytes(encode_jpeg(gray))
    (args.out_dir / f"{message_id}_thumb.jpg").write_bytes(encode_jpeg(thumbnail))
    print(f"Wrote {gray.width}x{gray.height} image and {thumbnail.width}x{thumbnail.height} thumbnail to {args.out_dir}")


if __name__ == "__main__":
    main()
