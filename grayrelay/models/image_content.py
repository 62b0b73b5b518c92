from __future__ import annotations

from pydantic import BaseModel


class ImageContent(BaseModel):
    data: bytes
    content_type: str  # e.g., "image/jpeg"

    @property
    def mime_type(self) -> str:
        """Content type without parameters, lower-cased."""
        return self.content_type.split(";", 1)[0].strip().lower()
