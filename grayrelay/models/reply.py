from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel


class TextReply(BaseModel):
    type: Literal["text"] = "text"
    text: str

    def to_line(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


class ImageReply(BaseModel):
    """Image message pointing at the stored original and its thumbnail."""

    type: Literal["image"] = "image"
    original_url: str
    preview_url: str

    def to_line(self) -> dict[str, Any]:
        return {
            "type": "image",
            "originalContentUrl": self.original_url,
            "previewImageUrl": self.preview_url,
        }


ReplyMessage = Union[TextReply, ImageReply]
