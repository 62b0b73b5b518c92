from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class TextMessage(BaseModel):
    type: Literal["text"] = "text"
    id: str
    text: str


class ImageMessage(BaseModel):
    type: Literal["image"] = "image"
    id: str


class OtherMessage(BaseModel):
    """Any message kind the relay does not handle (sticker, location, ...)."""

    model_config = ConfigDict(extra="allow")

    type: str
    id: str = ""


IncomingMessage = Union[TextMessage, ImageMessage, OtherMessage]


class Event(BaseModel):
    """A single webhook event as delivered by the LINE platform."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str
    reply_token: str | None = Field(None, alias="replyToken")
    timestamp: int | None = None
    source: dict[str, Any] | None = None
    # Tried in order so that OtherMessage only catches unknown kinds.
    message: Union[TextMessage, ImageMessage, OtherMessage, None] = Field(
        None, union_mode="left_to_right"
    )


class WebhookPayload(BaseModel):
    destination: str | None = None
    events: list[Event] = []
