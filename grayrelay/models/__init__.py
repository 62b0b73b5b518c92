from .event import Event, ImageMessage, IncomingMessage, OtherMessage, TextMessage, WebhookPayload
from .image_content import ImageContent
from .reply import ImageReply, ReplyMessage, TextReply

__all__ = [
    "Event",
    "ImageMessage",
    "IncomingMessage",
    "OtherMessage",
    "TextMessage",
    "WebhookPayload",
    "ImageContent",
    "ImageReply",
    "ReplyMessage",
    "TextReply",
]
