"""WhatsApp message models: inbound, logical outbound, and send results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Union

HeaderKind = Literal["text", "image", "document", "video"]
MEDIA_HEADER_KINDS = ("image", "document", "video")

MAX_REPLY_BUTTONS = 3


@dataclass(frozen=True)
class InboundMessage:
    """One inbound provider message. Lives for a single webhook invocation.

    `sender` and `body` are PII: never log them, log hashes and lengths.
    """

    sender: str
    recipient: str
    body: str
    message_id: str = ""
    num_media: int = 0
    profile_name: str | None = None
    wa_id: str | None = None
    button_text: str | None = None


@dataclass(frozen=True)
class TextMessage:
    body: str


@dataclass(frozen=True)
class ListItem:
    id: str
    title: str
    description: str | None = None


@dataclass(frozen=True)
class ListSection:
    title: str
    items: tuple[ListItem, ...]


@dataclass(frozen=True)
class ListMessage:
    body: str
    button: str
    sections: tuple[ListSection, ...]
    header: str | None = None
    footer: str | None = None


@dataclass(frozen=True)
class Button:
    id: str
    title: str


@dataclass(frozen=True)
class Header:
    """Interactive header. Text headers carry `text`, media headers a `link`."""

    kind: HeaderKind = "text"
    text: str | None = None
    link: str | None = None


@dataclass(frozen=True)
class ButtonMessage:
    body: str
    buttons: tuple[Button, ...]
    header: Header | None = None
    footer: str | None = None


@dataclass(frozen=True)
class TemplateMessage:
    """Pre-approved template. `components` are passed through untouched."""

    name: str
    language: str | None = None
    components: tuple[Any, ...] = field(default_factory=tuple)


OutboundMessage = Union[TextMessage, ListMessage, ButtonMessage, TemplateMessage]


class SendStatus(str, Enum):
    SENT = "sent"
    MOCK = "mock"
    FAILED = "failed"


@dataclass(frozen=True)
class SendResult:
    """Outcome of a best-effort send. Senders return this, never raise."""

    status: SendStatus
    provider_message_id: str | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is SendStatus.SENT

    @classmethod
    def sent(cls, provider_message_id: str | None) -> SendResult:
        return cls(status=SendStatus.SENT, provider_message_id=provider_message_id)

    @classmethod
    def mock(cls, reason: str) -> SendResult:
        return cls(status=SendStatus.MOCK, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> SendResult:
        return cls(status=SendStatus.FAILED, reason=reason)
