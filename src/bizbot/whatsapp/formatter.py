"""Provider envelope formatting.

Pure functions: phone normalization and the mapping from logical outbound
messages to the provider's wire envelope. Sending lives in sender.py.

Envelope shapes:

    {"from": "whatsapp:+<digits>", "to": "whatsapp:+<digits>", "body": "..."}
    {..., "interactive": {"type": "list", "body": {"text"}, "action": {"button", "sections"}}}
    {..., "interactive": {"type": "button", "body": {"text"}, "action": {"buttons": [...]}}}
    {..., "template": {"name", "language": {"code"}, "components": [...]}}
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import ButtonMessage, Header, ListMessage, ListSection, TemplateMessage

CHANNEL_PREFIX = "whatsapp:"

_WHITESPACE = re.compile(r"\s+")


def normalize_phone(phone: str) -> str:
    """Canonical digits for a phone number.

    Strips all whitespace, then a "whatsapp:" prefix, then one leading "+".

        >>> normalize_phone("whatsapp:+972 50 765 4321")
        '972507654321'
    """
    clean = _WHITESPACE.sub("", phone or "")
    if clean.startswith(CHANNEL_PREFIX):
        clean = clean[len(CHANNEL_PREFIX):]
    if clean.startswith("+"):
        clean = clean[1:]
    return clean


def to_whatsapp_address(phone: str) -> str:
    """Wire form of a phone number: whatsapp:+<digits>."""
    return f"{CHANNEL_PREFIX}+{normalize_phone(phone)}"


def _base_envelope(from_phone: str, to_phone: str) -> dict[str, Any]:
    return {
        "from": to_whatsapp_address(from_phone),
        "to": to_whatsapp_address(to_phone),
    }


def build_text_envelope(from_phone: str, to_phone: str, body: str) -> dict[str, Any]:
    envelope = _base_envelope(from_phone, to_phone)
    envelope["body"] = body
    return envelope


def _section_payload(section: ListSection) -> dict[str, Any]:
    rows = []
    for item in section.items:
        row = {"id": item.id, "title": item.title}
        if item.description:
            row["description"] = item.description
        rows.append(row)
    return {"title": section.title, "rows": rows}


def build_list_envelope(from_phone: str, to_phone: str, message: ListMessage) -> dict[str, Any]:
    """List envelope. Section and item counts are passed through as given."""
    interactive: dict[str, Any] = {
        "type": "list",
        "body": {"text": message.body},
        "action": {
            "button": message.button,
            "sections": [_section_payload(s) for s in message.sections],
        },
    }
    if message.header:
        interactive["header"] = {"type": "text", "text": message.header}
    if message.footer:
        interactive["footer"] = {"text": message.footer}

    envelope = _base_envelope(from_phone, to_phone)
    envelope["interactive"] = interactive
    return envelope


def _header_payload(header: Header) -> dict[str, Any] | None:
    if header.kind == "text":
        return {"type": "text", "text": header.text} if header.text else None
    if header.link:
        return {"type": header.kind, header.kind: {"link": header.link}}
    return None


def build_button_envelope(
    from_phone: str,
    to_phone: str,
    message: ButtonMessage,
) -> dict[str, Any]:
    """Button envelope; the caller truncates message.buttons beforehand."""
    interactive: dict[str, Any] = {
        "type": "button",
        "body": {"text": message.body},
        "action": {
            "buttons": [
                {"type": "reply", "reply": {"id": b.id, "title": b.title}}
                for b in message.buttons
            ],
        },
    }
    if message.header is not None:
        header = _header_payload(message.header)
        if header:
            interactive["header"] = header
    if message.footer:
        interactive["footer"] = {"text": message.footer}

    envelope = _base_envelope(from_phone, to_phone)
    envelope["interactive"] = interactive
    return envelope


def build_template_envelope(
    from_phone: str,
    to_phone: str,
    message: TemplateMessage,
    default_language: str,
) -> dict[str, Any]:
    envelope = _base_envelope(from_phone, to_phone)
    envelope["template"] = {
        "name": message.name,
        "language": {"code": message.language or default_language},
        "components": list(message.components),
    }
    return envelope
