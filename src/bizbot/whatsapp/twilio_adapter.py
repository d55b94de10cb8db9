"""Twilio WhatsApp adapter - parse and normalize inbound webhook payloads.

Twilio posts form-encoded fields (Body, From, To, MessageSid/SmsMessageSid,
NumMedia, ProfileName, WaId, ButtonPayload/ButtonText for quick replies,
ListId/ListTitle for list rows). JSON bodies with the same field
names (or lower-case variants) are accepted too.
"""

import json
from typing import Any
from urllib.parse import parse_qsl

from .models import InboundMessage


class InvalidPayloadError(Exception):
    """Raised when the webhook body cannot be parsed or lacks a sender."""

    pass


def parse_body(body: bytes, content_type: str | None) -> dict[str, Any]:
    """Decode a webhook body into a flat dict.

    JSON when the content type says so or the body looks like a JSON
    object; form-encoded otherwise.

    Raises:
        InvalidPayloadError: On undecodable bytes, malformed JSON, or a JSON
            value that is not an object.
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidPayloadError("body is not valid utf-8") from e

    is_json = "json" in (content_type or "").lower() or text.lstrip().startswith("{")
    if is_json:
        try:
            payload = json.loads(text)
        except ValueError as e:
            raise InvalidPayloadError("malformed json body") from e
        if not isinstance(payload, dict):
            raise InvalidPayloadError("json body must be an object")
        return payload

    return dict(parse_qsl(text, keep_blank_values=True))


def unwrap_error_notification(payload: dict[str, Any]) -> dict[str, Any]:
    """Return the original request parameters of a provider error notification.

    Twilio's debugger posts {"Level": ..., "Payload": "<json>"} where the
    JSON embeds webhook.request.parameters. Other payloads pass through.

    Raises:
        InvalidPayloadError: If the embedded Payload is not valid JSON.
    """
    if not (payload.get("Level") and payload.get("Payload")):
        return payload

    try:
        inner = json.loads(payload["Payload"])
    except (TypeError, ValueError) as e:
        raise InvalidPayloadError("malformed error notification payload") from e

    try:
        parameters = inner["webhook"]["request"]["parameters"]
    except (KeyError, TypeError):
        return payload
    return parameters if isinstance(parameters, dict) else payload


def _field(payload: dict[str, Any], *names: str) -> str:
    for name in names:
        value = payload.get(name)
        if value not in (None, ""):
            return str(value)
    return ""


def is_status_callback(payload: dict[str, Any]) -> bool:
    """Delivery/status callbacks carry a status and no message body."""
    has_status = bool(payload.get("MessageStatus") or payload.get("SmsStatus"))
    return has_status and not _field(payload, "Body", "body")


def normalize(payload: dict[str, Any]) -> InboundMessage:
    """Normalize a decoded payload into an InboundMessage.

    Raises:
        InvalidPayloadError: If the sender (From) is missing.
    """
    sender = _field(payload, "From", "from")
    if not sender:
        raise InvalidPayloadError("missing sender (From)")

    try:
        num_media = int(_field(payload, "NumMedia", "num_media") or 0)
    except ValueError:
        num_media = 0

    return InboundMessage(
        sender=sender,
        recipient=_field(payload, "To", "to"),
        body=_field(payload, "Body", "body"),
        message_id=_field(payload, "MessageSid", "SmsMessageSid", "message_sid"),
        num_media=num_media,
        profile_name=_field(payload, "ProfileName") or None,
        wa_id=_field(payload, "WaId") or None,
        button_text=_field(payload, "ButtonPayload", "ListId", "ButtonText") or None,
    )
