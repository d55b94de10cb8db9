"""Outbound WhatsApp messaging through the provider's messages endpoint.

Every send is best effort: failures are logged and returned as a
SendResult, never raised to the caller.

Security: NEVER log to_phone or message text. Only log hashes and lengths.
"""

from __future__ import annotations

import base64
import json
import urllib.request
from typing import Any, Callable

from bizbot.infra.settings import Settings
from bizbot.observability.correlation import get_correlation_id
from bizbot.observability.logging import get_logger
from bizbot.observability.redaction import hash_identifier, safe_log_context

from .formatter import (
    build_button_envelope,
    build_list_envelope,
    build_template_envelope,
    build_text_envelope,
    normalize_phone,
)
from .models import (
    MAX_REPLY_BUTTONS,
    Button,
    ButtonMessage,
    Header,
    ListMessage,
    ListSection,
    OutboundMessage,
    SendResult,
    TemplateMessage,
    TextMessage,
)

logger = get_logger(__name__)

Transport = Callable[[str, bytes, dict[str, str], float], dict[str, Any]]


def _do_request(url: str, data: bytes, headers: dict[str, str], timeout: float) -> dict[str, Any]:
    """Execute HTTP POST request. Raises on error."""
    req = urllib.request.Request(url, data=data, headers=headers, method="POST")
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        raw = resp.read().decode()
        return json.loads(raw) if raw else {}


def _basic_auth(account_sid: str, auth_token: str) -> str:
    token = base64.b64encode(f"{account_sid}:{auth_token}".encode()).decode()
    return f"Basic {token}"


class MessageSender:
    """Formats logical messages and hands them to the provider transport."""

    def __init__(self, settings: Settings, transport: Transport | None = None) -> None:
        self._settings = settings
        self._transport = transport

    # -- public operations ---------------------------------------------------

    def send(self, to: str, message: OutboundMessage) -> SendResult:
        if isinstance(message, TextMessage):
            return self.send_text(to, message.body)
        if isinstance(message, ListMessage):
            return self.send_list(
                to,
                message.body,
                message.button,
                message.sections,
                header=message.header,
                footer=message.footer,
            )
        if isinstance(message, ButtonMessage):
            return self.send_buttons(
                to, message.body, message.buttons, header=message.header, footer=message.footer
            )
        if isinstance(message, TemplateMessage):
            return self.send_template(
                to, message.name, language=message.language, components=message.components
            )
        raise TypeError(f"unsupported outbound message: {type(message).__name__}")

    def send_text(self, to: str, body: str) -> SendResult:
        return self._dispatch(
            "text",
            to,
            lambda from_phone, to_phone: build_text_envelope(from_phone, to_phone, body),
            text_len=len(body),
        )

    def send_list(
        self,
        to: str,
        body: str,
        button: str,
        sections: tuple[ListSection, ...] | list[ListSection],
        *,
        header: str | None = None,
        footer: str | None = None,
    ) -> SendResult:
        message = ListMessage(
            body=body, button=button, sections=tuple(sections), header=header, footer=footer
        )
        return self._dispatch(
            "list",
            to,
            lambda from_phone, to_phone: build_list_envelope(from_phone, to_phone, message),
            text_len=len(body),
            section_count=len(message.sections),
            item_count=sum(len(s.items) for s in message.sections),
        )

    def send_buttons(
        self,
        to: str,
        body: str,
        buttons: tuple[Button, ...] | list[Button],
        *,
        header: Header | None = None,
        footer: str | None = None,
    ) -> SendResult:
        buttons = tuple(buttons)
        if len(buttons) > MAX_REPLY_BUTTONS:
            logger.warning(
                "button message truncated",
                extra={
                    "extra_fields": safe_log_context(
                        correlationId=get_correlation_id(),
                        supplied=len(buttons),
                        kept=MAX_REPLY_BUTTONS,
                    )
                },
            )
            buttons = buttons[:MAX_REPLY_BUTTONS]

        message = ButtonMessage(body=body, buttons=buttons, header=header, footer=footer)
        return self._dispatch(
            "button",
            to,
            lambda from_phone, to_phone: build_button_envelope(from_phone, to_phone, message),
            text_len=len(body),
            button_count=len(buttons),
            header_kind=header.kind if header else None,
        )

    def send_template(
        self,
        to: str,
        name: str,
        *,
        language: str | None = None,
        components: tuple[Any, ...] | list[Any] = (),
    ) -> SendResult:
        message = TemplateMessage(name=name, language=language, components=tuple(components))
        return self._dispatch(
            "template",
            to,
            lambda from_phone, to_phone: build_template_envelope(
                from_phone, to_phone, message, self._settings.default_template_language
            ),
            template=name,
            component_count=len(message.components),
        )

    # -- shared path ---------------------------------------------------------

    def _resolve_from(self) -> str | None:
        configured = self._settings.whatsapp_phone_number
        return normalize_phone(configured) if configured else None

    def _dispatch(
        self,
        kind: str,
        to: str,
        build: Callable[[str, str], dict[str, Any]],
        **shape: Any,
    ) -> SendResult:
        to_phone = normalize_phone(to)
        log_ctx = safe_log_context(
            correlationId=get_correlation_id(),
            kind=kind,
            to_hash=hash_identifier(to_phone),
            **shape,
        )

        from_phone = self._resolve_from()
        if not from_phone:
            logger.error(
                "sender number not configured, message not sent",
                extra={"extra_fields": log_ctx},
            )
            return SendResult.failed("sender number not configured")

        if not to_phone:
            logger.error("empty recipient, message not sent", extra={"extra_fields": log_ctx})
            return SendResult.failed("empty recipient")

        if to_phone == from_phone:
            logger.warning(
                "[MOCK] recipient equals sender, %s message not sent", kind,
                extra={"extra_fields": log_ctx},
            )
            return SendResult.mock("recipient equals sender")

        # Components are passed through untouched, so the envelope may not serialize
        try:
            envelope = build(from_phone, to_phone)
            data = json.dumps(envelope, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            logger.error(
                "outbound envelope not serializable, message not sent",
                extra={"extra_fields": safe_log_context(**log_ctx, error_type=type(e).__name__)},
            )
            return SendResult.failed("unserializable envelope")

        if not self._settings.provider_configured:
            logger.info(
                "[MOCK] provider not configured, %s message logged only", kind,
                extra={"extra_fields": safe_log_context(**log_ctx, envelope=envelope)},
            )
            return SendResult.mock("provider credentials not configured")

        headers = {
            "Content-Type": "application/json",
            "Authorization": _basic_auth(
                self._settings.twilio_account_sid or "", self._settings.twilio_auth_token or ""
            ),
        }
        transport = self._transport or _do_request

        logger.info("sending outbound message", extra={"extra_fields": log_ctx})
        try:
            response = transport(
                self._settings.resolved_send_url(), data, headers, self._settings.send_timeout
            )
        except Exception as e:
            logger.error(
                "outbound send failed",
                extra={"extra_fields": safe_log_context(**log_ctx, error_type=type(e).__name__)},
            )
            return SendResult.failed(f"{type(e).__name__}: transport error")

        provider_message_id = None
        if isinstance(response, dict):
            provider_message_id = response.get("sid") or response.get("id")

        logger.info(
            "outbound message sent",
            extra={"extra_fields": safe_log_context(**log_ctx, sid_present=bool(provider_message_id))},
        )
        return SendResult.sent(provider_message_id)
