"""Inbound message relay: resolve business, complete, reply.

One call to RelayPipeline.handle per inbound message. Steps run strictly in
sequence; the blocking ones (directory lookup, completion call, send) run in
the threadpool so the event loop stays free while they wait.

Any failure past payload parsing still ends in exactly one reply to the
sender: the generated answer, a fixed command reply, or a fallback text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, TypeVar

from fastapi.concurrency import run_in_threadpool

from bizbot.domain.business import Business
from bizbot.domain.faq import get_valid_faq_items
from bizbot.domain.prompting import as_text
from bizbot.domain.routing import (
    bot_id_from_button,
    bot_id_from_faq_button,
    business_button_id,
    extract_routing_token,
    faq_button_id,
)
from bizbot.infra.directory import BusinessDirectory
from bizbot.llm.completion import (
    BusinessPrompt,
    CompletionClient,
    CompletionError,
    MissingCredentialError,
)
from bizbot.observability.correlation import get_correlation_id
from bizbot.observability.logging import get_logger
from bizbot.observability.redaction import hash_identifier, safe_log_context
from bizbot.whatsapp.models import (
    Button,
    ButtonMessage,
    InboundMessage,
    ListItem,
    ListMessage,
    ListSection,
    OutboundMessage,
    SendResult,
    TextMessage,
)
from bizbot.whatsapp.sender import MessageSender
from bizbot.whatsapp.templates import detect_language, render

logger = get_logger(__name__)

T = TypeVar("T")

HELP_COMMANDS = frozenset({"help", "עזרה"})
MENU_COMMANDS = frozenset({"list", "switch", "change", "businesses", "החלף", "עסקים"})

# Interactive list rows are capped by the provider; one section per menu
MENU_SECTION_SIZE = 10


class ReplyKind(str, Enum):
    ANSWER = "answer"
    WELCOME = "welcome"
    HELP = "help"
    MENU = "menu"
    NOT_RECOGNIZED = "not_recognized"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class RelayOutcome:
    """What the pipeline did for one inbound message."""

    reply_kind: ReplyKind
    send_result: SendResult
    business_id: str | None = None


class RelayPipeline:
    def __init__(
        self,
        directory: BusinessDirectory,
        completion_client: CompletionClient,
        sender: MessageSender,
    ) -> None:
        self._directory = directory
        self._completion = completion_client
        self._sender = sender

    async def handle(self, message: InboundMessage) -> RelayOutcome:
        language = detect_language(message.body)
        routed = extract_routing_token(message.body)
        command = routed.text.lower()

        log_ctx = safe_log_context(
            correlationId=get_correlation_id(),
            from_hash=hash_identifier(message.sender),
            text_len=len(message.body),
            has_token=routed.bot_id is not None,
            num_media=message.num_media,
        )
        logger.info("relaying inbound message", extra={"extra_fields": log_ctx})

        if routed.bot_id is None and command in HELP_COMMANDS:
            reply = TextMessage(render("help", language=language))
            return await self._reply(message, ReplyKind.HELP, reply)

        if routed.bot_id is None and command in MENU_COMMANDS:
            businesses = await self._lookup(self._directory.list_all) or []
            return await self._reply(message, ReplyKind.MENU, _menu(businesses, language))

        selected_bot_id = bot_id_from_button(message.button_text)
        bot_id = (
            routed.bot_id
            or selected_bot_id
            or bot_id_from_faq_button(message.button_text)
        )
        business = await self._resolve(bot_id, message.recipient)
        if business is None:
            logger.info(
                "business not recognized",
                extra={"extra_fields": safe_log_context(**log_ctx, bot_id=bot_id)},
            )
            reply = TextMessage(render("business_not_recognized", language=language))
            return await self._reply(message, ReplyKind.NOT_RECOGNIZED, reply)

        # Selecting a business (bare token or business_<id> button)
        selected_by_button = routed.bot_id is None and selected_bot_id is not None
        if not routed.text or selected_by_button:
            return await self._reply(
                message, ReplyKind.WELCOME, _welcome(business, language), business
            )

        try:
            answer = await run_in_threadpool(
                self._completion.get_response,
                BusinessPrompt(prompt=routed.text, business=business),
            )
        except MissingCredentialError:
            logger.error(
                "no completion credential configured, sending fallback",
                extra={"extra_fields": safe_log_context(**log_ctx, business_id=business.id)},
            )
            return await self._fallback(message, language, business)
        except CompletionError as e:
            logger.error(
                "completion failed, sending fallback",
                extra={
                    "extra_fields": safe_log_context(
                        **log_ctx, business_id=business.id, error=str(e)
                    )
                },
            )
            return await self._fallback(message, language, business)

        if not answer.strip():
            return await self._fallback(message, language, business)
        return await self._reply(message, ReplyKind.ANSWER, TextMessage(answer), business)

    async def _resolve(self, bot_id: str | None, recipient: str) -> Business | None:
        if bot_id:
            return await self._lookup(self._directory.find_by_bot_id, bot_id)
        if recipient:
            return await self._lookup(self._directory.find_by_phone, recipient)
        return None

    async def _lookup(self, func: Callable[..., T], *args: str) -> T | None:
        """Directory call; a failing backend counts as a miss."""
        try:
            return await run_in_threadpool(func, *args)
        except Exception:
            logger.exception(
                "business directory lookup failed",
                extra={"extra_fields": safe_log_context(correlationId=get_correlation_id())},
            )
            return None

    async def _fallback(
        self, message: InboundMessage, language: str, business: Business | None
    ) -> RelayOutcome:
        reply = TextMessage(render("fallback_error", language=language))
        return await self._reply(message, ReplyKind.FALLBACK, reply, business)

    async def _reply(
        self,
        message: InboundMessage,
        kind: ReplyKind,
        reply: OutboundMessage,
        business: Business | None = None,
    ) -> RelayOutcome:
        result = await run_in_threadpool(self._sender.send, message.sender, reply)
        logger.info(
            "relay reply dispatched",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=get_correlation_id(),
                    reply_kind=kind.value,
                    send_status=result.status.value,
                    business_id=business.id if business else None,
                )
            },
        )
        return RelayOutcome(
            reply_kind=kind,
            send_result=result,
            business_id=business.id if business else None,
        )


def _welcome(business: Business, language: str) -> OutboundMessage:
    """Business card, with the first FAQ questions as quick replies."""
    body = render(
        "welcome",
        {"name": business.name, "description": as_text(business.description) or ""},
        language=language,
    )
    faq = get_valid_faq_items(business.faq)
    if not faq:
        return TextMessage(body)
    # The sender keeps the first 3 buttons
    buttons = tuple(
        Button(id=faq_button_id(business.bot_id, i), title=item.question)
        for i, item in enumerate(faq, start=1)
    )
    return ButtonMessage(body=body, buttons=buttons)


def _menu(businesses: list[Business], language: str) -> OutboundMessage:
    if not businesses:
        return TextMessage(render("no_businesses", language=language))

    items = [
        ListItem(
            id=business_button_id(b.bot_id),
            title=b.name,
            description=as_text(b.description) if isinstance(b.description, str) else None,
        )
        for b in businesses
    ]
    sections = tuple(
        ListSection(
            title=f"{start + 1}-{start + len(chunk)}",
            items=tuple(chunk),
        )
        for start in range(0, len(items), MENU_SECTION_SIZE)
        for chunk in [items[start:start + MENU_SECTION_SIZE]]
    )
    return ListMessage(
        body=render("business_menu_body", language=language),
        button=render("business_menu_button", language=language),
        sections=sections,
    )
