"""Routing-token extraction from inbound message bodies.

A message can name the business it is meant for with a leading token:

    botId=<id> <text>      canonical form, used by generated bot links
    #bot:<id> <text>       accepted alias

Interactive replies carry the business in their id:

    business_<id>          menu row or button selecting a business
    faq_<n>_<id>           quick reply asking a business's n-th FAQ question
"""

import re
from dataclasses import dataclass

_TOKEN_PATTERN = re.compile(
    r"^\s*(?:botId=|#bot:)(?P<bot_id>[A-Za-z0-9_\-]+)(?:\s+(?P<rest>.*))?\s*$",
    re.DOTALL,
)
_BUTTON_PREFIX = "business_"
_FAQ_PREFIX = "faq_"


@dataclass(frozen=True)
class RoutedText:
    """Message text split into the routing key (if any) and the user text."""

    bot_id: str | None
    text: str


def extract_routing_token(body: str | None) -> RoutedText:
    """Split a leading routing token off a message body.

    Bodies without a token come back unchanged with bot_id=None. A token glued
    to trailing punctuation (e.g. "botId=abc,") is not a token.
    """
    body = body or ""
    match = _TOKEN_PATTERN.match(body)
    if not match:
        return RoutedText(bot_id=None, text=body.strip())
    return RoutedText(bot_id=match.group("bot_id"), text=(match.group("rest") or "").strip())


def bot_id_from_button(button_id: str | None) -> str | None:
    """Return the bot id selected by a business_<id> button, if any."""
    if not button_id:
        return None
    button_id = button_id.strip()
    if button_id.startswith(_BUTTON_PREFIX) and len(button_id) > len(_BUTTON_PREFIX):
        return button_id[len(_BUTTON_PREFIX):]
    return None


def business_button_id(bot_id: str) -> str:
    return f"{_BUTTON_PREFIX}{bot_id}"


def faq_button_id(bot_id: str, index: int) -> str:
    """Quick-reply id for the index-th FAQ question of a business."""
    return f"{_FAQ_PREFIX}{index}_{bot_id}"


def bot_id_from_faq_button(button_id: str | None) -> str | None:
    """Return the bot id carried by a faq_<n>_<id> button, if any."""
    if not button_id:
        return None
    button_id = button_id.strip()
    if not button_id.startswith(_FAQ_PREFIX):
        return None
    index, _, bot_id = button_id[len(_FAQ_PREFIX):].partition("_")
    if not index.isdigit() or not bot_id:
        return None
    return bot_id
