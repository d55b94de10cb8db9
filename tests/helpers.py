"""Shared test helper functions and fakes.

Regular functions and classes importable by conftest.py and test modules.
These are NOT fixtures.
"""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock

import requests

SENDER_NUMBER = "+15550009999"
CUSTOMER_NUMBER = "whatsapp:+972521234567"
CAFE_NUMBER = "whatsapp:+972500001111"

CAFE_RECORD: dict[str, Any] = {
    "id": "biz-1",
    "name": "קפה שמש",
    "bot_id": "cafe",
    "phone_number": "whatsapp:+972 50 000 1111",
    "description": "בית קפה שכונתי",
    "hours": {"friday": "08:00-14:00", "sunday": "08:00-20:00"},
    "faq": [
        {"question": "יש חניה?", "answer": "כן, מאחורי הבניין"},
        "Do you have wifi? Yes, ask the staff",
        {"q": "Kosher?", "a": "Yes"},
        ["Vegan options", "Several"],
    ],
    "business_data": {"address": "Herzl 1"},
}

BIKES_RECORD: dict[str, Any] = {
    "id": "biz-2",
    "name": "Bike Shop",
    "botId": "bikes",
    "whatsapp_number": "+1 555 000 2222",
    "description": "Repairs and rentals",
    "openai_api_key": "sk-business-key-abcdef",
}


class LogRecorder:
    """Simple recorder to capture log calls deterministically."""

    def __init__(self):
        self.calls: list[tuple[str, tuple, dict]] = []

    def _record(self, level: str, *args, **kwargs):
        self.calls.append((level, args, kwargs))

    def info(self, *args, **kwargs):
        self._record("info", *args, **kwargs)

    def warning(self, *args, **kwargs):
        self._record("warning", *args, **kwargs)

    def error(self, *args, **kwargs):
        self._record("error", *args, **kwargs)

    def exception(self, *args, **kwargs):
        self._record("exception", *args, **kwargs)

    def debug(self, *args, **kwargs):
        self._record("debug", *args, **kwargs)

    def get_all_logged_content(self) -> str:
        """Concatenate all args and kwargs from all calls into one string."""
        parts = []
        for _, args, kwargs in self.calls:
            parts.append(str(args))
            parts.append(str(kwargs))
        return " ".join(parts)

    def has_extra_field(self, key: str) -> bool:
        for _, _, kwargs in self.calls:
            extra_fields = kwargs.get("extra", {}).get("extra_fields", {})
            if key in extra_fields:
                return True
        return False

    def levels(self) -> list[str]:
        return [level for level, _, _ in self.calls]


def make_transport(response: dict[str, Any] | None = None, side_effect=None) -> MagicMock:
    """Fake sender transport with the (url, data, headers, timeout) signature."""
    transport = MagicMock(return_value=response if response is not None else {"sid": "SM123"})
    if side_effect is not None:
        transport.side_effect = side_effect
    return transport


def sent_envelopes(transport: MagicMock) -> list[dict[str, Any]]:
    """Decode the JSON envelopes handed to a fake transport."""
    return [json.loads(call.args[1].decode("utf-8")) for call in transport.call_args_list]


def fake_completion_response(
    status_code: int = 200,
    body: Any = None,
    raw: str | None = None,
) -> MagicMock:
    """A requests.Response stand-in for CompletionClient tests."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    if raw is not None:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body
    return response


def completion_body(content: str) -> dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def fake_session(response: MagicMock | None = None, side_effect=None) -> MagicMock:
    session = MagicMock(spec=requests.Session)
    if side_effect is not None:
        session.post.side_effect = side_effect
    else:
        session.post.return_value = response
    return session
