"""FAQ normalization.

Dashboards have stored FAQs as string arrays, {question, answer} objects,
{q, a} objects, {title, content} objects, 2-element tuples and plain
question->answer maps. Everything is normalized into FaqItem lists at read
time; anything that cannot be interpreted is dropped.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

NO_ANSWER = "אין תשובה זמינה"

# Order matters: the first separator present in the string wins
QUESTION_SEPARATORS = ("?", ":", "|", "-", "=")

# (question key, answer key) pairs accepted on mapping items
_KEY_PAIRS = (("question", "answer"), ("q", "a"), ("title", "content"))


@dataclass(frozen=True)
class FaqItem:
    question: str
    answer: str


def _answer_or_placeholder(value: Any) -> str:
    text = str(value).strip() if value is not None else ""
    return text or NO_ANSWER


def _from_string(item: str) -> FaqItem | None:
    text = item.strip()
    if not text:
        return None
    for separator in QUESTION_SEPARATORS:
        if separator in text:
            question, _, answer = text.partition(separator)
            if question.strip():
                return FaqItem(question.strip(), _answer_or_placeholder(answer))
    return FaqItem(text, NO_ANSWER)


def safe_faq_item(item: Any) -> FaqItem | None:
    """Normalize one FAQ entry, or return None if it cannot be read."""
    if not item:
        return None

    if isinstance(item, FaqItem):
        return item

    if isinstance(item, str):
        return _from_string(item)

    if isinstance(item, Mapping):
        for question_key, answer_key in _KEY_PAIRS:
            question = item.get(question_key)
            if question and str(question).strip():
                return FaqItem(str(question).strip(), _answer_or_placeholder(item.get(answer_key)))
        return None

    if isinstance(item, (list, tuple)):
        question = str(item[0]).strip() if item[0] is not None else ""
        if not question:
            return None
        answer = item[1] if len(item) > 1 else None
        return FaqItem(question, _answer_or_placeholder(answer))

    return None


def get_valid_faq_items(faq: Any) -> list[FaqItem]:
    """Normalize a whole FAQ container into a list of FaqItem.

    Accepts a list of entries, a question->answer map, a JSON string of
    either, or a single free-text string.
    """
    if not faq:
        return []

    if isinstance(faq, str):
        try:
            parsed = json.loads(faq)
        except ValueError:
            single = safe_faq_item(faq)
            return [single] if single else []
        if isinstance(parsed, (list, dict)):
            return get_valid_faq_items(parsed)
        single = safe_faq_item(faq)
        return [single] if single else []

    if isinstance(faq, (list, tuple)):
        return [normalized for normalized in map(safe_faq_item, faq) if normalized]

    if isinstance(faq, Mapping):
        # A mapping holding both keys of one pair is a single entry, not a map
        if any(q in faq and a in faq for q, a in _KEY_PAIRS):
            single = safe_faq_item(faq)
            return [single] if single else []
        return [
            FaqItem(str(key).strip(), _answer_or_placeholder(value))
            for key, value in faq.items()
            if str(key).strip()
        ]

    return []
