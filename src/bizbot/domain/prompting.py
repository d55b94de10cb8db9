"""Grounded system-prompt assembly.

The section labels are Hebrew because the businesses served so far operate
in Hebrew; nothing here depends on the language of the business data or of
a caller-supplied prompt template.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from .business import Business
from .faq import get_valid_faq_items

FRAMING = (
    "אתה עוזר וירטואלי עבור בוט עסקי בווטסאפ. "
    "תפקידך לענות לשאלות לקוחות בצורה מנומסת וקצרה."
)
GENERAL_FRAMING = (
    "אתה עוזר וירטואלי בווטסאפ. ענה לשאלות המשתמש בצורה מנומסת וקצרה."
)
CLOSING = (
    "השתמש בכל המידע לעיל כדי לספק תשובות מדויקות ומועילות לשאלות הלקוחות. "
    "אל תמציא מידע שלא סופק לך. אם אינך יודע את התשובה, אמור זאת בפשטות."
)

LABEL_RECORD = "להלן מידע מלא על העסק בפורמט JSON:"
LABEL_NAME = "שם העסק"
LABEL_DESCRIPTION = "תיאור"
LABEL_HOURS = "שעות פעילות"
LABEL_FAQ = "שאלות נפוצות"
LABEL_ADDITIONAL = "מידע נוסף על העסק"
LABEL_SPECIAL = "הנחיות מיוחדות"

# Week starts on Sunday for the businesses served
DAY_LABELS = {
    "sunday": "יום ראשון",
    "monday": "יום שני",
    "tuesday": "יום שלישי",
    "wednesday": "יום רביעי",
    "thursday": "יום חמישי",
    "friday": "יום שישי",
    "saturday": "יום שבת",
}


def _dump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, indent=2, default=str)


def as_text(value: Any) -> str | None:
    """Render a free-text or structured field; None when empty."""
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (Mapping, list, tuple)):
        return _dump(value) if value else None
    return str(value)


def format_hours(hours: Any) -> str | None:
    """Render free-text or day-keyed hours.

    Known day keys come first in week order (case-insensitive); other keys
    keep their insertion order after them.
    """
    if not hours:
        return None
    if isinstance(hours, str):
        return hours.strip() or None
    if not isinstance(hours, Mapping):
        return as_text(hours)

    by_day = {str(k).strip().lower(): (k, v) for k, v in hours.items()}
    lines = []
    for day, label in DAY_LABELS.items():
        if day in by_day and by_day[day][1]:
            lines.append(f"{label}: {by_day[day][1]}")
    for key, (original, value) in by_day.items():
        if key not in DAY_LABELS and value:
            lines.append(f"{original}: {value}")
    return "\n".join(lines) or None


def format_faq(faq: Any) -> str | None:
    items = get_valid_faq_items(faq)
    if not items:
        return None
    return "\n".join(
        f"{i}. {item.question}\n   {item.answer}" for i, item in enumerate(items, start=1)
    )


def build_system_prompt(business: Business) -> str:
    """Synthesize a system prompt grounded in one business's data.

    Order: framing, full JSON record, labeled sections (name, description,
    hours, FAQ, additional data, special instructions), closing instruction.
    Empty fields are left out entirely.
    """
    sections = [
        FRAMING,
        f"{LABEL_RECORD}\n```json\n{_dump(business.to_prompt_dict())}\n```",
    ]

    labeled = [f"{LABEL_NAME}: {business.name}"]
    description = as_text(business.description)
    if description:
        labeled.append(f"{LABEL_DESCRIPTION}: {description}")
    hours = format_hours(business.hours)
    if hours:
        labeled.append(f"{LABEL_HOURS}:\n{hours}")
    faq = format_faq(business.faq)
    if faq:
        labeled.append(f"{LABEL_FAQ}:\n{faq}")
    additional = as_text(business.business_data)
    if additional:
        labeled.append(f"{LABEL_ADDITIONAL}:\n{additional}")
    if business.prompt_template:
        labeled.append(f"{LABEL_SPECIAL}:\n{business.prompt_template}")

    sections.append("\n".join(labeled))
    sections.append(CLOSING)
    return "\n\n".join(sections)


def build_general_prompt() -> str:
    """Ungrounded prompt used when no business context is available."""
    return f"{GENERAL_FRAMING}\n\n{CLOSING}"


def resolve_system_prompt(
    business: Business | None,
    *,
    use_template_verbatim: bool = False,
) -> str:
    if business is None:
        return build_general_prompt()
    if use_template_verbatim and business.prompt_template:
        return business.prompt_template
    return build_system_prompt(business)
