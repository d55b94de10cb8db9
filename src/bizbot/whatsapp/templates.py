"""Fixed reply texts sent by the relay itself (not generated).

Texts may contain only the placeholders listed in allowed_params. Language
is picked from the user's message: Hebrew script => "he", otherwise "en".
"""

import re
from typing import Any

_HEBREW = re.compile(r"[\u0590-\u05FF]")

TEMPLATES: dict[str, dict[str, Any]] = {
    "fallback_error": {
        "he": "מצטערים, לא הצלחנו לענות כרגע. אנא נסו שוב בעוד מספר דקות.",
        "en": "Sorry, we couldn't answer right now. Please try again in a few minutes.",
        "allowed_params": [],
    },
    "business_not_recognized": {
        "he": 'לא זיהינו את העסק שאליו פניתם. שלחו "עסקים" לרשימת העסקים הזמינים.',
        "en": "We couldn't recognize the business you're trying to reach. "
        'Send "list" to see the available businesses.',
        "allowed_params": [],
    },
    "help": {
        "he": (
            "הנה הפקודות הזמינות:\n"
            '- שלחו "עסקים" כדי לראות את רשימת העסקים\n'
            "- פתחו הודעה ב-botId=<מזהה> כדי לפנות לעסק מסוים\n"
            '- שלחו "עזרה" כדי לראות הודעה זו'
        ),
        "en": (
            "Here are the available commands:\n"
            '- Send "list" to see the available businesses\n'
            "- Start a message with botId=<id> to talk to a specific business\n"
            '- Send "help" to see this message'
        ),
        "allowed_params": [],
    },
    "business_menu_body": {
        "he": "בחרו עסק לשיחה:",
        "en": "Choose a business to chat with:",
        "allowed_params": [],
    },
    "business_menu_button": {
        "he": "עסקים",
        "en": "Businesses",
        "allowed_params": [],
    },
    "no_businesses": {
        "he": "אין עסקים זמינים כרגע.",
        "en": "No businesses available at the moment.",
        "allowed_params": [],
    },
    "welcome": {
        "he": "*{name}*\n\n{description}",
        "en": "*{name}*\n\n{description}",
        "allowed_params": ["name", "description"],
    },
}


def detect_language(text: str | None) -> str:
    return "he" if text and _HEBREW.search(text) else "en"


def render(template_key: str, params: dict[str, Any] | None = None, *, language: str = "he") -> str:
    """Render template with params. Validates allowed_params.

    Raises:
        ValueError: If template_key unknown or params contains disallowed keys.
    """
    if template_key not in TEMPLATES:
        raise ValueError(f"Unknown template: {template_key}")

    template = TEMPLATES[template_key]
    params = params or {}
    extras = set(params) - set(template["allowed_params"])
    if extras:
        raise ValueError(f"Disallowed params for {template_key}: {extras}")

    text = template.get(language) or template["he"]
    return text.format(**params).strip()
