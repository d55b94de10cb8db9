"""Redaction helpers for safe logging.

Phone numbers and message text never reach the logs. Callers log a short
hash of an identifier (to_hash) and the length of a text (text_len).
"""

import hashlib
import re
from typing import Any

# Matches "+972 50 765 4321", "whatsapp:+12345678901", "12345678901"
_PHONE_PATTERN = re.compile(r"(?:whatsapp:)?\+?\d[\d\s\-()]{8,}\d")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_API_KEY_PATTERN = re.compile(r"\bsk-[A-Za-z0-9_\-]{8,}")

_REDACTED = "[REDACTED]"


def hash_identifier(value: str) -> str:
    """Non-reversible short hash for logging. First 12 chars of sha256."""
    return hashlib.sha256(value.encode()).hexdigest()[:12]


def redact_string(value: str) -> str:
    """Redact phone numbers, emails and API keys from a string."""
    result = _API_KEY_PATTERN.sub(_REDACTED, value)
    result = _PHONE_PATTERN.sub(_REDACTED, result)
    result = _EMAIL_PATTERN.sub(_REDACTED, result)
    return result


def redact_value(value: Any) -> str:
    """Redact any value for safe logging. Returns string representation."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        # Structure only, never values
        return f"dict(keys={list(value.keys())})"
    if isinstance(value, (list, tuple)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build a context dict safe for logging. All values are redacted."""
    return {k: redact_value(v) for k, v in kwargs.items()}
