"""Relay configuration.

Loaded once from the environment into a frozen Settings object which is
passed explicitly to the completion client, the sender and the directory
factory. Nothing in the relay path reads os.environ after startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_TEMPLATE_LANGUAGE = "en_US"
DEFAULT_CREDENTIALS_PATH = "~/.bizbot/credentials.json"

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_str(name: str) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    """Relay settings.

    Attributes:
        whatsapp_phone_number: Sending number (digits, "+" and "whatsapp:"
            prefixes tolerated). Sends fail early without it.
        twilio_account_sid: Provider account. Absent => mock sends.
        twilio_auth_token: Provider secret. Absent => mock sends.
        whatsapp_send_url: Provider endpoint. Defaults to the Twilio
            Messages URL for the configured account.
        openai_api_key: Default completion credential, used after the
            per-call override and the local credential store.
        default_template_language: Locale for template messages.
    """

    whatsapp_phone_number: str | None = None
    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    whatsapp_send_url: str | None = None
    openai_api_key: str | None = None
    openai_base_url: str = DEFAULT_OPENAI_BASE_URL
    openai_model: str = DEFAULT_OPENAI_MODEL
    completion_temperature: float = 0.7
    completion_max_tokens: int = 500
    completion_timeout: float = 20.0
    send_timeout: float = 5.0
    default_template_language: str = DEFAULT_TEMPLATE_LANGUAGE
    credentials_path: Path = field(
        default_factory=lambda: Path(DEFAULT_CREDENTIALS_PATH).expanduser()
    )
    directory_path: Path | None = None
    database_url: str | None = None

    @classmethod
    def from_env(cls) -> Settings:
        directory_path = _env_str("BIZBOT_DIRECTORY_PATH")
        return cls(
            whatsapp_phone_number=_env_str("WHATSAPP_PHONE_NUMBER"),
            twilio_account_sid=_env_str("TWILIO_ACCOUNT_SID"),
            twilio_auth_token=_env_str("TWILIO_AUTH_TOKEN"),
            whatsapp_send_url=_env_str("WHATSAPP_SEND_URL"),
            openai_api_key=_env_str("OPENAI_API_KEY"),
            openai_base_url=_env_str("OPENAI_BASE_URL") or DEFAULT_OPENAI_BASE_URL,
            openai_model=_env_str("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
            completion_timeout=_env_float("COMPLETION_TIMEOUT", 20.0),
            send_timeout=_env_float("SEND_TIMEOUT", 5.0),
            default_template_language=(
                _env_str("DEFAULT_TEMPLATE_LANGUAGE") or DEFAULT_TEMPLATE_LANGUAGE
            ),
            credentials_path=Path(
                _env_str("BIZBOT_CREDENTIALS_PATH") or DEFAULT_CREDENTIALS_PATH
            ).expanduser(),
            directory_path=Path(directory_path).expanduser() if directory_path else None,
            database_url=_env_str("DATABASE_URL"),
        )

    @property
    def provider_configured(self) -> bool:
        """True when outbound messages can really be transmitted."""
        return bool(self.twilio_account_sid and self.twilio_auth_token)

    def resolved_send_url(self) -> str:
        if self.whatsapp_send_url:
            return self.whatsapp_send_url
        return TWILIO_MESSAGES_URL.format(account_sid=self.twilio_account_sid or "")
