"""Business record - the configuration and knowledge base of one tenant."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from bizbot.whatsapp.formatter import normalize_phone


class InvalidBusinessRecordError(Exception):
    """Raised when a raw record lacks the fields every business must have."""

    pass


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class Business:
    """One business as the relay sees it (read-only).

    `faq`, `hours`, `description` and `business_data` keep whatever shape the
    dashboard stored; they are normalized when a prompt is assembled.
    """

    id: str
    name: str
    bot_id: str
    phone_number: str | None = None
    description: Any = None
    hours: Any = None
    faq: Any = None
    openai_api_key: str | None = field(default=None, repr=False)
    prompt_template: str | None = None
    business_data: Mapping[str, Any] | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Business:
        """Build a Business from a directory row or JSON object.

        Accepts the dashboard's camelCase aliases (botId, whatsapp_number,
        additional_data).

        Raises:
            InvalidBusinessRecordError: If id, name or bot_id is missing.
        """
        business_id = _optional_str(record.get("id"))
        name = _optional_str(record.get("name"))
        bot_id = _optional_str(record.get("bot_id") or record.get("botId"))
        if not business_id or not name or not bot_id:
            raise InvalidBusinessRecordError("business record requires id, name and bot_id")

        raw_phone = record.get("phone_number") or record.get("whatsapp_number")
        phone = normalize_phone(str(raw_phone)) if raw_phone else None

        business_data = record.get("business_data") or record.get("additional_data")
        if business_data is not None and not isinstance(business_data, Mapping):
            business_data = None

        return cls(
            id=business_id,
            name=name,
            bot_id=bot_id,
            phone_number=phone or None,
            description=record.get("description") or None,
            hours=record.get("hours") or None,
            faq=record.get("faq") or None,
            openai_api_key=_optional_str(record.get("openai_api_key")),
            prompt_template=_optional_str(record.get("prompt_template")),
            business_data=business_data,
        )

    def to_prompt_dict(self) -> dict[str, Any]:
        """Full record for a verbatim prompt dump. Never includes the API key."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "bot_id": self.bot_id,
        }
        optional = {
            "phone_number": self.phone_number,
            "description": self.description,
            "hours": self.hours,
            "faq": self.faq,
            "prompt_template": self.prompt_template,
            "business_data": dict(self.business_data) if self.business_data else None,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data
