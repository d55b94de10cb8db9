"""Business directory backed by the Postgres `businesses` table."""

from __future__ import annotations

from typing import Any

from bizbot.domain.business import Business, InvalidBusinessRecordError
from bizbot.infra.db import fetchall, fetchone, txn
from bizbot.observability.logging import get_logger
from bizbot.observability.redaction import safe_log_context
from bizbot.whatsapp.formatter import normalize_phone

logger = get_logger(__name__)

_COLUMNS = (
    "id",
    "name",
    "bot_id",
    "phone_number",
    "description",
    "hours",
    "faq",
    "openai_api_key",
    "prompt_template",
    "business_data",
)

_SELECT = f"SELECT {', '.join(_COLUMNS)} FROM businesses"


def _row_to_business(row: tuple[Any, ...] | None) -> Business | None:
    if row is None:
        return None
    record = dict(zip(_COLUMNS, row))
    record["id"] = str(record["id"])
    try:
        return Business.from_record(record)
    except InvalidBusinessRecordError:
        logger.warning(
            "invalid business row ignored",
            extra={"extra_fields": safe_log_context(business_id=record["id"])},
        )
        return None


class PostgresBusinessDirectory:
    """Read-only queries; every call uses its own short transaction."""

    def __init__(self, dsn: str) -> None:
        self._dsn = dsn

    def find_by_bot_id(self, bot_id: str) -> Business | None:
        with txn(self._dsn) as cur:
            row = fetchone(cur, f"{_SELECT} WHERE bot_id = %s", ((bot_id or "").strip(),))
        return _row_to_business(row)

    def find_by_phone(self, number: str) -> Business | None:
        with txn(self._dsn) as cur:
            row = fetchone(
                cur,
                f"{_SELECT} WHERE phone_number = %s ORDER BY created_at LIMIT 1",
                (normalize_phone(number),),
            )
        return _row_to_business(row)

    def list_all(self) -> list[Business]:
        with txn(self._dsn) as cur:
            rows = fetchall(cur, f"{_SELECT} ORDER BY created_at")
        return [b for b in map(_row_to_business, rows) if b is not None]
