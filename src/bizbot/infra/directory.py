"""Business directory - read-only lookup of business records.

Backends:
- InMemoryBusinessDirectory: built once (from a JSON file or a list),
  never mutated, safe for any number of concurrent readers.
- PostgresBusinessDirectory (repositories/business_repository.py).

Unknown identifiers return None; lookups never raise for a miss.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Protocol

from bizbot.domain.business import Business, InvalidBusinessRecordError
from bizbot.infra.settings import Settings
from bizbot.observability.logging import get_logger
from bizbot.observability.redaction import safe_log_context
from bizbot.whatsapp.formatter import normalize_phone

logger = get_logger(__name__)


class DirectoryError(Exception):
    """Raised when a directory source is unreadable or inconsistent."""

    pass


class BusinessDirectory(Protocol):
    def find_by_bot_id(self, bot_id: str) -> Business | None: ...

    def find_by_phone(self, number: str) -> Business | None: ...

    def list_all(self) -> list[Business]: ...


class InMemoryBusinessDirectory:
    def __init__(self, businesses: Iterable[Business] = ()) -> None:
        by_bot_id: dict[str, Business] = {}
        by_phone: dict[str, Business] = {}
        for business in businesses:
            if business.bot_id in by_bot_id:
                raise DirectoryError(f"duplicate bot_id: {business.bot_id}")
            by_bot_id[business.bot_id] = business
            # First business registered for a number wins
            if business.phone_number:
                by_phone.setdefault(business.phone_number, business)
        self._by_bot_id = by_bot_id
        self._by_phone = by_phone

    def find_by_bot_id(self, bot_id: str) -> Business | None:
        return self._by_bot_id.get((bot_id or "").strip())

    def find_by_phone(self, number: str) -> Business | None:
        return self._by_phone.get(normalize_phone(number))

    def list_all(self) -> list[Business]:
        return list(self._by_bot_id.values())

    def __len__(self) -> int:
        return len(self._by_bot_id)


def businesses_from_records(records: Iterable[Any]) -> list[Business]:
    """Build Business objects, skipping (and logging) malformed records."""
    businesses = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            logger.warning(
                "skipping non-object business record",
                extra={"extra_fields": safe_log_context(index=index)},
            )
            continue
        try:
            businesses.append(Business.from_record(record))
        except InvalidBusinessRecordError as e:
            logger.warning(
                "skipping invalid business record",
                extra={"extra_fields": safe_log_context(index=index, error=str(e))},
            )
    return businesses


def load_directory(path: Path) -> InMemoryBusinessDirectory:
    """Load a directory from a JSON file.

    The file holds either an array of business records or an object with a
    "businesses" array.

    Raises:
        DirectoryError: If the file cannot be read or parsed, or bot ids
            collide.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise DirectoryError(f"cannot load directory file: {e}") from e

    if isinstance(data, dict):
        data = data.get("businesses")
    if not isinstance(data, list):
        raise DirectoryError("directory file must contain a list of businesses")

    directory = InMemoryBusinessDirectory(businesses_from_records(data))
    logger.info(
        "business directory loaded",
        extra={"extra_fields": safe_log_context(source="file", count=len(directory))},
    )
    return directory


def build_directory(settings: Settings) -> BusinessDirectory:
    """Pick the directory backend: Postgres, then JSON file, then empty."""
    if settings.database_url:
        from bizbot.infra.repositories.business_repository import PostgresBusinessDirectory

        return PostgresBusinessDirectory(settings.database_url)
    if settings.directory_path:
        return load_directory(settings.directory_path)
    logger.warning("no business directory configured, every lookup will miss")
    return InMemoryBusinessDirectory()
