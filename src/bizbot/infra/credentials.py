"""Locally persisted completion-provider credential.

The second layer of the credential fallback: a JSON file of the form
{"openai_api_key": "..."} written by an operator on this host. Read on every
resolution so a key written while the service runs is picked up without a
restart.
"""

from __future__ import annotations

import json
from pathlib import Path

_KEY_FIELD = "openai_api_key"


class CredentialStoreError(Exception):
    """Raised when the credential file exists but cannot be used."""

    pass


class CredentialStore:
    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    def load(self) -> str | None:
        """Return the stored key, or None when nothing is stored.

        Raises:
            CredentialStoreError: If the file is unreadable or not JSON.
        """
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CredentialStoreError(f"cannot read credential file: {e}") from e

        if not isinstance(data, dict):
            raise CredentialStoreError("credential file must contain a JSON object")

        value = data.get(_KEY_FIELD)
        if not isinstance(value, str) or not value.strip():
            return None
        return value.strip()
