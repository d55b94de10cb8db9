"""Shared pytest fixtures for bizbot tests."""
import sys
sys.dont_write_bytecode = True

from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402

from bizbot.domain.business import Business  # noqa: E402
from bizbot.infra.directory import InMemoryBusinessDirectory  # noqa: E402
from bizbot.infra.settings import Settings  # noqa: E402
from bizbot.llm.completion import CompletionClient  # noqa: E402
from bizbot.whatsapp.sender import MessageSender  # noqa: E402

from helpers import BIKES_RECORD, CAFE_RECORD, SENDER_NUMBER, make_transport  # noqa: E402

_RELAY_ENV = (
    "WHATSAPP_PHONE_NUMBER",
    "TWILIO_ACCOUNT_SID",
    "TWILIO_AUTH_TOKEN",
    "WHATSAPP_SEND_URL",
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "OPENAI_MODEL",
    "BIZBOT_DIRECTORY_PATH",
    "BIZBOT_CREDENTIALS_PATH",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Keep host configuration out of Settings.from_env().

    DATABASE_URL is left alone so Postgres-backed tests can opt in.
    """
    for name in _RELAY_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BIZBOT_CREDENTIALS_PATH", str(tmp_path / "no-credentials.json"))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        whatsapp_phone_number=SENDER_NUMBER,
        twilio_account_sid="AC123",
        twilio_auth_token="auth-token",
        whatsapp_send_url="https://provider.test/messages",
        openai_api_key="sk-default-key-123456",
        credentials_path=tmp_path / "credentials.json",
    )


@pytest.fixture
def cafe():
    return Business.from_record(CAFE_RECORD)


@pytest.fixture
def bikes():
    return Business.from_record(BIKES_RECORD)


@pytest.fixture
def directory(cafe, bikes):
    return InMemoryBusinessDirectory([cafe, bikes])


@pytest.fixture
def transport():
    return make_transport()


@pytest.fixture
def sender(settings, transport):
    return MessageSender(settings, transport=transport)


@pytest.fixture
def completion_client():
    client = MagicMock(spec=CompletionClient)
    client.get_response.return_value = "We open at 8."
    return client
