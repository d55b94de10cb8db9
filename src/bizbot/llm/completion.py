"""Chat-completion client.

One non-streaming request per call. A request is either a prompt that is
already assembled (PreparedPrompt) or a raw user prompt plus the business
whose data should ground it (BusinessPrompt).

Security: NEVER log API keys, prompts or replies. Only log lengths.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

import requests

from bizbot.domain.business import Business
from bizbot.domain.prompting import resolve_system_prompt
from bizbot.infra.credentials import CredentialStore, CredentialStoreError
from bizbot.infra.settings import Settings
from bizbot.observability.correlation import get_correlation_id
from bizbot.observability.logging import get_logger
from bizbot.observability.redaction import safe_log_context

logger = get_logger(__name__)

NO_RESPONSE = "No response generated"


class CompletionError(Exception):
    """Raised when the completion call fails. Message is safe to log."""

    pass


class MissingCredentialError(CompletionError):
    """Raised when no API key resolves from any configured source."""

    pass


@dataclass(frozen=True)
class PreparedPrompt:
    system_prompt: str
    user_message: str
    api_key: str | None = None


@dataclass(frozen=True)
class BusinessPrompt:
    """User prompt to be grounded in `business` (ungrounded when None)."""

    prompt: str
    business: Business | None = None
    api_key: str | None = None
    use_template_verbatim: bool = False


PromptRequest = Union[PreparedPrompt, BusinessPrompt]


class CompletionClient:
    def __init__(
        self,
        settings: Settings,
        credential_store: CredentialStore | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._credential_store = credential_store or CredentialStore(settings.credentials_path)
        self._session = session or requests.Session()

    def resolve_api_key(self, override: str | None = None) -> str:
        """Resolve the API key: override -> local store -> configured default.

        Raises:
            MissingCredentialError: If no source yields a key.
        """
        if override:
            return override

        try:
            stored = self._credential_store.load()
        except CredentialStoreError as e:
            logger.warning(
                "local credential store unreadable, skipping",
                extra={"extra_fields": safe_log_context(error=str(e))},
            )
            stored = None
        if stored:
            return stored

        if self._settings.openai_api_key:
            return self._settings.openai_api_key

        raise MissingCredentialError("No OpenAI API key found")

    def build_messages(self, request: PromptRequest) -> tuple[list[dict[str, str]], str | None]:
        """Chat messages for a request, plus the request-scoped key override."""
        if isinstance(request, PreparedPrompt):
            system_prompt, user_message = request.system_prompt, request.user_message
            override = request.api_key
        elif isinstance(request, BusinessPrompt):
            system_prompt = resolve_system_prompt(
                request.business, use_template_verbatim=request.use_template_verbatim
            )
            user_message = request.prompt
            override = request.api_key or (
                request.business.openai_api_key if request.business else None
            )
        else:
            raise TypeError(f"unsupported prompt request: {type(request).__name__}")

        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ]
        return messages, override

    def get_response(self, request: PromptRequest) -> str:
        """Run one completion and return the reply text.

        Raises:
            MissingCredentialError: If no API key resolves.
            CompletionError: On a non-2xx response (with the provider's error
                message) or on any transport/parse failure.
        """
        messages, override = self.build_messages(request)
        api_key = self.resolve_api_key(override)

        payload = {
            "model": self._settings.openai_model,
            "messages": messages,
            "temperature": self._settings.completion_temperature,
            "max_tokens": self._settings.completion_max_tokens,
        }
        log_ctx = safe_log_context(
            correlationId=get_correlation_id(),
            model=self._settings.openai_model,
            system_len=len(messages[0]["content"]),
            user_len=len(messages[1]["content"]),
        )
        logger.info("requesting completion", extra={"extra_fields": log_ctx})

        url = f"{self._settings.openai_base_url.rstrip('/')}/chat/completions"
        try:
            response = self._session.post(
                url,
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {api_key}",
                },
                timeout=self._settings.completion_timeout,
            )
        except requests.RequestException as e:
            logger.error(
                "completion request failed",
                extra={"extra_fields": safe_log_context(**log_ctx, error_type=type(e).__name__)},
            )
            raise CompletionError(str(e)) from e

        if not response.ok:
            message = _error_message(response)
            logger.error(
                "completion provider returned an error",
                extra={"extra_fields": safe_log_context(**log_ctx, status=response.status_code)},
            )
            raise CompletionError(message)

        try:
            data = response.json()
        except ValueError as e:
            raise CompletionError(f"invalid completion response: {e}") from e

        content = _first_choice_content(data)
        logger.info(
            "completion received",
            extra={"extra_fields": safe_log_context(**log_ctx, reply_len=len(content))},
        )
        return content


def _error_message(response: requests.Response) -> str:
    """Provider error message from a non-2xx response body."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return f"Failed to get response from OpenAI (HTTP {response.status_code})"


def _first_choice_content(data: Any) -> str:
    if not isinstance(data, dict):
        raise CompletionError("invalid completion response: not an object")
    choices = data.get("choices") or []
    if not choices:
        return NO_RESPONSE
    try:
        content = choices[0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise CompletionError("invalid completion response: missing message content") from e
    return content or NO_RESPONSE
