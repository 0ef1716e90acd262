"""Chat-completion client that turns a prompt into raw suggestion text.

One call to :meth:`SuggestionClient.complete` is one logical request. Each
network attempt is bounded by a wall-clock timeout, failures are classified
into :class:`~intakeassist.ai.errors.ErrorKind` values, and transient kinds
are retried with exponential backoff.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping

import httpx
from openai import (
    APIConnectionError,
    APIError,
    APIResponseValidationError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
)
from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception, stop_after_attempt, wait_exponential

from .errors import ConfigurationError, ErrorKind, SuggestionError

__all__ = [
    "ClientSettings",
    "DEFAULT_BASE_URL",
    "DEFAULT_MODEL",
    "SuggestionClient",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-3.5-turbo"

Sleep = Callable[[float], Awaitable[None]]


@dataclass(slots=True)
class ClientSettings:
    """Subset of settings required to configure the suggestion client."""

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    organization: str | None = None
    request_timeout: float = 15.0
    max_attempts: int = 3
    backoff_seconds: float = 1.0
    default_headers: Mapping[str, str] | None = None
    debug_logging: bool = False


class SuggestionClient:
    """Async client performing a single suggestion request with retries."""

    def __init__(
        self,
        settings: ClientSettings,
        *,
        client: AsyncOpenAI | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if not (settings.api_key or "").strip():
            raise ConfigurationError(
                "An API key is required; set INTAKEASSIST_API_KEY (or OPENAI_API_KEY) or save one in settings."
            )
        self._settings = settings
        self._client = client or self._build_client(settings)
        self._sleep = sleep

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    async def complete(self, prompt: str) -> str:
        """Send ``prompt`` as a single user message and return the reply text.

        Raises:
            SuggestionError: when the request fails. Retryable kinds are raised
                only after every attempt has been used.
        """

        payload = self._build_payload(prompt)
        if self._settings.debug_logging:
            self._log_prompt_payload(payload)

        raw = ""
        async for attempt in self._retrying():
            with attempt:
                raw = await self._attempt(payload, attempt.retry_state.attempt_number)
        return raw

    async def _attempt(self, payload: Mapping[str, Any], attempt_number: int) -> str:
        LOGGER.debug("Suggestion attempt %d via %s", attempt_number, self._settings.model)
        try:
            completion = await asyncio.wait_for(
                self._client.chat.completions.create(**payload),
                timeout=self._settings.request_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise SuggestionError(ErrorKind.TIMEOUT) from exc
        except APIError as exc:
            raise _classify_api_error(exc) from exc
        except httpx.TransportError as exc:
            raise SuggestionError(ErrorKind.NETWORK_ERROR, detail=str(exc) or None) from exc
        return _extract_content(completion)

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            sleep=self._sleep,
            reraise=True,
            stop=stop_after_attempt(max(1, self._settings.max_attempts)),
            wait=wait_exponential(multiplier=self._settings.backoff_seconds),
            retry=retry_if_exception(_is_retryable),
            before_sleep=before_sleep_log(LOGGER, logging.WARNING),
        )

    def _build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self._settings.model,
            "messages": [{"role": "user", "content": prompt}],
        }

    def _build_client(self, settings: ClientSettings) -> AsyncOpenAI:
        headers = dict(settings.default_headers) if settings.default_headers else None
        return AsyncOpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
            organization=settings.organization,
            timeout=settings.request_timeout,
            max_retries=0,
            default_headers=headers,
        )

    def _log_prompt_payload(self, payload: Mapping[str, Any]) -> None:
        try:
            serialized = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError):
            LOGGER.debug("Suggestion payload (unserializable): %s", payload)
        else:
            LOGGER.debug("Suggestion payload:\n%s", serialized)

    async def aclose(self) -> None:
        """Close the underlying OpenAI client to release network resources."""

        close = getattr(self._client, "close", None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, SuggestionError) and exc.retryable


def _classify_api_error(exc: APIError) -> SuggestionError:
    # APITimeoutError subclasses APIConnectionError, so it must be checked first.
    if isinstance(exc, APITimeoutError):
        return SuggestionError(ErrorKind.TIMEOUT)
    if isinstance(exc, APIConnectionError):
        return SuggestionError(ErrorKind.NETWORK_ERROR, detail=exc.message or None)
    if isinstance(exc, APIStatusError):
        status = exc.status_code
        if status == 429:
            return SuggestionError(ErrorKind.RATE_LIMIT, status_code=status)
        if 400 <= status < 500:
            return SuggestionError(ErrorKind.CLIENT_ERROR, detail=_provider_message(exc), status_code=status)
        if 500 <= status < 600:
            return SuggestionError(ErrorKind.SERVER_ERROR, status_code=status)
        return SuggestionError(ErrorKind.UNEXPECTED_STATUS, detail=str(status), status_code=status)
    if isinstance(exc, APIResponseValidationError):
        return SuggestionError(ErrorKind.UNEXPECTED_FORMAT, status_code=exc.status_code)
    return SuggestionError(ErrorKind.UNEXPECTED_FORMAT, detail=exc.message or None)


def _provider_message(exc: APIStatusError) -> str:
    """Prefer the provider's ``error.message``; fall back to the HTTP status text."""

    body = exc.body
    if isinstance(body, Mapping):
        nested = body.get("error")
        source = nested if isinstance(nested, Mapping) else body
        message = source.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return exc.response.reason_phrase or f"HTTP {exc.status_code}"


def _extract_content(completion: Any) -> str:
    try:
        content = completion.choices[0].message.content
    except (AttributeError, IndexError, KeyError, TypeError) as exc:
        raise SuggestionError(ErrorKind.UNEXPECTED_FORMAT) from exc
    if not isinstance(content, str) or not content.strip():
        raise SuggestionError(ErrorKind.UNEXPECTED_FORMAT)
    return content.strip()
