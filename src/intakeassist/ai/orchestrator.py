"""Façade combining cache, throttle, prompt, client and parser.

:class:`SuggestionOrchestrator` is what the "help me write" button talks to.
It never lets a request failure escape: every outcome is reported through the
returned :class:`SuggestionOutcome`, the ``loading``/``error``/``last_result``
attributes, and events on :attr:`SuggestionOrchestrator.events`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from ..events import EventBus, SuggestionCompleted, SuggestionFailed, SuggestionStateChanged
from ..models import ApplicationData, SuggestionResult
from .cache import SuggestionCache, compute_cache_key
from .client import ClientSettings, SuggestionClient
from .errors import GENERIC_ERROR_MESSAGE, ErrorKind, SuggestionError, user_message_for
from .parser import parse_situation_sections
from .prompts import build_situation_prompt
from .throttle import Throttler

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from ..services.settings import Settings

__all__ = ["CompletionBackend", "SuggestionOrchestrator", "SuggestionOutcome"]

LOGGER = logging.getLogger(__name__)


class CompletionBackend(Protocol):
    async def complete(self, prompt: str) -> str: ...


@dataclass(slots=True, frozen=True)
class SuggestionOutcome:
    """Result of one :meth:`SuggestionOrchestrator.request` call.

    Attributes:
        result: The suggestion, or ``None`` when the request failed.
        kind: Failure kind; ``None`` on success. Unexpected internal errors
            are reported with ``kind=None`` and the generic message.
        message: User-facing failure message; ``None`` on success.
        from_cache: True when the result was served without a network call.
    """

    result: SuggestionResult | None = None
    kind: ErrorKind | None = None
    message: str | None = None
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.result is not None


class SuggestionOrchestrator:
    """Request situation rewrites and track their observable state."""

    def __init__(
        self,
        client: CompletionBackend,
        *,
        cache: SuggestionCache | None = None,
        throttler: Throttler | None = None,
        events: EventBus | None = None,
    ) -> None:
        self._client = client
        self._cache = cache if cache is not None else SuggestionCache()
        self._throttler = throttler if throttler is not None else Throttler()
        self._events = events if events is not None else EventBus()
        self._loading = False
        self._error: str | None = None
        self._last_result: SuggestionResult | None = None

    @classmethod
    def from_settings(cls, settings: "Settings", *, events: EventBus | None = None) -> "SuggestionOrchestrator":
        """Build an orchestrator from user settings.

        Raises:
            ConfigurationError: if no API key is configured.
        """

        client = SuggestionClient(
            ClientSettings(
                api_key=settings.api_key,
                base_url=settings.base_url,
                model=settings.model,
                organization=settings.organization,
                request_timeout=settings.request_timeout,
                max_attempts=settings.max_attempts,
                backoff_seconds=settings.backoff_seconds,
                default_headers=settings.default_headers,
                debug_logging=settings.debug_logging,
            )
        )
        cache = SuggestionCache(max_entries=settings.cache_max_entries, ttl_seconds=settings.cache_ttl_seconds)
        return cls(client, cache=cache, throttler=Throttler(settings.throttle_interval), events=events)

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def last_result(self) -> SuggestionResult | None:
        return self._last_result

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def cache(self) -> SuggestionCache:
        return self._cache

    @property
    def throttler(self) -> Throttler:
        return self._throttler

    async def generate(self, data: ApplicationData) -> SuggestionResult | None:
        """Return a suggestion for ``data``, or ``None`` after a handled failure.

        On ``None`` the reason is available from :attr:`error`.
        """

        outcome = await self.request(data)
        return outcome.result

    async def request(self, data: ApplicationData) -> SuggestionOutcome:
        key = compute_cache_key(data)

        cached = self._cache.get(key)
        if cached is not None:
            LOGGER.debug("Suggestion cache hit for %s", key[:8])
            self._last_result = cached
            self._set_state(loading=False, error=None)
            self._events.publish(SuggestionCompleted(result=cached, from_cache=True))
            return SuggestionOutcome(result=cached, from_cache=True)

        if not self._throttler.allow():
            return self._fail(ErrorKind.THROTTLED, user_message_for(ErrorKind.THROTTLED))

        self._set_state(loading=True, error=None)
        try:
            raw = await self._client.complete(build_situation_prompt(data))
        except SuggestionError as exc:
            LOGGER.warning("Suggestion request failed: %s", exc)
            return self._fail(exc.kind, exc.user_message)
        except asyncio.CancelledError:
            self._set_state(loading=False, error=self._error)
            raise
        except Exception:
            LOGGER.exception("Suggestion request raised an unexpected error")
            return self._fail(None, GENERIC_ERROR_MESSAGE)

        result = parse_situation_sections(raw, data.situation)
        self._cache.set(key, result)
        self._last_result = result
        self._set_state(loading=False, error=None)
        self._events.publish(SuggestionCompleted(result=result, from_cache=False))
        return SuggestionOutcome(result=result)

    def _fail(self, kind: ErrorKind | None, message: str) -> SuggestionOutcome:
        # The last good suggestion stays available after a failure.
        self._set_state(loading=False, error=message)
        self._events.publish(SuggestionFailed(kind=kind, message=message))
        return SuggestionOutcome(kind=kind, message=message)

    def _set_state(self, *, loading: bool, error: str | None) -> None:
        if loading == self._loading and error == self._error:
            return
        self._loading = loading
        self._error = error
        self._events.publish(
            SuggestionStateChanged(loading=loading, error=error, has_result=self._last_result is not None)
        )

    async def aclose(self) -> None:
        close = getattr(self._client, "aclose", None)
        if close is not None:
            await close()
