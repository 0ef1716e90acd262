"""Event bus used to notify observers about suggestion state changes.

The orchestrator publishes plain dataclass events; UI layers subscribe to the
types they care about instead of polling ``loading``/``error`` attributes.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, TypeVar
from weakref import WeakMethod

from .ai.errors import ErrorKind
from .models import SuggestionResult

__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "SuggestionCompleted",
    "SuggestionFailed",
    "SuggestionStateChanged",
]

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all published events."""


@dataclass(slots=True)
class SuggestionStateChanged(Event):
    """Emitted whenever ``loading`` or ``error`` changes on an orchestrator.

    Attributes:
        loading: Whether a network request is in flight.
        error: User-facing message of the latest failure, if any.
        has_result: Whether a last-known-good suggestion is available.
    """

    loading: bool
    error: str | None
    has_result: bool


@dataclass(slots=True)
class SuggestionCompleted(Event):
    """Emitted when a suggestion is available, fresh or from the cache."""

    result: SuggestionResult
    from_cache: bool = False


@dataclass(slots=True)
class SuggestionFailed(Event):
    """Emitted when a request ends in a handled failure.

    ``kind`` is ``None`` for unexpected internal errors.
    """

    kind: ErrorKind | None
    message: str


class EventBus:
    """A typed publish-subscribe bus.

    Handlers run synchronously in registration order. A handler that raises
    is logged and the remaining handlers still run, so observers can never
    break the publisher. Bound methods are held weakly.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug("Subscribed %s to %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""

        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        for index, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(index)
                return

    def publish(self, event: Event) -> None:
        event_type = type(event)
        handlers = self._handlers.get(event_type)
        if not handlers:
            return

        dead: list[int] = []
        for index, handler_ref in enumerate(list(handlers)):
            handler = handler_ref.resolve()
            if handler is None:
                dead.append(index)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception("Handler %s raised for %s", _handler_name(handler), event_type.__name__)

        for index in reversed(dead):
            handlers.pop(index)

    def clear(self) -> None:
        self._handlers.clear()

    def handler_count(self, event_type: type[Event] | None = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Weak reference for bound methods, strong reference for everything else."""

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: WeakMethod | Handler, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> "_HandlerRef":
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if self._is_weak:
            return self._ref()  # type: ignore[operator]
        return self._ref  # type: ignore[return-value]

    def matches(self, handler: Handler) -> bool:
        return self.resolve() == handler


def _handler_name(handler: Callable[..., object]) -> str:
    return getattr(handler, "__qualname__", None) or getattr(handler, "__name__", None) or repr(handler)
