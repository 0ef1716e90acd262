"""Failure kinds raised by the suggestion pipeline and their user-facing text."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

__all__ = [
    "ConfigurationError",
    "ErrorKind",
    "GENERIC_ERROR_MESSAGE",
    "SuggestionError",
    "user_message_for",
]


class ErrorKind(str, Enum):
    """Classification of a failed suggestion request."""

    THROTTLED = "throttled"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    CLIENT_ERROR = "client_error"
    UNEXPECTED_FORMAT = "unexpected_format"
    UNEXPECTED_STATUS = "unexpected_status"

    @property
    def retryable(self) -> bool:
        return self in _RETRYABLE_KINDS


_RETRYABLE_KINDS = frozenset({ErrorKind.TIMEOUT, ErrorKind.SERVER_ERROR, ErrorKind.NETWORK_ERROR})

GENERIC_ERROR_MESSAGE = "An unexpected error occurred."

_MESSAGES: Mapping[ErrorKind, str] = {
    ErrorKind.THROTTLED: "Please wait a moment before requesting again.",
    ErrorKind.RATE_LIMIT: "You've hit the rate limit. Please wait a moment or upgrade your plan.",
    ErrorKind.TIMEOUT: "The request timed out. Please try again.",
    ErrorKind.SERVER_ERROR: "Something went wrong on our side. Please try again later.",
    ErrorKind.NETWORK_ERROR: "Network error. Please check your connection and try again.",
}


def user_message_for(kind: ErrorKind, detail: str | None = None) -> str:
    """Return the message shown to the applicant for a failure of ``kind``.

    Client errors surface the provider's own explanation, since that is
    usually actionable (bad model name, prompt too long, ...).
    """

    if kind is ErrorKind.CLIENT_ERROR and detail:
        return detail
    return _MESSAGES.get(kind, GENERIC_ERROR_MESSAGE)


@dataclass
class SuggestionError(Exception):
    """A classified failure of one suggestion request.

    Attributes:
        kind: Machine-readable failure kind.
        detail: Extra context; for ``client_error`` this is the provider message
            or HTTP status text, for ``unexpected_status`` the status code.
        status_code: HTTP status of the failed response, when one was received.
    """

    kind: ErrorKind
    detail: str | None = None
    status_code: int | None = None

    def __post_init__(self) -> None:
        Exception.__init__(self, str(self))

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    @property
    def user_message(self) -> str:
        return user_message_for(self.kind, self.detail)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.kind.value}:{self.detail}"
        return self.kind.value


class ConfigurationError(RuntimeError):
    """Raised when the assistant cannot be constructed from its configuration."""
