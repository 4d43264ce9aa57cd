"""Backend-agnostic transport errors.

Both backends report the same conditions under different codes, names and
message texts. :func:`classify_error` folds them into one
:class:`TransportErrorKind` so callers decide retry vs. propagate uniformly.
"""

from __future__ import annotations

from enum import Enum

from botocore.exceptions import ClientError

QUEUE_NOT_FOUND_CODES = frozenset(
    {
        "AWS.SimpleQueueService.NonExistentQueue",
        "NonExistentQueue",
        "QueueDoesNotExist",
    }
)

QUEUE_ALREADY_EXISTS_CODES = frozenset(
    {
        "QueueAlreadyExists",
        "AWS.SimpleQueueService.QueueAlreadyExists",
        "QueueAlreadyExistsException",
    }
)

# One backend only reports an existing queue through the message text
_ALREADY_EXISTS_PHRASES = ("already exists", "QueueAlreadyExists")


class TransportErrorKind(str, Enum):
    """Classification of a failed queue operation."""

    QUEUE_NOT_FOUND = "queue_not_found"
    QUEUE_ALREADY_EXISTS = "queue_already_exists"
    PARSE_FAILURE = "parse_failure"
    TRANSPORT_FAILURE = "transport_failure"


class TransportError(Exception):
    """Raised when a queue operation fails on either backend.

    Attributes:
        kind: Backend-agnostic classification.
        code: Backend error code, when one was reported.
        message: Human-readable error message.
    """

    def __init__(
        self,
        message: str,
        kind: TransportErrorKind = TransportErrorKind.TRANSPORT_FAILURE,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.code = code

    @property
    def is_queue_not_found(self) -> bool:
        return self.kind is TransportErrorKind.QUEUE_NOT_FOUND

    @property
    def is_queue_already_exists(self) -> bool:
        return self.kind is TransportErrorKind.QUEUE_ALREADY_EXISTS

    def __repr__(self) -> str:
        return f"TransportError(kind={self.kind.value!r}, code={self.code!r}, message={self.message!r})"


def classify_error(
    code: str | None = None,
    name: str | None = None,
    message: str | None = None,
) -> TransportErrorKind:
    """Classify a backend error from its code, name and message text."""
    identifiers = {value for value in (code, name) if value}
    if identifiers & QUEUE_NOT_FOUND_CODES:
        return TransportErrorKind.QUEUE_NOT_FOUND
    if identifiers & QUEUE_ALREADY_EXISTS_CODES:
        return TransportErrorKind.QUEUE_ALREADY_EXISTS
    if message and any(phrase in message for phrase in _ALREADY_EXISTS_PHRASES):
        return TransportErrorKind.QUEUE_ALREADY_EXISTS
    return TransportErrorKind.TRANSPORT_FAILURE


def as_transport_error(exc: BaseException) -> TransportError:
    """Wrap any backend exception into a classified :class:`TransportError`."""
    if isinstance(exc, TransportError):
        return exc

    code: str | None = None
    message = str(exc)
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = error.get("Code")
        message = error.get("Message") or message

    kind = classify_error(code=code, name=type(exc).__name__, message=message)
    return TransportError(message or type(exc).__name__, kind=kind, code=code)
