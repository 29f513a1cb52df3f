"""Error classification for collaborator failures.

Classifies exceptions raised by the similarity collaborator so that the
guarded analyzer retries only what can succeed on a second attempt:
- transient I/O and rate limiting -> retry
- timeouts and server faults -> retry with backoff
- malformed input or output -> never retry
"""

from __future__ import annotations

from enum import Enum

from continuity.constants import ErrorCode
from continuity.errors import ContinuityError, InvalidInputError


class ErrorClass(Enum):
    TRANSIENT = "transient"  # connection resets, 429
    SERVER = "server"  # 5xx from a remote similarity service
    TIMEOUT = "timeout"  # deadline exceeded
    CLIENT = "client"  # malformed data, 4xx
    UNKNOWN = "unknown"


def classify_error(error: BaseException) -> ErrorClass:
    """Classify *error* to decide whether a retry is worthwhile.

    Typed checks run first; remote services that expose a
    ``status_code`` attribute are classified by HTTP status.
    """
    if isinstance(error, InvalidInputError):
        return ErrorClass.CLIENT
    if isinstance(error, ContinuityError):
        if error.code == ErrorCode.TIMEOUT:
            return ErrorClass.TIMEOUT
        return ErrorClass.UNKNOWN
    if isinstance(error, TimeoutError):
        return ErrorClass.TIMEOUT
    if isinstance(error, (ConnectionError, BrokenPipeError)):
        return ErrorClass.TRANSIENT

    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        if status_code == 429:
            return ErrorClass.TRANSIENT
        if 400 <= status_code < 500:
            return ErrorClass.CLIENT
        if 500 <= status_code < 600:
            return ErrorClass.SERVER

    if isinstance(error, (ValueError, TypeError, KeyError)):
        return ErrorClass.CLIENT
    return ErrorClass.UNKNOWN


_RETRYABLE = frozenset({
    ErrorClass.TRANSIENT,
    ErrorClass.SERVER,
    ErrorClass.TIMEOUT,
})


def is_retryable(error: BaseException) -> bool:
    """Return True if the error category supports retry."""
    return classify_error(error) in _RETRYABLE
