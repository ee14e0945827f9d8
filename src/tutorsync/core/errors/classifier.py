"""Transient/terminal classification of thrown errors.

`classify()` is a pure function over an explicit rule table. Errors reach it
in many shapes (exceptions, httpx errors, store error dicts, bare strings),
so each rule reads only what it needs and tolerates anything else.

Rules, first match wins:

1. Message contains a pattern from `TRANSIENT_PATTERNS` (case-insensitive).
2. A numeric status in [500, 599].
3. Error kind is one of `TRANSIENT_KINDS` (by class name along the MRO or a
   ``name`` field) or a Python network/timeout exception type.
4. Otherwise TERMINAL.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from .codes import ErrorCategory, ErrorCode
from .models import ClassifiedError

# Ordered: more specific patterns first so the error_code is precise.
TRANSIENT_PATTERNS: tuple[tuple[str, ErrorCode], ...] = (
    ("connection refused", ErrorCode.CONNECTION_REFUSED),
    ("failed to fetch", ErrorCode.NETWORK_FAILURE),
    ("aborted", ErrorCode.ABORTED),
    ("timeout", ErrorCode.TIMEOUT),
    ("network", ErrorCode.NETWORK_FAILURE),
)

TRANSIENT_KINDS: Mapping[str, ErrorCode] = {
    "NetworkError": ErrorCode.NETWORK_FAILURE,
    "AbortError": ErrorCode.ABORTED,
}

SERVER_ERROR_RANGE = range(500, 600)

_STATUS_FIELDS = ("status", "status_code", "code")


def _get(error: Any, key: str) -> Any:
    if isinstance(error, Mapping):
        return error.get(key)
    return getattr(error, key, None)


def _message_of(error: Any) -> str:
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    if isinstance(error, Mapping):
        message = error.get("message") or error.get("error")
        return str(message) if message is not None else ""
    return "" if error is None else str(error)


def _status_of(error: Any) -> int | None:
    for key in _STATUS_FIELDS:
        value = _get(error, key)
        # bool is an int subclass; "code" fields are often strings like "PGRST116"
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    response = _get(error, "response")
    if response is not None:
        try:
            status = response.status_code
        except (AttributeError, RuntimeError):
            # httpx raises RuntimeError when the request/response pair is unset
            return None
        if isinstance(status, int):
            return status
    return None


def _kind_code(error: Any) -> ErrorCode | None:
    name = _get(error, "name")
    if isinstance(name, str) and name in TRANSIENT_KINDS:
        return TRANSIENT_KINDS[name]

    if not isinstance(error, BaseException):
        return None

    for klass in type(error).__mro__:
        if klass.__name__ in TRANSIENT_KINDS:
            return TRANSIENT_KINDS[klass.__name__]

    if isinstance(error, (TimeoutError, httpx.TimeoutException)):
        return ErrorCode.TIMEOUT
    if isinstance(error, ConnectionRefusedError):
        return ErrorCode.CONNECTION_REFUSED
    if isinstance(error, (ConnectionError, httpx.TransportError)):
        return ErrorCode.NETWORK_FAILURE
    return None


def classify(error: Any) -> ClassifiedError:
    """Classify any thrown or rejected value as TRANSIENT or TERMINAL.

    Args:
        error: The failure. Structure is not assumed.

    Returns:
        ClassifiedError carrying the original value and, when readable, its
        status code.
    """
    message = _message_of(error)
    status = _status_of(error)
    lowered = message.lower()

    for pattern, code in TRANSIENT_PATTERNS:
        if pattern in lowered:
            return ClassifiedError(ErrorCategory.TRANSIENT, error, message, status, code)

    if status is not None and status in SERVER_ERROR_RANGE:
        return ClassifiedError(
            ErrorCategory.TRANSIENT, error, message, status, ErrorCode.SERVER_ERROR
        )

    kind = _kind_code(error)
    if kind is not None:
        return ClassifiedError(ErrorCategory.TRANSIENT, error, message, status, kind)

    code = (
        ErrorCode.CLIENT_ERROR
        if status is not None and 400 <= status < 500
        else ErrorCode.UNKNOWN
    )
    return ClassifiedError(ErrorCategory.TERMINAL, error, message, status, code)


def is_transient(error: Any) -> bool:
    """Shorthand for ``classify(error).is_transient``."""
    return classify(error).is_transient
