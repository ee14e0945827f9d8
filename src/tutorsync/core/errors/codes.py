"""Error categories and codes.

Two categories drive retry decisions:

    | Category  | Retried | Examples                                  |
    |-----------|---------|-------------------------------------------|
    | TRANSIENT | Yes     | failed fetch, connection refused, 5xx     |
    | TERMINAL  | No      | validation errors, 4xx, malformed payload |

Codes refine the category for logging and diagnostics only; they never
change retry behavior.
"""

from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    """Whether retrying can plausibly fix a failure."""

    TRANSIENT = "transient"
    """Network unreachable, request aborted, timeout or 5xx response."""

    TERMINAL = "terminal"
    """Everything else; retrying cannot help."""


class ErrorCode(str, Enum):
    """Stable identifiers for the rule that produced a classification."""

    NETWORK_FAILURE = "NETWORK_FAILURE"
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    ABORTED = "ABORTED"
    TIMEOUT = "TIMEOUT"
    SERVER_ERROR = "SERVER_ERROR"
    CLIENT_ERROR = "CLIENT_ERROR"
    UNKNOWN = "UNKNOWN"

    @property
    def category(self) -> ErrorCategory:
        if self in (ErrorCode.CLIENT_ERROR, ErrorCode.UNKNOWN):
            return ErrorCategory.TERMINAL
        return ErrorCategory.TRANSIENT
