"""Classification result model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .codes import ErrorCategory, ErrorCode


@dataclass(frozen=True)
class ClassifiedError:
    """A failure tagged with its retry category.

    Attributes:
        category: TRANSIENT or TERMINAL.
        original: The error value as thrown; not necessarily an exception.
        message: Text the classification was based on.
        status: HTTP-like status code, when one could be read.
        error_code: Rule that matched, for logs.
    """

    category: ErrorCategory
    original: Any
    message: str
    status: int | None = None
    error_code: ErrorCode = ErrorCode.UNKNOWN

    @property
    def is_transient(self) -> bool:
        return self.category is ErrorCategory.TRANSIENT

    @property
    def is_terminal(self) -> bool:
        return self.category is ErrorCategory.TERMINAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "error_code": self.error_code.value,
            "message": self.message[:200],
            "status": self.status,
        }
