"""Remote store interface.

Every operation returns a `StoreResult` instead of raising, matching how the
hosted platform's client reports failures. Callers that want exceptions call
`unwrap()`, which raises the carried `StoreError` so it can be classified.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from tutorsync.core.errors import StoreError

T = TypeVar("T")

Row = dict[str, Any]


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    """``{data, error}`` pair returned by every store call."""

    data: T | None = None
    error: StoreError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return data, raising the error if there is one.

        Raises:
            StoreError: If the call reported an error.
        """
        if self.error is not None:
            raise self.error
        return self.data  # type: ignore[return-value]


class RemoteStore(ABC):
    """Async access to platform tables and blob storage."""

    @abstractmethod
    async def fetch_row(self, table: str, match: dict[str, Any]) -> StoreResult[Row]:
        """Fetch exactly one row whose columns equal `match`.

        No row, or more than one, is an error.
        """
        ...

    @abstractmethod
    async def update_rows(
        self,
        table: str,
        match: dict[str, Any],
        values: dict[str, Any],
    ) -> StoreResult[None]:
        """Set `values` on every row matching `match`."""
        ...

    @abstractmethod
    async def insert_rows(self, table: str, rows: list[Row]) -> StoreResult[list[Row]]:
        """Insert rows and return them as stored."""
        ...

    @abstractmethod
    async def download(self, bucket: str, path: str) -> StoreResult[bytes]:
        """Download a stored object."""
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """Return True if the store answers; never raises."""
        ...

    async def close(self) -> None:
        """Release connections. Default: nothing to release."""
        return None
