"""In-memory remote store.

Holds tables and blobs in dicts and can be told to fail upcoming calls,
which makes it the store used by the test suite and by dry runs.
"""

from __future__ import annotations

import uuid
from collections import defaultdict, deque
from typing import Any

from tutorsync.core.errors import StoreError
from tutorsync.store.base import RemoteStore, Row, StoreResult


class InMemoryStore(RemoteStore):
    """Dict-backed store with failure injection.

    Attributes:
        tables: Rows per table name.
        blobs: Object bytes keyed by ``(bucket, path)``.
        calls: ``(method, table_or_bucket, argument)`` for every call, in order.
    """

    def __init__(
        self,
        tables: dict[str, list[Row]] | None = None,
        blobs: dict[tuple[str, str], bytes] | None = None,
    ) -> None:
        self.tables: dict[str, list[Row]] = defaultdict(list)
        for name, rows in (tables or {}).items():
            self.tables[name] = [dict(row) for row in rows]
        self.blobs: dict[tuple[str, str], bytes] = dict(blobs or {})
        self.calls: list[tuple[str, str, Any]] = []
        self.online = True
        self._failures: dict[str, deque[BaseException]] = defaultdict(deque)

    def fail_next(self, method: str, error: BaseException, times: int = 1) -> None:
        """Make the next `times` calls to `method` fail with `error`.

        A `StoreError` is returned in the result; any other exception is
        raised from the call, as a transport failure would be.
        """
        for _ in range(times):
            self._failures[method].append(error)

    def _injected(self, method: str) -> StoreResult[Any] | None:
        queue = self._failures.get(method)
        if not queue:
            return None
        error = queue.popleft()
        if isinstance(error, StoreError):
            return StoreResult(error=error)
        raise error

    @staticmethod
    def _matches(row: Row, match: dict[str, Any]) -> bool:
        return all(row.get(key) == value for key, value in match.items())

    async def fetch_row(self, table: str, match: dict[str, Any]) -> StoreResult[Row]:
        self.calls.append(("fetch_row", table, dict(match)))
        injected = self._injected("fetch_row")
        if injected is not None:
            return injected
        found = [row for row in self.tables[table] if self._matches(row, match)]
        if len(found) != 1:
            return StoreResult(
                error=StoreError(
                    f"expected one row in {table}, found {len(found)}", status=406
                )
            )
        return StoreResult(data=dict(found[0]))

    async def update_rows(
        self,
        table: str,
        match: dict[str, Any],
        values: dict[str, Any],
    ) -> StoreResult[None]:
        self.calls.append(("update_rows", table, dict(values)))
        injected = self._injected("update_rows")
        if injected is not None:
            return injected
        for row in self.tables[table]:
            if self._matches(row, match):
                row.update(values)
        return StoreResult()

    async def insert_rows(self, table: str, rows: list[Row]) -> StoreResult[list[Row]]:
        self.calls.append(("insert_rows", table, [dict(row) for row in rows]))
        injected = self._injected("insert_rows")
        if injected is not None:
            return injected
        stored = []
        for row in rows:
            new_row = {"id": str(uuid.uuid4()), **row}
            self.tables[table].append(new_row)
            stored.append(dict(new_row))
        return StoreResult(data=stored)

    async def download(self, bucket: str, path: str) -> StoreResult[bytes]:
        self.calls.append(("download", bucket, path))
        injected = self._injected("download")
        if injected is not None:
            return injected
        blob = self.blobs.get((bucket, path))
        if blob is None:
            return StoreResult(error=StoreError(f"object not found: {bucket}/{path}", status=404))
        return StoreResult(data=blob)

    async def ping(self) -> bool:
        self.calls.append(("ping", "", None))
        return self.online

    def status_writes(self, table: str) -> list[Any]:
        """Values of every update attempted on `table`, in call order."""
        return [
            value
            for method, name, values in self.calls
            if method == "update_rows" and name == table
            for value in values.values()
        ]
