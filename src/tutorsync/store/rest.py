"""HTTP store for the hosted platform, using httpx.

Talks to the PostgREST endpoint (``/rest/v1/<table>``) for rows and the
storage endpoint (``/storage/v1/object/<bucket>/<path>``) for blobs. HTTP and
transport failures are folded into `StoreResult.error` so that callers see
one failure shape; the status code is kept for classification.

Example usage:
    store = RestStore.from_config(config.store)
    result = await store.fetch_row("documents", {"storage_path": path})
    document = result.unwrap()
    await store.close()
"""

from __future__ import annotations

from typing import Any

import httpx

from tutorsync.core.config import StoreConfig
from tutorsync.core.errors import StoreError
from tutorsync.core.logging import get_logger
from tutorsync.store.base import RemoteStore, Row, StoreResult

_logger = get_logger("store.rest")

_SINGLE_OBJECT = "application/vnd.pgrst.object+json"


def _eq_filters(match: dict[str, Any]) -> dict[str, str]:
    return {column: f"eq.{value}" for column, value in match.items()}


def _error_from_response(response: httpx.Response) -> StoreError:
    """Build a StoreError from a non-2xx response.

    PostgREST and storage both send ``{"message": ...}`` bodies; anything
    else falls back to the status line.
    """
    message = f"HTTP {response.status_code}"
    details: Any = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = str(body.get("message") or body.get("error") or message)
        details = body
    elif response.text:
        details = response.text[:200]
    return StoreError(message, status=response.status_code, details=details)


def _error_from_transport(exc: httpx.RequestError) -> StoreError:
    # Prefix keeps the failure recognisable to the classifier even when
    # httpx's own message is terse ("All connection attempts failed").
    if isinstance(exc, httpx.TimeoutException):
        return StoreError(f"request timeout: {exc}", details=exc)
    return StoreError(f"network error: {exc}", details=exc)


class RestStore(RemoteStore):
    """PostgREST/storage client over a pooled `httpx.AsyncClient`."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 8.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
        }
        self._timeout = timeout
        self._client = client

    @classmethod
    def from_config(cls, config: StoreConfig) -> RestStore:
        """Create a store from config, reading the key from the environment.

        Raises:
            ConfigError: If the URL or service key is missing.
        """
        return cls(
            base_url=config.resolve_url(),
            service_key=config.resolve_service_key(),
            timeout=config.http_timeout_seconds,
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response | StoreError:
        headers = {**self._headers, **kwargs.pop("headers", {})}
        try:
            response = await self._get_client().request(method, url, headers=headers, **kwargs)
        except httpx.RequestError as exc:
            _logger.debug("store_transport_error", method=method, url=url, error=str(exc))
            return _error_from_transport(exc)
        if not response.is_success:
            _logger.debug(
                "store_http_error",
                method=method,
                url=url,
                status_code=response.status_code,
            )
            return _error_from_response(response)
        return response

    async def fetch_row(self, table: str, match: dict[str, Any]) -> StoreResult[Row]:
        params = {"select": "*", **_eq_filters(match)}
        outcome = await self._request(
            "GET",
            f"/rest/v1/{table}",
            params=params,
            headers={"Accept": _SINGLE_OBJECT},
        )
        if isinstance(outcome, StoreError):
            return StoreResult(error=outcome)
        return StoreResult(data=outcome.json())

    async def update_rows(
        self,
        table: str,
        match: dict[str, Any],
        values: dict[str, Any],
    ) -> StoreResult[None]:
        outcome = await self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=_eq_filters(match),
            json=values,
            headers={"Prefer": "return=minimal"},
        )
        if isinstance(outcome, StoreError):
            return StoreResult(error=outcome)
        return StoreResult()

    async def insert_rows(self, table: str, rows: list[Row]) -> StoreResult[list[Row]]:
        outcome = await self._request(
            "POST",
            f"/rest/v1/{table}",
            json=rows,
            headers={"Prefer": "return=representation"},
        )
        if isinstance(outcome, StoreError):
            return StoreResult(error=outcome)
        return StoreResult(data=outcome.json())

    async def download(self, bucket: str, path: str) -> StoreResult[bytes]:
        outcome = await self._request("GET", f"/storage/v1/object/{bucket}/{path.lstrip('/')}")
        if isinstance(outcome, StoreError):
            return StoreResult(error=outcome)
        return StoreResult(data=outcome.content)

    async def ping(self) -> bool:
        outcome = await self._request("GET", "/rest/v1/")
        return not isinstance(outcome, StoreError)

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
