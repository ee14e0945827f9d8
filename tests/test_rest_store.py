"""Tests for tutorsync.store.rest.RestStore using httpx.MockTransport."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from tutorsync.core.config import StoreConfig
from tutorsync.core.errors import ConfigError, is_transient
from tutorsync.store import RestStore

BASE_URL = "https://project.example.test"


Handler = Callable[[httpx.Request], httpx.Response]


def _store(handler: Handler) -> tuple[RestStore, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(
        transport=httpx.MockTransport(record),
        base_url=BASE_URL,
    )
    return RestStore(BASE_URL, "service-key", client=client), seen


class TestRestStoreRows:
    @pytest.mark.asyncio
    async def test_fetch_row_query(self) -> None:
        store, seen = _store(lambda r: httpx.Response(200, json={"id": "d1"}))
        result = await store.fetch_row("documents", {"storage_path": "u/a.pdf"})

        assert result.unwrap() == {"id": "d1"}
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/documents"
        assert request.url.params["select"] == "*"
        assert request.url.params["storage_path"] == "eq.u/a.pdf"
        assert request.headers["Accept"] == "application/vnd.pgrst.object+json"

    @pytest.mark.asyncio
    async def test_update_rows_patch(self) -> None:
        store, seen = _store(lambda r: httpx.Response(204))
        result = await store.update_rows(
            "documents", {"id": "d1"}, {"processing_status": "processing"}
        )

        assert result.ok
        request = seen[0]
        assert request.method == "PATCH"
        assert request.url.params["id"] == "eq.d1"
        assert json.loads(request.content) == {"processing_status": "processing"}
        assert request.headers["Prefer"] == "return=minimal"

    @pytest.mark.asyncio
    async def test_insert_rows_returns_representation(self) -> None:
        store, seen = _store(lambda r: httpx.Response(201, json=[{"id": "c1", "content": "x"}]))
        result = await store.insert_rows("document_content", [{"content": "x"}])

        assert result.unwrap() == [{"id": "c1", "content": "x"}]
        assert seen[0].method == "POST"
        assert seen[0].headers["Prefer"] == "return=representation"

    @pytest.mark.asyncio
    async def test_auth_headers_sent(self) -> None:
        store, seen = _store(lambda r: httpx.Response(200, json={}))
        await store.fetch_row("t", {"id": 1})
        assert seen[0].headers["apikey"] == "service-key"
        assert seen[0].headers["Authorization"] == "Bearer service-key"


class TestRestStoreErrors:
    @pytest.mark.asyncio
    async def test_http_error_keeps_status_and_message(self) -> None:
        store, _ = _store(
            lambda r: httpx.Response(
                406, json={"message": "JSON object requested, multiple (or no) rows returned"}
            )
        )
        result = await store.fetch_row("documents", {"id": "x"})

        assert result.error is not None
        assert result.error.status == 406
        assert "multiple (or no) rows" in str(result.error)
        assert not is_transient(result.error)

    @pytest.mark.asyncio
    async def test_server_error_is_transient(self) -> None:
        store, _ = _store(lambda r: httpx.Response(503, text="upstream"))
        result = await store.update_rows("t", {"id": 1}, {"a": 1})
        assert result.error is not None
        assert result.error.status == 503
        assert is_transient(result.error)

    @pytest.mark.asyncio
    async def test_connect_error_becomes_network_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("All connection attempts failed", request=request)

        store, _ = _store(refuse)
        result = await store.download("bucket", "a.pdf")
        assert result.error is not None
        assert str(result.error).startswith("network error: ")
        assert is_transient(result.error)

    @pytest.mark.asyncio
    async def test_read_timeout_becomes_timeout_error(self) -> None:
        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        store, _ = _store(slow)
        result = await store.fetch_row("t", {"id": 1})
        assert result.error is not None
        assert str(result.error).startswith("request timeout: ")


class TestRestStoreStorage:
    @pytest.mark.asyncio
    async def test_download_path(self) -> None:
        store, seen = _store(lambda r: httpx.Response(200, content=b"%PDF"))
        result = await store.download("user-content", "/user-1/a.pdf")
        assert result.unwrap() == b"%PDF"
        assert seen[0].url.path == "/storage/v1/object/user-content/user-1/a.pdf"

    @pytest.mark.asyncio
    async def test_ping(self) -> None:
        store, _ = _store(lambda r: httpx.Response(200, json={}))
        assert await store.ping() is True

    @pytest.mark.asyncio
    async def test_ping_never_raises(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        store, _ = _store(refuse)
        assert await store.ping() is False

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        store, _ = _store(lambda r: httpx.Response(200, json={}))
        await store.close()
        await store.close()


class TestFromConfig:
    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SUPABASE_URL", "https://env.example.test/")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "secret")
        store = RestStore.from_config(StoreConfig())
        assert isinstance(store, RestStore)

    def test_missing_key_raises_config_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
        with pytest.raises(ConfigError, match="SUPABASE_SERVICE_ROLE_KEY"):
            RestStore.from_config(StoreConfig(url="https://x.example.test"))

    def test_missing_url_raises_config_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        with pytest.raises(ConfigError):
            StoreConfig().resolve_url()
