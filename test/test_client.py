"""Tests for the Confluence HTTP client, using httpx.MockTransport."""

import base64

import httpx
import pytest

from confluence_loader.client import ConfluenceClient
from confluence_loader.config import settings
from confluence_loader.errors import (
    ApiError,
    FetchTimeoutError,
    InvalidResponseError,
    TransportError,
)


def make_client(handler, **kwargs) -> ConfluenceClient:
    kwargs.setdefault("base_url", "https://example.atlassian.net/")
    kwargs.setdefault("username", "user@example.com")
    kwargs.setdefault("api_token", "secret-token")
    return ConfluenceClient(transport=httpx.MockTransport(handler), **kwargs)


class TestConfluenceClientInit:
    def test_trims_trailing_slash(self):
        client = make_client(lambda request: httpx.Response(200, json={}))
        assert client.base_url == "https://example.atlassian.net"
        assert client.build_url("/pages") == "https://example.atlassian.net/wiki/api/v2/pages"

    def test_custom_timeout_and_base_path(self):
        client = make_client(
            lambda request: httpx.Response(200, json={}),
            timeout=5.0,
            api_base_path="/api/v2",
        )
        assert client.timeout == 5.0
        assert client.build_url("/pages") == "https://example.atlassian.net/api/v2/pages"

    def test_falls_back_to_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "base_url", "https://configured.example.com")
        monkeypatch.setattr(settings, "username", "configured-user")
        monkeypatch.setattr(settings, "api_token", "configured-token")

        client = ConfluenceClient()

        assert client.base_url == "https://configured.example.com"
        assert client.username == "configured-user"
        assert client.api_token == "configured-token"
        assert client.api_base_path == "/wiki/api/v2"


class TestConfluenceClientGet:
    @pytest.mark.asyncio
    async def test_successful_get(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json={"results": [{"id": "1"}]})

        async with make_client(handler) as client:
            data = await client.get("/pages", [("limit", "10"), ("body-format", "storage")])

        assert data == {"results": [{"id": "1"}]}
        request = seen["request"]
        assert request.method == "GET"
        assert request.url.path == "/wiki/api/v2/pages"
        assert request.url.params["limit"] == "10"
        assert request.url.params["body-format"] == "storage"

    @pytest.mark.asyncio
    async def test_sends_basic_auth_header(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["accept"] = request.headers["Accept"]
            return httpx.Response(200, json={})

        async with make_client(handler) as client:
            await client.get("/pages")

        expected = base64.b64encode(b"user@example.com:secret-token").decode()
        assert seen["auth"] == f"Basic {expected}"
        assert seen["accept"].startswith("application/json")

    @pytest.mark.asyncio
    async def test_api_error_with_json_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"errors": [{"title": "Not found"}]})

        async with make_client(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get("/pages/999")

        assert exc_info.value.status == 404
        assert exc_info.value.body == {"errors": [{"title": "Not found"}]}

    @pytest.mark.asyncio
    async def test_api_error_with_text_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        async with make_client(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get("/pages")

        assert exc_info.value.status == 502
        assert exc_info.value.body == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.get("/pages")

        assert not isinstance(exc_info.value, FetchTimeoutError)
        assert "connection refused" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with make_client(handler) as client:
            with pytest.raises(FetchTimeoutError):
                await client.get("/pages")

    @pytest.mark.asyncio
    async def test_non_json_success_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>login</html>")

        async with make_client(handler) as client:
            with pytest.raises(InvalidResponseError):
                await client.get("/pages")
