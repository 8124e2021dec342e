# ABOUTME: Unit tests for the async HTTP client abstraction.
# ABOUTME: Tests the HttpClient protocol, BookmuxHttpClient, rate limiting, and error handling.

import time

import httpx
import pytest

from bookmux.metadata.http import (
    BookmuxHttpClient,
    HttpClient,
    MetadataFetchError,
)


class FakeTransport(httpx.AsyncBaseTransport):
    """Fake async transport for httpx that returns canned responses."""

    def __init__(self, responses: list[httpx.Response] | None = None) -> None:
        self._responses = list(responses or [])
        self._call_count = 0
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self._call_count += 1
        self.requests.append(request)
        if self._responses:
            return self._responses.pop(0)
        return httpx.Response(200, json={"ok": True})

    @property
    def call_count(self) -> int:
        return self._call_count


class ErrorTransport(httpx.AsyncBaseTransport):
    """Transport that fails every request at the connection level."""

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)


class TestHttpClientProtocol:
    """Tests for HttpClient protocol compliance."""

    def test_bookmux_client_satisfies_protocol(self) -> None:
        """BookmuxHttpClient satisfies the HttpClient protocol."""
        client = BookmuxHttpClient(min_request_interval=0.0)
        assert isinstance(client, HttpClient)


class TestBookmuxHttpClient:
    """Tests for BookmuxHttpClient concrete class."""

    @pytest.mark.asyncio
    async def test_get_returns_json(self) -> None:
        """GET request returns parsed JSON response."""
        transport = FakeTransport()
        client = BookmuxHttpClient(min_request_interval=0.0, transport=transport)
        result = await client.get("https://example.com/api", params={"q": "test"})
        assert result == {"ok": True}
        assert transport.requests[0].url.params["q"] == "test"
        await client.aclose()

    def test_user_agent_header(self) -> None:
        """Requests include the bookmux User-Agent header."""
        client = BookmuxHttpClient(min_request_interval=0.0, transport=FakeTransport())
        assert "bookmux/" in client._client.headers["user-agent"]

    def test_extra_headers_merged(self) -> None:
        """Extra headers are sent alongside the User-Agent."""
        client = BookmuxHttpClient(
            min_request_interval=0.0,
            transport=FakeTransport(),
            headers={"Accept-Language": "sv"},
        )
        assert client._client.headers["accept-language"] == "sv"
        assert "bookmux/" in client._client.headers["user-agent"]

    @pytest.mark.asyncio
    async def test_rate_limiting_delays_requests(self) -> None:
        """Consecutive requests are delayed by min_request_interval."""
        transport = FakeTransport()
        interval = 0.15
        client = BookmuxHttpClient(min_request_interval=interval, transport=transport)

        start = time.monotonic()
        await client.get("https://example.com/1")
        await client.get("https://example.com/2")
        elapsed = time.monotonic() - start

        assert elapsed >= interval
        assert transport.call_count == 2

    @pytest.mark.asyncio
    async def test_http_error_raises_metadata_fetch_error(self) -> None:
        """Non-retryable HTTP errors raise MetadataFetchError."""
        responses = [httpx.Response(404, json={"error": "not found"})]
        transport = FakeTransport(responses=responses)
        client = BookmuxHttpClient(min_request_interval=0.0, transport=transport)

        with pytest.raises(MetadataFetchError, match="404"):
            await client.get("https://example.com/missing")
        assert transport.call_count == 1

    @pytest.mark.asyncio
    async def test_retry_on_429(self) -> None:
        """Client retries on 429 status and succeeds on next attempt."""
        responses = [
            httpx.Response(429, json={"error": "rate limited"}),
            httpx.Response(200, json={"ok": True}),
        ]
        transport = FakeTransport(responses=responses)
        client = BookmuxHttpClient(
            min_request_interval=0.0, transport=transport, retry_delay=0.01
        )

        result = await client.get("https://example.com/api")
        assert result == {"ok": True}
        assert transport.call_count == 2

    @pytest.mark.asyncio
    async def test_retry_exhausted_raises(self) -> None:
        """After max retries, raises MetadataFetchError."""
        responses = [httpx.Response(500, json={"error": "server error"})] * 4
        transport = FakeTransport(responses=responses)
        client = BookmuxHttpClient(
            min_request_interval=0.0,
            transport=transport,
            max_retries=3,
            retry_delay=0.01,
        )

        with pytest.raises(MetadataFetchError, match="500"):
            await client.get("https://example.com/api")
        assert transport.call_count == 4  # 1 initial + 3 retries

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self) -> None:
        """A 200 response that is not JSON raises MetadataFetchError."""
        transport = FakeTransport(responses=[httpx.Response(200, text="<html>oops</html>")])
        client = BookmuxHttpClient(min_request_interval=0.0, transport=transport)

        with pytest.raises(MetadataFetchError, match="Invalid JSON"):
            await client.get("https://example.com/api")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self) -> None:
        """Connection failures surface as MetadataFetchError."""
        client = BookmuxHttpClient(min_request_interval=0.0, transport=ErrorTransport())

        with pytest.raises(MetadataFetchError, match="connection refused"):
            await client.get("https://example.com/api")
