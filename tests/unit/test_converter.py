"""Unit tests for ConverterClient (httpx.MockTransport, no network)."""

import json

import httpx
import pytest

from whisperdesk.services.converter import (
    EMPTY_RESPONSE,
    ConversionFailure,
    ConversionSuccess,
    ConverterClient,
)

URL = "http://converter.test/convert"


def _client(handler) -> ConverterClient:
    return ConverterClient(url=URL, timeout=200.0, transport=httpx.MockTransport(handler))


class TestRequest:
    """Verify the outgoing request shape."""

    async def test_posts_json_text(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="{}")

        client = _client(handler)
        await client.convert("Hello world !")
        await client.aclose()

        assert len(seen) == 1
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == URL
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {"text": "Hello world !"}

    async def test_non_ascii_text_is_utf8(self):
        seen: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.content)
            return httpx.Response(200, text="ok")

        client = _client(handler)
        await client.convert("Grüße, 안녕하세요")
        await client.aclose()

        assert json.loads(seen[0].decode("utf-8")) == {"text": "Grüße, 안녕하세요"}

    def test_timeout_applies_to_every_phase(self):
        client = ConverterClient(url=URL, timeout=200.0)
        timeout = client._client.timeout
        assert timeout.connect == 200.0
        assert timeout.read == 200.0
        assert timeout.write == 200.0
        assert timeout.pool == 200.0

    async def test_single_attempt_on_failure(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(503)

        client = _client(handler)
        await client.convert("text")
        await client.aclose()

        assert calls == 1


class TestOutcomes:
    """Success, HTTP error and transport error classification."""

    async def test_success_returns_body(self):
        client = _client(lambda request: httpx.Response(200, text="OK"))
        result = await client.convert("hi")
        await client.aclose()
        assert result == ConversionSuccess("OK")

    async def test_success_with_empty_body_uses_marker(self):
        client = _client(lambda request: httpx.Response(200))
        result = await client.convert("hi")
        await client.aclose()
        assert result == ConversionSuccess(EMPTY_RESPONSE)

    async def test_http_500_is_failure(self):
        client = _client(lambda request: httpx.Response(500, text="boom"))
        result = await client.convert("hi")
        await client.aclose()
        assert isinstance(result, ConversionFailure)
        assert result.reason == "Conversion failed: 500 Internal Server Error"

    async def test_http_404_is_failure(self):
        client = _client(lambda request: httpx.Response(404))
        result = await client.convert("hi")
        await client.aclose()
        assert isinstance(result, ConversionFailure)
        assert "404" in result.reason

    async def test_connection_error_is_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        client = _client(handler)
        result = await client.convert("hi")
        await client.aclose()
        assert result == ConversionFailure("Conversion failed: Connection refused")

    async def test_timeout_is_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("", request=request)

        client = _client(handler)
        result = await client.convert("hi")
        await client.aclose()
        assert result == ConversionFailure("Conversion failed: ReadTimeout")


@pytest.mark.parametrize("status", [200, 201, 204])
async def test_any_2xx_is_success(status):
    client = _client(lambda request: httpx.Response(status, text="" if status == 204 else "x"))
    result = await client.convert("hi")
    await client.aclose()
    assert isinstance(result, ConversionSuccess)
