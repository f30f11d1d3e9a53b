import asyncio
import time

import httpx
import pytest

from core.config import Config
from core.exceptions import UpstreamError, UpstreamTimeout
from core.request_types import PreparedRequest
from services.upstream import DEFAULT_TIMEOUT, UpstreamClient


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _prepared(method="GET", body=None) -> PreparedRequest:
    return PreparedRequest(
        method=method,
        target_url="https://example.com/items?page=2",
        headers=httpx.Headers({"X-Foo": "b"}),
        body=body,
    )


def test_default_timeout_is_two_minutes():
    assert DEFAULT_TIMEOUT == 120.0
    assert Config().forward.timeout == 120.0
    assert UpstreamClient(httpx.AsyncClient()).timeout == 120.0


@pytest.mark.asyncio
async def test_dispatch_sends_prepared_request():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    upstream = UpstreamClient(_client(handler))
    response = await upstream.dispatch(_prepared("POST", b'{"a":1}'))

    assert response.status_code == 200
    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://example.com/items?page=2"
    assert request.headers["x-foo"] == "b"
    assert request.content == b'{"a":1}'


@pytest.mark.asyncio
async def test_get_without_body_sends_empty_content():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    await UpstreamClient(_client(handler)).dispatch(_prepared())
    assert seen[0].content == b""


@pytest.mark.asyncio
async def test_unresponsive_upstream_times_out_at_boundary():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(10)
        return httpx.Response(200)

    upstream = UpstreamClient(_client(handler), timeout=0.2)
    started = time.monotonic()
    with pytest.raises(UpstreamTimeout) as exc_info:
        await upstream.dispatch(_prepared())
    elapsed = time.monotonic() - started

    assert 0.2 <= elapsed < 2.0
    assert exc_info.value.timeout == 0.2


@pytest.mark.asyncio
async def test_slow_upstream_within_timeout_succeeds():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.05)
        return httpx.Response(200, text="late but fine")

    response = await UpstreamClient(_client(handler), timeout=2.0).dispatch(_prepared())
    assert response.text == "late but fine"


@pytest.mark.asyncio
async def test_transport_timeout_maps_to_upstream_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(UpstreamTimeout) as exc_info:
        await UpstreamClient(_client(handler)).dispatch(_prepared())
    assert isinstance(exc_info.value.cause, httpx.ReadTimeout)


@pytest.mark.asyncio
async def test_connection_failure_maps_to_upstream_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamError) as exc_info:
        await UpstreamClient(_client(handler)).dispatch(_prepared())

    assert not isinstance(exc_info.value, UpstreamTimeout)
    assert isinstance(exc_info.value.cause, httpx.ConnectError)
    assert "connection refused" in str(exc_info.value)
    # single attempt, no retries
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_redirects_are_followed_by_default():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(302, headers={"location": "https://example.com/new"})
        return httpx.Response(200, text="new")

    prepared = PreparedRequest("GET", "https://example.com/old", httpx.Headers())
    response = await UpstreamClient(_client(handler)).dispatch(prepared)
    assert response.status_code == 200
    assert response.text == "new"

    not_following = UpstreamClient(_client(handler), follow_redirects=False)
    response = await not_following.dispatch(prepared)
    assert response.status_code == 302
