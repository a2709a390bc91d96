"""Tests for the HTTP transport adapter."""

import asyncio
import socket

from aiohttp import web
from aiohttp.test_utils import TestServer as AiohttpTestServer
from multidict import CIMultiDict
import pytest
import pytest_asyncio

from oxaudit.http import AiohttpAdapter, MockClient, ProbeFailure, SimpleResponse, create_session


def test_simple_response_lowercases_headers():
    resp = SimpleResponse(status=200, headers={"Content-Security-Policy": "default-src 'self'"})
    assert resp.headers == {"content-security-policy": "default-src 'self'"}
    assert resp.header("CONTENT-SECURITY-POLICY") == "default-src 'self'"
    assert resp.header("x-frame-options") is None


@pytest.mark.asyncio
async def test_mock_client_prefers_method_specific_mapping():
    client = MockClient(
        {
            "https://example.com": SimpleResponse(status=200, body="get"),
            ("OPTIONS", "https://example.com"): SimpleResponse(status=204),
        }
    )
    get = await client.request("GET", "https://example.com", timeout_ms=10, max_body=2)
    options = await client.request("OPTIONS", "https://example.com", timeout_ms=10)
    missing = await client.request("GET", "https://example.com/nope", timeout_ms=10)

    assert (get.status, get.body) == (200, "ge")
    assert options.status == 204
    assert missing.status == 404


async def _big(request: web.Request) -> web.Response:
    return web.Response(text="x" * 80_000, headers={"X-Frame-Options": "DENY"})


async def _redirect(request: web.Request) -> web.Response:
    raise web.HTTPFound("/big")


async def _slow(request: web.Request) -> web.Response:
    await asyncio.sleep(2)
    return web.Response(text="late")


async def _repeated_headers(request: web.Request) -> web.Response:
    headers = CIMultiDict(
        [
            ("Access-Control-Allow-Origin", "https://app.example.com"),
            ("Access-Control-Allow-Origin", "https://evil-attacker.com"),
        ]
    )
    return web.Response(status=204, headers=headers)


@pytest_asyncio.fixture
async def server():
    app = web.Application()
    app.router.add_get("/big", _big)
    app.router.add_get("/redirect", _redirect)
    app.router.add_get("/slow", _slow)
    app.router.add_route("OPTIONS", "/cors", _repeated_headers)
    async with AiohttpTestServer(app) as test_server:
        yield test_server


@pytest.mark.asyncio
async def test_body_truncated_and_headers_normalized(server):
    async with create_session("oxaudit-test") as session:
        result = await AiohttpAdapter(session).request(
            "GET", str(server.make_url("/big")), timeout_ms=5000, max_body=5000
        )

    assert isinstance(result, SimpleResponse)
    assert result.status == 200
    assert len(result.body) == 5000
    assert result.header("x-frame-options") == "DENY"
    assert result.response_time_ms >= 0


@pytest.mark.asyncio
async def test_repeated_headers_are_joined(server):
    async with create_session("oxaudit-test") as session:
        result = await AiohttpAdapter(session).request(
            "OPTIONS", str(server.make_url("/cors")), timeout_ms=5000, read_body=False
        )

    assert result.status == 204
    assert (
        result.header("access-control-allow-origin")
        == "https://app.example.com, https://evil-attacker.com"
    )


@pytest.mark.asyncio
async def test_redirects_not_followed(server):
    async with create_session("oxaudit-test") as session:
        result = await AiohttpAdapter(session).request(
            "GET", str(server.make_url("/redirect")), timeout_ms=5000
        )

    assert result.status == 302
    assert result.header("location") == "/big"


@pytest.mark.asyncio
async def test_headers_only_request_skips_body(server):
    async with create_session("oxaudit-test") as session:
        result = await AiohttpAdapter(session).request(
            "GET", str(server.make_url("/big")), timeout_ms=5000, read_body=False
        )

    assert result.status == 200
    assert result.body == ""


@pytest.mark.asyncio
async def test_timeout_becomes_failure(server):
    async with create_session("oxaudit-test") as session:
        result = await AiohttpAdapter(session).request(
            "GET", str(server.make_url("/slow")), timeout_ms=100
        )

    assert result == ProbeFailure(reason="Request timeout")


@pytest.mark.asyncio
async def test_connection_refused_becomes_failure():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]

    async with create_session("oxaudit-test") as session:
        result = await AiohttpAdapter(session).request(
            "GET", f"http://127.0.0.1:{port}/", timeout_ms=2000
        )

    assert isinstance(result, ProbeFailure)
    assert result.reason
