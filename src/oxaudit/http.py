"""Transport probe: a single bounded HTTP(S) request and its normalized result.

Provides:
- SimpleResponse: status, lower-cased headers, truncated body and timing
- ProbeFailure: sentinel returned instead of raising on any network failure
- HTTPClientProtocol: typing.Protocol for client implementations
- AiohttpAdapter: adapter for an aiohttp.ClientSession for production
- MockClient: simple mapping-based mock for tests
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Protocol

import aiohttp

logger = logging.getLogger(__name__)

BODY_LIMIT = 50_000
PATH_PROBE_BODY_LIMIT = 5_000


@dataclass(frozen=True)
class SimpleResponse:
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    response_time_ms: int = 0

    def __post_init__(self) -> None:
        # header names are case-insensitive; store them lower-cased
        object.__setattr__(self, "headers", {k.lower(): v for k, v in self.headers.items()})

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)


@dataclass(frozen=True)
class ProbeFailure:
    """A request that produced no response: timeout, refusal, DNS or TLS error."""

    reason: str


ProbeResult = SimpleResponse | ProbeFailure


class HTTPClientProtocol(Protocol):
    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout_ms: int,
        max_body: int = BODY_LIMIT,
        read_body: bool = True,
    ) -> ProbeResult:  # pragma: no cover - thin protocol
        ...


def create_session(user_agent: str) -> aiohttp.ClientSession:
    """Build a session that never reuses connections and never verifies TLS.

    Certificate problems are reported by the TLS check, so the transport must
    still complete requests against untrusted chains.
    """
    connector = aiohttp.TCPConnector(force_close=True, ssl=False)
    return aiohttp.ClientSession(connector=connector, headers={"User-Agent": user_agent})


class AiohttpAdapter:
    """Adapter that wraps an aiohttp.ClientSession and returns probe results.

    Each call makes exactly one attempt: redirects are not followed and no
    exception escapes, every failure becomes a ``ProbeFailure``.
    """

    def __init__(self, session: aiohttp.ClientSession) -> None:
        self._session = session

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout_ms: int,
        max_body: int = BODY_LIMIT,
        read_body: bool = True,
    ) -> ProbeResult:
        start = time.monotonic()
        timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000)
        try:
            async with self._session.request(
                method,
                url,
                headers=headers,
                timeout=timeout,
                allow_redirects=False,
                ssl=False,
            ) as resp:
                body = await _read_limited(resp, max_body) if read_body else ""
                return SimpleResponse(
                    status=resp.status,
                    headers={k: ", ".join(resp.headers.getall(k)) for k in resp.headers},
                    body=body,
                    response_time_ms=int((time.monotonic() - start) * 1000),
                )
        except asyncio.TimeoutError:
            logger.debug("%s %s timed out after %sms", method, url, timeout_ms)
            return ProbeFailure(reason="Request timeout")
        except (aiohttp.ClientError, OSError) as e:
            logger.debug("%s %s failed: %s", method, url, e)
            return ProbeFailure(reason=str(e) or e.__class__.__name__)


async def _read_limited(resp: aiohttp.ClientResponse, limit: int) -> str:
    chunks: list[bytes] = []
    remaining = limit
    while remaining > 0:
        chunk = await resp.content.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks).decode("utf-8", errors="replace")


class MockClient:
    """Very small mock client for tests.

    Provide a mapping of url (or ``(method, url)``) -> SimpleResponse or
    ProbeFailure. Unmapped URLs answer with ``default`` (a 404 unless given).
    Every request is recorded in ``calls`` as ``(method, url, headers)``.

    Example:
        client = MockClient({"https://example.com/.env": SimpleResponse(200, {}, "DB_PASSWORD=x")})
    """

    def __init__(
        self,
        mapping: dict[str | tuple[str, str], ProbeResult] | None = None,
        default: ProbeResult | None = None,
    ) -> None:
        self._mapping = mapping or {}
        self._default = default if default is not None else SimpleResponse(status=404)
        self.calls: list[tuple[str, str, dict[str, str]]] = []

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout_ms: int,
        max_body: int = BODY_LIMIT,
        read_body: bool = True,
    ) -> ProbeResult:
        self.calls.append((method, url, dict(headers or {})))
        if (method, url) in self._mapping:
            result = self._mapping[(method, url)]
        else:
            result = self._mapping.get(url, self._default)

        if isinstance(result, SimpleResponse):
            body = result.body[:max_body] if read_body else ""
            return SimpleResponse(
                status=result.status,
                headers=result.headers,
                body=body,
                response_time_ms=result.response_time_ms,
            )
        return result
