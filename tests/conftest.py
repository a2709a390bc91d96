"""Test configuration and fixtures for 0xAudit."""

from datetime import datetime, timedelta, timezone

import pytest

from oxaudit.checks.base import ScanContext
from oxaudit.http import SimpleResponse
from oxaudit.runners.tls_runner import TLSHandshake


@pytest.fixture
def context_factory():
    """Return a factory building a ScanContext around a baseline response."""

    def _factory(
        target: str = "https://example.com",
        headers: dict | None = None,
        timeout_ms: int = 1000,
    ) -> ScanContext:
        scheme, _, rest = target.partition("://")
        host = rest.split("/")[0]
        hostname, _, port = host.partition(":")
        return ScanContext(
            target=target,
            scheme=scheme,
            hostname=hostname,
            port=int(port) if port else None,
            baseline=SimpleResponse(status=200, headers=headers or {}),
            timeout_ms=timeout_ms,
        )

    return _factory


@pytest.fixture
def now():
    return datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def healthy_handshake():
    """A trusted TLS 1.3 handshake with a certificate valid for 90 more days."""
    return TLSHandshake(
        protocol="TLSv1.3",
        cipher="TLS_AES_256_GCM_SHA384",
        not_after=datetime.now(timezone.utc) + timedelta(days=90, hours=1),
        trusted=True,
    )


@pytest.fixture
def hardened_headers():
    """Response headers that satisfy every header policy."""
    return {
        "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
        "Content-Security-Policy": "default-src 'self'; frame-ancestors 'none'",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "no-referrer",
        "Permissions-Policy": "camera=()",
    }
