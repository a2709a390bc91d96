"""TLS handshake runner abstraction and concrete implementations.

The HTTP transport cannot expose handshake details (negotiated protocol,
cipher, peer certificate, chain validity), so the TLS check uses a runner of
its own. Provides an asyncio-based runner and a Mock runner for tests.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from cryptography import x509

if TYPE_CHECKING:
    from datetime import datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TLSHandshake:
    """Details of a completed handshake.

    ``trusted`` is False when the chain failed verification; ``verify_code``
    and ``verify_message`` then carry the OpenSSL verification error.
    """

    protocol: str | None
    cipher: str | None
    not_after: datetime | None
    trusted: bool
    verify_code: int | None = None
    verify_message: str | None = None


@dataclass(frozen=True)
class TLSTimeout:
    reason: str = "TLS handshake timeout"


@dataclass(frozen=True)
class TLSError:
    reason: str


TLSProbeResult = TLSHandshake | TLSTimeout | TLSError


class TLSRunner(Protocol):
    async def handshake(self, host: str, port: int, timeout_ms: int) -> TLSProbeResult:
        """Perform a TLS handshake with host:port. Never raises."""
        ...


def _build_context(verify: bool) -> ssl.SSLContext:
    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    # allow legacy protocol versions so they can be reported
    context.minimum_version = ssl.TLSVersion.MINIMUM_SUPPORTED
    return context


def parse_not_after(cert_der: bytes | None) -> datetime | None:
    """Return the certificate expiry, or None when it cannot be parsed."""
    if not cert_der:
        return None
    try:
        return x509.load_der_x509_certificate(cert_der).not_valid_after_utc
    except ValueError as e:
        logger.debug("Could not parse peer certificate: %s", e)
        return None


class AsyncioTLSRunner:
    """Runner that performs the handshake over an asyncio stream.

    A verifying handshake runs first. If the chain fails verification a
    second, non-verifying handshake collects the session details so the
    failure reason and the certificate are both observable.
    """

    async def handshake(self, host: str, port: int, timeout_ms: int) -> TLSProbeResult:
        timeout = timeout_ms / 1000
        try:
            try:
                return await self._connect(host, port, timeout, verify=True)
            except ssl.SSLCertVerificationError as e:
                logger.debug("Certificate verification failed for %s:%s: %s", host, port, e)
                handshake = await self._connect(host, port, timeout, verify=False)
                return TLSHandshake(
                    protocol=handshake.protocol,
                    cipher=handshake.cipher,
                    not_after=handshake.not_after,
                    trusted=False,
                    verify_code=e.verify_code,
                    verify_message=e.verify_message,
                )
        except asyncio.TimeoutError:
            return TLSTimeout()
        except (ssl.SSLError, OSError) as e:
            return TLSError(reason=str(e) or e.__class__.__name__)

    async def _connect(self, host: str, port: int, timeout: float, verify: bool) -> TLSHandshake:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(
                host, port, ssl=_build_context(verify), server_hostname=host
            ),
            timeout,
        )
        try:
            ssl_object = writer.get_extra_info("ssl_object")
            cipher = ssl_object.cipher()
            return TLSHandshake(
                protocol=ssl_object.version(),
                cipher=cipher[0] if cipher else None,
                not_after=parse_not_after(ssl_object.getpeercert(binary_form=True)),
                trusted=verify,
            )
        finally:
            writer.close()
            try:
                await asyncio.wait_for(writer.wait_closed(), timeout)
            except (asyncio.TimeoutError, ssl.SSLError, OSError) as e:
                logger.debug("Error closing TLS connection to %s:%s: %s", host, port, e)


class MockTLSRunner:
    """Mock runner returns a pre-canned result for unit tests."""

    def __init__(self, result: TLSProbeResult) -> None:
        self._result = result
        self.calls: list[tuple[str, int]] = []

    async def handshake(self, host: str, port: int, timeout_ms: int) -> TLSProbeResult:
        self.calls.append((host, port))
        return self._result
