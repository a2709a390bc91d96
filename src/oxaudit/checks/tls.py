"""TLS/certificate check.

Uses a ``TLSRunner`` for its own handshake, since it needs the negotiated
protocol, cipher, peer certificate and chain validity.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import TYPE_CHECKING, ClassVar

from oxaudit.checks.base import BaseCheck
from oxaudit.core.result import Finding, Severity
from oxaudit.runners.tls_runner import AsyncioTLSRunner, TLSHandshake, TLSTimeout

if TYPE_CHECKING:
    from oxaudit.checks.base import ScanContext
    from oxaudit.runners.tls_runner import TLSProbeResult, TLSRunner

logger = logging.getLogger(__name__)

DEFAULT_HTTPS_PORT = 443
EXPIRY_WARNING_DAYS = 30

# OpenSSL X509_V_ERR_* codes
CERT_HAS_EXPIRED = 10
DEPTH_ZERO_SELF_SIGNED_CERT = 18
SELF_SIGNED_CERT_IN_CHAIN = 19

DEPRECATED_PROTOCOLS = frozenset({"SSLv2", "SSLv3", "TLSv1", "TLSv1.1"})
WEAK_CIPHER_RE = re.compile(r"RC4|DES|MD5|NULL|EXPORT|anon", re.I)


def _no_https() -> Finding:
    return Finding(
        id="no-https",
        severity=Severity.CRITICAL,
        title="No HTTPS",
        description="Site is not using HTTPS. All traffic is unencrypted.",
        recommendation="Enable HTTPS with a valid TLS certificate",
    )


def _trust_finding(handshake: TLSHandshake) -> Finding:
    if handshake.trusted:
        return Finding(id="ssl-valid", severity=Severity.PASS, title="Valid SSL certificate")

    if handshake.verify_code == CERT_HAS_EXPIRED:
        expired = handshake.not_after.isoformat() if handshake.not_after else "unknown date"
        return Finding(
            id="ssl-expired",
            severity=Severity.CRITICAL,
            title="SSL certificate expired",
            description=f"Certificate expired: {expired}",
            recommendation="Renew the SSL certificate immediately",
        )
    if handshake.verify_code in (DEPTH_ZERO_SELF_SIGNED_CERT, SELF_SIGNED_CERT_IN_CHAIN):
        return Finding(
            id="ssl-self-signed",
            severity=Severity.HIGH,
            title="Self-signed certificate",
            description="Certificate is self-signed and not trusted by browsers.",
            recommendation="Use a certificate from a trusted CA (e.g., Let's Encrypt)",
        )

    reason = handshake.verify_message or "certificate verification failed"
    return Finding(
        id="ssl-untrusted",
        severity=Severity.HIGH,
        title=f"SSL certificate issue: {reason}",
        description=f"TLS authorization failed: {reason}",
        recommendation="Fix certificate chain issues",
    )


def _expiry_finding(not_after: datetime | None, now: datetime) -> Finding | None:
    if not_after is None:
        return None
    days_left = (not_after - now).days
    if days_left <= 0:
        # already reported through the trust classification
        return None
    if days_left < EXPIRY_WARNING_DAYS:
        return Finding(
            id="ssl-expiring",
            severity=Severity.MEDIUM,
            title=f"Certificate expires in {days_left} days",
            description=f"Certificate valid until {not_after.isoformat()}",
            recommendation="Renew certificate before expiry",
        )
    return Finding(
        id="ssl-expiry-ok", severity=Severity.PASS, title=f"Certificate valid for {days_left} days"
    )


def _protocol_finding(protocol: str | None) -> Finding | None:
    if not protocol:
        return None
    if protocol in DEPRECATED_PROTOCOLS:
        return Finding(
            id="ssl-old-tls",
            severity=Severity.HIGH,
            title=f"Outdated TLS version: {protocol}",
            description=f"{protocol} is deprecated and insecure.",
            recommendation="Upgrade to TLS 1.2 or 1.3",
        )
    if protocol == "TLSv1.3":
        return Finding(id="ssl-tls13", severity=Severity.PASS, title="TLS 1.3 supported")
    return Finding(id="ssl-tls12", severity=Severity.PASS, title=f"TLS version: {protocol}")


def _cipher_finding(cipher: str | None) -> Finding | None:
    if cipher and WEAK_CIPHER_RE.search(cipher):
        return Finding(
            id="ssl-weak-cipher",
            severity=Severity.HIGH,
            title=f"Weak cipher: {cipher}",
            description="Weak cipher suite in use.",
            recommendation="Disable weak cipher suites",
        )
    return None


def evaluate_handshake(result: TLSProbeResult, now: datetime | None = None) -> list[Finding]:
    """Classify a handshake result into findings.

    Args:
        result: Handshake details, or a timeout/error sentinel
        now: Reference time for expiry arithmetic (defaults to current UTC time)

    Returns:
        Trust, expiry, protocol and cipher findings for a completed handshake;
        a single ``ssl-timeout`` or ``ssl-error`` finding otherwise
    """
    if isinstance(result, TLSTimeout):
        return [
            Finding(
                id="ssl-timeout",
                severity=Severity.MEDIUM,
                title="SSL handshake timeout",
                description="Could not complete TLS handshake in time.",
                recommendation="Verify the TLS endpoint responds promptly",
            )
        ]
    if not isinstance(result, TLSHandshake):
        return [
            Finding(
                id="ssl-error",
                severity=Severity.HIGH,
                title="SSL connection error",
                description=result.reason,
                recommendation="Verify SSL/TLS configuration",
            )
        ]

    now = now or datetime.now(timezone.utc)
    findings = [_trust_finding(result)]
    for finding in (
        _expiry_finding(result.not_after, now),
        _protocol_finding(result.protocol),
        _cipher_finding(result.cipher),
    ):
        if finding is not None:
            findings.append(finding)
    return findings


class TLSCheck(BaseCheck):
    """Check HTTPS availability, certificate trust and expiry, protocol and cipher."""

    name: ClassVar[str] = "tls"

    def __init__(self, runner: TLSRunner | None = None) -> None:
        self.runner = runner

    async def run(self, ctx: ScanContext) -> list[Finding]:
        if not ctx.is_https:
            return [_no_https()]

        runner = self.runner
        if runner is None:
            runner = AsyncioTLSRunner()

        port = ctx.port or DEFAULT_HTTPS_PORT
        result = await runner.handshake(ctx.hostname, port, ctx.timeout_ms)
        logger.debug("TLS handshake with %s:%s -> %s", ctx.hostname, port, type(result).__name__)
        return evaluate_handshake(result)
