"""CORS misconfiguration check using a single adversarial preflight request."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, ClassVar

from oxaudit.checks.base import BaseCheck
from oxaudit.core.result import Finding, Severity
from oxaudit.http import ProbeFailure

if TYPE_CHECKING:
    from oxaudit.checks.base import ScanContext
    from oxaudit.http import HTTPClientProtocol

logger = logging.getLogger(__name__)

ADVERSARIAL_ORIGIN = "https://evil-attacker.com"


def classify_cors(headers: dict[str, str], origin: str = ADVERSARIAL_ORIGIN) -> list[Finding]:
    """Classify the Allow-Origin / Allow-Credentials pair of a preflight response.

    Always returns exactly one finding.
    """
    headers = {k.lower(): v for k, v in headers.items()}
    allow_origin = (headers.get("access-control-allow-origin") or "").strip()
    credentials = (headers.get("access-control-allow-credentials") or "").strip().lower() == "true"

    if allow_origin == "*":
        if credentials:
            finding = Finding(
                id="cors-wildcard-creds",
                severity=Severity.CRITICAL,
                title="Wildcard CORS with credentials",
                description="Access-Control-Allow-Origin: * with credentials enabled. Any site can steal authenticated data.",
                recommendation="Never combine wildcard origin with credentials",
            )
        else:
            finding = Finding(
                id="cors-wildcard",
                severity=Severity.HIGH,
                title="Wildcard CORS (*)",
                description="Access-Control-Allow-Origin: * allows any website to read responses.",
                recommendation="Restrict CORS to specific trusted origins",
            )
    elif allow_origin == origin:
        if credentials:
            finding = Finding(
                id="cors-reflect-creds",
                severity=Severity.CRITICAL,
                title="CORS reflects arbitrary origin with credentials",
                description="Server reflects any Origin header and allows credentials. Critical data theft risk.",
                recommendation="Whitelist specific allowed origins",
            )
        else:
            finding = Finding(
                id="cors-reflect",
                severity=Severity.HIGH,
                title="CORS reflects arbitrary origin",
                description="Server reflects the Origin header from untrusted domains.",
                recommendation="Implement a strict origin whitelist",
            )
    elif allow_origin:
        finding = Finding(id="cors-ok", severity=Severity.PASS, title=f"CORS restricted to: {allow_origin}")
    else:
        finding = Finding(
            id="cors-none", severity=Severity.PASS, title="No CORS headers (default same-origin)"
        )
    return [finding]


class CORSCheck(BaseCheck):
    """Send a cross-origin preflight from an untrusted origin and classify the echo."""

    name: ClassVar[str] = "cors"

    def __init__(self, client: HTTPClientProtocol) -> None:
        self.client = client

    async def run(self, ctx: ScanContext) -> list[Finding]:
        result = await self.client.request(
            "OPTIONS",
            ctx.target,
            headers={"Origin": ADVERSARIAL_ORIGIN, "Access-Control-Request-Method": "GET"},
            timeout_ms=ctx.timeout_ms,
            read_body=False,
        )
        if isinstance(result, ProbeFailure):
            # inconclusive: an empty header map would wrongly read as a pass
            logger.debug("CORS probe for %s failed: %s", ctx.target, result.reason)
            return []
        return classify_cors(result.headers)
