"""Security response header check.

Works on the baseline response only; it performs no requests of its own.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, Field

from oxaudit.checks.base import BaseCheck
from oxaudit.core.result import Finding, Severity

if TYPE_CHECKING:
    from oxaudit.checks.base import ScanContext

logger = logging.getLogger(__name__)

HSTS_MIN_MAX_AGE = 31_536_000  # one year
CSP_UNSAFE_TOKENS = ("'unsafe-inline'", "'unsafe-eval'")

_MAX_AGE_RE = re.compile(r"max-age\s*=\s*\"?(\d+)", re.I)
_VERSION_RE = re.compile(r"[\d.]")


class HeaderPolicy(BaseModel):
    """A header whose mere presence is the passing condition."""

    names: tuple[str, ...] = Field(..., min_length=1, description="Accepted header names")
    missing_id: str
    ok_id: str
    severity_if_missing: Severity = Severity.LOW
    missing_title: str
    missing_description: str
    recommendation: str
    ok_title: str


PRESENCE_POLICIES: tuple[HeaderPolicy, ...] = (
    HeaderPolicy(
        names=("x-content-type-options",),
        missing_id="xcto-missing",
        ok_id="xcto-ok",
        missing_title="Missing X-Content-Type-Options",
        missing_description="MIME type sniffing is not prevented.",
        recommendation="Add: X-Content-Type-Options: nosniff",
        ok_title="X-Content-Type-Options: nosniff",
    ),
    HeaderPolicy(
        names=("referrer-policy",),
        missing_id="rp-missing",
        ok_id="rp-ok",
        missing_title="Missing Referrer-Policy",
        missing_description="Browser may leak referrer information.",
        recommendation="Add: Referrer-Policy: strict-origin-when-cross-origin",
        ok_title="Referrer-Policy configured",
    ),
    HeaderPolicy(
        names=("permissions-policy", "feature-policy"),
        missing_id="pp-missing",
        ok_id="pp-ok",
        missing_title="Missing Permissions-Policy",
        missing_description="No Permissions-Policy header to restrict browser features.",
        recommendation="Add a Permissions-Policy header",
        ok_title="Permissions-Policy configured",
    ),
)


def parse_hsts_max_age(value: str) -> int:
    """Return the max-age directive in seconds; 0 when absent or malformed."""
    match = _MAX_AGE_RE.search(value)
    return int(match.group(1)) if match else 0


def _check_hsts(value: str | None) -> Finding:
    if not value:
        return Finding(
            id="hsts-missing",
            severity=Severity.HIGH,
            title="Missing HSTS header",
            description="Strict-Transport-Security header is not set. Users can be downgraded to HTTP.",
            recommendation="Add: Strict-Transport-Security: max-age=31536000; includeSubDomains; preload",
        )

    max_age = parse_hsts_max_age(value)
    if max_age < HSTS_MIN_MAX_AGE:
        return Finding(
            id="hsts-short",
            severity=Severity.MEDIUM,
            title="HSTS max-age too short",
            description=f"HSTS max-age is {max_age}s (recommended: {HSTS_MIN_MAX_AGE})",
            recommendation=f"Set max-age to at least {HSTS_MIN_MAX_AGE} (1 year)",
        )
    return Finding(
        id="hsts-ok",
        severity=Severity.PASS,
        title="HSTS properly configured",
        description=f"HSTS: {value}",
    )


def _check_csp(csp: str | None) -> Finding:
    if not csp:
        return Finding(
            id="csp-missing",
            severity=Severity.MEDIUM,
            title="Missing Content-Security-Policy",
            description="No CSP header found. XSS and injection attacks are harder to mitigate.",
            recommendation="Implement a Content-Security-Policy header",
        )

    unsafe = [token for token in CSP_UNSAFE_TOKENS if token in csp]
    if unsafe:
        return Finding(
            id="csp-unsafe",
            severity=Severity.MEDIUM,
            title="CSP uses unsafe directives",
            description=f"CSP contains {' and '.join(unsafe)}",
            recommendation="Remove unsafe-inline and unsafe-eval from CSP",
        )
    return Finding(
        id="csp-ok", severity=Severity.PASS, title="CSP header present", description="CSP configured"
    )


def _check_frame_protection(headers: dict[str, str]) -> Finding:
    csp = headers.get("content-security-policy", "")
    if headers.get("x-frame-options") or "frame-ancestors" in csp:
        return Finding(id="xfo-ok", severity=Severity.PASS, title="Clickjacking protection present")
    return Finding(
        id="xfo-missing",
        severity=Severity.MEDIUM,
        title="Missing X-Frame-Options",
        description="No clickjacking protection detected.",
        recommendation="Add: X-Frame-Options: DENY or SAMEORIGIN",
    )


def _check_presence(policy: HeaderPolicy, headers: dict[str, str]) -> Finding:
    if any(headers.get(name) for name in policy.names):
        return Finding(id=policy.ok_id, severity=Severity.PASS, title=policy.ok_title)
    return Finding(
        id=policy.missing_id,
        severity=policy.severity_if_missing,
        title=policy.missing_title,
        description=policy.missing_description,
        recommendation=policy.recommendation,
    )


def _check_disclosure(headers: dict[str, str]) -> list[Finding]:
    findings: list[Finding] = []

    server = headers.get("server")
    if server:
        if _VERSION_RE.search(server):
            findings.append(
                Finding(
                    id="server-version",
                    severity=Severity.LOW,
                    title=f"Server header discloses version: {server}",
                    description="Server version information can help attackers target known vulnerabilities.",
                    recommendation="Remove version info from Server header",
                )
            )
        else:
            findings.append(
                Finding(
                    id="server-name",
                    severity=Severity.INFO,
                    title=f"Server header: {server}",
                    description="Server type disclosed (no version)",
                )
            )

    powered_by = headers.get("x-powered-by")
    if powered_by:
        findings.append(
            Finding(
                id="xpb-disclosed",
                severity=Severity.LOW,
                title=f"X-Powered-By disclosed: {powered_by}",
                description="Technology stack information leaked.",
                recommendation="Remove X-Powered-By header",
            )
        )
    return findings


def evaluate_headers(headers: dict[str, str], is_https: bool) -> list[Finding]:
    """Evaluate a response header map against the header policy.

    Args:
        headers: Response headers; names are matched case-insensitively
        is_https: Whether the response was served over HTTPS (HSTS only applies then)

    Returns:
        Findings in a fixed order: HSTS, CSP, framing, presence policies, disclosure
    """
    headers = {k.lower(): v for k, v in headers.items()}
    findings: list[Finding] = []

    if is_https:
        findings.append(_check_hsts(headers.get("strict-transport-security")))

    findings.append(_check_csp(headers.get("content-security-policy")))
    findings.append(_check_frame_protection(headers))
    findings.extend(_check_presence(policy, headers) for policy in PRESENCE_POLICIES)
    findings.extend(_check_disclosure(headers))
    return findings


class HeadersCheck(BaseCheck):
    """Check the baseline response for security headers and stack disclosure."""

    name: ClassVar[str] = "headers"

    async def run(self, ctx: ScanContext) -> list[Finding]:
        findings = evaluate_headers(ctx.baseline.headers, ctx.is_https)
        logger.debug("Header check produced %d findings for %s", len(findings), ctx.target)
        return findings
