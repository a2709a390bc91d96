"""Email authentication DNS check (SPF, DMARC and DKIM)."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, ClassVar

from oxaudit.checks.base import BaseCheck
from oxaudit.core.result import Finding, Severity
from oxaudit.runners.dns_runner import DnsPythonRunner

if TYPE_CHECKING:
    from oxaudit.checks.base import ScanContext
    from oxaudit.runners.dns_runner import DNSRunner

logger = logging.getLogger(__name__)

# probed in order, stopping at the first selector that resolves
DKIM_SELECTORS: tuple[str, ...] = ("default", "google", "selector1", "selector2", "k1", "mail")

_DMARC_NONE_RE = re.compile(r"(?:^|;)\s*p\s*=\s*none\s*(?:;|$)", re.I)


def first_record(records: list[str], prefix: str) -> str | None:
    """Return the first record starting with ``prefix``."""
    return next((r for r in records if r.startswith(prefix)), None)


def evaluate_spf(record: str | None) -> Finding:
    if record is None:
        return Finding(
            id="dns-no-spf",
            severity=Severity.MEDIUM,
            title="No SPF record",
            description="No SPF record found. Domain can be spoofed for phishing.",
            recommendation="Add a TXT record with SPF policy (v=spf1 ...)",
        )
    if "+all" in record.split():
        return Finding(
            id="dns-spf-permissive",
            severity=Severity.HIGH,
            title="SPF too permissive (+all)",
            description="SPF record allows all senders.",
            recommendation="Change +all to ~all or -all",
        )
    return Finding(id="dns-spf-ok", severity=Severity.PASS, title="SPF record configured")


def evaluate_dmarc(record: str | None) -> Finding:
    if record is None:
        return Finding(
            id="dns-no-dmarc",
            severity=Severity.MEDIUM,
            title="No DMARC record",
            description="No DMARC policy found. Email spoofing protection is incomplete.",
            recommendation="Add a DMARC TXT record at _dmarc.domain",
        )
    if _DMARC_NONE_RE.search(record):
        return Finding(
            id="dns-dmarc-none",
            severity=Severity.LOW,
            title='DMARC policy is "none" (monitoring only)',
            description="DMARC is set to none, so failing emails are not rejected.",
            recommendation="Upgrade to p=quarantine or p=reject",
        )
    return Finding(id="dns-dmarc-ok", severity=Severity.PASS, title="DMARC policy configured")


def evaluate_dkim(selector: str | None) -> Finding:
    if selector is None:
        return Finding(
            id="dns-no-dkim",
            severity=Severity.LOW,
            title="No DKIM record found (common selectors)",
            description=(
                "Could not find DKIM records under common selectors "
                f"({', '.join(DKIM_SELECTORS)}). DKIM may still be configured "
                "under a custom selector."
            ),
            recommendation="Configure DKIM for email authentication",
        )
    return Finding(
        id="dns-dkim-ok",
        severity=Severity.PASS,
        title="DKIM record found",
        description=f"Selector '{selector}' publishes a DKIM record",
    )


class DNSCheck(BaseCheck):
    """Look up SPF, DMARC and DKIM TXT records for the target hostname."""

    name: ClassVar[str] = "dns"

    def __init__(self, runner: DNSRunner | None = None) -> None:
        self.runner = runner

    async def run(self, ctx: ScanContext) -> list[Finding]:
        runner = self.runner
        if runner is None:
            runner = DnsPythonRunner()

        domain = ctx.hostname.rstrip(".")

        spf = first_record(await runner.txt(domain, ctx.timeout_ms), "v=spf1")
        dmarc = first_record(await runner.txt(f"_dmarc.{domain}", ctx.timeout_ms), "v=DMARC1")
        selector = await self._find_dkim_selector(runner, domain, ctx.timeout_ms)

        return [evaluate_spf(spf), evaluate_dmarc(dmarc), evaluate_dkim(selector)]

    async def _find_dkim_selector(self, runner: DNSRunner, domain: str, timeout_ms: int) -> str | None:
        for selector in DKIM_SELECTORS:
            if await runner.txt(f"{selector}._domainkey.{domain}", timeout_ms):
                logger.debug("DKIM selector %s found for %s", selector, domain)
                return selector
        return None
