"""Sensitive path exposure check.

Probes a fixed table of well-known paths in small sequential batches and
reports each path that answers 200 with content matching its signature.
The table is plain data: adding a path does not touch the probing loop.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from oxaudit.checks.base import BaseCheck
from oxaudit.core.result import Finding, Severity
from oxaudit.http import PATH_PROBE_BODY_LIMIT, ProbeFailure

if TYPE_CHECKING:
    from oxaudit.checks.base import ScanContext
    from oxaudit.http import HTTPClientProtocol

logger = logging.getLogger(__name__)

BATCH_SIZE = 5
SECURITY_TXT_IDS = frozenset({"security-txt", "security-txt-root"})


class SensitivePath(BaseModel):
    """A path to probe and the body signature that confirms real exposure."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., pattern=r"^/")
    id: str
    title: str
    severity: Severity
    signature: re.Pattern[str]

    def matches(self, status: int, body: str) -> bool:
        return status == 200 and self.signature.search(body.strip()) is not None

    def to_finding(self) -> Finding:
        if not self.severity.actionable:
            return Finding(
                id=self.id,
                severity=self.severity,
                title=self.title,
                description=f"Found at {self.path}",
            )
        return Finding(
            id=self.id,
            severity=self.severity,
            title=self.title,
            description=f"{self.path} is accessible and contains sensitive data.",
            recommendation=f"Block access to {self.path}",
        )


SENSITIVE_PATHS: tuple[SensitivePath, ...] = (
    SensitivePath(
        path="/.env",
        id="env-exposed",
        title=".env file exposed",
        severity=Severity.CRITICAL,
        signature=r"(?i)DB_|API_KEY|SECRET|PASSWORD|TOKEN",
    ),
    SensitivePath(
        path="/.git/config",
        id="git-exposed",
        title=".git directory exposed",
        severity=Severity.CRITICAL,
        signature=r"\[core\]|\[remote",
    ),
    SensitivePath(
        path="/.git/HEAD",
        id="git-head-exposed",
        title=".git/HEAD exposed",
        severity=Severity.CRITICAL,
        signature=r"^ref: refs/",
    ),
    SensitivePath(
        path="/wp-config.php.bak",
        id="wp-config-bak",
        title="WordPress config backup exposed",
        severity=Severity.CRITICAL,
        signature=r"DB_NAME|DB_PASSWORD",
    ),
    SensitivePath(
        path="/.DS_Store",
        id="ds-store",
        title=".DS_Store file exposed",
        severity=Severity.LOW,
        signature=r"Bud1",
    ),
    SensitivePath(
        path="/server-status",
        id="server-status",
        title="Apache server-status exposed",
        severity=Severity.MEDIUM,
        signature=r"Apache Server Status",
    ),
    SensitivePath(
        path="/phpinfo.php",
        id="phpinfo",
        title="phpinfo() exposed",
        severity=Severity.HIGH,
        signature=r"phpinfo|PHP Version",
    ),
    SensitivePath(
        path="/api/docs",
        id="api-docs",
        title="API documentation publicly accessible",
        severity=Severity.LOW,
        signature=r"swagger|openapi|API",
    ),
    SensitivePath(
        path="/swagger.json",
        id="swagger-json",
        title="Swagger JSON exposed",
        severity=Severity.MEDIUM,
        signature=r'"swagger"',
    ),
    SensitivePath(
        path="/robots.txt",
        id="robots-secrets",
        title="Sensitive paths in robots.txt",
        severity=Severity.LOW,
        signature=r"(?i)admin|secret|backup|\.sql|private",
    ),
    SensitivePath(
        path="/sitemap.xml",
        id="sitemap",
        title="Sitemap found",
        severity=Severity.INFO,
        signature=r"<urlset",
    ),
    SensitivePath(
        path="/.well-known/security.txt",
        id="security-txt",
        title="security.txt present",
        severity=Severity.PASS,
        signature=r"(?i)Contact:",
    ),
    SensitivePath(
        path="/security.txt",
        id="security-txt-root",
        title="security.txt present (root)",
        severity=Severity.PASS,
        signature=r"(?i)Contact:",
    ),
)


def _missing_security_txt() -> Finding:
    return Finding(
        id="no-security-txt",
        severity=Severity.INFO,
        title="No security.txt found",
        description=(
            "Consider adding a security.txt for responsible disclosure "
            "at /.well-known/security.txt with contact info."
        ),
    )


class ExposureCheck(BaseCheck):
    """Probe well-known sensitive paths of the target."""

    name: ClassVar[str] = "exposure"

    def __init__(
        self,
        client: HTTPClientProtocol,
        paths: tuple[SensitivePath, ...] = SENSITIVE_PATHS,
        batch_size: int = BATCH_SIZE,
    ) -> None:
        self.client = client
        self.paths = paths
        self.batch_size = batch_size

    async def run(self, ctx: ScanContext) -> list[Finding]:
        base = ctx.target.rstrip("/")
        findings: list[Finding] = []

        # batches run one after another; gather keeps table order within a batch
        for start in range(0, len(self.paths), self.batch_size):
            batch = self.paths[start : start + self.batch_size]
            results = await asyncio.gather(
                *(self._probe(entry, base, ctx.timeout_ms) for entry in batch)
            )
            findings.extend(f for f in results if f is not None)

        if not any(f.id in SECURITY_TXT_IDS for f in findings):
            findings.append(_missing_security_txt())
        return findings

    async def _probe(self, entry: SensitivePath, base: str, timeout_ms: int) -> Finding | None:
        url = f"{base}{entry.path}"
        result = await self.client.request(
            "GET", url, timeout_ms=timeout_ms, max_body=PATH_PROBE_BODY_LIMIT
        )
        if isinstance(result, ProbeFailure):
            logger.debug("Path probe %s failed: %s", url, result.reason)
            return None
        if entry.matches(result.status, result.body):
            return entry.to_finding()
        return None
