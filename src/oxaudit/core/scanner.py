"""Main scanner orchestration engine."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator

from oxaudit import __version__
from oxaudit.checks import CORSCheck, DNSCheck, ExposureCheck, HeadersCheck, ScanContext, TLSCheck
from oxaudit.core.errors import TargetUnreachable
from oxaudit.core.result import ScanResult
from oxaudit.http import AiohttpAdapter, ProbeFailure, create_session

if TYPE_CHECKING:
    import aiohttp

    from oxaudit.checks import BaseCheck
    from oxaudit.core.result import Finding
    from oxaudit.http import HTTPClientProtocol
    from oxaudit.runners import DNSRunner, TLSRunner

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 10_000

# declaration order is also the order of findings in the result
CHECK_ORDER: tuple[str, ...] = ("headers", "tls", "cors", "dns", "exposure")


def normalize_target(target: str) -> str:
    """Turn a bare hostname or URL into an absolute URL, defaulting to https."""
    target = target.strip()
    lowered = target.lower()
    if lowered.startswith(("http://", "https://")):
        return target
    if target.startswith("//"):
        return f"https:{target}"
    return f"https://{target}"


class ScanConfig(BaseModel):
    """Configuration for a security scan."""

    target: str = Field(..., min_length=1)
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, ge=1, le=600_000)
    user_agent: str = f"oxaudit/{__version__}"
    enabled_checks: list[str] = Field(default_factory=lambda: list(CHECK_ORDER))

    @field_validator("enabled_checks")
    @classmethod
    def validate_checks(cls, v: list[str]) -> list[str]:
        names = [name.lower() for name in v]
        unknown = sorted(set(names) - set(CHECK_ORDER))
        if unknown:
            msg = f"unknown checks {unknown}; enabled_checks must be drawn from {list(CHECK_ORDER)}"
            raise ValueError(msg)
        return [name for name in CHECK_ORDER if name in names]


class Scanner:
    """Main scanner orchestrator.

    Fetches the target once, then runs every enabled check concurrently and
    folds their findings into a single ``ScanResult``. A scanner owns its HTTP
    session, so concurrent scans never share connections or state.
    """

    def __init__(
        self,
        config: ScanConfig,
        client: HTTPClientProtocol | None = None,
        tls_runner: TLSRunner | None = None,
        dns_runner: DNSRunner | None = None,
    ) -> None:
        """Initialize scanner with configuration.

        Args:
            config: Scan configuration parameters
            client: HTTP client to use instead of an aiohttp session (tests)
            tls_runner: Handshake runner for the TLS check
            dns_runner: TXT lookup runner for the DNS check
        """
        self.config = config
        self.tls_runner = tls_runner
        self.dns_runner = dns_runner
        self._client = client
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> Scanner:
        """Async context manager entry."""
        if self._client is None:
            self._session = create_session(self.config.user_agent)
            self._client = AiohttpAdapter(self._session)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._session:
            await self._session.close()
            self._session = None
            self._client = None

    def _build_checks(self, client: HTTPClientProtocol) -> list[BaseCheck]:
        available: dict[str, BaseCheck] = {
            "headers": HeadersCheck(),
            "tls": TLSCheck(runner=self.tls_runner),
            "cors": CORSCheck(client),
            "dns": DNSCheck(runner=self.dns_runner),
            "exposure": ExposureCheck(client),
        }
        return [available[name] for name in self.config.enabled_checks]

    async def scan(self) -> ScanResult:
        """Execute the complete scan.

        Returns:
            ScanResult containing all findings, the score and the grade

        Raises:
            RuntimeError: If scanner not initialized with context manager
            TargetUnreachable: If the baseline request to the target fails
        """
        client = self._client
        if client is None:
            raise RuntimeError("Scanner must be used as async context manager")

        url = normalize_target(self.config.target)
        timeout_ms = self.config.timeout_ms
        timestamp = datetime.now(timezone.utc)
        start = time.monotonic()

        parts = urlsplit(url)
        try:
            port = parts.port
        except ValueError as e:
            raise TargetUnreachable(url, str(e)) from e
        if not parts.hostname:
            raise TargetUnreachable(url, "no hostname in target")

        logger.info("Starting scan of %s", url)

        baseline = await client.request("GET", url, timeout_ms=timeout_ms)
        if isinstance(baseline, ProbeFailure):
            raise TargetUnreachable(url, baseline.reason)

        ctx = ScanContext(
            target=url,
            scheme=parts.scheme.lower(),
            hostname=parts.hostname,
            port=port,
            baseline=baseline,
            timeout_ms=timeout_ms,
        )

        checks = self._build_checks(client)
        results = await asyncio.gather(*(check.run(ctx) for check in checks), return_exceptions=True)

        findings: list[Finding] = []
        for check, check_result in zip(checks, results):
            if isinstance(check_result, Exception):
                logger.error("Check %s failed unexpectedly: %s", check.name, check_result)
                continue
            if isinstance(check_result, BaseException):
                raise check_result
            findings.extend(check_result)

        result = ScanResult.build(
            target=url,
            hostname=parts.hostname,
            timestamp=timestamp,
            scan_duration_ms=int((time.monotonic() - start) * 1000),
            findings=findings,
        )
        logger.info(
            "Scan of %s completed: %d findings, score %d (%s)",
            url,
            len(result.findings),
            result.score,
            result.grade,
        )
        return result


async def scan(
    target: str,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    **kwargs,
) -> ScanResult:
    """Scan ``target`` with a fresh scanner. Extra keyword arguments go to ``Scanner``."""
    config = ScanConfig(target=target, timeout_ms=timeout_ms)
    async with Scanner(config, **kwargs) as scanner:
        return await scanner.scan()
