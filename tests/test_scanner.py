"""End-to-end tests for the scan orchestrator."""

import pytest
from pydantic import ValidationError

from oxaudit.checks.base import BaseCheck
from oxaudit.core.errors import TargetUnreachable
from oxaudit.core.result import Finding, Severity
from oxaudit.core.scanner import CHECK_ORDER, ScanConfig, Scanner, normalize_target, scan
from oxaudit.http import MockClient, ProbeFailure, SimpleResponse
from oxaudit.runners.dns_runner import MockDNSRunner
from oxaudit.runners.tls_runner import MockTLSRunner, TLSTimeout


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("example.com", "https://example.com"),
        ("  example.com/path ", "https://example.com/path"),
        ("http://example.com", "http://example.com"),
        ("HTTPS://Example.com", "HTTPS://Example.com"),
        ("//example.com", "https://example.com"),
    ],
)
def test_normalize_target(raw, expected):
    assert normalize_target(raw) == expected


def test_config_orders_checks_by_declaration():
    config = ScanConfig(target="example.com", enabled_checks=["exposure", "HEADERS"])
    assert config.enabled_checks == ["headers", "exposure"]
    assert ScanConfig(target="example.com").enabled_checks == list(CHECK_ORDER)
    assert ScanConfig(target="example.com").timeout_ms == 10_000


def test_config_rejects_unknown_check():
    with pytest.raises(ValidationError, match="unknown checks"):
        ScanConfig(target="example.com", enabled_checks=["portscan"])


@pytest.mark.asyncio
async def test_full_scan(hardened_headers, healthy_handshake):
    client = MockClient(
        {
            ("GET", "https://example.com"): SimpleResponse(status=200, headers=hardened_headers),
            ("OPTIONS", "https://example.com"): SimpleResponse(status=204),
            "https://example.com/.env": SimpleResponse(status=200, body="SECRET_KEY=abc"),
        }
    )
    dns_runner = MockDNSRunner()
    config = ScanConfig(target="example.com", timeout_ms=500)

    async with Scanner(config, client=client, tls_runner=MockTLSRunner(healthy_handshake), dns_runner=dns_runner) as scanner:
        result = await scanner.scan()

    assert result.target == "https://example.com"
    assert result.hostname == "example.com"
    ids = [f.id for f in result.findings]
    # module order: headers, tls, cors, dns, exposure
    assert ids == [
        "hsts-ok", "csp-ok", "xfo-ok", "xcto-ok", "rp-ok", "pp-ok",
        "ssl-valid", "ssl-expiry-ok", "ssl-tls13",
        "cors-none",
        "dns-no-spf", "dns-no-dmarc", "dns-no-dkim",
        "env-exposed", "no-security-txt",
    ]
    # 100 - 8 - 8 - 3 - 25
    assert result.score == 56
    assert result.grade == "D"
    assert sum(result.summary.values()) == len(result.findings)
    assert result.summary["pass"] == 10
    assert result.scan_duration_ms >= 0
    assert dns_runner.queries[0] == "example.com"


@pytest.mark.asyncio
async def test_unreachable_target_raises():
    client = MockClient(default=ProbeFailure(reason="getaddrinfo failed"))
    async with Scanner(ScanConfig(target="nowhere.invalid"), client=client) as scanner:
        with pytest.raises(TargetUnreachable, match="getaddrinfo failed") as excinfo:
            await scanner.scan()

    assert excinfo.value.target == "https://nowhere.invalid"
    # no check ran after the failed baseline request
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_partial_failures_degrade_to_data():
    client = MockClient(
        {("GET", "http://example.com"): SimpleResponse(status=200)},
        default=ProbeFailure(reason="Request timeout"),
    )
    config = ScanConfig(target="http://example.com")
    async with Scanner(config, client=client, tls_runner=MockTLSRunner(TLSTimeout()), dns_runner=MockDNSRunner()) as scanner:
        result = await scanner.scan()

    ids = [f.id for f in result.findings]
    assert "no-https" in ids
    assert not any(i.startswith("cors") for i in ids)
    assert ids[-1] == "no-security-txt"


class _BrokenCheck(BaseCheck):
    name = "broken"

    async def run(self, ctx):
        raise RuntimeError("bug")


class _StaticCheck(BaseCheck):
    name = "static"

    async def run(self, ctx):
        return [Finding(id="static", severity=Severity.LOW, title="static")]


@pytest.mark.asyncio
async def test_unexpected_check_error_is_absorbed(monkeypatch):
    client = MockClient({"https://example.com": SimpleResponse(status=200)})
    scanner = Scanner(ScanConfig(target="example.com"), client=client)
    monkeypatch.setattr(scanner, "_build_checks", lambda _client: [_BrokenCheck(), _StaticCheck()])

    async with scanner:
        result = await scanner.scan()

    assert [f.id for f in result.findings] == ["static"]
    assert result.score == 97


@pytest.mark.asyncio
async def test_scan_requires_context_manager():
    with pytest.raises(RuntimeError, match="context manager"):
        await Scanner(ScanConfig(target="example.com")).scan()


@pytest.mark.asyncio
async def test_module_level_scan_helper(healthy_handshake):
    client = MockClient({("GET", "https://example.com"): SimpleResponse(status=200)})
    result = await scan(
        "example.com",
        timeout_ms=100,
        client=client,
        tls_runner=MockTLSRunner(healthy_handshake),
        dns_runner=MockDNSRunner(),
    )
    assert 0 <= result.score <= 100
    assert client.calls[0] == ("GET", "https://example.com", {})
