"""Tests for the email authentication DNS check."""

import pytest

from oxaudit.checks.dns import DKIM_SELECTORS, DNSCheck, evaluate_dmarc, evaluate_spf
from oxaudit.core.result import Severity
from oxaudit.runners.dns_runner import DnsPythonRunner, MockDNSRunner


def _by_id(findings):
    return {f.id: f for f in findings}


@pytest.mark.asyncio
async def test_nothing_resolvable(context_factory):
    runner = MockDNSRunner()
    findings = await DNSCheck(runner=runner).run(context_factory())

    by_id = _by_id(findings)
    assert set(by_id) == {"dns-no-spf", "dns-no-dmarc", "dns-no-dkim"}
    assert by_id["dns-no-spf"].severity == Severity.MEDIUM
    assert by_id["dns-no-dmarc"].severity == Severity.MEDIUM
    assert by_id["dns-no-dkim"].severity == Severity.LOW
    assert not any(f.severity == Severity.PASS for f in findings)
    # DKIM absence cannot be proven, only "not found under common selectors"
    assert "common selectors" in by_id["dns-no-dkim"].title
    assert len(runner.queries) == 2 + len(DKIM_SELECTORS)


@pytest.mark.asyncio
async def test_fully_configured_domain(context_factory):
    runner = MockDNSRunner(
        {
            "example.com": ["google-site-verification=abc", "v=spf1 include:_spf.google.com ~all"],
            "_dmarc.example.com": ["v=DMARC1; p=reject; rua=mailto:d@example.com"],
            "selector1._domainkey.example.com": ["v=DKIM1; k=rsa; p=MIIB"],
        }
    )
    findings = await DNSCheck(runner=runner).run(context_factory())

    assert [f.id for f in findings] == ["dns-spf-ok", "dns-dmarc-ok", "dns-dkim-ok"]
    # lookups stop at the first selector that resolves
    assert runner.queries[-1] == "selector1._domainkey.example.com"
    assert "selector2._domainkey.example.com" not in runner.queries


def test_spf_plus_all_is_permissive():
    finding = evaluate_spf("v=spf1 ip4:192.0.2.0/24 +all")
    assert finding.id == "dns-spf-permissive"
    assert finding.severity == Severity.HIGH


@pytest.mark.parametrize(
    ("record", "expected_id"),
    [
        ("v=DMARC1; p=none; rua=mailto:a@example.com", "dns-dmarc-none"),
        ("v=DMARC1;p=none", "dns-dmarc-none"),
        ("v=DMARC1; p=quarantine; sp=none", "dns-dmarc-ok"),
        (None, "dns-no-dmarc"),
    ],
)
def test_dmarc_policy(record, expected_id):
    assert evaluate_dmarc(record).id == expected_id


@pytest.mark.asyncio
async def test_record_must_start_with_version_tag(context_factory):
    runner = MockDNSRunner({"example.com": ["spf v=spf1 -all"], "_dmarc.example.com": ["p=reject"]})
    ids = {f.id for f in await DNSCheck(runner=runner).run(context_factory())}
    assert {"dns-no-spf", "dns-no-dmarc"} <= ids


@pytest.mark.asyncio
async def test_resolver_failure_reads_as_absent():
    # nothing answers DNS on the loopback port, so the lookup fails
    runner = DnsPythonRunner(nameservers=["127.0.0.1"])

    assert await runner.txt("example.com", 300) == []
    assert await runner.txt("_dmarc.example.com", 300) == []


@pytest.mark.asyncio
async def test_check_with_failing_resolver_reports_missing_records(context_factory):
    runner = DnsPythonRunner(nameservers=["127.0.0.1"])
    findings = await DNSCheck(runner=runner).run(context_factory(timeout_ms=200))

    assert {f.id for f in findings} == {"dns-no-spf", "dns-no-dmarc", "dns-no-dkim"}
