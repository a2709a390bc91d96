"""Runners package: network runner abstractions and mocks.

Runners perform the handshake-level and DNS lookups that the HTTP transport
cannot. They are kept separate from the checks so that checks stay pure
policy and tests can inject canned results.
"""

from .dns_runner import DNSRunner, DnsPythonRunner, MockDNSRunner
from .tls_runner import (
    AsyncioTLSRunner,
    MockTLSRunner,
    TLSError,
    TLSHandshake,
    TLSProbeResult,
    TLSRunner,
    TLSTimeout,
)

__all__ = [
    "AsyncioTLSRunner",
    "DNSRunner",
    "DnsPythonRunner",
    "MockDNSRunner",
    "MockTLSRunner",
    "TLSError",
    "TLSHandshake",
    "TLSProbeResult",
    "TLSRunner",
    "TLSTimeout",
]
