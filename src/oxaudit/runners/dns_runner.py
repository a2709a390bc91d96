"""DNS TXT lookup runner abstraction and concrete implementations."""

from __future__ import annotations

import logging
from typing import Protocol

import dns.asyncresolver
import dns.exception

logger = logging.getLogger(__name__)


class DNSRunner(Protocol):
    async def txt(self, name: str, timeout_ms: int) -> list[str]:
        """Return the TXT records of ``name``, each record's strings joined.

        Any lookup failure (NXDOMAIN, no answer, timeout, no nameservers)
        yields an empty list.
        """
        ...


class DnsPythonRunner:
    """Runner that resolves TXT records with dnspython's async resolver."""

    def __init__(self, nameservers: list[str] | None = None) -> None:
        self._nameservers = nameservers
        self._resolver: dns.asyncresolver.Resolver | None = None

    def _get_resolver(self) -> dns.asyncresolver.Resolver:
        if self._resolver is None:
            resolver = dns.asyncresolver.Resolver(configure=self._nameservers is None)
            if self._nameservers:
                resolver.nameservers = self._nameservers
            self._resolver = resolver
        return self._resolver

    async def txt(self, name: str, timeout_ms: int) -> list[str]:
        try:
            answers = await self._get_resolver().resolve(name, "TXT", lifetime=timeout_ms / 1000)
        except dns.exception.DNSException as e:
            logger.debug("TXT lookup for %s failed: %s", name, e)
            return []

        records = []
        for rdata in answers:
            records.append(b"".join(rdata.strings).decode("utf-8", errors="replace"))
        return records


class MockDNSRunner:
    """Mock runner answering from a mapping of name -> TXT records."""

    def __init__(self, records: dict[str, list[str]] | None = None) -> None:
        self._records = records or {}
        self.queries: list[str] = []

    async def txt(self, name: str, timeout_ms: int) -> list[str]:
        self.queries.append(name)
        return list(self._records.get(name, []))
