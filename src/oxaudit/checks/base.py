"""Shared contract for check modules."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from oxaudit.core.result import Finding
    from oxaudit.http import SimpleResponse


@dataclass(frozen=True)
class ScanContext:
    """Everything a check may need about the target of one scan."""

    target: str
    scheme: str
    hostname: str
    port: int | None
    baseline: SimpleResponse
    timeout_ms: int

    @property
    def is_https(self) -> bool:
        return self.scheme == "https"


class BaseCheck(ABC):
    """Every check turns probe evidence into zero or more findings.

    ``run`` must not raise for network or parsing problems: inconclusive
    evidence yields no finding (or a single INFO/LOW one), never a guess.
    """

    name: ClassVar[str] = "unnamed"

    @abstractmethod
    async def run(self, ctx: ScanContext) -> list[Finding]:
        ...
