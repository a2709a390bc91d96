"""Data models for findings and scan results."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from oxaudit.core.scoring import calculate_score, score_to_grade, summarize
from oxaudit.core.severity import Severity

if TYPE_CHECKING:
    from collections.abc import Iterable

__all__ = ["Finding", "ScanResult", "Severity"]


class Finding(BaseModel):
    """One immutable piece of evidence about the target's security posture."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Stable identifier of the tested condition")
    severity: Severity = Field(..., description="Severity level")
    title: str = Field(..., min_length=1, description="Short human summary")
    description: str | None = Field(None, description="Longer explanation")
    recommendation: str | None = Field(None, description="Recommended fix")

    @model_validator(mode="after")
    def _recommendation_only_when_actionable(self) -> Finding:
        if self.recommendation is not None and not self.severity.actionable:
            msg = f"{self.severity.value} finding '{self.id}' cannot carry a recommendation"
            raise ValueError(msg)
        return self


class ScanResult(BaseModel):
    """Complete, immutable result of one scan."""

    model_config = ConfigDict(frozen=True)

    target: str = Field(..., description="Normalized absolute URL that was scanned")
    hostname: str
    timestamp: datetime = Field(..., description="Scan start time")
    scan_duration_ms: int = Field(..., ge=0)
    score: int = Field(..., ge=0, le=100)
    grade: Literal["A", "B", "C", "D", "F"]
    findings: tuple[Finding, ...] = ()
    summary: dict[str, int] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _summary_matches_findings(self) -> ScanResult:
        if self.summary != summarize(self.findings):
            msg = "summary counts do not match findings"
            raise ValueError(msg)
        return self

    @classmethod
    def build(
        cls,
        *,
        target: str,
        hostname: str,
        timestamp: datetime,
        scan_duration_ms: int,
        findings: Iterable[Finding],
    ) -> ScanResult:
        """Assemble a result, deriving score, grade and summary from ``findings``."""
        ordered = tuple(findings)
        score = calculate_score(ordered)
        return cls(
            target=target,
            hostname=hostname,
            timestamp=timestamp,
            scan_duration_ms=scan_duration_ms,
            score=score,
            grade=score_to_grade(score),
            findings=ordered,
            summary=summarize(ordered),
        )

    def get_by_severity(self, severity: Severity) -> list[Finding]:
        """Filter findings by severity level."""
        return [f for f in self.findings if f.severity == severity]

    def get_by_id(self, finding_id: str) -> Finding | None:
        return next((f for f in self.findings if f.id == finding_id), None)
