"""Core scanning engine components."""

from oxaudit.core.errors import OxAuditError, TargetUnreachable
from oxaudit.core.result import Finding, ScanResult, Severity
from oxaudit.core.scanner import ScanConfig, Scanner
from oxaudit.core.scoring import calculate_score, score_to_grade

__all__ = [
    "Finding",
    "OxAuditError",
    "ScanConfig",
    "ScanResult",
    "Scanner",
    "Severity",
    "TargetUnreachable",
    "calculate_score",
    "score_to_grade",
]
