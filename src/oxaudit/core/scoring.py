"""Score and grade computation for a list of findings.

The score starts at 100 and every finding deducts a fixed penalty for its
severity. The result is clamped to ``[0, 100]``, so the function is
order-independent and never increases as penalised findings are added.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from oxaudit.core.severity import Severity

if TYPE_CHECKING:
    from collections.abc import Iterable

    from oxaudit.core.result import Finding

MAX_SCORE = 100
MIN_SCORE = 0

SEVERITY_PENALTIES: dict[Severity, int] = {
    Severity.CRITICAL: 25,
    Severity.HIGH: 15,
    Severity.MEDIUM: 8,
    Severity.LOW: 3,
    Severity.INFO: 0,
    Severity.PASS: 0,
}

# (lower bound inclusive, grade), checked top-down
GRADE_THRESHOLDS: tuple[tuple[int, str], ...] = (
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (50, "D"),
)
FAILING_GRADE = "F"


def calculate_score(findings: Iterable[Finding]) -> int:
    """Deduct the severity penalty of every finding from 100 and clamp."""
    score = MAX_SCORE
    for finding in findings:
        score -= SEVERITY_PENALTIES[finding.severity]
    return max(MIN_SCORE, min(MAX_SCORE, score))


def score_to_grade(score: int) -> str:
    """Map a score to a letter grade (A, B, C, D or F)."""
    for floor, grade in GRADE_THRESHOLDS:
        if score >= floor:
            return grade
    return FAILING_GRADE


def summarize(findings: Iterable[Finding]) -> dict[str, int]:
    """Count findings per severity bucket; every bucket is always present."""
    counts = {severity.value: 0 for severity in Severity}
    for finding in findings:
        counts[finding.severity.value] += 1
    return counts
