"""Finding severity levels."""

from enum import Enum


class Severity(str, Enum):
    """Severity of a finding, most severe first.

    INFO and PASS both carry no score penalty: PASS asserts that a check
    affirmatively succeeded, INFO is neutral observational data.
    """

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"
    PASS = "pass"

    @property
    def actionable(self) -> bool:
        return self not in (Severity.INFO, Severity.PASS)
