"""Exceptions raised by the scanning core."""


class OxAuditError(Exception):
    """Base class for scanner errors."""


class TargetUnreachable(OxAuditError):
    """The baseline request to the target failed, so no scan can be produced."""

    def __init__(self, target: str, reason: str) -> None:
        self.target = target
        self.reason = reason
        super().__init__(f"Cannot reach {target}: {reason}")
