"""Check modules."""

from oxaudit.checks.base import BaseCheck, ScanContext
from oxaudit.checks.cors import CORSCheck
from oxaudit.checks.dns import DNSCheck
from oxaudit.checks.exposure import ExposureCheck
from oxaudit.checks.headers import HeadersCheck
from oxaudit.checks.tls import TLSCheck

__all__ = [
    "BaseCheck",
    "CORSCheck",
    "DNSCheck",
    "ExposureCheck",
    "HeadersCheck",
    "ScanContext",
    "TLSCheck",
]
