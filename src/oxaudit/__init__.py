"""0xAudit - External Security Posture Scanner.

Probes a web origin's response headers, TLS setup, CORS policy, email
authentication DNS records and well-known sensitive paths, and condenses
the findings into a 0-100 score and a letter grade.
"""

__version__ = "1.0.0"
__author__ = "0xAudit Team"

from oxaudit.core.errors import TargetUnreachable
from oxaudit.core.result import Finding, ScanResult, Severity
from oxaudit.core.scanner import ScanConfig, Scanner, scan

__all__ = ["Finding", "ScanConfig", "ScanResult", "Scanner", "Severity", "TargetUnreachable", "scan"]
