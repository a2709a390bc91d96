"""Renderers for scan results: plain/colored text, markdown and JSON."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import click

from oxaudit.core.result import Severity

if TYPE_CHECKING:
    from oxaudit.core.result import ScanResult

SEVERITY_COLORS = {
    Severity.CRITICAL: "red",
    Severity.HIGH: "bright_red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "cyan",
    Severity.INFO: "blue",
    Severity.PASS: "green",
}

GRADE_COLORS = {"A": "green", "B": "green", "C": "yellow", "D": "bright_red", "F": "red"}

FORMATS = ("text", "json", "md")


def render_json(result: ScanResult) -> str:
    return json.dumps(result.model_dump(mode="json"), indent=2)


def render_text(result: ScanResult, color: bool = True) -> str:
    """Render a human-readable report, findings listed in result order."""

    def style(text: str, fg: str, bold: bool = False) -> str:
        return click.style(text, fg=fg, bold=bold) if color else text

    lines: list[str] = []
    lines.append("=" * 80)
    lines.append("SECURITY POSTURE REPORT")
    lines.append("=" * 80)
    lines.append(f"Target: {result.target}")
    lines.append(f"Scanned: {result.timestamp.isoformat()}")
    lines.append(f"Duration: {result.scan_duration_ms}ms")
    lines.append(
        f"Score: {result.score}/100  Grade: "
        + style(result.grade, GRADE_COLORS[result.grade], bold=True)
    )
    lines.append("")

    lines.append("SUMMARY")
    lines.append("-" * 80)
    for severity_name, count in result.summary.items():
        lines.append(f"  {severity_name.upper():12} {count}")
    lines.append("")

    lines.append("FINDINGS")
    lines.append("-" * 80)
    for finding in result.findings:
        tag = style(f"[{finding.severity.value.upper()}]", SEVERITY_COLORS[finding.severity])
        lines.append(f"{tag} {finding.title}")
        if finding.description:
            lines.append(f"    {finding.description}")
        if finding.recommendation:
            lines.append(f"    Fix: {finding.recommendation}")

    lines.append("")
    lines.append("=" * 80)
    return "\n".join(lines)


def _md_cell(text: str | None) -> str:
    return (text or "").replace("|", "\\|").replace("\n", " ")


def render_markdown(result: ScanResult) -> str:
    lines = [
        f"# Security Posture Report: {result.hostname}",
        "",
        f"- **Target:** {result.target}",
        f"- **Scanned:** {result.timestamp.isoformat()}",
        f"- **Score:** {result.score}/100",
        f"- **Grade:** {result.grade}",
        "",
        "## Summary",
        "",
        "| Severity | Count |",
        "| --- | --- |",
    ]
    lines.extend(f"| {name.upper()} | {count} |" for name, count in result.summary.items())
    lines.extend(
        [
            "",
            "## Findings",
            "",
            "| Severity | ID | Finding | Recommendation |",
            "| --- | --- | --- | --- |",
        ]
    )
    lines.extend(
        f"| {f.severity.value.upper()} | `{f.id}` | {_md_cell(f.title)} | {_md_cell(f.recommendation)} |"
        for f in result.findings
    )
    return "\n".join(lines) + "\n"


def render(result: ScanResult, fmt: str = "text", color: bool = True) -> str:
    """Render ``result`` in one of ``FORMATS``."""
    if fmt == "json":
        return render_json(result)
    if fmt == "md":
        return render_markdown(result)
    if fmt == "text":
        return render_text(result, color=color)
    msg = f"Unknown report format: {fmt}"
    raise ValueError(msg)


def exit_code_for(score: int) -> int:
    """Map a score to a process exit status: 0 (>= 70), 1 (40-69), 2 (< 40)."""
    if score >= 70:
        return 0
    if score >= 40:
        return 1
    return 2
