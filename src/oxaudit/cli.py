"""Command-line interface for 0xAudit."""

import asyncio
import logging
from pathlib import Path
import sys

import click
from pydantic import ValidationError

from oxaudit import __version__
from oxaudit.core.errors import TargetUnreachable
from oxaudit.core.result import ScanResult
from oxaudit.core.scanner import CHECK_ORDER, DEFAULT_TIMEOUT_MS, ScanConfig, Scanner
from oxaudit.report import FORMATS, exit_code_for, render

EXIT_UNREACHABLE = 2
EXIT_INTERRUPTED = 130


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """0xAudit - External Security Posture Scanner.

    Check a site's security headers, TLS certificate, CORS policy, email DNS
    records and exposed sensitive files, and grade the result.
    """


@cli.command()
@click.argument("target", type=str)
@click.option(
    "--timeout",
    "-t",
    default=DEFAULT_TIMEOUT_MS,
    type=click.IntRange(min=1),
    envvar="OXAUDIT_TIMEOUT",
    help="Per-request timeout in milliseconds",
    show_default=True,
)
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(FORMATS, case_sensitive=False),
    default="text",
    envvar="OXAUDIT_FORMAT",
    help="Output format",
    show_default=True,
)
@click.option(
    "--checks",
    "-c",
    multiple=True,
    type=click.Choice(CHECK_ORDER, case_sensitive=False),
    help="Specific checks to run (default: all)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the report to a file instead of stdout",
)
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def scan(
    target: str,
    timeout: int,
    fmt: str,
    checks: tuple[str, ...],
    output: Path | None,
    no_color: bool,
    verbose: bool,
) -> None:
    """Scan TARGET, a hostname or URL (e.g., example.com or https://example.com).

    Exits with 0 for a score of 70 or more, 1 for 40-69 and 2 below 40 or
    when the target cannot be reached.
    """
    setup_logging(verbose)

    try:
        config = ScanConfig(
            target=target,
            timeout_ms=timeout,
            enabled_checks=list(checks) if checks else list(CHECK_ORDER),
        )
    except ValidationError as e:
        click.echo(f"Error: invalid configuration: {e}", err=True)
        sys.exit(1)

    try:
        result = asyncio.run(run_scan(config))
    except TargetUnreachable as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_UNREACHABLE)
    except KeyboardInterrupt:
        click.echo("\nScan interrupted by user", err=True)
        sys.exit(EXIT_INTERRUPTED)

    report = render(result, fmt.lower(), color=not no_color and output is None)
    if output:
        output.write_text(report)
        click.echo(f"Results written to {output}")
    else:
        click.echo(report)

    sys.exit(exit_code_for(result.score))


async def run_scan(config: ScanConfig) -> ScanResult:
    """Execute the scan asynchronously.

    Args:
        config: Validated scan configuration

    Returns:
        Complete scan results
    """
    async with Scanner(config) as scanner:
        return await scanner.scan()


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"0xAudit version {__version__}")


if __name__ == "__main__":
    cli()
