"""Setup diagnostics for the uploader.

Checks the local environment before an upload: .env presence, required
variables, credential format, region, and whether the bucket endpoint
answers over HTTPS. Results are rendered as a Rich table.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import httpx
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from s3_uploader.config import DEFAULT_REGION


class CheckStatus(Enum):
    """Outcome of a single diagnostic check."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


@dataclass
class CheckResult:
    """Result of one diagnostic check."""

    name: str
    status: CheckStatus
    detail: str


REQUIRED_VARS = [
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_REGION",
    "S3_BUCKET_NAME",
]

# Prefixes of long-term and temporary AWS access key IDs
ACCESS_KEY_PREFIXES = ("AKIA", "ASIA")

MIN_SECRET_LENGTH = 40

ENDPOINT_TIMEOUT = 5.0


def mask_value(name: str, value: str) -> str:
    """Hide most of a credential for display."""
    if name == "AWS_ACCESS_KEY_ID":
        return f"{value[:8]}...{value[-4:]}"
    if name == "AWS_SECRET_ACCESS_KEY":
        return f"***{value[-4:]}"
    return value


def check_env_file(env_file: str = ".env") -> CheckResult:
    if Path(env_file).exists():
        return CheckResult(".env file", CheckStatus.PASS, f"{env_file} found")
    return CheckResult(".env file", CheckStatus.WARN, f"{env_file} not found")


def check_required_vars(environ: dict[str, str]) -> list[CheckResult]:
    results = []
    for name in REQUIRED_VARS:
        value = environ.get(name)
        if value:
            results.append(CheckResult(name, CheckStatus.PASS, mask_value(name, value)))
        elif name == "AWS_REGION":
            results.append(CheckResult(
                name, CheckStatus.WARN, f"not set, defaulting to {DEFAULT_REGION}"
            ))
        else:
            results.append(CheckResult(name, CheckStatus.FAIL, "missing"))
    return results


def check_access_key_format(access_key: Optional[str]) -> Optional[CheckResult]:
    if not access_key:
        return None
    name = "Access key format"
    if " " in access_key:
        return CheckResult(name, CheckStatus.FAIL, "contains spaces")
    if not access_key.startswith(ACCESS_KEY_PREFIXES):
        return CheckResult(name, CheckStatus.WARN, "does not start with AKIA or ASIA")
    return CheckResult(name, CheckStatus.PASS, "looks correct")


def check_secret_key_format(secret_key: Optional[str]) -> Optional[CheckResult]:
    if not secret_key:
        return None
    name = "Secret key format"
    if " " in secret_key:
        return CheckResult(name, CheckStatus.FAIL, "contains spaces")
    if len(secret_key) < MIN_SECRET_LENGTH:
        return CheckResult(name, CheckStatus.WARN, "seems too short")
    return CheckResult(name, CheckStatus.PASS, "length looks correct")


def check_endpoint(
    bucket: Optional[str],
    region: str,
    endpoint_suffix: str = "amazonaws.com",
    http_client: Optional[httpx.Client] = None,
) -> CheckResult:
    """Check that the bucket endpoint answers HTTPS requests.

    Any HTTP response counts as reachable: 403 and 404 are normal for an
    unauthenticated request.
    """
    name = "Endpoint reachable"
    if not bucket:
        return CheckResult(name, CheckStatus.WARN, "skipped, bucket unknown")

    url = f"https://{bucket}.s3.{region}.{endpoint_suffix}/"
    client = http_client or httpx.Client(timeout=ENDPOINT_TIMEOUT)
    try:
        response = client.head(url)
    except httpx.HTTPError as e:
        return CheckResult(name, CheckStatus.FAIL, f"{url}: {e}")
    finally:
        if http_client is None:
            client.close()

    return CheckResult(name, CheckStatus.PASS, f"{url} answered HTTP {response.status_code}")


def run_diagnostics(
    env_file: str = ".env",
    environ: Optional[dict[str, str]] = None,
    http_client: Optional[httpx.Client] = None,
) -> list[CheckResult]:
    """Run every check and return the results in display order."""
    if environ is None:
        environ = dict(os.environ)

    results = [check_env_file(env_file)]
    results.extend(check_required_vars(environ))

    for check in (
        check_access_key_format(environ.get("AWS_ACCESS_KEY_ID")),
        check_secret_key_format(environ.get("AWS_SECRET_ACCESS_KEY")),
    ):
        if check is not None:
            results.append(check)

    results.append(check_endpoint(
        environ.get("S3_BUCKET_NAME"),
        environ.get("AWS_REGION") or DEFAULT_REGION,
        environ.get("S3_ENDPOINT_SUFFIX") or "amazonaws.com",
        http_client=http_client,
    ))
    return results


def render_diagnostics(results: list[CheckResult], console: Optional[Console] = None) -> None:
    """Print the check results as a table."""
    console = console or Console(legacy_windows=True)

    table = Table(
        title="S3 Upload Diagnostics",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
        box=box.ASCII,
    )
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Status", justify="center", no_wrap=True)
    table.add_column("Detail")

    for result in results:
        if result.status == CheckStatus.PASS:
            symbol = "[green]OK[/green]"
        elif result.status == CheckStatus.WARN:
            symbol = "[yellow]WARN[/yellow]"
        else:
            symbol = "[red]FAIL[/red]"
        table.add_row(escape(result.name), symbol, escape(result.detail))

    console.print(table)

    if any(r.status == CheckStatus.FAIL for r in results):
        console.print("[bold red]Issues found - fix the failed checks above[/bold red]")
    else:
        console.print("[bold green]All checks passed[/bold green]")
