"""Command-line interface for email-domain-check."""

import asyncio
import ipaddress
import json
import logging
import sys
from collections.abc import Coroutine
from dataclasses import asdict, is_dataclass
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as package_version
from pathlib import Path
from typing import Annotated, Any, TypeVar

import dns.exception
import typer
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.table import Table

from .checker import DomainChecker
from .checks.base import CheckResult, CheckStatus
from .config import load_options
from .records import TXTRecord
from .utils.logger import VerbosityLevel, setup_logger

logger = logging.getLogger(__name__)

T = TypeVar("T")

app = typer.Typer(
    name="email-domain-check",
    help="Resolve and validate email authentication records (MX, SPF, DKIM, DMARC, MTA-STS, BIMI, TLS-RPT)",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

STATUS_STYLES = {
    CheckStatus.OK: ("green", "✓"),
    CheckStatus.ERROR: ("red", "✗"),
    CheckStatus.WARN: ("yellow", "⚠"),
    CheckStatus.NONE: ("dim", "-"),
}


# ============================================================================
# Validation Functions
# ============================================================================


def validate_verbosity(value: str) -> str:
    """
    Validate verbosity level.

    Raises:
        typer.BadParameter: If verbosity is invalid
    """
    valid_levels = [level.value for level in VerbosityLevel]
    if value.lower() not in valid_levels:
        raise typer.BadParameter(
            f"Invalid verbosity: {value}. Must be one of: {', '.join(valid_levels)}"
        )
    return value.lower()


def validate_nameservers(value: list[str] | None) -> list[str] | None:
    """
    Validate --server values are IP addresses.

    Raises:
        typer.BadParameter: If a server is not an IP address
    """
    if not value:
        return None
    for server in value:
        try:
            ipaddress.ip_address(server)
        except ValueError:
            raise typer.BadParameter(f"Invalid DNS server: {server}. Expected an IP address")
    return value


# ============================================================================
# Shared options
# ============================================================================

TargetArgument = Annotated[
    str, typer.Argument(help="Domain, email address, IP address or URL (e.g., example.com)")
]
ServerOption = Annotated[
    list[str] | None,
    typer.Option(
        "--server",
        "-s",
        help="DNS server to query (repeatable; default: system resolver)",
        callback=validate_nameservers,
    ),
]
VerbosityOption = Annotated[
    str,
    typer.Option(
        "--verbosity",
        "-v",
        help="Output verbosity: quiet, normal, verbose, debug",
        callback=validate_verbosity,
    ),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration file",
        exists=True,
        dir_okay=False,
    ),
]
JsonOption = Annotated[bool, typer.Option("--json", help="Print results as JSON")]
DomainNsOption = Annotated[
    bool | None,
    typer.Option(
        "--domain-ns/--no-domain-ns",
        help="Query the target's authoritative nameservers",
    ),
]


# ============================================================================
# Helper Functions
# ============================================================================


def _build_checker(
    server: list[str] | None,
    verbosity: str,
    config_file: Path | None,
    **overrides: Any,
) -> DomainChecker:
    setup_logger(level=VerbosityLevel(verbosity))
    try:
        options = load_options(
            extra_paths=[config_file] if config_file else None,
            server=server,
            **overrides,
        )
    except ValidationError as e:
        console.print(f"[red]Error: Invalid configuration: {e}[/red]")
        raise typer.Exit(1)
    return DomainChecker(options)


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a lookup, turning resolution failures into exit code 1."""
    try:
        return asyncio.run(coro)
    except dns.exception.DNSException as e:
        console.print(f"[red]Error: DNS lookup failed: {e}[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Error: Invalid target: {e}[/red]")
        raise typer.Exit(1)


def _to_data(value: Any) -> Any:
    if isinstance(value, CheckResult):
        return value.to_dict()
    if isinstance(value, TXTRecord):
        data = asdict(value)
        data["kind"] = value.kind.value
        data["valid"] = value.is_valid()
        return data
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, list):
        return [_to_data(item) for item in value]
    return value


def _print_json(value: Any) -> None:
    json.dump(_to_data(value), sys.stdout, indent=2, default=str)
    print()  # Newline at end


def _print_record(title: str, record: TXTRecord | None, as_json: bool) -> None:
    if as_json:
        _print_json(record)
    elif record is None:
        console.print(f"[yellow]No {title} record found[/yellow]")
    else:
        console.print(f"[bold blue]{title}[/bold blue]")
        console.print(f"  Record: {record.raw}")
        console.print(f"  Parsed: {record.to_string()}")
        for name, value in record.tags.items():
            console.print(f"  [dim]{name}: {value}[/dim]")
        if record.is_valid():
            console.print("  [green]✓ Valid[/green]")
        else:
            for error in record.errors:
                console.print(f"  [red]✗ {error}[/red]")

    if record is None or not record.is_valid():
        raise typer.Exit(1)


def _print_checklist(title: str, result: CheckResult, as_json: bool) -> None:
    if as_json:
        _print_json(result)
    else:
        console.print(f"[bold blue]{title}: {result.domain}[/bold blue]")
        table = Table(box=box.ROUNDED, show_header=True, header_style="bold")
        table.add_column("Code", justify="right")
        table.add_column("Test")
        table.add_column("Status")
        table.add_column("Result")
        for item in result.checks.values():
            style, icon = STATUS_STYLES[item.status]
            table.add_row(
                str(item.code),
                item.test,
                f"[{style}]{icon} {item.status.name}[/{style}]",
                item.description,
            )
        console.print(table)

        for log in result.logs:
            console.print(f"  [dim]• {log}[/dim]")

        if result.is_valid():
            console.print("[green]✓ No issues found![/green]")
        else:
            console.print("[red]✗ Check failed[/red]")

    if not result.is_valid():
        raise typer.Exit(1)


# ============================================================================
# Commands
# ============================================================================


@app.command()
def mx(
    target: TargetArgument,
    mta_sts: Annotated[
        bool | None,
        typer.Option("--mta-sts/--no-mta-sts", help="Filter MX hosts through the MTA-STS policy"),
    ] = None,
    domain_ns: DomainNsOption = None,
    server: ServerOption = None,
    verbosity: VerbosityOption = "normal",
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
):
    """
    Show MX records sorted by priority.

        email-domain-check mx example.com
        email-domain-check mx user@example.com --mta-sts
    """
    checker = _build_checker(
        server, verbosity, config_file, use_mta_sts=mta_sts, use_domain_ns=domain_ns
    )
    records = _run(checker.get_mx_records(target))

    if as_json:
        _print_json(records)
    elif records:
        table = Table(box=box.ROUNDED, show_header=True, header_style="bold")
        table.add_column("Priority", justify="right")
        table.add_column("Exchange")
        for record in records:
            table.add_row(str(record.priority), record.exchange)
        console.print(table)
    else:
        console.print(f"[yellow]No MX records found for {target}[/yellow]")

    if not records:
        raise typer.Exit(1)


@app.command()
def ns(
    target: TargetArgument,
    server: ServerOption = None,
    verbosity: VerbosityOption = "normal",
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
):
    """Show the nameservers of a domain and the resolver that would be used."""
    checker = _build_checker(server, verbosity, config_file)

    async def lookup():
        resolver = await checker.get_ns_resolver(target)
        return resolver, await checker.get_name_servers(target)

    resolver, hosts = _run(lookup())

    if as_json:
        _print_json(
            {
                "nameservers": hosts,
                "resolver": {
                    "kind": resolver.kind.name,
                    "servers": resolver.nameservers,
                    "ns_hosts": resolver.ns_hosts,
                },
            }
        )
        return

    for host in hosts:
        console.print(f"  {host}")
    console.print(
        f"[dim]Resolver: {resolver.kind.name} ({', '.join(resolver.nameservers)})[/dim]"
    )


@app.command()
def txt(
    target: TargetArgument,
    domain_ns: DomainNsOption = None,
    server: ServerOption = None,
    verbosity: VerbosityOption = "normal",
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
):
    """Show all TXT records of a name, classified by kind."""
    checker = _build_checker(server, verbosity, config_file, use_domain_ns=domain_ns)
    result = _run(checker.get_txt_record(target))

    if result is None or not result.records:
        if as_json:
            _print_json([])
        else:
            console.print(f"[yellow]No TXT records found for {target}[/yellow]")
        raise typer.Exit(1)

    if as_json:
        _print_json(result.records)
        return

    table = Table(box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("Kind")
    table.add_column("Record")
    table.add_column("Errors")
    for record in result.records:
        table.add_row(record.kind.value, record.raw, "\n".join(record.errors))
    console.print(table)


@app.command()
def spf(
    target: TargetArgument,
    server: ServerOption = None,
    verbosity: VerbosityOption = "normal",
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
):
    """Run the SPF checklist on a domain."""
    checker = _build_checker(server, verbosity, config_file)
    _print_checklist("SPF", _run(checker.check_spf(target)), as_json)


@app.command()
def dkim(
    target: TargetArgument,
    selector: Annotated[
        str | None, typer.Option("--selector", help="DKIM selector (default from config)")
    ] = None,
    server: ServerOption = None,
    verbosity: VerbosityOption = "normal",
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
):
    """Show the DKIM key published for a selector."""
    checker = _build_checker(server, verbosity, config_file)
    _print_record("DKIM", _run(checker.get_dkim_record(target, selector=selector)), as_json)


@app.command()
def dmarc(
    target: TargetArgument,
    server: ServerOption = None,
    verbosity: VerbosityOption = "normal",
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
):
    """Show the DMARC record of a domain."""
    checker = _build_checker(server, verbosity, config_file)
    _print_record("DMARC", _run(checker.get_dmarc_record(target)), as_json)


@app.command("mta-sts")
def mta_sts(
    target: TargetArgument,
    server: ServerOption = None,
    verbosity: VerbosityOption = "normal",
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
):
    """Show the MTA-STS record and its HTTPS policy file."""
    checker = _build_checker(server, verbosity, config_file)

    async def lookup():
        record = await checker.get_mta_sts_record(target)
        policy = await checker.get_mta_sts_policy(target) if record and record.id else None
        return record, policy

    record, policy = _run(lookup())

    if as_json:
        _print_json({"record": _to_data(record), "policy": _to_data(policy)})
    else:
        if record is None:
            console.print(f"[yellow]No MTA-STS record found for {target}[/yellow]")
        else:
            console.print(f"[bold blue]MTA-STS[/bold blue]\n  Record: {record.raw}")
        if policy is not None:
            console.print(f"  Mode: {policy.mode}")
            console.print(f"  Max age: {policy.max_age}")
            for pattern in policy.mx:
                console.print(f"  MX: {pattern}")
        elif record is not None:
            console.print("  [red]✗ Policy file unavailable or invalid[/red]")

    if record is None or policy is None:
        raise typer.Exit(1)


@app.command()
def bimi(
    target: TargetArgument,
    selector: Annotated[
        str | None, typer.Option("--selector", help="BIMI selector (default from config)")
    ] = None,
    server: ServerOption = None,
    verbosity: VerbosityOption = "normal",
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
):
    """Run the BIMI checklist: record, logo and Verified Mark Certificate."""
    checker = _build_checker(server, verbosity, config_file)
    _print_checklist("BIMI", _run(checker.check_bimi(target, selector=selector)), as_json)


@app.command()
def tlsrpt(
    target: TargetArgument,
    server: ServerOption = None,
    verbosity: VerbosityOption = "normal",
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
):
    """Show the SMTP TLS reporting record of a domain."""
    checker = _build_checker(server, verbosity, config_file)
    _print_record("TLS-RPT", _run(checker.get_tlsrpt_record(target)), as_json)


@app.command()
def version() -> None:
    """Show version information."""
    try:
        installed = package_version("email-domain-check")
        console.print(f"email-domain-check version {installed}")
    except PackageNotFoundError:
        console.print("email-domain-check (version unknown)")


# ============================================================================
# Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        console.print(f"[red]Unexpected error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
