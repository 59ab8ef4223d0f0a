"""
CLI Interface for the IDL Scanner.

Command-line entry point built with Typer and Rich.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from solders.pubkey import Pubkey

from . import __version__
from .address import parse_address
from .errors import InvalidAddress, ScannerError
from .ledger import RpcLedger
from .models import ScanConfig, ScanReport
from .pipeline import IdlAccountScanner
from .reporter import ReportGenerator

app = typer.Typer(
    name="idl-scanner",
    help="Anchor IDL Account Scanner - detect unclaimed, predictable IDL accounts",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if debug else (logging.INFO if verbose else logging.WARNING)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]IDL Scanner[/bold blue] v{__version__}")
        raise typer.Exit()


def build_ledger(config: ScanConfig) -> RpcLedger:
    """Create the ledger used by a scan."""
    return RpcLedger(config)


@app.command()
def scan(
    program_id: str = typer.Argument(..., help="Program address (base58)"),
    rpc_url: str = typer.Option(
        "mainnet-beta", "--rpc-url", "-u",
        envvar="IDL_SCANNER_RPC_URL",
        help="RPC URL or cluster moniker (mainnet-beta, devnet, testnet, localhost)"
    ),
    timeout: int = typer.Option(
        30, "--timeout", "-t",
        help="RPC request timeout in seconds"
    ),
    retries: int = typer.Option(
        1, "--retries",
        help="Attempts per RPC call (1 disables retrying)"
    ),
    staging_dir: Optional[Path] = typer.Option(
        None, "--staging-dir",
        help="Directory for the transient program dump (default: system temp dir)"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Enable verbose output"
    ),
    debug: bool = typer.Option(
        False, "--debug",
        help="Enable debug output"
    ),
    version: bool = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True,
        help="Show version and exit"
    ),
) -> None:
    """
    Check a deployed program for a hijackable Anchor IDL account.

    Example:
        idl-scanner TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA
    """
    setup_logging(verbose, debug)

    # Reject bad input before touching the network
    try:
        program = parse_address(program_id)
    except InvalidAddress as e:
        err_console.print(f"[red]Invalid programId provided: {e}[/red]")
        raise typer.Exit(1)

    try:
        config = ScanConfig(
            rpc_url=rpc_url,
            timeout=timeout,
            max_retries=retries,
            staging_dir=staging_dir,
        )
    except ValidationError as e:
        err_console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1)

    try:
        report = asyncio.run(_run_scan(program, config))
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Scan interrupted by user[/yellow]")
        raise typer.Exit(130)
    except ScannerError as e:
        err_console.print(f"[red]Scan failed: {e}[/red]")
        if debug:
            err_console.print_exception()
        raise typer.Exit(1)

    ReportGenerator(console=console).generate_terminal(report)


async def _run_scan(program_id: Pubkey, config: ScanConfig) -> ScanReport:
    """Run the scan against a freshly opened ledger connection."""
    async with build_ledger(config) as ledger:
        scanner = IdlAccountScanner(ledger, config)
        return await scanner.scan(program_id)


if __name__ == "__main__":
    app()
