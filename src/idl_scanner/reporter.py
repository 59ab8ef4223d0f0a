"""
Report Generator for the IDL Scanner.

Prints a human-readable, line-per-stage report to the terminal using Rich.
"""

from typing import Optional

from rich.console import Console
from rich.markup import escape

from .models import ScanReport, Verdict


class ReportGenerator:
    """Renders a ScanReport as one console line per pipeline stage."""

    VERDICT_STYLES = {
        Verdict.LIKELY_VULNERABLE: "bold red",
        Verdict.LIKELY_SAFE: "bold green",
        Verdict.INCONCLUSIVE: "yellow",
    }

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def generate_terminal(self, report: ScanReport) -> None:
        """Print the report."""
        print_ = self.console.print

        if report.staged_path is not None:
            print_(f"Program successfully dumped to {escape(str(report.staged_path))}")
        print_(f"Dumped program data size: {report.binary_size}")

        self._print_marker("anchor:idl", report.markers.anchor_idl)
        self._print_marker("IdlCreateAccount", report.markers.idl_create_account)

        if report.account_checked:
            print_(f"Program signer: {report.signer_address} (bump {report.signer_bump})")
            print_(f"IDL Account Address: {report.idl_address}")

            account = report.account
            if account is None:
                print_("[red]IDL Account Not Found[/red]")
            else:
                owner_note = "program" if report.owner_matches_program else "[yellow]NOT the program[/yellow]"
                print_(
                    f"IDL Account Found! Owner: {account.owner} ({owner_note}), "
                    f"Lamports: {account.lamports}, Data Length: {account.data_length}"
                )
        else:
            print_("[dim]Skipping IDL account check (no anchor:idl/IdlCreateAccount found)[/dim]")

        if report.staged_path is not None and not report.staged_path.exists():
            print_("Dump file deleted successfully.")

        style = self.VERDICT_STYLES.get(report.verdict, "white")
        print_(f"[{style}]Verdict: {report.verdict.value}[/{style}] - {escape(report.summary)}")

    def _print_marker(self, name: str, found: bool) -> None:
        if found:
            self.console.print(f"[green]Found '{name}' in the program data.[/green]")
        else:
            self.console.print(f"'{name}' not found in the program data.")
