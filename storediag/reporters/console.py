"""Console reporter using Rich library for formatted CLI output.

Provides formatted output during a diagnostics run including:
- A heading with the store and provider
- Per-endpoint and per-stage progress lines
- The final report: runtime, environment, options, endpoints and stages
"""

from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

from storediag.models import (
    DiagnosticsReport,
    ProbeOutcome,
    ProbeResult,
    ProviderIdentity,
    ResultStatus,
    StageResult,
)
from storediag.reporters.base import Reporter
from storediag.timing import format_duration

STATUS_LABELS = {
    ResultStatus.PASS: "[green][PASS][/green]",
    ResultStatus.FAIL: "[red][FAIL][/red]",
    ResultStatus.SKIPPED: "[dim][SKIP][/dim]",
}

OUTCOME_LABELS = {
    ProbeOutcome.SUCCESS: "[green]OK[/green]",
    ProbeOutcome.RESOLUTION_FAILURE: "[red]DNS FAILURE[/red]",
    ProbeOutcome.CONNECT_FAILURE: "[yellow]CONNECT FAILURE[/yellow]",
}


class ConsoleReporter(Reporter):
    """Rich-based console reporter for CLI output.

    Args:
        quiet: If True, suppress progress and detail sections, showing
               only the stage table and the overall result
        console: Console to print to (defaults to stdout)
    """

    def __init__(self, quiet: bool = False, console: Optional[Console] = None):
        # Use legacy_windows=True for ASCII-safe output on Windows consoles
        self.console = console if console is not None else Console(legacy_windows=True)
        self.quiet = quiet

    def _heading(self, text: str) -> None:
        self.console.print()
        self.console.print(Rule(f"[bold cyan]{escape(text)}[/bold cyan]", style="cyan", characters="-"))

    def on_diagnostics_start(self, store_uri: str, provider: ProviderIdentity) -> None:
        """Prints the store heading and provider identity."""
        self._heading(f"Diagnostics for filesystem {store_uri}")
        self.console.print(f"[bold]{escape(provider.name)}[/bold]")
        if provider.description:
            self.console.print(escape(provider.description))
        if provider.homepage:
            self.console.print(f"[link={provider.homepage}]{escape(provider.homepage)}[/link]")

    def on_probe_complete(self, result: ProbeResult) -> None:
        if self.quiet:
            return

        label = OUTCOME_LABELS[result.outcome]
        if result.addresses:
            first = result.addresses[0]
            self.console.print(
                f"  {label}: {escape(result.endpoint.uri)} ({escape(first.hostname)}) "
                f"has IP address {escape(first.address)}"
            )
        else:
            self.console.print(f"  {label}: {escape(result.endpoint.uri)}")

        if result.error_message:
            self.console.print(f"     [dim]{escape(result.error_message)}[/dim]")

    def on_stage_complete(self, result: StageResult) -> None:
        if self.quiet:
            return

        self.console.print(f"  {STATUS_LABELS[result.status]}: {result.stage}")
        if result.error_message and result.status != ResultStatus.PASS:
            self.console.print(f"     [dim]{escape(result.error_message)}[/dim]")

    def on_run_complete(self, report: DiagnosticsReport) -> None:
        """Prints the report sections in report order, then the verdict."""
        if not self.quiet:
            self._print_runtime(report)
            self._print_environment(report)
            self._print_options(report)
            self._print_endpoints(report)

        self._print_stages(report)

        if report.success:
            status = "[bold green]PASSED[/bold green]"
        else:
            status = "[bold red]FAILED[/bold red]"
        self.console.print(f"{escape(report.store_uri)}: {status}")
        if report.smoke_test.error_message:
            self.console.print(f"   [dim red]{escape(report.smoke_test.error_message)}[/dim red]")
        self.console.print()

    def _table(self, *columns: str) -> Table:
        table = Table(
            show_header=True,
            header_style="bold magenta",
            border_style="dim",
            box=box.ASCII,
        )
        for column in columns:
            table.add_column(column, no_wrap=True)
        return table

    def _print_runtime(self, report: DiagnosticsReport) -> None:
        if not report.runtime:
            return
        self._heading("Runtime")
        table = self._table("Name", "Value")
        for name, value in report.runtime:
            table.add_row(escape(name), escape(value))
        self.console.print(table)

    def _print_environment(self, report: DiagnosticsReport) -> None:
        if not report.environment:
            return
        self._heading("Environment Variables")
        table = self._table("Variable", "Value")
        for option in report.environment:
            table.add_row(escape(option.key), escape(option.value))
        self.console.print(table)

    def _print_options(self, report: DiagnosticsReport) -> None:
        if not report.options:
            return
        self._heading("Selected and Sanitized Configuration Options")
        table = self._table("Option", "Value")
        for option in report.options:
            table.add_row(escape(option.key), escape(option.value))
        self.console.print(table)

    def _print_endpoints(self, report: DiagnosticsReport) -> None:
        if not report.probes and not report.endpoint_error:
            return
        self._heading("Endpoints")
        if report.endpoint_error:
            self.console.print(f"[red]{escape(report.endpoint_error)}[/red]")
        if not report.probes:
            return

        table = self._table("Endpoint", "Hostname", "Addresses", "Result", "Time")
        for probe in report.probes:
            hostname = probe.addresses[0].hostname if probe.addresses else "-"
            addresses = ", ".join(a.address for a in probe.addresses) or "-"
            result = OUTCOME_LABELS[probe.outcome]
            if probe.connect_detail:
                result = f"{result} {escape(probe.connect_detail)}"
            table.add_row(
                escape(probe.endpoint.uri),
                escape(hostname),
                escape(addresses),
                result,
                format_duration(probe.elapsed_seconds),
            )
        self.console.print(table)

    def _print_stages(self, report: DiagnosticsReport) -> None:
        self._heading(f"Test filesystem {report.smoke_test.target}")
        table = self._table("Stage", "Result", "Time", "Detail")
        for stage in report.smoke_test.stages:
            if stage.status == ResultStatus.PASS:
                symbol = "[green]OK[/green]"
            elif stage.status == ResultStatus.FAIL:
                symbol = "[red]X[/red]"
            else:
                symbol = "[dim]-[/dim]"
            detail = stage.error_message if stage.status == ResultStatus.FAIL else stage.detail
            elapsed = format_duration(stage.elapsed_seconds) if stage.status != ResultStatus.SKIPPED else "-"
            table.add_row(stage.stage, symbol, elapsed, escape(detail or ""))
        self.console.print(table)
