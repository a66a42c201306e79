"""Command-line interface for the store diagnostics tools.

Provides argument parsing and the entry points for ``storediag`` (full
diagnostics of a store) and ``storediag-listfiles`` (timed file listing).
"""

import argparse
import sys
from typing import Optional

from rich.console import Console

from storediag.config import ConfigurationError, load_configuration
from storediag.engine import DiagnosticsEngine
from storediag.filesystem import FileStatus, get_filesystem
from storediag.listing import list_files
from storediag.logging_setup import setup_logging
from storediag.models import DiagnosticsReport, ProbeResult, ProviderIdentity, StageResult
from storediag.probe import DEFAULT_CONNECT_TIMEOUT, DEFAULT_PROBE_THREADS, EndpointProbe, HttpConnector
from storediag.reporters import ConsoleReporter, JsonReporter, Reporter
from storediag.timing import format_duration
from storediag.uri import StoreURI


class CompositeReporter(Reporter):
    """Reporter that delegates to multiple reporters.

    Allows using both ConsoleReporter and JsonReporter simultaneously.
    """

    def __init__(self, reporters: list[Reporter]):
        self._reporters = reporters

    def on_diagnostics_start(self, store_uri: str, provider: ProviderIdentity) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_diagnostics_start(store_uri, provider)

    def on_probe_complete(self, result: ProbeResult) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_probe_complete(result)

    def on_stage_complete(self, result: StageResult) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_stage_complete(result)

    def on_run_complete(self, report: DiagnosticsReport) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_run_complete(report)


def _add_configuration_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c", "--config",
        metavar="PATH",
        help="JSON configuration file (default: $STOREDIAG_CONFIG, if set)",
    )

    parser.add_argument(
        "-D", "--define",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        dest="defines",
        help="Set a configuration option; may be repeated",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log progress and timings to stderr",
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="storediag",
        description="Diagnose the configuration of and connectivity to an object store",
    )

    parser.add_argument(
        "uri",
        help="Store to diagnose, e.g. s3a://bucket/ or file:///tmp",
    )

    _add_configuration_args(parser)

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress detail sections, show only the smoke test summary",
    )

    parser.add_argument(
        "-j", "--json-output",
        metavar="PATH",
        help="Write the JSON report to file",
    )

    parser.add_argument(
        "--no-connect",
        action="store_true",
        help="Only resolve endpoint hostnames; do not connect to them",
    )

    parser.add_argument(
        "--probe-timeout",
        metavar="SECONDS",
        type=float,
        default=DEFAULT_CONNECT_TIMEOUT,
        help=f"Endpoint connect timeout (default: {DEFAULT_CONNECT_TIMEOUT:g})",
    )

    parser.add_argument(
        "--probe-threads",
        metavar="N",
        type=int,
        default=DEFAULT_PROBE_THREADS,
        help=f"Endpoints probed in parallel (default: {DEFAULT_PROBE_THREADS})",
    )

    return parser.parse_args(argv)


def create_reporters(args: argparse.Namespace) -> list[Reporter]:
    """Create reporters based on command-line arguments.

    Args:
        args: Parsed command-line arguments

    Returns:
        List of configured reporters
    """
    reporters: list[Reporter] = [ConsoleReporter(quiet=args.quiet)]

    if args.json_output:
        reporters.append(JsonReporter(output_path=args.json_output))

    return reporters


def create_probe(args: argparse.Namespace) -> EndpointProbe:
    """Create the endpoint probe for the command-line options."""
    if args.no_connect:
        return EndpointProbe()
    return EndpointProbe(connector=HttpConnector(timeout=args.probe_timeout))


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 if the smoke test passed, 1 if it failed,
        2 for configuration errors
    """
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        configuration = load_configuration(args.config, args.defines)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    reporters = create_reporters(args)
    if len(reporters) == 1:
        reporter = reporters[0]
    else:
        reporter = CompositeReporter(reporters)

    engine = DiagnosticsEngine(
        reporter=reporter,
        probe=create_probe(args),
        probe_threads=args.probe_threads,
    )

    try:
        report = engine.diagnose(args.uri, configuration)
    except (ConfigurationError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    return 0 if report.success else 1


def parse_listfiles_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse ``storediag-listfiles`` arguments."""
    parser = argparse.ArgumentParser(
        prog="storediag-listfiles",
        description="List the files under a path and time the listing",
    )

    parser.add_argument("path", help="Path to list, e.g. s3a://bucket/data/")

    _add_configuration_args(parser)

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Print only the summary, not each file",
    )

    parser.add_argument(
        "--no-recursive",
        dest="recursive",
        action="store_false",
        help="List only the top-level directory",
    )

    return parser.parse_args(argv)


def listfiles_main(argv: Optional[list[str]] = None) -> int:
    """Entry point for ``storediag-listfiles``.

    Returns:
        Exit code: 0 on success, 1 if the listing failed,
        2 for configuration errors
    """
    args = parse_listfiles_args(argv)
    setup_logging(args.verbose)
    console = Console(legacy_windows=True)

    try:
        configuration = load_configuration(args.config, args.defines)
        uri = StoreURI.parse(args.path)
        filesystem = get_filesystem(uri, configuration)
    except (ConfigurationError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"Cannot bind filesystem: {e}", file=sys.stderr)
        return 1

    def print_entry(index: int, status: FileStatus) -> None:
        console.print(f"[{index:05d}] {status.path}: {status.size}", markup=False, highlight=False)

    try:
        summary = list_files(
            filesystem,
            uri.path,
            recursive=args.recursive,
            on_entry=None if args.quiet else print_entry,
        )
    except OSError as e:
        print(f"Listing of {args.path} failed: {e}", file=sys.stderr)
        return 1

    console.print(f"Found {summary.files} files, {summary.total_bytes} bytes", highlight=False)
    console.print(f"Listing took {format_duration(summary.elapsed_seconds)}", highlight=False)
    if summary.files:
        console.print(
            f"{summary.millis_per_file:.3f} millis per file, {summary.bytes_per_file} bytes per file",
            highlight=False,
        )
    if summary.first_entry_seconds is not None:
        console.print(f"First listing after {format_duration(summary.first_entry_seconds)}", highlight=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())
