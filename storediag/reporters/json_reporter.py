"""JSON reporter for structured output.

Writes the diagnostics report as JSON, for attaching to bug reports or
archiving alongside the job that was about to run.
"""

import json
from pathlib import Path
from typing import Optional

from storediag.models import DiagnosticsReport, ProbeResult, ProviderIdentity, StageResult
from storediag.reporters.base import Reporter


class JsonReporter(Reporter):
    """JSON reporter for structured output.

    Args:
        output_path: Optional file path to write JSON output
    """

    def __init__(self, output_path: Optional[str] = None):
        self.output_path = output_path

    def on_diagnostics_start(self, store_uri: str, provider: ProviderIdentity) -> None:
        """No-op for JSON reporter."""
        pass

    def on_probe_complete(self, result: ProbeResult) -> None:
        """No-op - data comes from the report."""
        pass

    def on_stage_complete(self, result: StageResult) -> None:
        """No-op - data comes from the report."""
        pass

    def on_run_complete(self, report: DiagnosticsReport) -> dict:
        """Generates and outputs JSON data.

        Args:
            report: The diagnostics report

        Returns:
            The generated JSON data as a dictionary
        """
        output = report.to_dict()

        if self.output_path:
            self._write_to_file(output)

        return output

    def _write_to_file(self, output: dict) -> None:
        path = Path(self.output_path)

        # Create parent directories if needed
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.output_path, "w") as f:
            json.dump(output, f, indent=2)
