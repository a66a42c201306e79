"""Base reporter interface."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from storediag.models import DiagnosticsReport, ProbeResult, ProviderIdentity, StageResult


class Reporter(ABC):
    """Abstract base class for diagnostics reporters."""

    @abstractmethod
    def on_diagnostics_start(self, store_uri: str, provider: "ProviderIdentity") -> None:
        """Called when diagnostics begin for a store."""
        pass

    @abstractmethod
    def on_probe_complete(self, result: "ProbeResult") -> None:
        """Called for each endpoint probe, in endpoint order."""
        pass

    @abstractmethod
    def on_stage_complete(self, result: "StageResult") -> None:
        """Called when a smoke test stage completes or is skipped."""
        pass

    @abstractmethod
    def on_run_complete(self, report: "DiagnosticsReport") -> None:
        """Called with the assembled report."""
        pass
