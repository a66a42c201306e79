"""Data models for store diagnostics."""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
from urllib.parse import urlsplit


class ResultStatus(Enum):
    """Status of a smoke test stage."""

    PASS = "pass"
    FAIL = "fail"
    SKIPPED = "skipped"


class ProbeOutcome(Enum):
    """Outcome of probing a single endpoint."""

    SUCCESS = "success"
    RESOLUTION_FAILURE = "resolution-failure"
    CONNECT_FAILURE = "connect-failure"


DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class OptionSpec:
    """A configuration option a provider reports; sensitive values get masked."""

    key: str
    sensitive: bool = False


@dataclass(frozen=True)
class ProviderIdentity:
    """Descriptive metadata of a diagnostics provider."""

    name: str
    description: str = ""
    homepage: str = ""


@dataclass(frozen=True)
class OptionValue:
    """A sanitized option ready for display."""

    key: str
    value: str
    sensitive: bool = False


@dataclass(frozen=True)
class EndpointSpec:
    """A network endpoint to resolve and optionally connect to."""

    uri: str
    connect: bool = True

    @property
    def scheme(self) -> str:
        return urlsplit(self.uri).scheme.lower()

    @property
    def host(self) -> str:
        return urlsplit(self.uri).hostname or ""

    @property
    def port(self) -> Optional[int]:
        """Explicit port, else the scheme's default port, else None."""
        port = urlsplit(self.uri).port
        if port is not None:
            return port
        return DEFAULT_PORTS.get(self.scheme)


@dataclass(frozen=True)
class ResolvedAddress:
    """One address a hostname resolved to."""

    address: str
    hostname: str


@dataclass(frozen=True)
class ProbeResult:
    """Result of probing a single endpoint."""

    endpoint: EndpointSpec
    outcome: ProbeOutcome
    addresses: tuple[ResolvedAddress, ...] = ()
    elapsed_seconds: float = 0.0
    error_message: Optional[str] = None
    connect_detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == ProbeOutcome.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "endpoint": self.endpoint.uri,
            "outcome": self.outcome.value,
            "addresses": [
                {"address": a.address, "hostname": a.hostname} for a in self.addresses
            ],
            "elapsed_seconds": self.elapsed_seconds,
            "error_message": self.error_message,
            "connect_detail": self.connect_detail,
        }


@dataclass(frozen=True)
class StageResult:
    """Result of a single smoke test stage."""

    stage: str
    status: ResultStatus
    elapsed_seconds: float = 0.0
    detail: Optional[str] = None
    error_message: Optional[str] = None
    expected: Optional[str] = None
    actual: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "status": self.status.value,
            "elapsed_seconds": self.elapsed_seconds,
            "detail": self.detail,
            "error_message": self.error_message,
            "expected": self.expected,
            "actual": self.actual,
        }


# Stage whose outcome never affects the smoke test result
CLEANUP_STAGE = "delete-directory"


@dataclass(frozen=True)
class SmokeTestReport:
    """Ordered stage results of one smoke test run."""

    target: str
    stages: tuple[StageResult, ...]
    scratch_directory: Optional[str] = None
    root_entry_count: Optional[int] = None
    error_message: Optional[str] = None

    @property
    def passed(self) -> bool:
        """True if every stage before cleanup passed."""
        checked = [s for s in self.stages if s.stage != CLEANUP_STAGE]
        return bool(checked) and all(s.status == ResultStatus.PASS for s in checked)

    @property
    def cleanup(self) -> Optional[StageResult]:
        for stage in self.stages:
            if stage.stage == CLEANUP_STAGE:
                return stage
        return None

    def stage(self, name: str) -> Optional[StageResult]:
        for stage in self.stages:
            if stage.stage == name:
                return stage
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "passed": self.passed,
            "scratch_directory": self.scratch_directory,
            "root_entry_count": self.root_entry_count,
            "error_message": self.error_message,
            "stages": [s.to_dict() for s in self.stages],
        }


@dataclass(frozen=True)
class DiagnosticsReport:
    """Everything learned about a store in one diagnostics run."""

    store_uri: str
    provider: ProviderIdentity
    options: tuple[OptionValue, ...]
    probes: tuple[ProbeResult, ...]
    smoke_test: SmokeTestReport
    runtime: tuple[tuple[str, str], ...] = ()
    environment: tuple[OptionValue, ...] = ()
    endpoint_error: Optional[str] = None
    timestamp: str = field(default_factory=lambda: time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()))

    @property
    def success(self) -> bool:
        """Overall outcome; endpoint probes are informational only."""
        return self.smoke_test.passed

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization, in display order."""
        return {
            "timestamp": self.timestamp,
            "store_uri": self.store_uri,
            "provider": {
                "name": self.provider.name,
                "description": self.provider.description,
                "homepage": self.provider.homepage,
            },
            "runtime": {name: value for name, value in self.runtime},
            "environment": [
                {"name": o.key, "value": o.value, "sensitive": o.sensitive}
                for o in self.environment
            ],
            "options": [
                {"key": o.key, "value": o.value, "sensitive": o.sensitive}
                for o in self.options
            ],
            "endpoint_error": self.endpoint_error,
            "endpoints": [p.to_dict() for p in self.probes],
            "smoke_test": self.smoke_test.to_dict(),
            "success": self.success,
        }
