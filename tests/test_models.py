"""Tests for data models."""

import pytest

from storediag.models import (
    CLEANUP_STAGE,
    DiagnosticsReport,
    EndpointSpec,
    OptionValue,
    ProbeOutcome,
    ProbeResult,
    ProviderIdentity,
    ResolvedAddress,
    ResultStatus,
    SmokeTestReport,
    StageResult,
)


def _stages(*statuses: ResultStatus, cleanup: ResultStatus = ResultStatus.PASS) -> tuple[StageResult, ...]:
    names = ["list-root", "create-directory", "create-file", "list-directory",
             "read-file-and-verify", "delete-file"]
    stages = [StageResult(stage=name, status=status) for name, status in zip(names, statuses)]
    stages.append(StageResult(stage=CLEANUP_STAGE, status=cleanup))
    return tuple(stages)


class TestResultStatus:
    """Tests for ResultStatus enum."""

    def test_values(self):
        """Status values are lowercase strings."""
        assert ResultStatus.PASS.value == "pass"
        assert ResultStatus.FAIL.value == "fail"
        assert ResultStatus.SKIPPED.value == "skipped"


class TestEndpointSpec:
    """Tests for EndpointSpec URL parts."""

    def test_default_https_port(self):
        """https endpoints default to port 443."""
        spec = EndpointSpec("https://bucket.s3.amazonaws.com/")
        assert spec.scheme == "https"
        assert spec.host == "bucket.s3.amazonaws.com"
        assert spec.port == 443

    def test_explicit_port(self):
        """An explicit port wins over the scheme default."""
        assert EndpointSpec("http://minio:9000/bucket").port == 9000

    def test_unknown_scheme_has_no_port(self):
        """Schemes without a default port give None."""
        assert EndpointSpec("tcp://host").port is None

    def test_invalid_port_raises(self):
        """Malformed ports raise ValueError."""
        with pytest.raises(ValueError):
            EndpointSpec("http://host:notaport/").port

    def test_connect_defaults_true(self):
        """Endpoints are connected to unless marked otherwise."""
        assert EndpointSpec("https://h/").connect is True


class TestSmokeTestReport:
    """Tests for the smoke test verdict."""

    def test_all_pass(self):
        """Every stage passing gives passed=True."""
        report = SmokeTestReport(target="s3a://b/", stages=_stages(*[ResultStatus.PASS] * 6))
        assert report.passed is True

    def test_cleanup_failure_does_not_fail(self):
        """A failed cleanup leaves the verdict unchanged."""
        report = SmokeTestReport(
            target="s3a://b/",
            stages=_stages(*[ResultStatus.PASS] * 6, cleanup=ResultStatus.FAIL),
        )
        assert report.passed is True
        assert report.cleanup.status == ResultStatus.FAIL

    def test_one_failure_fails(self):
        """Any failed stage before cleanup fails the run."""
        statuses = [ResultStatus.PASS, ResultStatus.PASS, ResultStatus.FAIL] + [ResultStatus.SKIPPED] * 3
        report = SmokeTestReport(target="s3a://b/", stages=_stages(*statuses))
        assert report.passed is False

    def test_all_skipped_fails(self):
        """Skipped stages are not passes."""
        report = SmokeTestReport(
            target="s3a://b/",
            stages=_stages(*[ResultStatus.SKIPPED] * 6, cleanup=ResultStatus.SKIPPED),
        )
        assert report.passed is False

    def test_no_stages_fails(self):
        """An empty report never passes."""
        assert SmokeTestReport(target="s3a://b/", stages=()).passed is False

    def test_stage_lookup(self):
        """stage() finds a result by name."""
        report = SmokeTestReport(target="s3a://b/", stages=_stages(*[ResultStatus.PASS] * 6))
        assert report.stage("create-file").stage == "create-file"
        assert report.stage("missing") is None


class TestDiagnosticsReport:
    """Tests for the full report."""

    def _report(self, stage_status: ResultStatus = ResultStatus.PASS) -> DiagnosticsReport:
        endpoint = EndpointSpec("https://b.s3.amazonaws.com/")
        return DiagnosticsReport(
            store_uri="s3a://b/",
            provider=ProviderIdentity("S3A", "desc", "https://example.org"),
            options=(OptionValue("fs.s3a.access.key", "A**Z", True),),
            probes=(
                ProbeResult(
                    endpoint=endpoint,
                    outcome=ProbeOutcome.RESOLUTION_FAILURE,
                    error_message="Unable to resolve b.s3.amazonaws.com",
                ),
            ),
            smoke_test=SmokeTestReport(target="s3a://b/", stages=_stages(*[stage_status] * 6)),
            runtime=(("python", "CPython 3.12.0"),),
            environment=(OptionValue("AWS_REGION", "(unset)"),),
            timestamp="2024-01-01T00:00:00Z",
        )

    def test_success_ignores_probes(self):
        """Endpoint failures are informational only."""
        assert self._report().success is True

    def test_failure_from_smoke_test(self):
        """A failed smoke test fails the report."""
        assert self._report(ResultStatus.FAIL).success is False

    def test_to_dict_order_and_content(self):
        """to_dict lists sections in display order."""
        data = self._report().to_dict()

        assert list(data) == [
            "timestamp", "store_uri", "provider", "runtime", "environment",
            "options", "endpoint_error", "endpoints", "smoke_test", "success",
        ]
        assert data["provider"]["name"] == "S3A"
        assert data["runtime"] == {"python": "CPython 3.12.0"}
        assert data["environment"] == [{"name": "AWS_REGION", "value": "(unset)", "sensitive": False}]
        assert data["options"][0] == {"key": "fs.s3a.access.key", "value": "A**Z", "sensitive": True}
        assert data["endpoints"][0]["outcome"] == "resolution-failure"
        assert data["smoke_test"]["passed"] is True
        assert data["smoke_test"]["stages"][0]["status"] == "pass"
        assert data["success"] is True

    def test_probe_to_dict_addresses(self):
        """Resolved addresses are serialized in order."""
        result = ProbeResult(
            endpoint=EndpointSpec("https://h/"),
            outcome=ProbeOutcome.SUCCESS,
            addresses=(ResolvedAddress("10.0.0.1", "h"), ResolvedAddress("10.0.0.2", "h")),
            connect_detail="HTTP 403 Forbidden",
        )
        data = result.to_dict()
        assert result.ok is True
        assert [a["address"] for a in data["addresses"]] == ["10.0.0.1", "10.0.0.2"]
        assert data["connect_detail"] == "HTTP 403 Forbidden"
