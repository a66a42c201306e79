"""Diagnostics orchestrator.

Coordinates one diagnostics run against a store:
- Provider selection by URI scheme
- Configuration patching (the only step whose failure aborts the run)
- Sanitized option and environment reporting
- Endpoint probing
- The filesystem smoke test
- Reporter callbacks
"""

import logging
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from storediag.config import Configuration, ConfigurationError
from storediag.environment import runtime_info, sanitized_environment
from storediag.filesystem import get_filesystem
from storediag.models import DiagnosticsReport, EndpointSpec, OptionValue, ProbeResult
from storediag.probe import DEFAULT_PROBE_THREADS, EndpointProbe
from storediag.providers import DiagnosticsProvider, select_provider
from storediag.sanitizer import redact
from storediag.smoke import FileSystemFactory, SmokeTestRunner
from storediag.uri import StoreURI

log = logging.getLogger(__name__)


class DiagnosticsEngine:
    """Runs diagnostics for a store URI and builds the report.

    Args:
        reporter: Optional reporter for progress callbacks
        probe: Endpoint probe (defaults to DNS resolution only)
        filesystem_factory: Creates the filesystem for the smoke test
        providers: Provider registry overriding the built-in one
        probe_threads: Worker threads for endpoint probing
        environ: Environment to report from (defaults to os.environ)
        runtime: Supplies runtime information for the report
        name_factory: Produces the unique part of the smoke test scratch directory name
    """

    def __init__(
        self,
        reporter: Optional[Any] = None,
        probe: Optional[EndpointProbe] = None,
        filesystem_factory: FileSystemFactory = get_filesystem,
        providers: Optional[Mapping[str, type[DiagnosticsProvider]]] = None,
        probe_threads: int = DEFAULT_PROBE_THREADS,
        environ: Optional[Mapping[str, str]] = None,
        runtime: Callable[[], tuple[tuple[str, str], ...]] = runtime_info,
        name_factory: Optional[Callable[[], str]] = None,
    ):
        self.reporter = reporter
        self.probe = probe if probe is not None else EndpointProbe()
        self.filesystem_factory = filesystem_factory
        self.providers = providers
        self.probe_threads = probe_threads
        self.environ = environ
        self.runtime = runtime
        self.name_factory = name_factory

    def diagnose(
        self,
        store_uri: Union[str, StoreURI],
        configuration: Configuration,
    ) -> DiagnosticsReport:
        """Diagnose a store.

        Args:
            store_uri: The store (and path) to diagnose
            configuration: Base configuration

        Returns:
            The assembled DiagnosticsReport

        Raises:
            ConfigurationError: If the provider cannot patch the configuration.
        """
        uri = StoreURI.parse(store_uri) if isinstance(store_uri, str) else store_uri
        provider = select_provider(uri, self.providers)
        identity = provider.identity()
        log.info("Diagnosing %s with %s", uri, type(provider).__name__)

        if self.reporter:
            self.reporter.on_diagnostics_start(str(uri), identity)

        patched = self._patch_configuration(provider, configuration)

        options = tuple(
            OptionValue(spec.key, redact(patched.get(spec.key), spec.sensitive), spec.sensitive)
            for spec in provider.option_specs()
        )
        environment = sanitized_environment(provider.environment_specs(), self.environ)

        endpoint_error = None
        try:
            endpoints: Sequence[EndpointSpec] = provider.endpoints_to_probe(patched)
        except (ConfigurationError, ValueError, TypeError) as e:
            log.warning("Cannot determine endpoints for %s: %s", uri, e)
            endpoint_error = str(e)
            endpoints = ()

        probes = self._probe_endpoints(endpoints)

        runner_args: dict[str, Any] = {"reporter": self.reporter}
        if self.name_factory is not None:
            runner_args["name_factory"] = self.name_factory
        runner = SmokeTestRunner(self.filesystem_factory, **runner_args)
        smoke_test = runner.run(patched, uri)

        report = DiagnosticsReport(
            store_uri=str(uri),
            provider=identity,
            options=options,
            probes=probes,
            smoke_test=smoke_test,
            runtime=self.runtime(),
            environment=environment,
            endpoint_error=endpoint_error,
        )

        if self.reporter:
            self.reporter.on_run_complete(report)

        return report

    @staticmethod
    def _patch_configuration(
        provider: DiagnosticsProvider,
        configuration: Configuration,
    ) -> Configuration:
        try:
            return provider.patch_configuration(configuration)
        except ConfigurationError:
            raise
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Unable to patch configuration: {e}") from e

    def _probe_endpoints(self, endpoints: Sequence[EndpointSpec]) -> tuple[ProbeResult, ...]:
        results = tuple(self.probe.probe_all(endpoints, max_workers=self.probe_threads))
        for result in results:
            if not result.ok:
                log.warning("Endpoint %s: %s", result.endpoint.uri, result.error_message)
            if self.reporter:
                self.reporter.on_probe_complete(result)
        return results
