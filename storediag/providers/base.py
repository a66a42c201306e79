"""Diagnostics provider interface and the default (no-op) variant."""

from abc import ABC, abstractmethod
from typing import Sequence

from storediag.config import Configuration
from storediag.models import EndpointSpec, OptionSpec, ProviderIdentity
from storediag.uri import StoreURI


class DiagnosticsProvider(ABC):
    """Store-specific diagnostics logic for one URI scheme.

    A provider declares what to report about a store: its identity, the
    configuration options and environment variables that matter to it,
    how the raw configuration is patched before the store would use it,
    and which network endpoints the store talks to.
    """

    def __init__(self, store_uri: StoreURI):
        self.store_uri = store_uri

    @abstractmethod
    def identity(self) -> ProviderIdentity:
        pass

    @abstractmethod
    def option_specs(self) -> Sequence[OptionSpec]:
        """Options to display, in display order."""
        pass

    @abstractmethod
    def environment_specs(self) -> Sequence[OptionSpec]:
        """Environment variables to display, in display order."""
        pass

    @abstractmethod
    def patch_configuration(self, configuration: Configuration) -> Configuration:
        """Return the configuration as the store will see it at initialization.

        Raises:
            ConfigurationError: If the settings are malformed.
        """
        pass

    @abstractmethod
    def endpoints_to_probe(self, configuration: Configuration) -> Sequence[EndpointSpec]:
        """List endpoints for DNS lookup and connection.

        Args:
            configuration: The already patched configuration.

        Raises:
            ConfigurationError: If an endpoint setting is malformed.
        """
        pass


class DefaultDiagnostics(DiagnosticsProvider):
    """Provider for stores with no specific diagnostics.

    Reports nothing beyond the scheme and leaves the configuration alone,
    so an unknown store type never fails diagnostics by itself.
    """

    def identity(self) -> ProviderIdentity:
        return ProviderIdentity(name=f"Store for scheme {self.store_uri.scheme}")

    def option_specs(self) -> Sequence[OptionSpec]:
        return ()

    def environment_specs(self) -> Sequence[OptionSpec]:
        return ()

    def patch_configuration(self, configuration: Configuration) -> Configuration:
        return configuration

    def endpoints_to_probe(self, configuration: Configuration) -> Sequence[EndpointSpec]:
        return ()
