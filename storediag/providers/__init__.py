"""Per-scheme diagnostics providers.

Providers are looked up by exact URI scheme in ``PROVIDERS``; any other
scheme gets ``DefaultDiagnostics``.
"""

from typing import Mapping, Optional

from storediag.providers.base import DefaultDiagnostics, DiagnosticsProvider
from storediag.providers.s3a import S3ADiagnostics
from storediag.uri import StoreURI

PROVIDERS: dict[str, type[DiagnosticsProvider]] = {
    "s3a": S3ADiagnostics,
    "s3": S3ADiagnostics,
}


def select_provider(
    store_uri: StoreURI,
    providers: Optional[Mapping[str, type[DiagnosticsProvider]]] = None,
) -> DiagnosticsProvider:
    """Instantiate the provider registered for the URI's scheme.

    Args:
        store_uri: The store being diagnosed.
        providers: Registry to use instead of ``PROVIDERS``.

    Returns:
        The matching provider, or ``DefaultDiagnostics`` if none matches.
    """
    registry = PROVIDERS if providers is None else providers
    provider_class = registry.get(store_uri.scheme, DefaultDiagnostics)
    return provider_class(store_uri)


__all__ = [
    "DefaultDiagnostics",
    "DiagnosticsProvider",
    "PROVIDERS",
    "S3ADiagnostics",
    "select_provider",
]
