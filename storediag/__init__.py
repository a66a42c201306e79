"""Diagnostics for object store connectors.

Prints the sanitized connector configuration, probes the store's network
endpoints and runs a small filesystem smoke test against the store.
"""

__version__ = "1.0.0"

from storediag.cli import main

__all__ = ["main", "__version__"]
