"""Endpoint probing: DNS resolution followed by an optional connection.

Probes never raise; every failure ends up in the ``ProbeResult``.
"""

import logging
import socket
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Sequence

import httpx

from storediag.models import EndpointSpec, ProbeOutcome, ProbeResult, ResolvedAddress
from storediag.timing import Duration

log = logging.getLogger(__name__)

# Seconds allowed for a connection attempt
DEFAULT_CONNECT_TIMEOUT = 10.0

# Worker threads used by probe_all
DEFAULT_PROBE_THREADS = 4

Resolver = Callable[[str], Sequence[ResolvedAddress]]
Connector = Callable[[EndpointSpec], Optional[str]]


def resolve_host(hostname: str) -> list[ResolvedAddress]:
    """Resolve a hostname to its addresses, in resolver order.

    Raises:
        OSError: (``socket.gaierror``) If the name cannot be resolved.
    """
    results = socket.getaddrinfo(
        hostname, None, proto=socket.IPPROTO_TCP, flags=socket.AI_CANONNAME
    )
    canonical = hostname
    for _, _, _, canonname, _ in results:
        if canonname:
            canonical = canonname
            break

    addresses: list[ResolvedAddress] = []
    seen: set[str] = set()
    for _, _, _, _, sockaddr in results:
        address = sockaddr[0]
        if address in seen:
            continue
        seen.add(address)
        addresses.append(ResolvedAddress(address=address, hostname=canonical))
    return addresses


class HttpConnector:
    """Connects to endpoints: HTTP HEAD for http/https, plain TCP otherwise.

    Any HTTP response counts as a successful connection, including 4xx and
    5xx responses; a store rejecting an anonymous request is still reachable.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_CONNECT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        self.timeout = timeout
        self._client = client

    def __call__(self, endpoint: EndpointSpec) -> Optional[str]:
        """Connect to an endpoint.

        Returns:
            A short description of what was received.

        Raises:
            httpx.HTTPError: On HTTP transport failures.
            OSError: On TCP connection failures.
        """
        if endpoint.scheme in ("http", "https"):
            return self._head(endpoint)

        with socket.create_connection((endpoint.host, endpoint.port), timeout=self.timeout) as sock:
            peer = sock.getpeername()
        return f"TCP connection to {peer[0]}:{peer[1]}"

    def _head(self, endpoint: EndpointSpec) -> str:
        if self._client is not None:
            response = self._client.head(endpoint.uri)
        else:
            with httpx.Client(timeout=self.timeout, follow_redirects=False) as client:
                response = client.head(endpoint.uri)
        return f"HTTP {response.status_code} {response.reason_phrase}".rstrip()


class EndpointProbe:
    """Resolves and connects to endpoints.

    Args:
        resolver: Hostname resolver (defaults to the system resolver)
        connector: Connection attempt; None disables connecting
    """

    def __init__(
        self,
        resolver: Resolver = resolve_host,
        connector: Optional[Connector] = None,
    ):
        self.resolver = resolver
        self.connector = connector

    def probe(self, endpoint: EndpointSpec) -> ProbeResult:
        """Probe one endpoint. Never raises."""
        duration = Duration(log, "Probing %s", endpoint.uri).start()
        try:
            return self._probe(endpoint, duration)
        except Exception as e:
            return ProbeResult(
                endpoint=endpoint,
                outcome=ProbeOutcome.CONNECT_FAILURE,
                elapsed_seconds=duration.finish(),
                error_message=f"Unexpected error: {e}",
            )

    def _probe(self, endpoint: EndpointSpec, duration: Duration) -> ProbeResult:
        host = endpoint.host
        try:
            addresses = tuple(self.resolver(host))
        except (OSError, ValueError) as e:
            return ProbeResult(
                endpoint=endpoint,
                outcome=ProbeOutcome.RESOLUTION_FAILURE,
                elapsed_seconds=duration.finish(),
                error_message=f"Unable to resolve {host}: {e}",
            )

        if not addresses:
            return ProbeResult(
                endpoint=endpoint,
                outcome=ProbeOutcome.RESOLUTION_FAILURE,
                elapsed_seconds=duration.finish(),
                error_message=f"No addresses found for {host}",
            )

        connect_detail = None
        if endpoint.connect and self.connector is not None:
            try:
                connect_detail = self.connector(endpoint)
            except (httpx.HTTPError, OSError) as e:
                return ProbeResult(
                    endpoint=endpoint,
                    outcome=ProbeOutcome.CONNECT_FAILURE,
                    addresses=addresses,
                    elapsed_seconds=duration.finish(),
                    error_message=f"Unable to connect to {endpoint.uri}: {e}",
                )

        return ProbeResult(
            endpoint=endpoint,
            outcome=ProbeOutcome.SUCCESS,
            addresses=addresses,
            elapsed_seconds=duration.finish(),
            connect_detail=connect_detail,
        )

    def probe_all(
        self,
        endpoints: Sequence[EndpointSpec],
        max_workers: int = DEFAULT_PROBE_THREADS,
    ) -> list[ProbeResult]:
        """Probe endpoints concurrently.

        Returns:
            Results in the same order as ``endpoints``.
        """
        if not endpoints:
            return []
        if max_workers <= 1 or len(endpoints) == 1:
            return [self.probe(endpoint) for endpoint in endpoints]

        with ThreadPoolExecutor(max_workers=min(max_workers, len(endpoints))) as executor:
            return list(executor.map(self.probe, endpoints))
