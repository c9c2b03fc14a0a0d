"""Network subsystem: connection facade, redirect/retry coordination, TLS diagnostics.

This package provides a site-aware HTTP client stack based on:
- HTTPX: HTTP/1.1 client used by the default transports
- Tenacity: bounded fixed-backoff retries for idempotent requests
- certifi: CA bundle for the default TLS verifier

Modules:
- connection: public ``Connection`` facade with per-verb idempotency defaults
- redirect: redirect loop with cross-origin credential guard
- retry: Tenacity-based retries on 500/502/503/504 and transport failures
- executor: single request execution plus certificate expiry check
- tls: classification of TLS failures into actionable errors
- pool: site-bound transports and the keepalive pool that leases them
- verifier: pluggable TLS verification strategy
- site, request, options: value types
- policy: limits, status codes, timeouts and backoff constants
- instrumentation: request timing hooks for structured logging

Example:
    >>> from FleetHTTP.network import Connection, ConnectionPool
    >>> with ConnectionPool() as pool:
    ...     conn = Connection("server.example.org", 8140, {"retry_limit": 1}, pool=pool)
    ...     response = conn.get("/status")
"""

from FleetHTTP.network.connection import Connection
from FleetHTTP.network.executor import RequestExecutor
from FleetHTTP.network.options import (
    BasicAuth,
    ConnectionOptions,
    RequestOptions,
    validate_options,
)
from FleetHTTP.network.pool import ConnectionPool, DummyPool, HttpxTransport, Transport
from FleetHTTP.network.redirect import RedirectCoordinator, rewrite_for_redirect
from FleetHTTP.network.request import Request
from FleetHTTP.network.retry import RetryCoordinator, is_transient_error
from FleetHTTP.network.site import Site
from FleetHTTP.network.tls import classify_tls_error, guarded_connection
from FleetHTTP.network.verifier import Certificate, SSLVerifier, Verifier

__all__ = [
    # Facade
    "Connection",
    # Coordinators
    "RedirectCoordinator",
    "RetryCoordinator",
    "RequestExecutor",
    "rewrite_for_redirect",
    "is_transient_error",
    # TLS
    "classify_tls_error",
    "guarded_connection",
    "Certificate",
    "Verifier",
    "SSLVerifier",
    # Pooling
    "ConnectionPool",
    "DummyPool",
    "HttpxTransport",
    "Transport",
    # Values
    "Site",
    "Request",
    "BasicAuth",
    "ConnectionOptions",
    "RequestOptions",
    "validate_options",
]
