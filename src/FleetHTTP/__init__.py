"""FleetHTTP: site-aware HTTP(S) connections with redirects, retries and TLS diagnostics.

The network subpackage is imported first so that settings, which read their
defaults from ``FleetHTTP.network.policy``, resolve against an initialised
package.
"""

from FleetHTTP.network import Connection, ConnectionPool, DummyPool, SSLVerifier, Site
from FleetHTTP.errors import (
    CertificateVerificationError,
    FleetHTTPError,
    HostnameMismatchError,
    RedirectionLimitExceeded,
    RetryLimitExceeded,
    TLSVerificationError,
    UnrecognizedOption,
)
from FleetHTTP.settings import ClientSettings, get_settings

__version__ = "0.1.0"

__all__ = [
    "Connection",
    "ConnectionPool",
    "DummyPool",
    "SSLVerifier",
    "Site",
    "ClientSettings",
    "get_settings",
    "FleetHTTPError",
    "UnrecognizedOption",
    "RedirectionLimitExceeded",
    "RetryLimitExceeded",
    "TLSVerificationError",
    "CertificateVerificationError",
    "HostnameMismatchError",
]
