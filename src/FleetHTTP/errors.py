"""Exception hierarchy shared across the FleetHTTP connection stack.

Requests flow through option validation, redirect following, bounded retries
and TLS verification. This module groups the failure modes of those layers so
caller code can react to high-level categories (configuration mistakes,
exhausted limits, TLS trust problems) while still having access to the
specialised subclasses when finer-grained handling is required.
"""

from __future__ import annotations

from typing import Optional, Sequence

__all__ = [
    "FleetHTTPError",
    "UnrecognizedOption",
    "RedirectionLimitExceeded",
    "RetryLimitExceeded",
    "TLSVerificationError",
    "CertificateVerificationError",
    "HostnameMismatchError",
]


class FleetHTTPError(RuntimeError):
    """Base exception for connection, redirect, retry, or TLS failures."""


class UnrecognizedOption(FleetHTTPError):
    """Raised when a connection or request is given an unknown option key."""

    def __init__(self, keys: Sequence[str]) -> None:
        self.keys = tuple(sorted(keys))
        super().__init__(
            "Unrecognized option(s): " + ", ".join(repr(key) for key in self.keys)
        )


class RedirectionLimitExceeded(FleetHTTPError):
    """Raised when a redirect chain outlasts the configured redirect limit."""

    def __init__(self, host: str, port: int) -> None:
        self.host = host
        self.port = port
        super().__init__(f"Too many HTTP redirections for {host}:{port}")


class RetryLimitExceeded(FleetHTTPError):
    """Raised when the final retry attempt ended in a transport error."""

    def __init__(self, host: str, port: int, attempts: int) -> None:
        self.host = host
        self.port = port
        self.attempts = attempts
        super().__init__(f"Too many HTTP retries for {host}:{port}")


class TLSVerificationError(FleetHTTPError):
    """Raised when a TLS failure has been rewritten with diagnostic detail."""


class CertificateVerificationError(TLSVerificationError):
    """Peer certificate chain failed verification."""

    def __init__(self, message: str, *, verification_errors: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.verification_errors = tuple(verification_errors)


class HostnameMismatchError(TLSVerificationError):
    """Server certificate does not cover the host that was dialled."""

    def __init__(
        self,
        message: str,
        *,
        hostname: str,
        expected: Optional[Sequence[str]] = None,
    ) -> None:
        super().__init__(message)
        self.hostname = hostname
        self.expected = tuple(expected or ())
