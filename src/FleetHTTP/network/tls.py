# === NAVMAP v1 ===
# {
#   "module": "FleetHTTP.network.tls",
#   "purpose": "Translate TLS failures into actionable diagnostics.",
#   "sections": [
#     {
#       "id": "find-ssl-error",
#       "name": "find_ssl_error",
#       "anchor": "function-find-ssl-error",
#       "kind": "function"
#     },
#     {
#       "id": "classify-tls-error",
#       "name": "classify_tls_error",
#       "anchor": "function-classify-tls-error",
#       "kind": "function"
#     },
#     {
#       "id": "guarded-connection",
#       "name": "guarded_connection",
#       "anchor": "function-guarded-connection",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Translate TLS failures into actionable diagnostics.

Every transport lease runs through :func:`guarded_connection`. When the lease
fails because of an ssl error, the error text is matched against a small
table of known failure shapes and rewritten:

- ``certificate verify failed``: the verifier's collected errors are appended.
- hostname does not match the server certificate: the names the leaf
  certificate does cover are listed.

Anything else propagates unchanged.

Note:
    Classification matches on error text, which OpenSSL and the ``ssl``
    module do not guarantee to keep stable between versions.

    With the default :class:`~FleetHTTP.network.verifier.SSLVerifier`,
    CPython reports a hostname mismatch as ``certificate verify failed:
    Hostname mismatch, ...``. Such failures take the first rule and carry the
    verifier's ``Hostname mismatch`` entry; no peer certificate is available
    after a failed handshake. The hostname rule covers verifiers and TLS
    stacks that report mismatches separately.
"""

from __future__ import annotations

import logging
import re
import ssl
from typing import Any, Callable, List, Optional, Tuple, TypeVar

from FleetHTTP.errors import (
    CertificateVerificationError,
    HostnameMismatchError,
    TLSVerificationError,
)
from FleetHTTP.network.site import Site

logger = logging.getLogger(__name__)

T = TypeVar("T")

_HOSTNAME_MISMATCH = re.compile(r"hostname.*not match.*server certificate", re.IGNORECASE)


def find_ssl_error(exc: BaseException) -> Optional[ssl.SSLError]:
    """Return the first :class:`ssl.SSLError` in ``exc``'s cause/context chain."""
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, ssl.SSLError):
            return current
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return None


def _certificate_verify_failed(message: str) -> bool:
    return "certificate verify failed" in message


def _hostname_mismatch(message: str) -> bool:
    return _HOSTNAME_MISMATCH.search(message) is not None


def _build_verify_failed(message: str, site: Site, verifier: Any) -> TLSVerificationError:
    errors = list(verifier.verification_errors())
    return CertificateVerificationError(
        f"{message}: [{'; '.join(errors)}]",
        verification_errors=errors,
    )


def _build_hostname_mismatch(message: str, site: Site, verifier: Any) -> TLSVerificationError:
    certs = list(verifier.peer_certificates())
    if not certs:
        return HostnameMismatchError(
            f"Server hostname '{site.host}' did not match server certificate",
            hostname=site.host,
        )

    leaf = certs[-1]
    names: List[str] = []
    for name in [leaf.name, *sorted(leaf.subject_alternative_names)]:
        if name and name not in names:
            names.append(name)

    expected = f"one of {', '.join(names)}" if len(names) > 1 else (names[0] if names else "")
    return HostnameMismatchError(
        f"Server hostname '{site.host}' did not match server certificate; expected {expected}",
        hostname=site.host,
        expected=names,
    )


#: Ordered (predicate on error text) -> (replacement builder) pairs
TLS_FAILURE_RULES: Tuple[
    Tuple[Callable[[str], bool], Callable[[str, Site, Any], TLSVerificationError]], ...
] = (
    (_certificate_verify_failed, _build_verify_failed),
    (_hostname_mismatch, _build_hostname_mismatch),
)


def classify_tls_error(
    error: BaseException, site: Site, verifier: Any
) -> Optional[TLSVerificationError]:
    """Rewrite a recognised TLS failure, or return ``None`` to keep the original.

    Args:
        error: Exception raised while using a transport
        site: Site the transport was bound to
        verifier: Verifier used for the handshake

    Returns:
        Replacement exception for recognised failures, else ``None``
    """
    ssl_error = find_ssl_error(error)
    if ssl_error is None:
        return None

    message = str(ssl_error)
    for matches, build in TLS_FAILURE_RULES:
        if matches(message):
            return build(message, site, verifier)
    return None


def guarded_connection(
    pool: Any,
    site: Site,
    verifier: Any,
    callback: Callable[[Any], T],
) -> T:
    """Run ``callback`` on a transport leased from ``pool`` with TLS diagnostics.

    Raises:
        CertificateVerificationError: Peer chain failed verification
        HostnameMismatchError: Server certificate does not cover ``site.host``
    """
    try:
        return pool.with_connection(site, verifier, callback)
    except TLSVerificationError:
        raise
    except Exception as exc:
        replacement = classify_tls_error(exc, site, verifier)
        if replacement is None:
            raise
        logger.debug(
            "TLS failure classified",
            extra={
                "site": site.addr,
                "error_type": type(replacement).__name__,
            },
        )
        raise replacement from exc


__all__ = [
    "TLS_FAILURE_RULES",
    "classify_tls_error",
    "find_ssl_error",
    "guarded_connection",
]
