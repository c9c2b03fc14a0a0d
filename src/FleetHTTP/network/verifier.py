# === NAVMAP v1 ===
# {
#   "module": "FleetHTTP.network.verifier",
#   "purpose": "Pluggable TLS verification strategy and peer certificate model.",
#   "sections": [
#     {
#       "id": "certificate",
#       "name": "Certificate",
#       "anchor": "class-certificate",
#       "kind": "class"
#     },
#     {
#       "id": "verifier",
#       "name": "Verifier",
#       "anchor": "class-verifier",
#       "kind": "class"
#     },
#     {
#       "id": "sslverifier",
#       "name": "SSLVerifier",
#       "anchor": "class-sslverifier",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Pluggable TLS verification strategy.

The connection stack never inspects certificates itself. It asks a
:class:`Verifier` for the peer certificates of the last handshake and for the
verification errors it collected, and uses those to build diagnostics and
expiry warnings.

:class:`SSLVerifier` is the default strategy: it verifies against the system
trust store plus the certifi bundle and records what it saw through the
``observe_response``/``observe_failure`` hooks the default transport calls.
"""

from __future__ import annotations

import logging
import ssl
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, FrozenSet, List, Mapping, Optional, Protocol, Sequence

import certifi
import httpx

logger = logging.getLogger(__name__)


# ============================================================================
# Certificate
# ============================================================================


@dataclass(frozen=True)
class Certificate:
    """Subset of a peer certificate needed for diagnostics.

    Attributes:
        name: Subject common name
        subject_alternative_names: DNS names from the subjectAltName extension
        not_after: Expiry instant (timezone-aware), when known
    """

    name: str
    subject_alternative_names: FrozenSet[str] = field(default_factory=frozenset)
    not_after: Optional[datetime] = None

    @classmethod
    def from_peercert(cls, peercert: Mapping[str, Any]) -> "Certificate":
        """Build from the dict returned by :meth:`ssl.SSLSocket.getpeercert`."""
        name = ""
        for rdn in peercert.get("subject", ()):
            for key, value in rdn:
                if key == "commonName" and not name:
                    name = value

        sans = frozenset(
            value for kind, value in peercert.get("subjectAltName", ()) if kind == "DNS"
        )

        not_after = None
        if peercert.get("notAfter"):
            not_after = datetime.fromtimestamp(
                ssl.cert_time_to_seconds(peercert["notAfter"]), tz=timezone.utc
            )

        return cls(name=name, subject_alternative_names=sans, not_after=not_after)


# ============================================================================
# Verifier Protocol
# ============================================================================


class Verifier(Protocol):
    """Verification strategy consumed by the connection stack."""

    def peer_certificates(self) -> Sequence[Certificate]:
        """Certificates presented in the last handshake, root first, leaf last."""
        ...

    def verification_errors(self) -> Sequence[str]:
        """Errors collected while verifying the last handshake."""
        ...


# ============================================================================
# Default Verifier
# ============================================================================


class SSLVerifier:
    """Verify peers against system certificates plus the certifi bundle.

    Only the leaf certificate is available from the standard library after
    the handshake, so :meth:`peer_certificates` holds at most one entry.

    Handshake state is kept per thread: a verifier shared by connections on
    several threads reports to each thread what its own last handshake saw.
    """

    def __init__(
        self,
        cafile: Optional[str] = None,
        context: Optional[ssl.SSLContext] = None,
    ) -> None:
        self._context = context or self._create_ssl_context(cafile)
        self._local = threading.local()

    @staticmethod
    def _create_ssl_context(cafile: Optional[str]) -> ssl.SSLContext:
        ctx = ssl.create_default_context(cafile=cafile or certifi.where())
        ctx.check_hostname = True
        ctx.verify_mode = ssl.CERT_REQUIRED
        return ctx

    def _state(self) -> threading.local:
        state = self._local
        if not hasattr(state, "errors"):
            state.peer_certs = []
            state.errors = []
        return state

    def ssl_context(self) -> ssl.SSLContext:
        return self._context

    def peer_certificates(self) -> List[Certificate]:
        return list(self._state().peer_certs)

    def verification_errors(self) -> List[str]:
        return list(self._state().errors)

    def reset(self) -> None:
        """Forget the calling thread's state from its previous handshake."""
        state = self._state()
        state.peer_certs = []
        state.errors = []

    def observe_response(self, response: httpx.Response) -> None:
        """Capture the leaf certificate from the response's TLS stream."""
        stream = response.extensions.get("network_stream")
        if stream is None:
            return
        ssl_object = stream.get_extra_info("ssl_object")
        if ssl_object is None:
            return
        try:
            peercert = ssl_object.getpeercert()
        except (ValueError, OSError) as exc:
            logger.debug("Peer certificate unavailable", extra={"error": str(exc)})
            return
        if not peercert:
            return
        self._state().peer_certs = [Certificate.from_peercert(peercert)]

    def observe_failure(self, error: ssl.SSLError) -> None:
        """Record the verification reason carried by an ssl failure."""
        message = getattr(error, "verify_message", None)
        if not message:
            return
        code = getattr(error, "verify_code", None)
        entry = f"{message} (code {code})" if code is not None else message
        self._state().errors.append(entry)
        logger.debug("TLS verification error recorded", extra={"verify_error": entry})

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


__all__ = ["Certificate", "Verifier", "SSLVerifier"]
