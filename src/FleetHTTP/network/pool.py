# === NAVMAP v1 ===
# {
#   "module": "FleetHTTP.network.pool",
#   "purpose": "Transports bound to a site and verifier, and the pool that leases them.",
#   "sections": [
#     {
#       "id": "transport",
#       "name": "Transport",
#       "anchor": "class-transport",
#       "kind": "class"
#     },
#     {
#       "id": "httpxtransport",
#       "name": "HttpxTransport",
#       "anchor": "class-httpxtransport",
#       "kind": "class"
#     },
#     {
#       "id": "connectionpool",
#       "name": "ConnectionPool",
#       "anchor": "class-connectionpool",
#       "kind": "class"
#     },
#     {
#       "id": "dummypool",
#       "name": "DummyPool",
#       "anchor": "class-dummypool",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Transports bound to a site and verifier, and the pool that leases them.

A transport is an :class:`httpx.Client` pinned to one
:class:`~FleetHTTP.network.site.Site` with redirects disabled (the redirect
coordinator follows them explicitly) and TLS verification supplied by the
caller's verifier.

Key design:
- **Scoped leases**: ``with_connection`` hands a transport to exactly one
  callback and always takes it back, even when the callback raises.
- **Keepalive**: idle transports are reused for the same site and verifier
  until ``keepalive_timeout`` elapses.
- **Failure isolation**: a transport whose callback raised is closed, never
  returned to the idle list.
- **Thread-safe**: the idle list is guarded by a ``threading.Lock``; the
  transports themselves are never shared between concurrent leases.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, TypeVar

import httpx

from FleetHTTP.network.instrumentation import create_http_event_hooks
from FleetHTTP.network.request import Request
from FleetHTTP.network.site import Site
from FleetHTTP.network.tls import find_ssl_error
from FleetHTTP.settings import ClientSettings, get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================================================
# Transports
# ============================================================================


class Transport(Protocol):
    """Opaque request/response capability bound to one site."""

    def send(self, request: Request) -> httpx.Response: ...

    def close(self) -> None: ...


class HttpxTransport:
    """Send :class:`Request` objects to one site through an ``httpx.Client``.

    The verifier is notified of every response (to capture the peer
    certificate) and of every ssl failure (to record why verification failed)
    when it offers ``observe_response``/``observe_failure`` hooks.
    """

    def __init__(
        self,
        site: Site,
        verifier: Any,
        settings: Optional[ClientSettings] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        settings = settings or get_settings()
        self.site = site
        self._verifier = verifier

        hooks = create_http_event_hooks()
        observe = getattr(verifier, "observe_response", None)
        if callable(observe):
            hooks["response"].append(observe)

        client_kwargs: Dict[str, Any] = {}
        ssl_context = getattr(verifier, "ssl_context", None)
        if site.use_ssl and callable(ssl_context):
            client_kwargs["verify"] = ssl_context()

        self._client = httpx.Client(
            base_url=site.base_url,
            transport=http_transport,
            timeout=httpx.Timeout(
                connect=settings.connect_timeout,
                read=settings.read_timeout,
                write=settings.write_timeout,
                pool=settings.pool_timeout,
            ),
            follow_redirects=False,
            event_hooks=hooks,
            **client_kwargs,
        )

    def send(self, request: Request) -> httpx.Response:
        reset = getattr(self._verifier, "reset", None)
        if callable(reset):
            reset()

        outgoing = self._client.build_request(
            request.method,
            request.path,
            headers=request.headers,
            content=request.body,
        )
        try:
            return self._client.send(outgoing)
        except httpx.TransportError as exc:
            ssl_error = find_ssl_error(exc)
            observe = getattr(self._verifier, "observe_failure", None)
            if ssl_error is not None and callable(observe):
                observe(ssl_error)
            raise

    def close(self) -> None:
        self._client.close()

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    def __repr__(self) -> str:
        return f"<HttpxTransport {self.site}>"


TransportFactory = Callable[[Site, Any, ClientSettings], Transport]


def _default_transport_factory(site: Site, verifier: Any, settings: ClientSettings) -> Transport:
    return HttpxTransport(site, verifier, settings)


def _close_quietly(transport: Transport) -> None:
    try:
        transport.close()
    except Exception as exc:
        logger.debug("Error closing transport", extra={"error": str(exc)})


# ============================================================================
# Pools
# ============================================================================


@dataclass
class _IdleEntry:
    transport: Transport
    verifier: Any
    expires_at: float


class ConnectionPool:
    """Keepalive pool of transports keyed by site and verifier."""

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        transport_factory: Optional[TransportFactory] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings or get_settings()
        self._factory = transport_factory or _default_transport_factory
        self._clock = clock
        self._lock = threading.Lock()
        self._idle: Dict[Site, List[_IdleEntry]] = {}

    def with_connection(self, site: Site, verifier: Any, callback: Callable[[Transport], T]) -> T:
        """Lease a transport for ``site`` to ``callback`` and return its result.

        The transport is returned to the pool when ``callback`` returns and
        closed when it raises.
        """
        transport = self.borrow(site, verifier)
        try:
            result = callback(transport)
        except BaseException:
            logger.debug("Closing transport after failed lease", extra={"site": site.addr})
            _close_quietly(transport)
            raise
        self.release(site, verifier, transport)
        return result

    def borrow(self, site: Site, verifier: Any) -> Transport:
        now = self._clock()
        expired: List[Transport] = []
        found: Optional[Transport] = None

        with self._lock:
            entries = self._idle.get(site, [])
            keep: List[_IdleEntry] = []
            for entry in entries:
                if entry.expires_at <= now:
                    expired.append(entry.transport)
                elif found is None and entry.verifier is verifier:
                    found = entry.transport
                else:
                    keep.append(entry)
            if keep:
                self._idle[site] = keep
            else:
                self._idle.pop(site, None)

        for transport in expired:
            logger.debug("Closing expired transport", extra={"site": site.addr})
            _close_quietly(transport)

        if found is not None:
            logger.debug("Reusing pooled transport", extra={"site": site.addr})
            return found

        logger.debug("Opening transport", extra={"site": site.addr})
        return self._factory(site, verifier, self._settings)

    def release(self, site: Site, verifier: Any, transport: Transport) -> None:
        if getattr(transport, "is_closed", False):
            return
        entry = _IdleEntry(transport, verifier, self._clock() + self._settings.keepalive_timeout)
        with self._lock:
            self._idle.setdefault(site, []).append(entry)

    def idle_count(self, site: Optional[Site] = None) -> int:
        with self._lock:
            if site is not None:
                return len(self._idle.get(site, []))
            return sum(len(entries) for entries in self._idle.values())

    def close(self) -> None:
        """Close every idle transport. Safe to call multiple times."""
        with self._lock:
            entries = [entry for bucket in self._idle.values() for entry in bucket]
            self._idle.clear()
        for entry in entries:
            _close_quietly(entry.transport)

    def __enter__(self) -> "ConnectionPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class DummyPool:
    """Pool that opens a fresh transport per lease and always closes it."""

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        transport_factory: Optional[TransportFactory] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._factory = transport_factory or _default_transport_factory

    def with_connection(self, site: Site, verifier: Any, callback: Callable[[Transport], T]) -> T:
        transport = self._factory(site, verifier, self._settings)
        try:
            return callback(transport)
        finally:
            _close_quietly(transport)

    def close(self) -> None:
        pass


__all__ = [
    "Transport",
    "HttpxTransport",
    "TransportFactory",
    "ConnectionPool",
    "DummyPool",
]
