# === NAVMAP v1 ===
# {
#   "module": "FleetHTTP.network.connection",
#   "purpose": "Public HTTP connection facade for one logical endpoint.",
#   "sections": [
#     {
#       "id": "connection",
#       "name": "Connection",
#       "anchor": "class-connection",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Public HTTP connection facade for one logical endpoint.

A :class:`Connection` is built once per ``host:port`` and reused for many
calls. Its convenience methods mirror the HTTP verbs, set per-method
idempotency defaults and hand the request to the redirect coordinator, which
in turn leases transports from the injected pool.

Notable behaviour:
- Connection options are validated at construction; unknown keys fail
  before any network activity.
- HTTPS requests are verified with the caller's verifier (or a default
  :class:`~FleetHTTP.network.verifier.SSLVerifier`), and TLS failures are
  reported with actionable messages.
- ``get``/``head`` are retried on transient failures by default;
  ``post``/``put``/``delete`` only when the caller passes ``idempotent``.

Example:
    >>> from FleetHTTP.network import Connection, ConnectionPool
    >>> conn = Connection("server.example.org", 8140, pool=ConnectionPool())
    >>> response = conn.get("/status", {"Accept": "application/json"})
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Mapping, Optional, Union

import httpx

from FleetHTTP.network.executor import RequestExecutor
from FleetHTTP.network.expiration import ExpirationMonitor, warn_if_near_expiration
from FleetHTTP.network.options import (
    ConnectionOptions,
    RequestOptions,
    validate_options,
)
from FleetHTTP.network.pool import ConnectionPool
from FleetHTTP.network.redirect import RedirectCoordinator
from FleetHTTP.network.request import Body, Request
from FleetHTTP.network.retry import RetryCoordinator
from FleetHTTP.network.site import Site
from FleetHTTP.network.verifier import SSLVerifier
from FleetHTTP.settings import ClientSettings, get_settings

logger = logging.getLogger(__name__)

Headers = Optional[Mapping[str, str]]
Options = Union[RequestOptions, Mapping[str, Any], None]

_DELETE_DEFAULT_HEADERS = {"Depth": "Infinity"}


class Connection:
    """HTTP client connection to ``host``:``port``.

    Attributes:
        options: Validated connection options
        site: Endpoint every call starts from
    """

    def __init__(
        self,
        host: str,
        port: int,
        options: Union[ConnectionOptions, Mapping[str, Any], None] = None,
        *,
        pool: Optional[Any] = None,
        settings: Optional[ClientSettings] = None,
        executor: Optional[RequestExecutor] = None,
        retry_sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Create a connection; no network activity happens until a request.

        Args:
            host: Host to connect to
            port: Port to connect to
            options: ``use_ssl``, ``verify``, ``redirect_limit`` and
                ``retry_limit``; any other key raises ``UnrecognizedOption``
            pool: Connection pool to lease transports from (defaults to a new
                :class:`ConnectionPool` owned and closed by this connection)
            settings: Settings override (defaults to :func:`get_settings`)
            executor: Request executor override (defaults to one whose expiry
                check uses ``settings.certificate_expire_warning``)
            retry_sleep: Function used for the backoff pause between retries
        """
        self.options = validate_options(ConnectionOptions, options)
        self._settings = settings or get_settings()
        self.site = Site("https" if self.options.use_ssl else "http", host, port)
        self._verifier = self.options.verify or SSLVerifier()
        self._owns_pool = pool is None
        self._pool = pool if pool is not None else ConnectionPool(self._settings)

        if executor is None:
            executor = RequestExecutor(
                self._verifier, check_expiration=self._expiration_check(settings)
            )
        self._executor = executor
        retry = RetryCoordinator(
            self.options.retry_limit,
            self._executor,
            self.site,
            backoff_seconds=self._settings.retry_backoff_seconds,
            sleep=retry_sleep,
        )
        self._redirects = RedirectCoordinator(
            self._pool,
            self._verifier,
            self._executor,
            retry,
            self.site,
            self.options.redirect_limit,
            settings=self._settings,
        )

        logger.debug(
            "Connection created",
            extra={
                "site": self.site.addr,
                "redirect_limit": self.options.redirect_limit,
                "retry_limit": self.options.retry_limit,
            },
        )

    # ------------------------------------------------------------------
    # HTTP verbs
    # ------------------------------------------------------------------

    def get(self, path: str, headers: Headers = None, options: Options = None) -> httpx.Response:
        return self._request_with_redirects(
            Request("GET", path, headers), self._idempotent_by_default(options)
        )

    def head(self, path: str, headers: Headers = None, options: Options = None) -> httpx.Response:
        return self._request_with_redirects(
            Request("HEAD", path, headers), self._idempotent_by_default(options)
        )

    def post(
        self, path: str, data: Body, headers: Headers = None, options: Options = None
    ) -> httpx.Response:
        return self._request_with_redirects(
            Request("POST", path, headers, body=data), validate_options(RequestOptions, options)
        )

    def put(
        self, path: str, data: Body, headers: Headers = None, options: Options = None
    ) -> httpx.Response:
        return self._request_with_redirects(
            Request("PUT", path, headers, body=data), validate_options(RequestOptions, options)
        )

    def delete(
        self, path: str, headers: Headers = None, options: Options = None
    ) -> httpx.Response:
        if headers is None:
            headers = _DELETE_DEFAULT_HEADERS
        return self._request_with_redirects(
            Request("DELETE", path, headers), validate_options(RequestOptions, options)
        )

    def request(self, method: str, *args: Any, **kwargs: Any) -> httpx.Response:
        """Dispatch to the verb method named by ``method`` (e.g. ``"get"``)."""
        handler = getattr(self, method.lower(), None)
        if method.lower() not in {"get", "head", "post", "put", "delete"} or handler is None:
            raise ValueError(f"Unsupported HTTP method: {method!r}")
        return handler(*args, **kwargs)

    def request_get(self, *args: Any, **kwargs: Any) -> httpx.Response:
        return self.get(*args, **kwargs)

    def request_head(self, *args: Any, **kwargs: Any) -> httpx.Response:
        return self.head(*args, **kwargs)

    def request_post(self, *args: Any, **kwargs: Any) -> httpx.Response:
        return self.post(*args, **kwargs)

    # ------------------------------------------------------------------
    # Endpoint details
    # ------------------------------------------------------------------

    @property
    def address(self) -> str:
        return self.site.host

    @property
    def port(self) -> int:
        return self.site.port

    @property
    def use_ssl(self) -> bool:
        return self.site.use_ssl

    @property
    def verifier(self) -> Any:
        return self._verifier

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _idempotent_by_default(options: Options) -> RequestOptions:
        if isinstance(options, RequestOptions):
            if "idempotent" in options.model_fields_set:
                return options
            return options.model_copy(update={"idempotent": True})
        merged = {"idempotent": True}
        merged.update(options or {})
        return validate_options(RequestOptions, merged)

    @staticmethod
    def _expiration_check(settings: Optional[ClientSettings]) -> Callable[..., Any]:
        if settings is None:
            return warn_if_near_expiration
        return ExpirationMonitor(settings.certificate_expire_warning).check

    def _request_with_redirects(self, request: Request, options: RequestOptions) -> httpx.Response:
        return self._redirects.follow(request, options)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the pool if this connection created it; injected pools are left open."""
        if self._owns_pool:
            self._pool.close()

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<Connection {self.site}>"


__all__ = ["Connection"]
