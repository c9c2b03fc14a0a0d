# === NAVMAP v1 ===
# {
#   "module": "FleetHTTP.network.redirect",
#   "purpose": "Redirect following across sites with a cross-origin credential guard.",
#   "sections": [
#     {
#       "id": "redirectcoordinator",
#       "name": "RedirectCoordinator",
#       "anchor": "class-redirectcoordinator",
#       "kind": "class"
#     },
#     {
#       "id": "rewrite-for-redirect",
#       "name": "rewrite_for_redirect",
#       "anchor": "function-rewrite-for-redirect",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Redirect following across sites with a cross-origin credential guard.

Redirects are followed hop by hop because pooled transports and TLS trust are
bound to a :class:`~FleetHTTP.network.site.Site`; every hop leases a transport
for the site the previous hop pointed at.

Design:
- **Explicit hops**: 301, 302 and 307 are followed; every other status ends
  the chain and is returned as-is
- **Bounded**: at most ``redirect_limit + 1`` hops before
  :class:`~FleetHTTP.errors.RedirectionLimitExceeded`
- **Rebuilt requests**: each hop gets a fresh request carrying the original
  body and the original headers
- **Leak guard**: ``Authorization`` and ``Cookie`` are dropped when the target
  host differs from the original host, unless ``location_trusted`` is set
- **Decorate once**: basic auth is applied to the original request on the
  first hop only

Example:
    >>> coordinator = RedirectCoordinator(pool, verifier, executor, retry, site, 10)
    >>> response = coordinator.follow(Request("GET", "/status"), RequestOptions())
"""

import logging
from typing import Any, List, Optional, Tuple

import httpx

from FleetHTTP.errors import RedirectionLimitExceeded
from FleetHTTP.network.executor import RequestExecutor
from FleetHTTP.network.instrumentation import redact_url
from FleetHTTP.network.options import RequestOptions
from FleetHTTP.network.policy import REDIRECT_STATUS_CODES, SENSITIVE_REDIRECT_HEADERS
from FleetHTTP.network.request import Request
from FleetHTTP.network.retry import RetryCoordinator
from FleetHTTP.network.site import DEFAULT_PORTS, Site
from FleetHTTP.network.tls import guarded_connection
from FleetHTTP.settings import ClientSettings, get_settings

logger = logging.getLogger(__name__)


# ============================================================================
# Request Rewriting
# ============================================================================


def rewrite_for_redirect(
    original: Request,
    location: httpx.URL,
    *,
    original_host: str,
    location_trusted: bool = False,
) -> Tuple[Request, List[str]]:
    """Build the request for the next hop.

    Args:
        original: The request the caller issued (not the previous hop's)
        location: Absolute redirect target
        original_host: Host the caller's request was addressed to
        location_trusted: Forward credentials to other hosts as well

    Returns:
        Tuple of (new request, names of headers dropped by the leak guard)
    """
    path = location.raw_path.decode("ascii")
    rewritten = original.copy_for(path)
    rewritten.body = original.body

    cross_origin = location.host.lower() != original_host.lower()
    kept: List[Tuple[str, str]] = []
    dropped: List[str] = []
    for name, value in original.header_items():
        if (
            not location_trusted
            and cross_origin
            and name.lower() in SENSITIVE_REDIRECT_HEADERS
        ):
            dropped.append(name)
            continue
        kept.append((name, value))
    rewritten.headers = httpx.Headers(kept)
    return rewritten, dropped


# ============================================================================
# Coordinator
# ============================================================================


class RedirectCoordinator:
    """Drive the redirect loop for requests issued against one endpoint."""

    def __init__(
        self,
        pool: Any,
        verifier: Any,
        executor: RequestExecutor,
        retry: RetryCoordinator,
        site: Site,
        redirect_limit: int,
        settings: Optional[ClientSettings] = None,
    ) -> None:
        if redirect_limit < 0:
            raise ValueError(f"redirect_limit must be >= 0, got {redirect_limit}")
        self.redirect_limit = redirect_limit
        self._pool = pool
        self._verifier = verifier
        self._executor = executor
        self._retry = retry
        self._site = site
        self._settings = settings or get_settings()

    def follow(self, request: Request, options: RequestOptions) -> httpx.Response:
        """Send ``request``, following redirects until a terminal response.

        Raises:
            RedirectionLimitExceeded: If every allowed hop was a redirect
            RetryLimitExceeded: If an idempotent hop ran out of attempts
            TLSVerificationError: If a hop failed TLS verification
        """
        current_request = request
        current_site = self._site

        for hop in range(self.redirect_limit + 1):

            def run_hop(transport: Any, hop_request: Request = current_request, hop: int = hop):
                if hop == 0:
                    self._apply_options(hop_request, options)
                if options.idempotent:
                    return self._retry.execute_with_retries(transport, hop_request)
                return self._executor.execute(transport, hop_request)

            response = guarded_connection(self._pool, current_site, self._verifier, run_hop)

            if response.status_code not in REDIRECT_STATUS_CODES:
                logger.debug(
                    "Redirect following complete",
                    extra={"final_status": response.status_code, "hops": hop + 1},
                )
                return response

            raw_location = response.headers.get("location")
            if not raw_location:
                logger.warning(
                    "Redirect response without Location header; returning it as-is",
                    extra={"site": current_site.addr, "status": response.status_code},
                )
                return response

            try:
                location = current_site.base_url.join(raw_location)
            except httpx.InvalidURL as exc:
                logger.warning(
                    "Redirect Location is not a valid URL; returning response as-is",
                    extra={
                        "site": current_site.addr,
                        "status": response.status_code,
                        "error": str(exc),
                    },
                )
                return response
            if location.scheme not in DEFAULT_PORTS:
                logger.warning(
                    "Redirect to unsupported scheme; returning response as-is",
                    extra={
                        "site": current_site.addr,
                        "status": response.status_code,
                        "scheme": location.scheme,
                    },
                )
                return response

            next_site = current_site.move_to(location)
            current_request, dropped = rewrite_for_redirect(
                request,
                location,
                original_host=self._site.host,
                location_trusted=self._settings.location_trusted,
            )
            logger.debug(
                "Following redirect",
                extra={
                    "from": current_site.addr,
                    "to": redact_url(str(location)),
                    "status": response.status_code,
                    "hop": hop + 1,
                    "dropped_headers": dropped,
                },
            )
            current_site = next_site

        raise RedirectionLimitExceeded(self._site.host, self._site.port)

    @staticmethod
    def _apply_options(request: Request, options: RequestOptions) -> None:
        if options.basic_auth is not None:
            request.basic_auth(options.basic_auth.user, options.basic_auth.password)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(site={self._site}, redirect_limit={self.redirect_limit})"


__all__ = ["REDIRECT_STATUS_CODES", "RedirectCoordinator", "rewrite_for_redirect"]
