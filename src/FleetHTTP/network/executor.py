"""Single request execution over a leased transport."""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

from FleetHTTP.network.expiration import warn_if_near_expiration
from FleetHTTP.network.request import Request

logger = logging.getLogger(__name__)


class RequestExecutor:
    """Send one request and check the peer certificates afterwards.

    Transport and TLS errors propagate unchanged; classification and retries
    happen in the layers above.
    """

    def __init__(
        self,
        verifier: Any,
        check_expiration: Callable[..., Any] = warn_if_near_expiration,
    ) -> None:
        self._verifier = verifier
        self._check_expiration = check_expiration

    def execute(self, transport: Any, request: Request) -> httpx.Response:
        response = transport.send(request)
        self._warn_if_near_expiration()
        return response

    def _warn_if_near_expiration(self) -> None:
        try:
            certs = self._verifier.peer_certificates()
            self._check_expiration(*certs)
        except Exception as exc:
            logger.debug("Skipping certificate expiry check", extra={"error": str(exc)})


__all__ = ["RequestExecutor"]
