# === NAVMAP v1 ===
# {
#   "module": "FleetHTTP.network.instrumentation",
#   "purpose": "HTTP transport instrumentation via structured logging.",
#   "sections": [
#     {
#       "id": "create-http-event-hooks",
#       "name": "create_http_event_hooks",
#       "anchor": "function-create-http-event-hooks",
#       "kind": "function"
#     },
#     {
#       "id": "redact-url",
#       "name": "redact_url",
#       "anchor": "function-redact-url",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""HTTP transport instrumentation.

Logs one ``net.request`` record per HTTP exchange made by a pooled transport,
capturing method, redacted URL, status and elapsed time.
"""

import logging
import time
from typing import Any
from urllib.parse import urlparse, urlunparse

logger = logging.getLogger(__name__)


def create_http_event_hooks() -> dict:
    """Create HTTPX event hooks that log request timings.

    Returns:
        Dict with 'request' and 'response' hooks for an HTTPX client

    Usage:
        >>> import httpx
        >>> hooks = create_http_event_hooks()
        >>> client = httpx.Client(event_hooks=hooks)
    """
    request_start_time: dict[int, float] = {}

    def on_request(request: Any) -> None:
        request_start_time[id(request)] = time.perf_counter()

    def on_response(response: Any) -> None:
        start_time = request_start_time.pop(id(response.request), None)
        if start_time is None:
            return

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            "net.request",
            extra={
                "method": response.request.method,
                "url_redacted": redact_url(str(response.request.url)),
                "host": response.request.url.host or "unknown",
                "status": response.status_code,
                "http_version": response.http_version,
                "elapsed_ms": round(elapsed_ms, 3),
            },
        )

    return {
        "request": [on_request],
        "response": [on_response],
    }


def redact_url(url: str) -> str:
    """Redact query strings and credentials from a URL.

    Keeps only scheme, host, port and path.
    """
    try:
        parsed = urlparse(url)
        netloc = parsed.hostname or ""
        if parsed.port:
            netloc = f"{netloc}:{parsed.port}"
        return urlunparse((parsed.scheme, netloc, parsed.path, "", "", ""))
    except ValueError:
        return "[URL_REDACTION_FAILED]"


__all__ = [
    "create_http_event_hooks",
    "redact_url",
]
