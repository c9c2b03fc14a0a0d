# === NAVMAP v1 ===
# {
#   "module": "FleetHTTP.network.policy",
#   "purpose": "HTTP policy constants and defaults.",
#   "sections": []
# }
# === /NAVMAP ===

"""HTTP policy constants and defaults.

Defines the redirect and retry limits, retry-eligible status codes, fixed
backoff interval, timeout budgets and keepalive parameters shared by the
connection facade, the coordinators and the default connection pool.
"""

# ============================================================================
# Option Defaults
# ============================================================================

#: Connect with TLS unless told otherwise
DEFAULT_USE_SSL = True

#: Redirect hops allowed before giving up (redirect_limit + 1 hops in total)
DEFAULT_REDIRECT_LIMIT = 10

#: Retries per hop for idempotent requests (retry_limit + 1 attempts in total)
DEFAULT_RETRY_LIMIT = 2


# ============================================================================
# Status Codes
# ============================================================================

#: Responses that are followed as redirects
REDIRECT_STATUS_CODES = frozenset({301, 302, 307})

#: Transient server failures that an idempotent request may retry
RETRYABLE_STATUS_CODES = frozenset({500, 502, 503, 504})

#: Headers that must not follow a redirect to a different host
SENSITIVE_REDIRECT_HEADERS = frozenset({"authorization", "cookie"})


# ============================================================================
# Backoff
# ============================================================================

#: Fixed pause between retry attempts (seconds); no jitter, no growth
RETRY_BACKOFF_SECONDS = 3.0


# ============================================================================
# Timeout Budgets (seconds)
# ============================================================================

#: Connection establishment timeout (TCP + TLS handshake)
HTTP_CONNECT_TIMEOUT = 10.0

#: Read timeout (time between data packets on an established connection)
HTTP_READ_TIMEOUT = 60.0

#: Write timeout (time to send request body)
HTTP_WRITE_TIMEOUT = 60.0

#: Pool timeout (acquiring a socket inside one transport)
HTTP_POOL_TIMEOUT = 5.0


# ============================================================================
# Keepalive
# ============================================================================

#: How long an idle pooled transport may wait before it is closed (seconds)
KEEPALIVE_TIMEOUT = 4.0


# ============================================================================
# Certificate Expiry
# ============================================================================

#: Warn when a peer certificate expires within this window (seconds)
CERTIFICATE_EXPIRE_WARNING = 60 * 24 * 3600  # 60 days

#: Minimum gap between two warnings about the same certificate (seconds)
CERTIFICATE_WARNING_INTERVAL = 24 * 3600  # once per day


__all__ = [
    # Option defaults
    "DEFAULT_USE_SSL",
    "DEFAULT_REDIRECT_LIMIT",
    "DEFAULT_RETRY_LIMIT",
    # Status codes
    "REDIRECT_STATUS_CODES",
    "RETRYABLE_STATUS_CODES",
    "SENSITIVE_REDIRECT_HEADERS",
    # Backoff
    "RETRY_BACKOFF_SECONDS",
    # Timeouts
    "HTTP_CONNECT_TIMEOUT",
    "HTTP_READ_TIMEOUT",
    "HTTP_WRITE_TIMEOUT",
    "HTTP_POOL_TIMEOUT",
    # Keepalive
    "KEEPALIVE_TIMEOUT",
    # Certificates
    "CERTIFICATE_EXPIRE_WARNING",
    "CERTIFICATE_WARNING_INTERVAL",
]
