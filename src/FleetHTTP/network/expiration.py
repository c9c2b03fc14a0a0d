"""Peer certificate near-expiry warnings.

After each executed request the peer certificates are checked, and a warning
is logged when one of them expires inside the configured window. Warnings
about the same certificate are rate-limited to one per day. The check is
observability only: it never raises into the request path.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Tuple

from FleetHTTP.network.policy import CERTIFICATE_WARNING_INTERVAL
from FleetHTTP.network.verifier import Certificate

logger = logging.getLogger(__name__)


class ExpirationMonitor:
    """Log a warning for certificates that expire soon."""

    def __init__(
        self,
        warning_window: float,
        interval: float = CERTIFICATE_WARNING_INTERVAL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._warning_window = warning_window
        self._interval = interval
        self._clock = clock
        self._lock = threading.Lock()
        self._last_warned: Dict[Tuple[str, Optional[datetime]], float] = {}

    def check(self, *certs: Certificate) -> int:
        """Warn about each cert expiring within the window.

        Returns:
            Number of warnings actually emitted
        """
        now = self._clock()
        emitted = 0
        for cert in certs:
            if cert.not_after is None:
                continue
            remaining = cert.not_after.timestamp() - now
            if remaining >= self._warning_window:
                continue
            if not self._should_warn((cert.name, cert.not_after), now):
                continue
            logger.warning(
                "Certificate '%s' will expire on %s",
                cert.name,
                cert.not_after.astimezone(timezone.utc).isoformat(),
                extra={"certname": cert.name, "remaining_seconds": int(remaining)},
            )
            emitted += 1
        return emitted

    def _should_warn(self, key: Tuple[str, Optional[datetime]], now: float) -> bool:
        with self._lock:
            last = self._last_warned.get(key)
            if last is not None and now - last < self._interval:
                return False
            self._last_warned[key] = now
            return True


_monitor: Optional[ExpirationMonitor] = None
_monitor_lock = threading.Lock()


def _get_monitor() -> ExpirationMonitor:
    global _monitor

    with _monitor_lock:
        if _monitor is None:
            from FleetHTTP.settings import get_settings

            _monitor = ExpirationMonitor(get_settings().certificate_expire_warning)
        return _monitor


def warn_if_near_expiration(*certs: Certificate) -> None:
    """Check ``certs`` with the shared monitor; errors are logged, not raised."""
    if not certs:
        return
    try:
        _get_monitor().check(*certs)
    except Exception as exc:  # pragma: no cover
        logger.debug("Certificate expiry check failed", extra={"error": str(exc)})


def reset_expiration_monitor() -> None:
    """Forget warning history (primarily for testing)."""
    global _monitor

    with _monitor_lock:
        _monitor = None


__all__ = ["ExpirationMonitor", "warn_if_near_expiration", "reset_expiration_monitor"]
