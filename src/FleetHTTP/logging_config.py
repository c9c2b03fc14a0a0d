"""
Structured Logging Utilities

This module centralizes logging setup for FleetHTTP. It provides helpers for
masking credential-bearing fields and emitting JSON log records, and installs
a managed handler on the ``FleetHTTP`` logger without disturbing handlers the
host application configured itself.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Dict, Optional, TextIO

SENSITIVE_KEYS = frozenset(
    {"authorization", "cookie", "set-cookie", "password", "token", "secret", "api_key"}
)


def mask_sensitive_data(payload: Dict[str, object]) -> Dict[str, object]:
    """Remove secrets from structured payloads prior to logging.

    Args:
        payload: Arbitrary key-value pairs that may contain credentials or
            session cookies gathered from HTTP requests.

    Returns:
        Copy of the payload where sensitive fields are replaced with
        `***masked***`.

    Examples:
        >>> mask_sensitive_data({"Authorization": "Basic abc", "status": 200})
        {'Authorization': '***masked***', 'status': 200}
    """
    masked: Dict[str, object] = {}
    for key, value in payload.items():
        if key.lower() in SENSITIVE_KEYS:
            masked[key] = "***masked***"
        else:
            masked[key] = value
    return masked


_RESERVED_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """Formatter emitting JSON structured logs.

    Fields passed through ``extra={...}`` are merged into the top-level object.

    Examples:
        >>> formatter = JSONFormatter()
        >>> isinstance(formatter.format(logging.makeLogRecord({'msg': 'test'})), str)
        True
    """

    def format(self, record: logging.LogRecord) -> str:
        """Serialize a logging record into a JSON line."""
        now = datetime.now(timezone.utc)
        log_obj: Dict[str, object] = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_obj[key] = value
        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(log_obj), default=str)


def setup_logging(
    level: Optional[str] = None,
    *,
    json_output: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Configure the ``FleetHTTP`` logger with a single managed handler.

    Args:
        level: Logging level name; defaults to the ``log_level`` setting.
        json_output: Emit JSON lines instead of plain console text.
        stream: Destination stream (defaults to ``sys.stderr``).

    Returns:
        The configured package logger.

    Examples:
        >>> logger = setup_logging("DEBUG")
        >>> logger.name
        'FleetHTTP'
    """
    if level is None:
        from FleetHTTP.settings import get_settings

        level = get_settings().log_level

    logger = logging.getLogger("FleetHTTP")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_fleethttp_managed", False):
            logger.removeHandler(handler)
            handler.close()

    handler = logging.StreamHandler(stream or sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    handler._fleethttp_managed = True  # type: ignore[attr-defined]
    logger.addHandler(handler)

    return logger


__all__ = ["setup_logging", "mask_sensitive_data", "JSONFormatter"]
