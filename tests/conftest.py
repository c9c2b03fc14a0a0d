"""
Pytest Configuration

Puts ``src`` on ``sys.path`` so the suite runs from a plain checkout, registers
the shared HTTP mocking fixtures and isolates process-wide state (settings,
certificate expiry history) between tests.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
for path in (SRC, ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from tests.fixtures.http_mocking import (  # noqa: E402,F401
    fake_verifier,
    http_mock,
    scripted_pool,
    sleep_recorder,
)

from FleetHTTP.network.expiration import reset_expiration_monitor  # noqa: E402
from FleetHTTP.settings import reset_settings  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch: pytest.MonkeyPatch):
    """Drop cached settings and expiry history; ignore FLEETHTTP_* from the shell."""
    for key in list(os.environ):
        if key.upper().startswith("FLEETHTTP_"):
            monkeypatch.delenv(key, raising=False)
    reset_settings()
    reset_expiration_monitor()
    yield
    reset_settings()
    reset_expiration_monitor()
