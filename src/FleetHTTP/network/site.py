"""Logical endpoint identity: scheme, host and port.

A :class:`Site` names the origin a transport is bound to. It carries no
connection state, so it can be used as a pool key and compared freely.
Redirects produce new sites through :meth:`Site.move_to`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import httpx

DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class Site:
    """Immutable ``(scheme, host, port)`` triple identifying an endpoint."""

    scheme: str
    host: str
    port: int

    def __post_init__(self) -> None:
        if self.scheme not in DEFAULT_PORTS:
            raise ValueError(f"Unsupported scheme: {self.scheme!r}")

    @classmethod
    def from_url(cls, url: Union[str, httpx.URL]) -> "Site":
        """Build a site from an absolute URL, filling in the default port."""
        url = httpx.URL(url)
        return cls(url.scheme, url.host, url.port or DEFAULT_PORTS[url.scheme])

    @property
    def use_ssl(self) -> bool:
        return self.scheme == "https"

    @property
    def addr(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    @property
    def base_url(self) -> httpx.URL:
        return httpx.URL(scheme=self.scheme, host=self.host, port=self.port)

    def move_to(self, location: Union[str, httpx.URL]) -> "Site":
        """Return the site a redirect to ``location`` lands on.

        Same-origin locations produce a site equal to this one. A location
        without a host (a relative reference) stays on this site.
        """
        location = httpx.URL(location)
        if not location.host:
            return self
        scheme = location.scheme or self.scheme
        return Site(scheme, location.host, location.port or DEFAULT_PORTS[scheme])

    def __str__(self) -> str:
        return self.addr


__all__ = ["Site", "DEFAULT_PORTS"]
