"""Request value used across redirect hops.

Headers are held in an :class:`httpx.Headers`, which keeps insertion order and
compares names case-insensitively. A fresh :class:`Request` is built for every
redirect hop; the original is never re-sent with mutated routing.
"""

from __future__ import annotations

import base64
from typing import Iterator, Mapping, Sequence, Tuple, Union

import httpx

Body = Union[bytes, str, None]
HeaderInput = Union[Mapping[str, str], Sequence[Tuple[str, str]], httpx.Headers, None]


class Request:
    """HTTP request addressed relative to a :class:`~FleetHTTP.network.site.Site`.

    Attributes:
        method: Upper-case HTTP method
        path: Path plus optional query string, e.g. ``/status?verbose=1``
        headers: Case-insensitive ordered header collection
        body: Optional request payload
    """

    def __init__(
        self,
        method: str,
        path: str,
        headers: HeaderInput = None,
        body: Body = None,
    ) -> None:
        self.method = method.upper()
        self.path = path or "/"
        self.headers = httpx.Headers(headers or {})
        self.body = body

    def copy_for(self, path: str) -> "Request":
        """Return an empty request with the same method aimed at ``path``."""
        return Request(self.method, path)

    def basic_auth(self, user: str, password: str) -> None:
        """Set an ``Authorization: Basic`` header for ``user``/``password``."""
        token = base64.b64encode(f"{user}:{password}".encode("utf-8")).decode("ascii")
        self.headers["Authorization"] = f"Basic {token}"

    def header_items(self) -> Iterator[Tuple[str, str]]:
        """Yield ``(name, value)`` pairs, one per header line."""
        yield from self.headers.multi_items()

    def __repr__(self) -> str:
        return f"<Request [{self.method} {self.path}]>"


__all__ = ["Request", "Body", "HeaderInput"]
