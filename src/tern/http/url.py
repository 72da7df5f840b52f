"""Parsed request target.

Handlers and hooks receive a :class:`URL` alongside the request so they
never re-parse the raw target themselves.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from tern.http.headers import Headers
from tern.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class URL:
    """Absolute URL of the current request.

    ``path`` is the percent-decoded path exactly as the server delivered
    it; routing compares against it verbatim.
    """

    scheme: str
    host: str
    path: str
    query: QueryParams

    @property
    def query_string(self) -> str:
        return self.query.raw.decode("latin-1")

    @property
    def origin(self) -> str:
        return f"{self.scheme}://{self.host}"

    def __str__(self) -> str:
        target = self.path
        if self.query_string:
            target = f"{target}?{self.query_string}"
        return f"{self.origin}{target}"

    @classmethod
    def from_scope(cls, scope: Mapping[str, Any], headers: Headers | None = None) -> "URL":
        """Build the URL from an ASGI scope.

        The authority comes from the ``Host`` header, falling back to the
        server address, then to ``localhost``.
        """
        headers = headers if headers is not None else Headers(tuple(scope.get("headers", ())))
        host = headers.get("host")
        if not host:
            server = scope.get("server")
            if server:
                name, port = server[0], server[1]
                host = f"{name}:{port}" if port not in (None, 80, 443) else name
            else:
                host = "localhost"
        return cls(
            scheme=scope.get("scheme", "http"),
            host=host,
            path=scope.get("path") or "/",
            query=QueryParams(scope.get("query_string", b"")),
        )
