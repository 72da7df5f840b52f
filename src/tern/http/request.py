"""The request as handlers and hooks see it.

Everything known when the request line and headers arrive is frozen into
:class:`Request`.  The body is pulled from ASGI ``receive`` on demand and
kept, so a before-hook and a handler can both read it.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from tern._internal.asgi import Receive
from tern.http.headers import Headers
from tern.http.query import QueryParams
from tern.http.url import URL


@dataclass(slots=True)
class _Body:
    """Bytes read so far, and whether the client has finished sending."""

    chunks: list[bytes] = field(default_factory=list)
    complete: bool = False


@dataclass(frozen=True, slots=True)
class Request:
    """One incoming HTTP request.

    JSON decoding is not done here: handlers call ``api.parse_body`` so a
    malformed body raises the same error everywhere.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    url: URL
    http_version: str
    server: tuple[str, int] | None
    client: tuple[str, int] | None

    # ASGI receive channel; SSE sessions also watch it for disconnects.
    _receive: Receive
    _body: _Body = field(default_factory=_Body, repr=False, compare=False)

    @classmethod
    def from_asgi(cls, scope: dict[str, Any], receive: Receive) -> Request:
        """Freeze an ASGI ``http`` scope into a Request."""
        headers = Headers(scope.get("headers", ()))
        url = URL.from_scope(scope, headers)
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=url.path,
            headers=headers,
            query=url.query,
            url=url,
            http_version=scope.get("http_version", "1.1"),
            server=(server[0], server[1]) if server else None,
            client=(client[0], client[1]) if client else None,
            _receive=receive,
        )

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """Declared body size, or ``None`` when absent or unparsable."""
        declared = self.headers.get("content-length", "")
        return int(declared) if declared.isdigit() else None

    @property
    def body_consumed(self) -> bool:
        """True once the whole body has been read from the client."""
        return self._body.complete

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield body chunks as they arrive, stopping early on disconnect.

        After the body has been read once, replays the stored chunks.
        """
        if self._body.complete:
            for chunk in self._body.chunks:
                yield chunk
            return
        while True:
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                break
            chunk = message.get("body", b"")
            if chunk:
                self._body.chunks.append(chunk)
                yield chunk
            if not message.get("more_body", False):
                break
        self._body.complete = True

    async def body(self) -> bytes:
        """The whole body.  Reading it twice costs nothing."""
        if not self._body.complete:
            async for _ in self.stream():
                pass
        return b"".join(self._body.chunks)

    async def text(self) -> str:
        """The whole body decoded as UTF-8."""
        return (await self.body()).decode("utf-8")
