"""Live HTTP response bound to one ASGI connection.

Unlike a buffered response value, a :class:`ResponseWriter` is written to
directly by hooks and handlers: status and headers exactly once, then zero
or more body chunks, then the end of the body.  The dispatcher inspects its
state (``started``, ``finished``) to decide what still has to happen.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from tern._internal.asgi import Send
from tern.errors import ResponseStateError, TransportError

if TYPE_CHECKING:
    from tern.realtime.sse import SSESession

type HeaderInput = Mapping[str, str] | Iterable[tuple[str, str]] | None


def header_pairs(headers: HeaderInput) -> list[tuple[str, str]]:
    if headers is None:
        return []
    if isinstance(headers, Mapping):
        return list(headers.items())
    return list(headers)


class ResponseWriter:
    """Imperative writer over ASGI ``send``.

    States: *pending* (nothing sent) → *started* (status and headers
    flushed) → *finished* (final body message sent).  The peer may close
    the connection at any point; after that every write raises
    :class:`TransportError`.
    """

    __slots__ = (
        "_closed",
        "_finished",
        "_head_only",
        "_headers",
        "_send",
        "_session",
        "_started",
        "_status",
    )

    def __init__(self, send: Send, *, head_only: bool = False) -> None:
        self._send = send
        self._head_only = head_only
        self._status: int | None = None
        self._headers: tuple[tuple[str, str], ...] = ()
        self._started = False
        self._finished = False
        self._closed = False
        self._session: SSESession | None = None

    # -- State --

    @property
    def status(self) -> int | None:
        """Status code sent with the headers, ``None`` while pending."""
        return self._status

    @property
    def headers(self) -> tuple[tuple[str, str], ...]:
        """Headers sent with the status line."""
        return self._headers

    @property
    def started(self) -> bool:
        """True once status and headers have been flushed."""
        return self._started

    @property
    def finished(self) -> bool:
        """True once the final body message has been sent."""
        return self._finished

    @property
    def closed(self) -> bool:
        """True once the peer has gone away."""
        return self._closed

    @property
    def writable(self) -> bool:
        """Whether body bytes can still be written."""
        return not self._finished and not self._closed

    @property
    def session(self) -> SSESession | None:
        """The SSE session that owns this response, if any."""
        return self._session

    def header(self, name: str) -> str | None:
        """Return the first sent header value for *name*."""
        name_lower = name.lower()
        for key, value in self._headers:
            if key.lower() == name_lower:
                return value
        return None

    def mark_closed(self) -> None:
        """Record that the peer disconnected."""
        self._closed = True

    def attach_session(self, session: SSESession) -> None:
        """Hand the response to an SSE session."""
        self._session = session

    # -- Writing --

    async def write_head(self, status: int, headers: HeaderInput = None) -> None:
        """Flush the status line and headers.  Allowed exactly once."""
        if self._started:
            msg = f"Headers already sent (status {self._status})"
            raise ResponseStateError(msg)
        pairs = tuple(header_pairs(headers))
        encoded = [
            (name.lower().encode("latin-1"), str(value).encode("latin-1")) for name, value in pairs
        ]
        self._status = status
        self._headers = pairs
        self._started = True
        await self._emit({"type": "http.response.start", "status": status, "headers": encoded})

    async def write(self, chunk: bytes | str) -> None:
        """Write a body chunk, flushing a bare ``200`` head if still pending."""
        if self._finished:
            msg = "Response already finished"
            raise ResponseStateError(msg)
        if not self._started:
            await self.write_head(200)
        data = chunk.encode("utf-8") if isinstance(chunk, str) else chunk
        if not data or self._head_only:
            return
        await self._emit({"type": "http.response.body", "body": data, "more_body": True})

    async def end(self, chunk: bytes | str = b"") -> None:
        """Write an optional last chunk and close the body.  Idempotent."""
        if self._finished:
            return
        if not self._started:
            await self.write_head(200)
        data = chunk.encode("utf-8") if isinstance(chunk, str) else chunk
        self._finished = True
        if self._closed:
            return
        await self._emit(
            {
                "type": "http.response.body",
                "body": b"" if self._head_only else data,
                "more_body": False,
            }
        )

    async def send(
        self,
        status: int,
        body: bytes | str = b"",
        headers: HeaderInput = None,
        *,
        content_type: str | None = None,
    ) -> None:
        """Write a complete buffered response in one go.

        Adds ``Content-Type`` (when given) and ``Content-Length``.
        """
        data = body.encode("utf-8") if isinstance(body, str) else body
        pairs = header_pairs(headers)
        if content_type is not None and not any(k.lower() == "content-type" for k, _ in pairs):
            pairs.insert(0, ("Content-Type", content_type))
        pairs.append(("Content-Length", str(len(data))))
        await self.write_head(status, pairs)
        await self.end(data)

    async def _emit(self, message: dict[str, object]) -> None:
        if self._closed:
            msg = "Connection already closed"
            raise TransportError(msg)
        try:
            await self._send(message)
        except OSError as exc:
            self._closed = True
            raise TransportError(str(exc) or "Connection lost") from exc
