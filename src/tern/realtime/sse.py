"""Server-Sent Events sessions over a live response.

A handler opens a session with ``api.sse(request, response)``, then pushes
frames with ``send()`` for as long as it likes.  The session watches the
ASGI receive channel for ``http.disconnect`` so a peer that goes away stops
the stream without the handler having to notice a failed write.
"""

import asyncio
import contextlib
import logging
from typing import Any

from tern._internal.asgi import Receive
from tern.errors import ResponseStateError, TransportError
from tern.http.response import ResponseWriter
from tern.realtime.events import HEARTBEAT, SSEEvent, normalize_data

logger = logging.getLogger("tern.server")

SSE_HEADERS: tuple[tuple[str, str], ...] = (
    ("Content-Type", "text/event-stream"),
    ("Cache-Control", "no-cache"),
    ("Connection", "keep-alive"),
    ("X-Accel-Buffering", "no"),
)


class SSESession:
    """One live event stream, owned by the handler that opened it.

    Frames are written whole and under a FIFO lock, so concurrent
    ``send()`` calls keep their invocation order and never interleave.
    ``send()`` and ``heartbeat()`` on a closed session are no-ops that
    return ``False``.
    """

    __slots__ = ("_closed", "_lock", "_monitor", "_receive", "_response")

    def __init__(self, response: ResponseWriter, receive: Receive) -> None:
        self._response = response
        self._receive = receive
        self._lock = asyncio.Lock()
        self._closed = asyncio.Event()
        self._monitor: asyncio.Task[None] | None = None

    async def open(self, *, retry_ms: int | None = None) -> None:
        """Flush the SSE headers and start watching for disconnect."""
        if self._response.started:
            msg = "Cannot open an event stream on a response that has already started"
            raise ResponseStateError(msg)
        self._response.attach_session(self)
        await self._response.write_head(200, SSE_HEADERS)
        if retry_ms is not None:
            await self._response.write(f"retry: {retry_ms}\n\n")
        self._monitor = asyncio.create_task(self._watch_disconnect())

    @property
    def closed(self) -> bool:
        return self._closed.is_set() or not self._response.writable

    async def send(self, event: str, data: Any, id: str | None = None) -> bool:  # noqa: A002
        """Send one event frame.  Returns ``False`` if the stream is closed."""
        frame = SSEEvent(data=normalize_data(data), event=event, id=id or None)
        return await self._write(frame.encode())

    async def heartbeat(self) -> bool:
        """Send a ``:heartbeat`` comment frame."""
        return await self._write(HEARTBEAT)

    async def close(self) -> None:
        """End the stream.  Safe to call more than once."""
        already_closed = self._closed.is_set()
        self._closed.set()
        self._stop_monitor()
        if already_closed and self._response.finished:
            return
        async with self._lock:
            with contextlib.suppress(TransportError):
                await self._response.end()

    async def wait_closed(self) -> None:
        """Block until the handler or the peer closes the stream."""
        await self._closed.wait()

    async def keepalive(self, interval: float = 15.0) -> None:
        """Send heartbeats every *interval* seconds until the stream closes."""
        while not self.closed:
            try:
                await asyncio.wait_for(self._closed.wait(), timeout=interval)
            except TimeoutError:
                if not await self.heartbeat():
                    return

    # -- Internal --

    async def _write(self, frame: str) -> bool:
        async with self._lock:
            if self.closed:
                return False
            try:
                await self._response.write(frame)
            except TransportError:
                logger.debug("SSE peer went away mid-write")
                self._closed.set()
                self._stop_monitor()
                return False
            return True

    async def _watch_disconnect(self) -> None:
        """Drain ``receive()`` until the peer disconnects."""
        try:
            while True:
                message = await self._receive()
                if message.get("type") == "http.disconnect":
                    break
        except asyncio.CancelledError:
            raise
        except Exception:  # noqa: BLE001
            logger.debug("SSE receive channel failed", exc_info=True)
        self._response.mark_closed()
        self._closed.set()

    def _stop_monitor(self) -> None:
        monitor = self._monitor
        if monitor is None or monitor.done():
            return
        if monitor is asyncio.current_task():
            return
        monitor.cancel()
