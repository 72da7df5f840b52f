"""Exact-match API router and its response helpers.

Routes are ``(method, path) -> handler`` bindings scanned in registration
order; the first exact match wins.  The router also owns the facilities
handlers share: JSON body parsing, JSON writing (plain or compressed),
Basic/Bearer credential extraction, 401 responses, SSE sessions and the
rate limiter.

Usage::

    api = ApiRouter()

    @api.get("/api/health")
    async def health(request, response, url):
        await api.write_json(response, {"status": "ok"})
"""

import base64
import binascii
import json as json_module
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from tern._internal.invoke import invoke
from tern.errors import HandlerError, HTTPError, ParseError, TransportError
from tern.http.request import Request
from tern.http.response import HeaderInput, ResponseWriter, header_pairs
from tern.http.url import URL
from tern.realtime.sse import SSESession
from tern.routing.route import Handler, Route
from tern.security.ratelimit import RateLimiter
from tern.server.compression import DEFAULT_LEVEL, compress, negotiate_encoding
from tern.server.terminal_errors import log_error

logger = logging.getLogger("tern.server")

JSON_CONTENT_TYPE = "application/json"
INTERNAL_ERROR_BODY = {"error": "INTERNAL SERVER ERROR"}
NOT_FOUND_BODY = {"error": "Not found"}


@dataclass(frozen=True, slots=True)
class BasicCredentials:
    """Credentials decoded from ``Authorization: Basic``."""

    user: str
    password: str


def encode_json(data: Any) -> bytes:
    """Serialize a JSON payload.

    ``str`` is treated as already-serialized JSON and passed through
    verbatim; ``None`` is an empty body.
    """
    if data is None:
        return b""
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, bytes):
        return data
    return json_module.dumps(data, separators=(",", ":"), default=str).encode("utf-8")


def _auth_credentials(request: Request, scheme: str) -> str | None:
    """Return the credentials part of ``Authorization`` for *scheme*."""
    header = request.headers.get("authorization")
    if not header:
        return None
    found_scheme, separator, credentials = header.partition(" ")
    credentials = credentials.strip()
    if not separator or not credentials or found_scheme.lower() != scheme.lower():
        return None
    return credentials


class ApiRouter:
    """Exact-match API router.

    The route table is append-only.  Registration swaps in a new tuple
    under a lock, so dispatch reads a consistent snapshot without locking
    even if a route is added after traffic has started.
    """

    __slots__ = ("_lock", "_routes", "compression_level", "debug", "limiter")

    def __init__(
        self,
        *,
        debug: bool = False,
        limiter: RateLimiter | None = None,
        compression_level: int = DEFAULT_LEVEL,
    ) -> None:
        self._routes: tuple[Route, ...] = ()
        self._lock = threading.Lock()
        self.debug = debug
        self.limiter = limiter or RateLimiter()
        self.compression_level = compression_level

    # -- Registration --

    @property
    def routes(self) -> tuple[Route, ...]:
        """Registered routes in registration order."""
        return self._routes

    def register(self, method: str, path: str, handler: Handler) -> Route:
        """Append a route.  Duplicates are allowed; the first one wins."""
        if not method or not path:
            msg = "Route method and path must be non-empty strings"
            raise ValueError(msg)
        route = Route(method=method, path=path, handler=handler)
        with self._lock:
            self._routes = (*self._routes, route)
        return route

    def route(
        self, path: str, *, methods: Iterable[str] = ("GET",)
    ) -> Callable[[Handler], Handler]:
        """Register a handler for *path* under each of *methods*."""

        def decorator(func: Handler) -> Handler:
            for method in methods:
                self.register(method, path, func)
            return func

        return decorator

    def get(self, path: str) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("GET",))

    def post(self, path: str) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("POST",))

    def put(self, path: str) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("PUT",))

    def patch(self, path: str) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("PATCH",))

    def delete(self, path: str) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("DELETE",))

    # -- Dispatch --

    def match(self, method: str, path: str) -> Route | None:
        """Return the first route matching *method* and *path* exactly."""
        for route in self._routes:
            if route.matches(method, path):
                return route
        return None

    async def dispatch(self, request: Request, response: ResponseWriter, url: URL) -> None:
        """Run the matching handler, or answer 404.

        A handler that raises :class:`HTTPError` gets ``{"error": detail}``
        with that status.  Anything else becomes the generic 500; the cause
        is logged in full only in debug mode and never reaches the client.
        """
        route = self.match(request.method, url.path)
        if route is None:
            await self.write_json(response, NOT_FOUND_BODY, 404)
            return

        try:
            await invoke(route.handler, request, response, url)
        except TransportError:
            raise
        except HTTPError as exc:
            logger.debug("%d %s %s: %s", exc.status, request.method, url.path, exc.detail)
            await self._fail(response, exc.status, {"error": exc.detail or str(exc.status)}, exc.headers)
        except Exception as exc:
            if self.debug:
                log_error(exc, request)
            else:
                logger.error("500 %s %s", request.method, url.path)
            failure = HandlerError()
            await self._fail(response, failure.status, {"error": failure.detail})

    async def _fail(
        self,
        response: ResponseWriter,
        status: int,
        body: Any,
        headers: HeaderInput = None,
    ) -> None:
        """Send an error body once, or end a response that already started."""
        if response.closed:
            return
        if not response.started:
            await self.write_json(response, body, status, headers)
        elif response.session is not None:
            await response.session.close()
        else:
            await response.end()

    # -- Body parsing --

    async def parse_body(self, request: Request) -> Any:
        """Read the whole body and parse it as JSON.

        An empty body parses to ``{}``.

        Raises:
            ParseError: If the body is not valid UTF-8 JSON.
        """
        raw = await request.body()
        if not raw:
            return {}
        try:
            return json_module.loads(raw)
        except (UnicodeDecodeError, json_module.JSONDecodeError) as exc:
            raise ParseError(str(exc)) from exc

    # -- JSON responses --

    async def write_json(
        self,
        response: ResponseWriter,
        data: Any = None,
        status: int = 200,
        headers: HeaderInput = None,
    ) -> None:
        """Write a complete JSON response."""
        await response.send(status, encode_json(data), headers, content_type=JSON_CONTENT_TYPE)

    async def write_json_compressed(
        self,
        request: Request,
        response: ResponseWriter,
        data: Any = None,
        status: int = 200,
        headers: HeaderInput = None,
    ) -> None:
        """Write a JSON response, compressed when the client accepts it.

        The body is compressed before anything is flushed, so the headers
        always describe exactly the bytes that follow.
        """
        body = encode_json(data)
        encoding = negotiate_encoding(request.headers.get("accept-encoding"))
        if encoding is None or not body:
            await self.write_json(response, data, status, headers)
            return

        compressed = await compress(body, encoding, self.compression_level)
        pairs: list[tuple[str, str]] = [
            ("Content-Encoding", encoding.value),
            ("Vary", "Accept-Encoding"),
        ]
        pairs.extend(header_pairs(headers))
        await response.send(status, compressed, pairs, content_type=JSON_CONTENT_TYPE)

    # -- Authentication --

    def basic_auth(self, request: Request) -> BasicCredentials | None:
        """Decode ``Authorization: Basic`` credentials.

        A missing password decodes as ``""``.  Returns ``None`` when the
        header is absent, uses another scheme, or is not valid base64.
        """
        encoded = _auth_credentials(request, "Basic")
        if encoded is None:
            return None
        try:
            padded = encoded + "=" * (-len(encoded) % 4)
            decoded = base64.b64decode(padded, validate=True).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError):
            return None
        user, _, password = decoded.partition(":")
        return BasicCredentials(user=user, password=password)

    def bearer_auth(self, request: Request) -> str | None:
        """Return the raw ``Authorization: Bearer`` token, if any."""
        return _auth_credentials(request, "Bearer")

    async def unauthorized(
        self,
        response: ResponseWriter,
        realm: str | None = None,
        data: Any = None,
    ) -> None:
        """Answer 401, challenging for Basic auth when *realm* is given."""
        headers: list[tuple[str, str]] = []
        if realm:
            headers.append(("WWW-Authenticate", f'Basic realm="{realm}"'))
        await self.write_json(response, data, 401, headers)

    # -- Streaming --

    async def sse(
        self,
        request: Request,
        response: ResponseWriter,
        *,
        retry_ms: int | None = None,
    ) -> SSESession:
        """Flush SSE headers and return the open session."""
        session = SSESession(response, request._receive)
        await session.open(retry_ms=retry_ms)
        return session

    # -- Identity --

    @staticmethod
    def client_identity(request: Request, header: str | None = "x-forwarded-for") -> str:
        """Best-effort client key for rate limiting.

        Uses the first hop of *header* when present, then the peer
        address, then ``"unknown"``.
        """
        if header:
            raw = request.headers.get(header)
            if raw:
                forwarded = raw.split(",")[0].strip()
                if forwarded:
                    return forwarded
        if request.client:
            return request.client[0]
        return "unknown"
