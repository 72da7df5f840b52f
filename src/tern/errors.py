"""Tern exception hierarchy.

Shared across the dispatcher, router, static resolver and response writer
so every module raises and catches the same types.
"""

from dataclasses import dataclass


class TernError(Exception):
    """Base for all tern-specific errors."""


class ConfigurationError(TernError):
    """Raised when server configuration is invalid."""


@dataclass(frozen=True, slots=True)
class HTTPError(TernError):
    """An error that maps directly to an HTTP status code.

    Route handlers may raise these; the router answers with
    ``{"error": detail}`` and the given status.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class ClientError(HTTPError):
    """400: the request itself is malformed."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class ParseError(TernError, ValueError):
    """The request body is not valid JSON.

    Deliberately not an :class:`HTTPError`: left uncaught in a handler it
    becomes the generic 500.  Handlers that want a 400 catch it and raise
    :class:`ClientError`.
    """


class AuthError(HTTPError):
    """401: credentials are missing or malformed."""

    def __init__(self, detail: str = "Unauthorized", realm: str | None = None) -> None:
        headers = (("WWW-Authenticate", f'Basic realm="{realm}"'),) if realm else ()
        super().__init__(status=401, detail=detail, headers=headers)


class ForbiddenError(HTTPError):
    """403: the request resolves outside what may be served."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status=403, detail=detail)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched, or the file is missing or unreadable."""

    def __init__(self, detail: str = "Not found") -> None:
        super().__init__(status=404, detail=detail)


class HandlerError(HTTPError):
    """500: a registered handler failed."""

    def __init__(self, detail: str = "INTERNAL SERVER ERROR") -> None:
        super().__init__(status=500, detail=detail)


class TransportError(TernError):
    """A write hit a connection that is already closed.

    Logged and dropped by the dispatcher; never retried.
    """


class ResponseStateError(TernError, RuntimeError):
    """The response was driven out of order.

    Raised when headers are written twice or the body is written after
    the response has ended.  Buffered and streamed (SSE) responses are
    mutually exclusive, so this also guards against mixing them.
    """
