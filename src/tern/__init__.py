"""Tern: a small asynchronous edge server.

Static files from a public directory, a JSON API under a path prefix,
Server-Sent Events, and pre/post request hooks, in one ASGI app.

Basic usage::

    from tern import App, AppConfig

    app = App(AppConfig(public_dir="./public"))

    @app.api.get("/api/health")
    async def health(request, response, url):
        await app.api.write_json(response, {"status": "ok"})

    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "ApiRouter",
    "App",
    "AppConfig",
    "AuthError",
    "ClientError",
    "ConfigurationError",
    "ForbiddenError",
    "HTTPError",
    "NotFound",
    "ParseError",
    "RateLimiter",
    "Request",
    "ResponseWriter",
    "SSEEvent",
    "SSESession",
    "StaticFiles",
    "TernError",
    "URL",
]


_ERRORS = "tern.errors"

# Public name -> module defining it.  Resolved on first attribute access.
_EXPORTS: dict[str, str] = {
    "App": "tern.app",
    "AppConfig": "tern.config",
    "ApiRouter": "tern.routing.router",
    "StaticFiles": "tern.middleware.static",
    "RateLimiter": "tern.security.ratelimit",
    "Request": "tern.http.request",
    "ResponseWriter": "tern.http.response",
    "URL": "tern.http.url",
    "SSEEvent": "tern.realtime.events",
    "SSESession": "tern.realtime.sse",
    "AuthError": _ERRORS,
    "ClientError": _ERRORS,
    "ConfigurationError": _ERRORS,
    "ForbiddenError": _ERRORS,
    "HTTPError": _ERRORS,
    "NotFound": _ERRORS,
    "ParseError": _ERRORS,
    "TernError": _ERRORS,
}


def __getattr__(name: str) -> object:
    """Import public names on demand so ``import tern`` stays cheap."""
    module = _EXPORTS.get(name)
    if module is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    import importlib

    return getattr(importlib.import_module(module), name)
