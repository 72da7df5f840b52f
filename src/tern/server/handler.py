"""ASGI request handler: the per-request dispatch pipeline.

The only component that holds the live response across the whole request:

1. before-hooks
2. API router or static resolver (skipped when a before-hook answered)
3. after-hooks, always
4. finalization: wait out an open SSE session, end a dangling body, or
   answer a request nobody wrote anything for

Nothing raised in here escapes to the ASGI server.
"""

import logging

from tern._internal.asgi import Receive, Scope, Send
from tern.errors import TransportError
from tern.http.request import Request
from tern.http.response import ResponseWriter
from tern.middleware.static import StaticFiles
from tern.routing.router import INTERNAL_ERROR_BODY, JSON_CONTENT_TYPE, ApiRouter, encode_json
from tern.server.hooks import HookPipeline
from tern.server.terminal_errors import log_error

logger = logging.getLogger("tern.server")


def is_api_path(path: str, prefix: str) -> bool:
    """True when *path* starts with the API prefix, as a plain string test."""
    return path.startswith(prefix)


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    api: ApiRouter,
    static: StaticFiles,
    hooks: HookPipeline,
    api_prefix: str = "/api",
    debug: bool = False,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    response = ResponseWriter(send, head_only=scope.get("method") == "HEAD")
    request: Request | None = None

    try:
        request = Request.from_asgi(scope, receive)
        url = request.url

        before = await hooks.run_before(request, response, url, debug=debug)

        if not before.responded and response.writable:
            if is_api_path(url.path, api_prefix):
                await api.dispatch(request, response, url)
            else:
                await static.serve(request, response, url)

        # After-hooks always run, for logging and metrics.
        await hooks.run_after(request, response, url, debug=debug)

        await _finalize(request, response)
    except TransportError as exc:
        logger.debug("Dropped response for %s: %s", scope.get("path"), exc)
    except Exception as exc:
        log_error(exc, request, prefix="Server error")
        if not response.closed and not response.started:
            try:
                await response.send(500, "500 Internal Server Error", content_type="text/plain")
            except TransportError:
                logger.debug("Connection closed before the error response was sent")


async def _finalize(request: Request, response: ResponseWriter) -> None:
    """Settle whatever state the pipeline left the response in."""
    session = response.session
    if session is not None:
        await session.wait_closed()
        await session.close()
        return

    if response.finished or response.closed:
        return

    if response.started:
        await response.end()
        return

    logger.warning("No response written for %s %s", request.method, request.path)
    await response.send(500, encode_json(INTERNAL_ERROR_BODY), content_type=JSON_CONTENT_TYPE)
