"""Tern application class.

An :class:`App` bundles one API router, one static resolver and one hook
pipeline, and exposes them as a single ASGI callable.  Each instance is
independent: nothing is registered at module level, so tests can build
as many as they like.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from tern._internal.asgi import Receive, Scope, Send
from tern._internal.invoke import invoke
from tern.config import AppConfig
from tern.middleware.static import StaticFiles
from tern.routing.route import Handler
from tern.routing.router import ApiRouter
from tern.security.ratelimit import RateLimiter
from tern.server.handler import handle_request
from tern.server.hooks import HookFn, HookPipeline

logger = logging.getLogger("tern.server")


class App:
    """The tern edge server.

    Usage::

        app = App(AppConfig(public_dir="./public"))

        @app.api.get("/api/health")
        async def health(request, response, url):
            await app.api.write_json(response, {"status": "ok"})

        @app.before
        async def reject_bots(request, response, url):
            if "bot" in (request.headers.get("user-agent") or ""):
                await response.send(403, "no bots", content_type="text/plain")

        app.run()
    """

    __slots__ = (
        "_server",
        "_shutdown_hooks",
        "_startup_hooks",
        "api",
        "config",
        "hooks",
        "static",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        api: ApiRouter | None = None,
        limiter: RateLimiter | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self.api: ApiRouter = api or ApiRouter(
            debug=self.config.debug,
            limiter=limiter,
            compression_level=self.config.compression_level,
        )
        self.static: StaticFiles = StaticFiles(
            Path(self.config.public_dir),
            index=self.config.index,
            cache_control=self.config.cache_control,
            compression_level=self.config.compression_level,
        )
        self.hooks: HookPipeline = HookPipeline()
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._server: Any = None

    # -- Registration --

    def route(self, method: str, path: str, handler: Handler) -> None:
        """Register an API route (shortcut for ``app.api.register``)."""
        self.api.register(method, path, handler)

    def before(self, hook: HookFn) -> HookFn:
        """Register a before-hook.  Usable as a decorator."""
        return self.hooks.add_before(hook)

    def after(self, hook: HookFn) -> HookFn:
        """Register an after-hook.  Usable as a decorator."""
        return self.hooks.add_after(hook)

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Run *func* (sync or async) once before the first request is served."""
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Run *func* when the server stops; failures are logged and skipped."""
        self._shutdown_hooks.append(func)
        return func

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Serve until interrupted or until :meth:`shutdown` is called."""
        from tern.server.dev import run_server

        run_server(self, host or self.config.host, port or self.config.port)

    def attach_server(self, server: Any) -> None:
        """Remember the running server so :meth:`shutdown` can stop it."""
        self._server = server

    def shutdown(self) -> None:
        """Ask the running server to stop accepting requests and exit."""
        if self._server is None:
            logger.debug("shutdown() called with no running server")
            return
        self._server.should_exit = True

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Lifespan messages go to the hooks; everything else is a request."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        await handle_request(
            scope,
            receive,
            send,
            api=self.api,
            static=self.static,
            hooks=self.hooks,
            api_prefix=self.config.api_prefix,
            debug=self.config.debug,
        )

    async def _run_startup(self) -> str | None:
        """Run startup hooks in order; the failure message if one raises."""
        try:
            for hook in self._startup_hooks:
                await invoke(hook)
        except Exception as exc:
            logger.exception("Startup hook failed")
            return str(exc)
        return None

    async def _run_shutdown(self) -> None:
        """Run every shutdown hook, logging failures without stopping."""
        for hook in self._shutdown_hooks:
            try:
                await invoke(hook)
            except Exception:
                logger.exception("Shutdown hook failed")

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            match message["type"]:
                case "lifespan.startup":
                    failure = await self._run_startup()
                    if failure is not None:
                        await send({"type": "lifespan.startup.failed", "message": failure})
                        return
                    await send({"type": "lifespan.startup.complete"})
                case "lifespan.shutdown":
                    await self._run_shutdown()
                    await send({"type": "lifespan.shutdown.complete"})
                    return
