"""Server runner.

Starts a uvicorn server around the live tern App object and hands the
server back to the app, so ``app.shutdown()`` can stop it.  uvicorn
installs its own SIGINT/SIGTERM handlers for graceful shutdown.
"""

from __future__ import annotations

import errno
import logging
import socket
from typing import TYPE_CHECKING

import uvicorn

if TYPE_CHECKING:
    from tern.app import App

logger = logging.getLogger("tern.server")


def build_server(
    app: App,
    host: str,
    port: int,
    *,
    log_level: str | None = None,
) -> uvicorn.Server:
    """Create (but do not start) a uvicorn server for *app*."""
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        lifespan="on",
        log_level=log_level or ("debug" if app.config.debug else "info"),
        access_log=app.config.debug,
    )
    server = uvicorn.Server(config)
    app.attach_server(server)
    return server


def bind_socket(host: str, port: int) -> socket.socket:
    """Open the listening socket, exiting with a hint when the port is taken.

    Raises:
        SystemExit: ``EADDRINUSE``; the port is already bound.
        OSError: Any other bind failure.
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    try:
        return socket.create_server((host, port), family=family)
    except OSError as exc:
        if exc.errno != errno.EADDRINUSE:
            raise
        logger.error(
            "Port %d is already in use. Stop the other process or pick another port with --port or PORT.",
            port,
        )
        raise SystemExit(1) from exc


def run_server(app: App, host: str, port: int) -> None:
    """Serve *app* on ``host:port`` until shut down."""
    sock = bind_socket(host, port)
    server = build_server(app, host, port)
    logger.info("Serving %s on http://%s:%d", app.static.directory, host, port)
    with sock:
        server.run(sockets=[sock])
