"""Static file serving from a public directory.

Every request that is not for the API ends up here.  A trailing ``/``
serves the directory's ``index.html``.

Security: the joined path is resolved (symlinks included) and must stay
inside the resolved root; anything else is answered with 403 before any
file is opened.  Read failures of any kind, including permission errors,
are answered with the same plain 404 so the filesystem layout never leaks.
"""

import logging
from pathlib import Path

import anyio

from tern.http.request import Request
from tern.http.response import ResponseWriter
from tern.http.url import URL
from tern.server.compression import DEFAULT_LEVEL, compress, is_compressible, negotiate_encoding

logger = logging.getLogger("tern.server")

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES: dict[str, str] = {
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".mjs": "application/javascript",
    ".cjs": "application/javascript",
    ".json": "application/json",
    ".map": "application/json",
    ".xml": "application/xml",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",
    ".yaml": "application/yaml",
    ".yml": "application/yaml",
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".avif": "image/avif",
    ".ico": "image/x-icon",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".wasm": "application/wasm",
    ".pdf": "application/pdf",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
}

_SERVED_METHODS = frozenset({"GET", "HEAD"})


def content_type_for(path: str | Path) -> str:
    """Content type for *path* by extension, from the fixed table."""
    return CONTENT_TYPES.get(Path(path).suffix.lower(), DEFAULT_CONTENT_TYPE)


class StaticFiles:
    """Serve files from a public root directory.

    Usage::

        static = StaticFiles("./public")
        await static.serve(request, response, url)
    """

    __slots__ = ("_cache_control", "_compression_level", "_directory", "_index")

    def __init__(
        self,
        directory: str | Path,
        *,
        index: str = "index.html",
        cache_control: str | None = None,
        compression_level: int = DEFAULT_LEVEL,
    ) -> None:
        self._directory = Path(directory).resolve()
        self._index = index
        self._cache_control = cache_control
        self._compression_level = compression_level

    @property
    def directory(self) -> Path:
        return self._directory

    def resolve(self, url_path: str) -> Path | None:
        """Map *url_path* to a file path under the root.

        Returns ``None`` when the path escapes the root.  Does not check
        that the file exists.
        """
        if "\x00" in url_path:
            return None
        if url_path.endswith("/"):
            url_path += self._index
        relative = url_path.lstrip("/")
        try:
            file_path = (self._directory / relative).resolve()
        except (OSError, RuntimeError):  # symlink loops
            return None
        if not file_path.is_relative_to(self._directory):
            return None
        return file_path

    async def serve(self, request: Request, response: ResponseWriter, url: URL) -> None:
        """Answer *request* with the file *url* points at."""
        if request.method not in _SERVED_METHODS:
            await response.send(
                405,
                "405 Method Not Allowed",
                (("Allow", "GET, HEAD"),),
                content_type="text/plain",
            )
            return

        file_path = self.resolve(url.path)
        if file_path is None:
            logger.debug("403 %s %s: outside public root", request.method, url.path)
            await response.send(403, "403 Forbidden", content_type="text/plain")
            return

        try:
            content = await anyio.Path(file_path).read_bytes()
        except OSError:
            await response.send(404, "404 Not Found", content_type="text/plain")
            return

        headers: list[tuple[str, str]] = []
        if is_compressible(file_path.suffix):
            encoding = negotiate_encoding(request.headers.get("accept-encoding"))
            headers.append(("Vary", "Accept-Encoding"))
            if encoding is not None:
                content = await compress(content, encoding, self._compression_level)
                headers.append(("Content-Encoding", encoding.value))
        if self._cache_control:
            headers.append(("Cache-Control", self._cache_control))

        await response.send(200, content, headers, content_type=content_type_for(file_path))
