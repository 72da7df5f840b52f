"""Response compression negotiation.

Maps a request's ``Accept-Encoding`` header to at most one supported
coding and performs the compression.  Priority is fixed: brotli, then
gzip, then deflate.  The first supported coding the client lists wins;
q-weights do not reorder that priority, but a coding explicitly refused
with ``q=0`` is never chosen.
"""

import functools
import gzip
import zlib
from enum import StrEnum

import anyio.to_thread
import brotli


class Encoding(StrEnum):
    """A supported ``Content-Encoding`` value."""

    BROTLI = "br"
    GZIP = "gzip"
    DEFLATE = "deflate"


PRIORITY: tuple[Encoding, ...] = (Encoding.BROTLI, Encoding.GZIP, Encoding.DEFLATE)

# Text-like formats worth compressing on the fly.  Images, fonts and
# archives are already compressed.
COMPRESSIBLE_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".html", ".htm", ".css",
        ".js", ".mjs", ".cjs", ".ts", ".tsx", ".jsx", ".json",
        ".svg", ".xml", ".md", ".csv", ".yaml", ".yml",
        ".txt", ".ini", ".conf", ".cfg",
    }
)  # fmt: skip

DEFAULT_LEVEL = 6


def _parse_accept_encoding(header: str) -> dict[str, float]:
    """Return ``coding -> q`` for every coding listed in *header*."""
    codings: dict[str, float] = {}
    for item in header.split(","):
        name, _, params = item.strip().partition(";")
        name = name.strip().lower()
        if not name:
            continue
        q = 1.0
        for param in params.split(";"):
            key, _, value = param.strip().partition("=")
            if key.strip().lower() == "q":
                try:
                    q = float(value.strip())
                except ValueError:
                    q = 1.0
        codings[name] = q
    return codings


def negotiate_encoding(accept_encoding: str | None) -> Encoding | None:
    """Pick the compression for a response, or ``None`` for identity."""
    if not accept_encoding:
        return None
    codings = _parse_accept_encoding(accept_encoding)
    for encoding in PRIORITY:
        q = codings.get(encoding.value)
        if q is not None and q > 0:
            return encoding
    return None


def is_compressible(extension: str) -> bool:
    """Whether files with *extension* (including the dot) may be compressed."""
    return extension.lower() in COMPRESSIBLE_EXTENSIONS


def compress_sync(data: bytes, encoding: Encoding, level: int = DEFAULT_LEVEL) -> bytes:
    """Compress *data* on the calling thread."""
    match encoding:
        case Encoding.BROTLI:
            # brotli quality runs 0-11; scale the shared 1-9 level onto it.
            quality = max(0, min(11, round(level * 11 / 9)))
            return brotli.compress(data, quality=quality)
        case Encoding.GZIP:
            return gzip.compress(data, compresslevel=level)
        case Encoding.DEFLATE:
            return zlib.compress(data, level)
    msg = f"Unsupported encoding: {encoding!r}"
    raise ValueError(msg)


async def compress(data: bytes, encoding: Encoding, level: int = DEFAULT_LEVEL) -> bytes:
    """Compress *data* in a worker thread."""
    return await anyio.to_thread.run_sync(functools.partial(compress_sync, data, encoding, level))
