"""Readable error reports for the server log.

Handler, hook and dispatcher failures are reported through
:func:`log_error`.  ``TERN_TRACEBACK`` picks how much of the stack to show:

- ``compact`` (default): frames outside the stdlib and site-packages
- ``full``: the standard Python traceback
- ``minimal``: a single line naming the innermost frame
"""

from __future__ import annotations

import logging
import os
import sysconfig
import traceback
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tern.http.request import Request

logger = logging.getLogger("tern.server")

_LIBRARY_ROOTS = tuple(
    path for path in {sysconfig.get_path("stdlib"), sysconfig.get_path("purelib")} if path
)
_MAX_FRAMES = 5


class TracebackStyle(StrEnum):
    COMPACT = "compact"
    FULL = "full"
    MINIMAL = "minimal"


def traceback_style() -> TracebackStyle:
    """Style from ``TERN_TRACEBACK``; unknown values mean compact."""
    raw = os.environ.get("TERN_TRACEBACK", "").strip().lower()
    try:
        return TracebackStyle(raw)
    except ValueError:
        return TracebackStyle.COMPACT


def _is_app_frame(frame: traceback.FrameSummary) -> bool:
    filename = frame.filename
    if filename.startswith("<") or "site-packages" in filename:
        return False
    return not filename.startswith(_LIBRARY_ROOTS)


def format_compact_traceback(exc: BaseException) -> str:
    """Error summary plus the last few application frames.

    When no frame belongs to the application, the innermost three frames
    are shown instead so the report is never location-free.
    """
    frames = traceback.extract_tb(exc.__traceback__)
    shown = [f for f in frames if _is_app_frame(f)] or frames[-3:]
    lines = [f"{type(exc).__name__}: {exc}"]
    if shown:
        lines.append("  Trace (app frames):")
    for frame in shown[-_MAX_FRAMES:]:
        lines.append(f"    {frame.filename}:{frame.lineno} in {frame.name}")
        if frame.line:
            lines.append(f"      {frame.line.strip()}")
    return "\n".join(lines)


def format_minimal_error(exc: BaseException) -> str:
    """``Type at file:line: message`` on one line."""
    frames = traceback.extract_tb(exc.__traceback__)
    where = f" at {frames[-1].filename}:{frames[-1].lineno}" if frames else ""
    return f"{type(exc).__name__}{where}: {exc}"


def log_error(
    exc: BaseException,
    request: Request | None = None,
    *,
    prefix: str | None = None,
) -> None:
    """Log *exc* at ERROR on ``tern.server`` in the configured style.

    The message starts with *prefix*, or ``500 METHOD PATH`` when only a
    request is given.
    """
    if prefix is None:
        prefix = f"500 {request.method} {request.path}" if request is not None else "Server error"

    match traceback_style():
        case TracebackStyle.FULL:
            logger.error("%s", prefix, exc_info=exc)
        case TracebackStyle.MINIMAL:
            logger.error("%s: %s", prefix, format_minimal_error(exc))
        case _:
            logger.error("%s\n%s", prefix, format_compact_traceback(exc))
