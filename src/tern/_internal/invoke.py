"""Invoke helpers: call sync or async callbacks uniformly.

Hooks and route handlers can be ``def`` or ``async def``.  Any code that
calls a user-provided callback goes through :func:`invoke` so the
sync/async check lives in exactly one place.
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
