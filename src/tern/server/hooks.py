"""Before/after hook pipeline.

Hooks are plain callables ``hook(request, response, url)``, sync or async,
run around every request whether it ends up at the API router or the
static resolver.  A hook may answer the request itself (for example to
reject it); the dispatcher then skips the main branch.

Hooks never abort the pipeline: :func:`run_hooks` runs every hook in
order, logs failures and reports them in a :class:`HookOutcome`.
"""

import logging
import threading
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from tern._internal.invoke import invoke
from tern.http.request import Request
from tern.http.response import ResponseWriter
from tern.http.url import URL
from tern.server.terminal_errors import log_error

logger = logging.getLogger("tern.server")

type HookFn = Callable[[Request, ResponseWriter, URL], Awaitable[None] | None]


@dataclass(frozen=True, slots=True)
class HookFailure:
    """A hook that raised, and what it raised."""

    hook: HookFn
    error: Exception

    @property
    def name(self) -> str:
        return getattr(self.hook, "__qualname__", repr(self.hook))


@dataclass(frozen=True, slots=True)
class HookOutcome:
    """Result of running one stage of hooks.

    ``responded`` is the short-circuit signal: True when the response had
    been started by the time the stage finished.
    """

    responded: bool
    failures: tuple[HookFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures


async def run_hooks(
    hooks: Sequence[HookFn],
    request: Request,
    response: ResponseWriter,
    url: URL,
    *,
    debug: bool = False,
) -> HookOutcome:
    """Run every hook in order; collect and log failures, never raise."""
    failures: list[HookFailure] = []
    for hook in hooks:
        try:
            await invoke(hook, request, response, url)
        except Exception as exc:
            failure = HookFailure(hook=hook, error=exc)
            failures.append(failure)
            if debug:
                log_error(exc, prefix=f"Hook {failure.name} failed on {request.method} {request.path}")
            else:
                logger.warning(
                    "Hook %s failed on %s %s: %s",
                    failure.name,
                    request.method,
                    request.path,
                    type(exc).__name__,
                )
    return HookOutcome(responded=response.started, failures=tuple(failures))


class HookPipeline:
    """Ordered before- and after-hook lists.

    Registration swaps in a new tuple under a lock, so the dispatcher can
    read the current lists without locking while a late registration is
    in progress.
    """

    __slots__ = ("_after", "_before", "_lock")

    def __init__(self) -> None:
        self._before: tuple[HookFn, ...] = ()
        self._after: tuple[HookFn, ...] = ()
        self._lock = threading.Lock()

    @property
    def before(self) -> tuple[HookFn, ...]:
        return self._before

    @property
    def after(self) -> tuple[HookFn, ...]:
        return self._after

    def add_before(self, hook: HookFn) -> HookFn:
        """Register a pre-processing hook.  Usable as a decorator."""
        with self._lock:
            self._before = (*self._before, hook)
        return hook

    def add_after(self, hook: HookFn) -> HookFn:
        """Register a post-processing hook.  Usable as a decorator."""
        with self._lock:
            self._after = (*self._after, hook)
        return hook

    async def run_before(
        self, request: Request, response: ResponseWriter, url: URL, *, debug: bool = False
    ) -> HookOutcome:
        return await run_hooks(self._before, request, response, url, debug=debug)

    async def run_after(
        self, request: Request, response: ResponseWriter, url: URL, *, debug: bool = False
    ) -> HookOutcome:
        return await run_hooks(self._after, request, response, url, debug=debug)
