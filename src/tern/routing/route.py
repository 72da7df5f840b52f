"""Route definition."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from tern.http.request import Request
from tern.http.response import ResponseWriter
from tern.http.url import URL

type Handler = Callable[[Request, ResponseWriter, URL], Awaitable[None] | None]


@dataclass(frozen=True, slots=True)
class Route:
    """A registered (method, exact path) → handler binding.

    Matching is exact on both fields: case-sensitive, no trailing-slash
    normalization, no path parameters.
    """

    method: str
    path: str
    handler: Handler

    def matches(self, method: str, path: str) -> bool:
        return self.method == method and self.path == path
