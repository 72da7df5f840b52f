"""Routing: an append-only table of exact ``(method, path)`` routes.

Lookup is a linear scan in registration order; the first match wins.
"""

from tern.routing.route import Handler, Route
from tern.routing.router import ApiRouter, BasicCredentials

__all__ = ["ApiRouter", "BasicCredentials", "Handler", "Route"]
