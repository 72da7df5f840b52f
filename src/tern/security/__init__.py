"""Security utilities: per-identity rate limiting.

Credential extraction lives on the router (``ApiRouter.basic_auth`` and
``ApiRouter.bearer_auth``)::

    from tern.security import RateLimiter

    limiter = RateLimiter()
    if not limiter.check(client_ip, max_attempts=5, window_ms=60_000):
        ...
"""

from tern.security.ratelimit import RateLimiter, RateRecord

__all__ = ["RateLimiter", "RateRecord"]
