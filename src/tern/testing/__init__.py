"""Test utilities for tern applications.

Provides an in-process ASGI test client and SSE parsing helpers::

    from tern.testing import TestClient
"""

from tern.testing.client import TestClient, TestResponse
from tern.testing.sse import SSETestResult, parse_sse_frames

__all__ = [
    "SSETestResult",
    "TestClient",
    "TestResponse",
    "parse_sse_frames",
]
