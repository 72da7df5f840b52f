"""Fixed-window rate limiting per client identity.

Framework-level helper: route handlers call ``api.limiter.check(...)``
with whatever identity makes sense (client address, user name, API key).

Windows expire lazily.  Each record carries its own ``reset_at``
deadline, checked on every ``check()`` against an injectable monotonic
clock; a periodic ``sweep()`` drops records nobody asked about again.

This is a fixed window, not a sliding one: a burst straddling a window
boundary can admit up to ``2 * max_attempts`` calls in quick succession.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(slots=True)
class RateRecord:
    """Attempt counter for one identity inside its current window."""

    identity: str
    count: int
    reset_at: float

    def expired(self, now: float) -> bool:
        return now > self.reset_at


class RateLimiter:
    """Track attempts per identity within a fixed time window."""

    __slots__ = ("_clock", "_last_sweep", "_lock", "_records", "_sweep_interval")

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60.0,
    ) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._lock = threading.Lock()
        self._records: dict[str, RateRecord] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, identity: object) -> bool:
        return identity in self._records

    def check(self, identity: str, max_attempts: int = 5, window_ms: float = 60_000) -> bool:
        """Return True if *identity* may perform one more action now.

        Starts a fresh window (count 1) when there is no record or the
        current one has expired.  Inside a live window the call is denied
        without counting once ``max_attempts`` is reached.
        """
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self._sweep_interval:
                self._sweep_locked(now)

            record = self._records.get(identity)
            if record is None or record.expired(now):
                self._records[identity] = RateRecord(
                    identity=identity,
                    count=1,
                    reset_at=now + window_ms / 1000,
                )
                return True

            if record.count >= max_attempts:
                return False

            record.count += 1
            return True

    def reset(self, identity: str) -> None:
        """Forget *identity* immediately (e.g. after a successful login)."""
        with self._lock:
            self._records.pop(identity, None)

    def remaining(self, identity: str, max_attempts: int = 5) -> int:
        """Attempts left for *identity* in its current window."""
        now = self._clock()
        with self._lock:
            record = self._records.get(identity)
            if record is None or record.expired(now):
                return max_attempts
            return max(0, max_attempts - record.count)

    def retry_after(self, identity: str) -> float:
        """Seconds until *identity*'s window resets (0 when none is open)."""
        now = self._clock()
        with self._lock:
            record = self._records.get(identity)
            if record is None or record.expired(now):
                return 0.0
            return record.reset_at - now

    def sweep(self) -> int:
        """Drop every expired record.  Returns how many were removed."""
        with self._lock:
            return self._sweep_locked(self._clock())

    def _sweep_locked(self, now: float) -> int:
        expired = [key for key, record in self._records.items() if record.expired(now)]
        for key in expired:
            del self._records[key]
        self._last_sweep = now
        return len(expired)
