"""Tests for tern.security.ratelimit: fixed-window limiter."""

import threading

from tern.security.ratelimit import RateLimiter, RateRecord


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestCheck:
    def test_allows_up_to_max_then_denies(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(clock=clock)

        results = [limiter.check("1.2.3.4", max_attempts=3, window_ms=1000) for _ in range(4)]

        assert results == [True, True, True, False]

    def test_allows_again_after_window(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(clock=clock)
        for _ in range(3):
            limiter.check("ip", max_attempts=3, window_ms=1000)
        assert limiter.check("ip", max_attempts=3, window_ms=1000) is False

        clock.advance(1.001)

        assert limiter.check("ip", max_attempts=3, window_ms=1000) is True
        assert limiter.remaining("ip", 3) == 2

    def test_still_denied_at_exact_deadline(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(clock=clock)
        limiter.check("ip", max_attempts=1, window_ms=1000)

        clock.advance(1.0)

        assert limiter.check("ip", max_attempts=1, window_ms=1000) is False

    def test_denied_calls_do_not_count(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(clock=clock)
        for _ in range(10):
            limiter.check("ip", max_attempts=2)

        assert limiter.remaining("ip", 2) == 0

    def test_identities_are_independent(self) -> None:
        limiter = RateLimiter(clock=FakeClock())
        assert limiter.check("a", max_attempts=1)
        assert not limiter.check("a", max_attempts=1)
        assert limiter.check("b", max_attempts=1)

    def test_defaults(self) -> None:
        limiter = RateLimiter(clock=FakeClock())
        assert [limiter.check("ip") for _ in range(6)] == [True] * 5 + [False]


class TestReset:
    def test_reset_clears_window(self) -> None:
        limiter = RateLimiter(clock=FakeClock())
        for _ in range(3):
            limiter.check("ip", max_attempts=3)

        limiter.reset("ip")

        assert "ip" not in limiter
        assert limiter.check("ip", max_attempts=3)

    def test_reset_is_idempotent(self) -> None:
        limiter = RateLimiter(clock=FakeClock())
        limiter.reset("never-seen")
        limiter.reset("never-seen")
        assert len(limiter) == 0


class TestIntrospection:
    def test_retry_after(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(clock=clock)
        limiter.check("ip", window_ms=10_000)
        clock.advance(4)

        assert limiter.retry_after("ip") == 6.0
        assert limiter.retry_after("other") == 0.0

    def test_record_expiry(self) -> None:
        record = RateRecord(identity="ip", count=1, reset_at=5.0)
        assert not record.expired(5.0)
        assert record.expired(5.1)


class TestSweep:
    def test_sweep_drops_expired(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(clock=clock)
        limiter.check("old", window_ms=1000)
        clock.advance(2)
        limiter.check("new", window_ms=1000)

        assert limiter.sweep() == 1
        assert "old" not in limiter
        assert "new" in limiter

    def test_opportunistic_sweep(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(clock=clock, sweep_interval=30)
        for n in range(50):
            limiter.check(f"ip-{n}", window_ms=1000)
        assert len(limiter) == 50

        clock.advance(31)
        limiter.check("fresh", window_ms=1000)

        assert len(limiter) == 1


class TestConcurrency:
    def test_no_lost_updates(self) -> None:
        limiter = RateLimiter(clock=FakeClock())
        allowed: list[bool] = []
        lock = threading.Lock()

        def worker() -> None:
            for _ in range(50):
                ok = limiter.check("shared", max_attempts=100, window_ms=60_000)
                with lock:
                    allowed.append(ok)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert allowed.count(True) == 100
        assert allowed.count(False) == 300
