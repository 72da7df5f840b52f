"""Tests for tern.server.hooks: ordered hooks that never abort."""

import logging

from tern.http.request import Request
from tern.http.response import ResponseWriter
from tern.server.hooks import HookPipeline, run_hooks


def _request(path: str = "/x") -> Request:
    scope = {"type": "http", "method": "GET", "path": path, "headers": [], "query_string": b""}

    async def receive():
        return {"type": "http.request", "body": b"", "more_body": False}

    return Request.from_asgi(scope, receive)


async def _discard(message: dict) -> None:
    return None


class TestRunHooks:
    async def test_runs_in_order(self) -> None:
        calls: list[int] = []
        hooks = [lambda r, s, u, n=n: calls.append(n) for n in range(3)]
        request = _request()

        outcome = await run_hooks(hooks, request, ResponseWriter(_discard), request.url)

        assert calls == [0, 1, 2]
        assert outcome.ok
        assert outcome.responded is False

    async def test_async_and_sync_mix(self) -> None:
        calls: list[str] = []

        async def first(request, response, url):
            calls.append("async")

        def second(request, response, url):
            calls.append("sync")

        request = _request()
        await run_hooks([first, second], request, ResponseWriter(_discard), request.url)

        assert calls == ["async", "sync"]

    async def test_failure_is_collected_and_logged(self, caplog) -> None:
        calls: list[str] = []

        def broken(request, response, url):
            raise KeyError("missing")

        def after_broken(request, response, url):
            calls.append("ran")

        request = _request("/boom")
        with caplog.at_level(logging.WARNING, logger="tern.server"):
            outcome = await run_hooks(
                [broken, after_broken], request, ResponseWriter(_discard), request.url
            )

        assert calls == ["ran"]
        assert not outcome.ok
        assert len(outcome.failures) == 1
        assert isinstance(outcome.failures[0].error, KeyError)
        assert "broken" in outcome.failures[0].name
        assert "/boom" in caplog.text

    async def test_responded_when_hook_writes(self) -> None:
        async def answer(request, response, url):
            await response.send(204)

        request = _request()
        outcome = await run_hooks([answer], request, ResponseWriter(_discard), request.url)

        assert outcome.responded is True


class TestHookPipeline:
    def test_registration_returns_hook(self) -> None:
        pipeline = HookPipeline()

        @pipeline.add_before
        def hook(request, response, url):
            return None

        assert pipeline.before == (hook,)
        assert pipeline.after == ()

    async def test_before_and_after_are_separate(self) -> None:
        pipeline = HookPipeline()
        calls: list[str] = []
        pipeline.add_before(lambda r, s, u: calls.append("before"))
        pipeline.add_after(lambda r, s, u: calls.append("after"))
        request = _request()
        response = ResponseWriter(_discard)

        await pipeline.run_before(request, response, request.url)
        assert calls == ["before"]

        await pipeline.run_after(request, response, request.url)
        assert calls == ["before", "after"]
