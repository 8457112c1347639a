"""Tests for CancellationToken."""

import asyncio

import pytest

from llmexpand.domain.cancellation import CancellationToken
from llmexpand.domain.errors import RequestCancelled


class TestCancel:
    def test_starts_uncancelled(self):
        token = CancellationToken()
        assert not token.is_cancelled
        assert token.reason is None

    def test_cancel_is_write_once(self):
        token = CancellationToken()
        token.cancel("first")
        token.cancel("second")

        assert token.is_cancelled
        assert token.reason == "first"

    def test_callbacks_run_once(self):
        token = CancellationToken()
        calls = []
        token.on_cancelled(lambda: calls.append("a"))
        token.on_cancelled(lambda: calls.append("b"))

        token.cancel()
        token.cancel()

        assert calls == ["a", "b"]

    def test_callback_registered_after_cancel_runs_immediately(self):
        token = CancellationToken()
        token.cancel()
        calls = []

        token.on_cancelled(lambda: calls.append(True))

        assert calls == [True]

    def test_unregistered_callback_is_not_run(self):
        token = CancellationToken()
        calls = []
        unregister = token.on_cancelled(lambda: calls.append(True))

        unregister()
        token.cancel()

        assert calls == []

    def test_failing_callback_does_not_stop_others(self):
        token = CancellationToken()
        calls = []

        def broken():
            raise RuntimeError("boom")

        token.on_cancelled(broken)
        token.on_cancelled(lambda: calls.append(True))
        token.cancel()

        assert calls == [True]

    def test_raise_if_cancelled(self):
        token = CancellationToken()
        token.raise_if_cancelled()

        token.cancel("stop")
        with pytest.raises(RequestCancelled, match="stop"):
            token.raise_if_cancelled()


class TestLinkedTo:
    def test_child_follows_parent(self):
        parent = CancellationToken()
        child, _ = CancellationToken.linked_to(parent)

        parent.cancel("host gave up")

        assert child.is_cancelled
        assert child.reason == "host gave up"

    def test_child_does_not_cancel_parent(self):
        parent = CancellationToken()
        child, _ = CancellationToken.linked_to(parent)

        child.cancel()

        assert not parent.is_cancelled

    def test_detached_child_ignores_parent(self):
        parent = CancellationToken()
        child, detach = CancellationToken.linked_to(parent)

        detach()
        parent.cancel()

        assert not child.is_cancelled

    def test_without_parent(self):
        child, detach = CancellationToken.linked_to(None)
        detach()
        assert not child.is_cancelled


class TestGuard:
    @pytest.mark.asyncio
    async def test_returns_result(self):
        token = CancellationToken()

        async def work():
            return 42

        assert await token.guard(work()) == 42

    @pytest.mark.asyncio
    async def test_work_exceptions_propagate(self):
        token = CancellationToken()

        async def work():
            raise ValueError("bad")

        with pytest.raises(ValueError, match="bad"):
            await token.guard(work())

    @pytest.mark.asyncio
    async def test_already_cancelled_raises_without_running(self):
        token = CancellationToken()
        token.cancel()
        started = []

        async def work():
            started.append(True)

        with pytest.raises(RequestCancelled):
            await token.guard(work())
        assert started == []

    @pytest.mark.asyncio
    async def test_cancel_interrupts_pending_work(self):
        token = CancellationToken()
        interrupted = []

        async def work():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                interrupted.append(True)
                raise

        asyncio.get_running_loop().call_later(0.01, token.cancel, "superseded")

        with pytest.raises(RequestCancelled, match="superseded"):
            await asyncio.wait_for(token.guard(work()), timeout=1.0)
        assert interrupted == [True]

    @pytest.mark.asyncio
    async def test_one_token_aborts_many_calls(self):
        token = CancellationToken()

        async def guarded():
            try:
                await token.guard(asyncio.sleep(10))
            except RequestCancelled:
                return "aborted"
            return "finished"

        tasks = [asyncio.create_task(guarded()) for _ in range(5)]
        await asyncio.sleep(0)
        token.cancel()

        results = await asyncio.wait_for(asyncio.gather(*tasks), timeout=1.0)
        assert results == ["aborted"] * 5

    @pytest.mark.asyncio
    async def test_wait_returns_after_cancel(self):
        token = CancellationToken()
        asyncio.get_running_loop().call_soon(token.cancel)

        await asyncio.wait_for(token.wait(), timeout=1.0)

        assert token.is_cancelled
