"""Tests for request coalescing."""

import asyncio

import pytest

from criclive.services.coalescer import RequestCoalescer


class TestRequestCoalescer:
    """Tests for RequestCoalescer."""

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_fetch(self):
        """Concurrent callers for one key get the same result from one call."""
        coalescer = RequestCoalescer()
        release = asyncio.Event()
        calls = 0

        async def fetch():
            nonlocal calls
            calls += 1
            await release.wait()
            return ["match"]

        tasks = [asyncio.create_task(coalescer.run("currentMatches", fetch)) for _ in range(5)]
        await asyncio.sleep(0)
        assert coalescer.active_requests == 1

        release.set()
        results = await asyncio.gather(*tasks)

        assert calls == 1
        assert all(result == ["match"] for result in results)
        assert coalescer.active_requests == 0

    @pytest.mark.asyncio
    async def test_different_keys_fetch_separately(self):
        coalescer = RequestCoalescer()
        calls = []

        async def fetch_for(key):
            calls.append(key)
            return key

        results = await asyncio.gather(
            coalescer.run("scorecard:1", lambda: fetch_for("scorecard:1")),
            coalescer.run("scorecard:2", lambda: fetch_for("scorecard:2")),
        )

        assert results == ["scorecard:1", "scorecard:2"]
        assert sorted(calls) == ["scorecard:1", "scorecard:2"]

    @pytest.mark.asyncio
    async def test_error_reaches_every_caller(self):
        coalescer = RequestCoalescer()
        release = asyncio.Event()

        async def fetch():
            await release.wait()
            raise RuntimeError("boom")

        tasks = [asyncio.create_task(coalescer.run("key", fetch)) for _ in range(3)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(r, RuntimeError) for r in results)
        assert coalescer.active_requests == 0

    @pytest.mark.asyncio
    async def test_sequential_calls_fetch_again(self):
        """Once a fetch completes the next call starts a new one."""
        coalescer = RequestCoalescer()
        calls = 0

        async def fetch():
            nonlocal calls
            calls += 1
            return calls

        assert await coalescer.run("key", fetch) == 1
        assert await coalescer.run("key", fetch) == 2

    @pytest.mark.asyncio
    async def test_get_stats(self):
        coalescer = RequestCoalescer()
        release = asyncio.Event()

        async def fetch():
            await release.wait()

        task = asyncio.create_task(coalescer.run("matchinfo:5", fetch))
        await asyncio.sleep(0)

        assert coalescer.get_stats() == {"active_requests": 1, "active_keys": ["matchinfo:5"]}

        release.set()
        await task
