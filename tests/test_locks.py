"""Tests for per-landing locking."""

import asyncio

import pytest

from versioning.locks import UnitLocks


class TestUnitLocks:
    @pytest.mark.asyncio
    async def test_same_unit_is_serialised(self):
        locks = UnitLocks()
        order = []

        async def worker(name):
            async with locks.hold("lp_1"):
                order.append(f"{name}-start")
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))
        assert order == ["a-start", "a-end", "b-start", "b-end"]

    @pytest.mark.asyncio
    async def test_different_units_run_concurrently(self):
        locks = UnitLocks()
        inside = asyncio.Event()
        release = asyncio.Event()

        async def holder():
            async with locks.hold("lp_1"):
                inside.set()
                await release.wait()

        task = asyncio.create_task(holder())
        await inside.wait()
        assert locks.is_locked("lp_1")

        async with locks.hold("lp_2"):
            assert locks.is_locked("lp_2")

        release.set()
        await task

    @pytest.mark.asyncio
    async def test_lock_dropped_when_unused(self):
        locks = UnitLocks()
        async with locks.hold("lp_1"):
            pass
        assert not locks.is_locked("lp_1")
        assert locks._locks == {}

    @pytest.mark.asyncio
    async def test_released_on_exception(self):
        locks = UnitLocks()
        with pytest.raises(RuntimeError):
            async with locks.hold("lp_1"):
                raise RuntimeError("boom")
        assert not locks.is_locked("lp_1")

        async with locks.hold("lp_1"):
            assert locks.is_locked("lp_1")
