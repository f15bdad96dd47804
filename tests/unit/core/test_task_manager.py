"""Tests for background task tracking."""

import asyncio

import pytest

from holo_fusion.core.task_manager import AsyncTaskManager


class TestAsyncTaskManager:

    @pytest.mark.asyncio
    async def test_tracks_and_cancels_tasks(self):
        manager = AsyncTaskManager("test")
        started = asyncio.Event()

        async def forever():
            started.set()
            await asyncio.sleep(3600)

        task = manager.create(forever(), name="forever")
        await started.wait()

        assert manager.active_names() == ["forever"]
        assert await manager.shutdown(timeout=1.0) is True
        assert task.cancelled()
        assert manager.active_count() == 0

    @pytest.mark.asyncio
    async def test_no_new_tasks_after_shutdown(self):
        manager = AsyncTaskManager("test")
        await manager.shutdown()

        coro = asyncio.sleep(0)
        with pytest.raises(RuntimeError):
            manager.create(coro)
        coro.close()
        assert manager.closed

    @pytest.mark.asyncio
    async def test_failed_task_is_logged_not_raised(self):
        manager = AsyncTaskManager("test")

        async def broken():
            raise ValueError("boom")

        task = manager.create(broken(), name="broken")
        await asyncio.gather(task, return_exceptions=True)
        await asyncio.sleep(0)

        assert isinstance(task.exception(), ValueError)
        assert manager.active_count() == 0
