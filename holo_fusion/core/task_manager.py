"""Named background tasks owned by one component."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, Optional

from holo_fusion.core.logging_utils import LoggerLike, ensure_component_logger


class AsyncTaskManager:
    """Owns the long-running tasks of one component (workers, startup, stats).

    Failures are logged when a task finishes, so a crashed worker is visible
    even if nobody awaits it. ``shutdown`` cancels whatever is still running.
    """

    def __init__(self, name: Optional[str] = None, logger: LoggerLike = None) -> None:
        self._name = name or type(self).__name__
        self._logger = ensure_component_logger(logger, fallback_name=self._name)
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def create(self, coro: Coroutine[Any, Any, Any], *, name: Optional[str] = None) -> asyncio.Task:
        if self._closed:
            raise RuntimeError(f"{self._name}: closed, refusing new task {name or coro!r}")
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            self._logger.debug("%s: %s cancelled", self._name, task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error("%s: %s failed: %s", self._name, task.get_name(), exc, exc_info=exc)

    def active_count(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def active_names(self) -> list[str]:
        return sorted(task.get_name() for task in self._tasks if not task.done())

    async def shutdown(self, *, timeout: float = 5.0) -> bool:
        """Cancel running tasks; ``False`` if some did not finish within ``timeout``."""
        self._closed = True
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if not pending:
            return True

        _, still_running = await asyncio.wait(pending, timeout=timeout)
        if still_running:
            self._logger.warning(
                "%s: %d task(s) ignored cancellation after %.1fs: %s",
                self._name,
                len(still_running),
                timeout,
                ", ".join(sorted(task.get_name() for task in still_running)),
            )
            return False
        return True


__all__ = ["AsyncTaskManager"]
