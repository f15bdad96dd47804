"""
Ordered, once-only shutdown for the fusion service.

The application registers its cleanup steps at startup: the frame router
first, so in-flight fusion passes release their sub-frames, then the sensors,
then the remaining background tasks. Whoever asks first (a signal, the run
duration expiring, a failed startup) runs the steps; later requests are no-ops.
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple

from holo_fusion.core.logging_utils import get_module_logger

CleanupStep = Callable[[], Awaitable[None]]


class ShutdownState(Enum):
    RUNNING = "running"
    STOPPING = "stopping"
    COMPLETE = "complete"


class ShutdownCoordinator:

    def __init__(self) -> None:
        self.logger = get_module_logger("ShutdownCoordinator")
        self._steps: List[Tuple[str, CleanupStep]] = []
        self._state = ShutdownState.RUNNING
        self._reason: Optional[str] = None
        self._complete = asyncio.Event()

    @property
    def state(self) -> ShutdownState:
        return self._state

    @property
    def reason(self) -> Optional[str]:
        """What triggered shutdown, once it has been requested."""
        return self._reason

    @property
    def is_shutting_down(self) -> bool:
        return self._state is ShutdownState.STOPPING

    @property
    def is_complete(self) -> bool:
        return self._state is ShutdownState.COMPLETE

    def register_cleanup(self, step: CleanupStep, *, name: Optional[str] = None) -> None:
        label = name or getattr(step, "__name__", repr(step))
        self._steps.append((label, step))

    async def initiate_shutdown(self, source: str = "unknown") -> None:
        if self._state is not ShutdownState.RUNNING:
            self.logger.debug("Shutdown already %s; ignoring request from %s", self._state.value, source)
            return
        self._state = ShutdownState.STOPPING
        self._reason = source
        self.logger.info("Shutting down (requested by %s)", source)

        started = time.monotonic()
        for label, step in self._steps:
            step_started = time.monotonic()
            try:
                await step()
            except Exception:
                self.logger.exception("Cleanup step %s failed", label)
                continue
            self.logger.debug("Cleanup step %s done in %.3fs", label, time.monotonic() - step_started)

        self._state = ShutdownState.COMPLETE
        self._complete.set()
        self.logger.info("Shutdown complete in %.3fs", time.monotonic() - started)

    async def wait_for_shutdown(self) -> None:
        await self._complete.wait()


_coordinator: Optional[ShutdownCoordinator] = None


def get_shutdown_coordinator() -> ShutdownCoordinator:
    global _coordinator
    if _coordinator is None:
        _coordinator = ShutdownCoordinator()
    return _coordinator


def reset_shutdown_coordinator() -> None:
    """Forget the process-wide coordinator (tests run several apps per process)."""
    global _coordinator
    _coordinator = None


__all__ = [
    "CleanupStep",
    "ShutdownState",
    "ShutdownCoordinator",
    "get_shutdown_coordinator",
    "reset_shutdown_coordinator",
]
