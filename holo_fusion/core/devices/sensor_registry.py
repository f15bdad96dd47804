"""
Sensor Registry - fixed-capacity arena of sensor slots.

Slots are indexed 0..capacity-1 in discovery order. An index is assigned once
and never reused during a run. Frame-ready events are routed back to their
slot through an identity map, so lookup does not scan the arena.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from holo_fusion.core.errors import NoSensorsFound, SensorStopFailure, UnknownSensor
from holo_fusion.core.logging_utils import get_module_logger
from holo_fusion.core.shared_state import FusionSharedState
from holo_fusion.core.devices.types import SensorHandle, SensorStatus

MAX_SENSORS = 4


@dataclass(frozen=True)
class SensorSlot:
    """One occupied registry slot."""
    index: int
    handle: SensorHandle

    @property
    def serial(self) -> str:
        return getattr(self.handle, "serial", f"sensor-{self.index}")


class SensorRegistry:
    """
    Tracks up to ``capacity`` live sensors.

    Writes happen on the discovery task; ``resolve`` is called from frame
    callbacks on any thread, so the tables are guarded by a lock.
    """

    def __init__(
        self,
        shared_state: FusionSharedState,
        capacity: int = MAX_SENSORS,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.logger = get_module_logger("SensorRegistry")
        self._shared_state = shared_state
        self._capacity = capacity
        self._slots: List[SensorSlot] = []
        self._index_by_handle: Dict[int, int] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Inspection

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def count(self) -> int:
        return len(self._slots)

    @property
    def is_full(self) -> bool:
        return len(self._slots) >= self._capacity

    @property
    def slots(self) -> Tuple[SensorSlot, ...]:
        with self._lock:
            return tuple(self._slots)

    def slot(self, index: int) -> SensorSlot:
        with self._lock:
            return self._slots[index]

    # ------------------------------------------------------------------
    # Registration

    def register(self, handle: SensorHandle) -> Optional[int]:
        """Assign the next stable index to ``handle``.

        Returns the existing index if the handle is already registered and
        ``None`` when every slot is taken.
        """
        with self._lock:
            existing = self._index_by_handle.get(id(handle))
            if existing is not None:
                return existing
            index: Optional[int] = None
            if len(self._slots) < self._capacity:
                index = len(self._slots)
                self._slots.append(SensorSlot(index=index, handle=handle))
                self._index_by_handle[id(handle)] = index

        if index is None:
            self.logger.warning(
                "Registry full (%d sensors); ignoring %s",
                self._capacity,
                getattr(handle, "serial", handle),
            )
            return None

        self.logger.info("Registered sensor %s as index %d", getattr(handle, "serial", handle), index)
        return index

    def discover(self, handles: Iterable[SensorHandle]) -> int:
        """Register every connected handle until capacity is reached.

        Publishes the resulting count to shared state. Raises
        ``NoSensorsFound`` when no handle was accepted.
        """
        self.logger.info("Looking for sensors...")
        for handle in handles:
            if self.is_full:
                break
            status = handle.status
            if status is not SensorStatus.CONNECTED:
                self.logger.debug(
                    "Skipping sensor %s (status=%s)",
                    getattr(handle, "serial", handle),
                    status.value,
                )
                continue
            self.register(handle)

        count = self.count
        self._shared_state.publish_sensor_count(count)
        if count == 0:
            raise NoSensorsFound("No connected sensors were found")
        self.logger.info("Number of sensors found: %d", count)
        return count

    def resolve(self, handle: object) -> int:
        """Return the slot index owning ``handle`` or raise ``UnknownSensor``."""
        with self._lock:
            index = self._index_by_handle.get(id(handle))
            if index is not None and self._slots[index].handle is handle:
                return index
        raise UnknownSensor(handle)

    # ------------------------------------------------------------------
    # Shutdown

    def stop_all(self) -> List[SensorStopFailure]:
        """Stop every registered sensor; failures are logged, never raised."""
        failures: List[SensorStopFailure] = []
        for slot in self.slots:
            try:
                slot.handle.stop()
                self.logger.debug("Stopped sensor %d (%s)", slot.index, slot.serial)
            except Exception as exc:
                failure = SensorStopFailure(slot.index, exc)
                self.logger.error("%s", failure, exc_info=exc)
                failures.append(failure)
        if failures:
            self.logger.warning("Stopped %d/%d sensors", len(self._slots) - len(failures), len(self._slots))
        else:
            self.logger.info("Stopped %d sensor(s)", len(self._slots))
        return failures


__all__ = ["MAX_SENSORS", "SensorRegistry", "SensorSlot"]
