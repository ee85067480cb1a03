"""
Listener registries for sensor and location streams.

Platform adapters push readings into a source; the navigation controller
registers handlers on start and unregisters them on stop.
"""

import logging
from typing import Callable, List, TYPE_CHECKING

from ..math.constants import SENSOR_RATE_HZ
from .imu import SensorKind, SensorSample, Vector3

if TYPE_CHECKING:
    from .gps import Coordinate

logger = logging.getLogger(__name__)

SensorListener = Callable[[SensorSample], None]
LocationListener = Callable[["Coordinate"], None]


class _ListenerRegistry:
    """Ordered set of callbacks. Emitting iterates over a snapshot, so
    listeners may register or unregister while being called."""

    def __init__(self, name: str):
        self.name = name
        self._listeners: List[Callable] = []

    def register(self, listener: Callable) -> None:
        if listener in self._listeners:
            return
        self._listeners.append(listener)
        logger.debug("%s: listener registered (%d total)", self.name, len(self._listeners))

    def unregister(self, listener: Callable) -> None:
        if listener not in self._listeners:
            return
        self._listeners.remove(listener)
        logger.debug("%s: listener unregistered (%d total)", self.name, len(self._listeners))

    def is_registered(self, listener: Callable) -> bool:
        return listener in self._listeners

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _emit(self, value) -> None:
        for listener in list(self._listeners):
            listener(value)


class SensorSource(_ListenerRegistry):
    """Stream of accelerometer and magnetometer samples."""

    def __init__(self, name: str = "sensors", rate_hz: float = SENSOR_RATE_HZ):
        super().__init__(name)
        self.rate_hz = rate_hz

    def emit(self, sample: SensorSample) -> None:
        self._emit(sample)

    def emit_accelerometer(self, x: float, y: float, z: float, timestamp=None) -> None:
        self.emit(SensorSample(SensorKind.ACCELEROMETER, Vector3(x, y, z), timestamp))

    def emit_magnetometer(self, x: float, y: float, z: float, timestamp=None) -> None:
        self.emit(SensorSample(SensorKind.MAGNETOMETER, Vector3(x, y, z), timestamp))


class LocationSource(_ListenerRegistry):
    """
    Stream of device location fixes.

    `enabled` mirrors whether the underlying provider is switched on; hosts
    check it before starting navigation.
    """

    def __init__(self, name: str = "location", enabled: bool = True):
        super().__init__(name)
        self.enabled = enabled

    def emit(self, coordinate: "Coordinate") -> None:
        self._emit(coordinate)
