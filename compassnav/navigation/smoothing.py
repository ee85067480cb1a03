"""
Moving-average smoothing of north azimuth readings.
"""

from collections import deque
from typing import Deque, List

from ..math.constants import AZIMUTH_WINDOW_SIZE
from ..math.utils import mean


class AzimuthWindow:
    """
    Bounded FIFO of the most recent north azimuths (degrees).

    The published value is the plain arithmetic mean of the window. It is
    not a circular mean: readings straddling 0/360 average towards 180.
    The compass plate rendering is calibrated against this behavior.
    """

    def __init__(self, capacity: int = AZIMUTH_WINDOW_SIZE):
        if capacity < 1:
            raise ValueError(f"Window capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._values: Deque[float] = deque(maxlen=capacity)

    def add(self, value: float) -> float:
        """
        Append a reading, evicting the oldest past capacity.

        Returns:
            The new mean
        """
        self._values.append(value)
        return self.mean()

    def mean(self) -> float:
        return mean(self._values)

    def values(self) -> List[float]:
        """Readings, oldest first."""
        return list(self._values)

    def clear(self):
        self._values.clear()

    def __len__(self) -> int:
        return len(self._values)
