"""
Combines the filtered north azimuth with target bearing and distance, and
publishes readings to a sink.
"""

from dataclasses import dataclass, replace
from typing import Protocol

from ..math.utils import normalize_degrees


class ReadingsSink(Protocol):
    """
    Receiver of navigation readings.

    Called once per orientation update, always in the order
    north azimuth, heading, distance.
    """

    def on_north_azimuth_update(self, north_azimuth_deg: float) -> None:
        """Compass plate rotation in [0, 360)."""

    def on_heading_update(self, heading_deg: float) -> None:
        """Target arrow rotation; may exceed 360, consumers use it modulo 360."""

    def on_distance_update(self, distance_m: float) -> None:
        """Great-circle distance to the target in meters."""


@dataclass
class PipelineState:
    """Latest derived readings."""

    filtered_north_azimuth_deg: float = 0.0
    last_heading_deg: float = 0.0
    last_distance_m: float = 0.0

    def copy(self) -> "PipelineState":
        return replace(self)


class BearingCombiner:
    """
    Holds the derived readings and forwards them to a ReadingsSink.

    Heading and distance updates are stored only; they reach the sink with
    the next north azimuth update.
    """

    def __init__(self, sink: ReadingsSink):
        self.sink = sink
        self._state = PipelineState()
        self.publish_count = 0

    @property
    def state(self) -> PipelineState:
        """Snapshot of the current readings."""
        return self._state.copy()

    def reset(self):
        self._state = PipelineState()

    def update_north_azimuth(self, north_azimuth_deg: float):
        self._state.filtered_north_azimuth_deg = north_azimuth_deg
        self.publish()

    def update_heading(self, raw_bearing_deg: float):
        """
        Store the arrow rotation for a raw device-to-target bearing.

        The arrow sits on top of the compass plate, so the bearing is offset
        by the current filtered azimuth. The sum is left unnormalized.
        """
        self._state.last_heading_deg = (
            normalize_degrees(raw_bearing_deg) + self._state.filtered_north_azimuth_deg
        )

    def update_distance(self, distance_m: float):
        self._state.last_distance_m = distance_m

    def publish(self):
        state = self._state.copy()
        self.publish_count += 1
        self.sink.on_north_azimuth_update(state.filtered_north_azimuth_deg)
        self.sink.on_heading_update(state.last_heading_deg)
        self.sink.on_distance_update(state.last_distance_m)
