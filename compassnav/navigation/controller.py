"""
Navigation controller: lifecycle, target, and dispatch of sensor and
location input through the bearing pipeline.
"""

import logging
import threading
from collections import deque
from functools import partial
from typing import Callable, Deque, Optional

from ..math.constants import AZIMUTH_WINDOW_SIZE
from ..math.utils import clamp_latitude, clamp_longitude, distance_and_bearing, is_finite
from ..sensors.gps import Coordinate
from ..sensors.imu import OrientationFuser, SensorKind, SensorSample, Vector3
from ..sensors.sources import LocationSource, SensorSource
from .combiner import BearingCombiner, PipelineState, ReadingsSink
from .smoothing import AzimuthWindow


class NavigationController:
    """
    Guides toward a target coordinate.

    Sensor samples drive the compass: each one that yields an orientation
    updates the smoothing window and publishes readings to the sink.
    Location fixes only refresh the stored heading and distance, which go
    out with the next publish.

    All operations are serialized by one re-entrant lock, held while the
    sink is called; the sink must not block. Operations the sink itself
    issues while being called (start, stop, further input) are queued and
    run once the publish has finished.
    """

    def __init__(self,
                 sink: ReadingsSink,
                 sensor_source: Optional[SensorSource] = None,
                 location_source: Optional[LocationSource] = None,
                 window_size: int = AZIMUTH_WINDOW_SIZE,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize controller in the idle state.

        Args:
            sink: Receiver of navigation readings
            sensor_source: Accelerometer/magnetometer stream, subscribed while running
            location_source: Location fix stream, subscribed while running
            window_size: Number of north azimuths averaged
            logger: Logger to use; defaults to this module's logger
        """
        self.logger = logger or logging.getLogger(__name__)
        self.sensor_source = sensor_source
        self.location_source = location_source

        self.fuser = OrientationFuser()
        self.window = AzimuthWindow(window_size)
        self.combiner = BearingCombiner(sink)

        self._target = Coordinate(0.0, 0.0)
        self._running = False

        self._lock = threading.RLock()
        self._publishing = False
        self._deferred: Deque[Callable[[], None]] = deque()

        # Statistics
        self.dropped_samples = 0
        self.dropped_fixes = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def target(self) -> Coordinate:
        return self._target

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def state(self) -> PipelineState:
        """Snapshot of the latest readings."""
        return self.combiner.state

    def start(self, target_latitude: float, target_longitude: float):
        """
        Start navigating to the given location.

        Out-of-range coordinates are clamped. Starting while running
        replaces the target and re-subscribes to the streams.
        """
        if not is_finite(target_latitude, target_longitude):
            raise ValueError(f"Target must be finite, got ({target_latitude}, {target_longitude})")
        self._dispatch(partial(self._start, target_latitude, target_longitude))

    def stop(self):
        """Stop navigation and release the streams. Safe to call repeatedly."""
        self._dispatch(self._stop)

    def _start(self, latitude: float, longitude: float):
        target = Coordinate(clamp_latitude(latitude), clamp_longitude(longitude))
        if target != Coordinate(latitude, longitude):
            self.logger.warning("Target (%s, %s) out of range, clamped to (%s, %s)",
                                latitude, longitude, target.latitude, target.longitude)

        self._unsubscribe()
        self._target = target
        self.fuser.reset()
        self.window.clear()
        self.combiner.reset()
        self._subscribe()
        self._running = True

        self.logger.info("Navigating to %.6f, %.6f", target.latitude, target.longitude)

    def _stop(self):
        self._unsubscribe()
        if self._running:
            self._running = False
            self.logger.info("Navigation stopped")

    def _subscribe(self):
        if self.sensor_source is not None:
            self.sensor_source.register(self.on_sensor_sample)
        if self.location_source is not None:
            self.location_source.register(self.on_location_fix)

    def _unsubscribe(self):
        if self.sensor_source is not None:
            self.sensor_source.unregister(self.on_sensor_sample)
        if self.location_source is not None:
            self.location_source.unregister(self.on_location_fix)

    # ------------------------------------------------------------------
    # Ingress
    # ------------------------------------------------------------------
    def on_accel(self, vector: Vector3):
        self.on_sensor_sample(SensorSample(SensorKind.ACCELEROMETER, vector))

    def on_mag(self, vector: Vector3):
        self.on_sensor_sample(SensorSample(SensorKind.MAGNETOMETER, vector))

    def on_sensor_sample(self, sample: SensorSample):
        self._dispatch(partial(self._handle_sensor_sample, sample))

    def on_location_fix(self, coordinate: Coordinate):
        self._dispatch(partial(self._handle_location_fix, coordinate))

    def _handle_sensor_sample(self, sample: SensorSample):
        if not self._running:
            return
        if not sample.vector.is_finite:
            self.dropped_samples += 1
            self.logger.debug("Non-finite %s sample dropped", sample.kind.value)
            return

        north_azimuth = self.fuser.update(sample)
        if north_azimuth is None:
            return

        filtered = self.window.add(north_azimuth)
        self._publishing = True
        try:
            self.combiner.update_north_azimuth(filtered)
        finally:
            self._publishing = False

    def _handle_location_fix(self, coordinate: Coordinate):
        if not self._running:
            return
        if not coordinate.is_finite:
            self.dropped_fixes += 1
            self.logger.debug("Non-finite location fix dropped")
            return

        distance, bearing = distance_and_bearing(coordinate, self._target)
        self.combiner.update_distance(distance)
        self.combiner.update_heading(bearing)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def _dispatch(self, operation: Callable[[], None]):
        with self._lock:
            if self._publishing:
                self._deferred.append(operation)
                return

            try:
                operation()
            except Exception:
                # The original error wins; queued failures are only logged
                error = self._drain_deferred()
                if error is not None:
                    self.logger.error("Queued operation failed: %s", error)
                raise

            error = self._drain_deferred()
            if error is not None:
                raise error

    def _drain_deferred(self) -> Optional[Exception]:
        """
        Run operations queued by the sink during a publish.

        The queue is always emptied. Returns the first error raised by a
        queued operation; later ones are logged.
        """
        first_error = None
        while self._deferred:
            operation = self._deferred.popleft()
            try:
                operation()
            except Exception as e:
                if first_error is None:
                    first_error = e
                else:
                    self.logger.error("Queued operation failed: %s", e)
        return first_error

    def get_statistics(self) -> dict:
        """Get controller statistics."""
        return {
            'running': self._running,
            'target': (self._target.latitude, self._target.longitude),
            'window_length': len(self.window),
            'publish_count': self.combiner.publish_count,
            'dropped_samples': self.dropped_samples,
            'dropped_fixes': self.dropped_fixes,
            'fuser': self.fuser.get_statistics()
        }
