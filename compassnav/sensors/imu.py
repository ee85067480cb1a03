"""
Accelerometer + magnetometer orientation fusion.
"""

import enum
import logging
import math
import time
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from ..math.constants import ROTATION_EPSILON, FULL_CIRCLE_DEG
from ..math.utils import normalize_degrees, is_finite

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Vector3:
    """
    Single sensor reading.

    Specific force in m/s² for the accelerometer, magnetic flux density
    in μT for the magnetometer.
    """

    x: float
    y: float
    z: float

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "Vector3":
        """Build from any [x, y, z] sequence (list, tuple, numpy array)."""
        if len(values) != 3:
            raise ValueError(f"Expected 3 components, got {len(values)}")
        return cls(float(values[0]), float(values[1]), float(values[2]))

    @property
    def array(self) -> np.ndarray:
        """Get vector as numpy array."""
        return np.array([self.x, self.y, self.z], dtype=float)

    @property
    def is_finite(self) -> bool:
        return is_finite(self.x, self.y, self.z)


class SensorKind(enum.Enum):
    ACCELEROMETER = "accelerometer"
    MAGNETOMETER = "magnetometer"


@dataclass
class SensorSample:
    """Vector tagged with the sensor that produced it."""

    kind: SensorKind
    vector: Vector3
    timestamp: Optional[float] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()


def rotation_matrix(gravity: Vector3, geomagnetic: Vector3) -> Optional[np.ndarray]:
    """
    Rotation matrix from device coordinates to the world frame.

    World frame: X points east, Y points magnetic north, Z points up.
    Rows are (east, north, up) expressed in device axes.

    Args:
        gravity: Accelerometer reading
        geomagnetic: Magnetometer reading

    Returns:
        3x3 matrix, or None when the vectors are (nearly) parallel or zero,
        or so large that the products overflow
    """
    a = gravity.array
    m = geomagnetic.array

    with np.errstate(over='ignore', invalid='ignore'):
        h = np.cross(m, a)
        norm_h = np.linalg.norm(h)
        norm_a = np.linalg.norm(a)
        if not (np.isfinite(norm_h) and np.isfinite(norm_a)) or norm_h < ROTATION_EPSILON:
            return None

        h_hat = h / norm_h
        a_hat = a / norm_a
        m_hat = np.cross(a_hat, h_hat)
        matrix = np.vstack((h_hat, m_hat, a_hat))

    if not np.all(np.isfinite(matrix)):
        return None
    return matrix


def orientation(matrix: np.ndarray) -> Tuple[float, float, float]:
    """
    Extract (azimuth, pitch, roll) in radians from a rotation matrix.

    Azimuth is the rotation about the -Z axis; it is 0 when the device
    Y axis points at magnetic north.
    """
    azimuth = math.atan2(matrix[0, 1], matrix[1, 1])
    pitch = math.asin(max(-1.0, min(1.0, -matrix[2, 1])))
    roll = math.atan2(-matrix[2, 0], matrix[2, 2])
    return azimuth, pitch, roll


def north_azimuth_degrees(azimuth: float) -> float:
    """
    Convert a device azimuth (radians) into the compass plate rotation.

    The result is rounded half-up to a whole degree and lies in [0, 360).
    """
    degrees = normalize_degrees(-math.degrees(azimuth))
    rounded = float(math.floor(degrees + 0.5))
    if rounded >= FULL_CIRCLE_DEG:
        return 0.0
    return rounded


class OrientationFuser:
    """
    Derives the north azimuth from the latest accelerometer and magnetometer
    readings.

    Every new reading recomputes the rotation matrix from the two most recent
    vectors. Nothing is produced until both sensors have reported.
    """

    def __init__(self):
        self.gravity: Optional[Vector3] = None
        self.geomagnetic: Optional[Vector3] = None

        # Statistics
        self.sample_count = 0
        self.degenerate_count = 0

    @property
    def ready(self) -> bool:
        """True once both sensors have been observed."""
        return self.gravity is not None and self.geomagnetic is not None

    def reset(self):
        """Forget stored readings."""
        self.gravity = None
        self.geomagnetic = None

    def update(self, sample: SensorSample) -> Optional[float]:
        """
        Process a tagged sensor sample.

        Returns:
            North azimuth in whole degrees, or None if no reading is produced
        """
        if sample.kind is SensorKind.ACCELEROMETER:
            return self.update_accelerometer(sample.vector)
        if sample.kind is SensorKind.MAGNETOMETER:
            return self.update_magnetometer(sample.vector)
        raise ValueError(f"Unsupported sensor kind: {sample.kind!r}")

    def update_accelerometer(self, vector: Vector3) -> Optional[float]:
        if not vector.is_finite:
            return None
        self.gravity = vector
        return self._compute()

    def update_magnetometer(self, vector: Vector3) -> Optional[float]:
        if not vector.is_finite:
            return None
        self.geomagnetic = vector
        return self._compute()

    def _compute(self) -> Optional[float]:
        self.sample_count += 1

        if not self.ready:
            return None

        matrix = rotation_matrix(self.gravity, self.geomagnetic)
        if matrix is None:
            self.degenerate_count += 1
            logger.debug("Degenerate rotation matrix, sample dropped")
            return None

        azimuth, _, _ = orientation(matrix)
        return north_azimuth_degrees(azimuth)

    def get_statistics(self) -> dict:
        """Get fuser statistics."""
        return {
            'sample_count': self.sample_count,
            'degenerate_count': self.degenerate_count,
            'ready': self.ready
        }
