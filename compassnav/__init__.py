"""
Compass navigation core.

This package provides platform-independent implementations of:
- Geometry utilities (degree normalization, great-circle distance and bearing)
- Accelerometer + magnetometer orientation fusion
- North azimuth smoothing and target heading composition
- A navigation controller that wires sensor and location streams to a sink
"""

__version__ = "1.0.0"
__author__ = "Compass Navigation Team"

from .navigation import NavigationController, ReadingsSink, AzimuthWindow, BearingCombiner
from .sensors import Vector3, Coordinate, OrientationFuser, SensorSource, LocationSource
from .math import normalize_degrees, distance_and_bearing

__all__ = [
    "NavigationController",
    "ReadingsSink",
    "AzimuthWindow",
    "BearingCombiner",
    "Vector3",
    "Coordinate",
    "OrientationFuser",
    "SensorSource",
    "LocationSource",
    "normalize_degrees",
    "distance_and_bearing",
]
