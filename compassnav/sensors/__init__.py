"""
Sensor data types, orientation fusion, and input streams.
"""

from .imu import Vector3, SensorKind, SensorSample, OrientationFuser
from .gps import Coordinate, LocationFix, NmeaLocationSource
from .nmea import NMEAParser
from .sources import SensorSource, LocationSource

__all__ = [
    "Vector3",
    "SensorKind",
    "SensorSample",
    "OrientationFuser",
    "Coordinate",
    "LocationFix",
    "NmeaLocationSource",
    "NMEAParser",
    "SensorSource",
    "LocationSource",
]
