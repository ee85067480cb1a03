"""
Geometry utility functions for compass navigation.

All functions are pure: they never raise on out-of-range coordinates and
leave clamping to the caller.
"""

import math
from typing import Sequence, Tuple

from .constants import (
    EARTH_MEAN_RADIUS_M,
    FULL_CIRCLE_DEG,
    MIN_LATITUDE,
    MAX_LATITUDE,
    MIN_LONGITUDE,
    MAX_LONGITUDE,
)


def normalize_degrees(value: float) -> float:
    """
    Normalize an angle to the [0, 360) range.

    Works for any finite input, not only [-360, 360].

    Args:
        value (float): Angle in degrees

    Returns:
        float: Equivalent angle in [0, 360)
    """
    normalized = ((value % FULL_CIRCLE_DEG) + FULL_CIRCLE_DEG) % FULL_CIRCLE_DEG
    # Tiny negative inputs round up to exactly 360.0
    if normalized >= FULL_CIRCLE_DEG:
        return 0.0
    return normalized


def mean(values: Sequence[float]) -> float:
    """
    Arithmetic mean of a window of values, summed left to right.

    Args:
        values: Window of floats

    Returns:
        float: Mean value, or 0.0 for an empty window
    """
    if len(values) == 0:
        return 0.0

    total = 0.0
    for value in values:
        total += value
    return total / len(values)


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp value into [lo, hi]."""
    if lo > hi:
        raise ValueError(f"Invalid clamp range: lo={lo} > hi={hi}")
    if value < lo:
        return lo
    if value > hi:
        return hi
    return value


def clamp_latitude(latitude: float) -> float:
    """Clamp latitude to [-90, 90] degrees."""
    return clamp(latitude, MIN_LATITUDE, MAX_LATITUDE)


def clamp_longitude(longitude: float) -> float:
    """Clamp longitude to [-180, 180] degrees."""
    return clamp(longitude, MIN_LONGITUDE, MAX_LONGITUDE)


def is_finite(*values: float) -> bool:
    """True if every value is a finite real number."""
    return all(math.isfinite(v) for v in values)


def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Calculate the great circle distance between two points on Earth.

    Args:
        lat1, lon1: Latitude and longitude of first point (degrees)
        lat2, lon2: Latitude and longitude of second point (degrees)

    Returns:
        float: Distance in meters
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = phi2 - phi1
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Rounding can push a marginally outside [0, 1] for antipodal points
    a = clamp(a, 0.0, 1.0)
    c = 2 * math.asin(math.sqrt(a))

    return EARTH_MEAN_RADIUS_M * c


def initial_bearing(lat1, lon1, lat2, lon2):
    """
    Calculate the initial great-circle bearing between two GPS coordinates.

    Args:
        lat1, lon1: Starting latitude and longitude (degrees)
        lat2, lon2: Ending latitude and longitude (degrees)

    Returns:
        float: Bearing in degrees, (-180, 180], NOT normalized
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dlambda = math.radians(lon2 - lon1)

    y = math.sin(dlambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlambda)

    return math.degrees(math.atan2(y, x))


def distance_and_bearing(origin, destination) -> Tuple[float, float]:
    """
    Distance and initial bearing from origin to destination.

    Args:
        origin: Object with latitude/longitude attributes (degrees)
        destination: Object with latitude/longitude attributes (degrees)

    Returns:
        (distance_m, bearing_deg); the bearing may be negative
    """
    distance = haversine_distance(
        origin.latitude, origin.longitude,
        destination.latitude, destination.longitude
    )
    bearing = initial_bearing(
        origin.latitude, origin.longitude,
        destination.latitude, destination.longitude
    )
    return distance, bearing
