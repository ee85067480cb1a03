"""
Mathematical utilities for compass navigation.
"""

from .utils import (
    normalize_degrees,
    mean,
    clamp,
    clamp_latitude,
    clamp_longitude,
    is_finite,
    haversine_distance,
    initial_bearing,
    distance_and_bearing,
)
from .constants import *

__all__ = [
    "normalize_degrees",
    "mean",
    "clamp",
    "clamp_latitude",
    "clamp_longitude",
    "is_finite",
    "haversine_distance",
    "initial_bearing",
    "distance_and_bearing",
]
