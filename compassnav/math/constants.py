"""
Mathematical and physical constants for compass navigation.
"""

import math

# Mathematical constants
FULL_CIRCLE_DEG = 360.0
HALF_CIRCLE_DEG = 180.0

# Earth parameters
EARTH_MEAN_RADIUS_M = 6371008.8  # IUGG mean radius, spherical model

# Conversion factors
DEG_TO_RAD = math.pi / 180.0
RAD_TO_DEG = 180.0 / math.pi

# Coordinate limits (decimal degrees)
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0

# Orientation fusion
# Below this |m x a| the rotation matrix is undefined (free fall, magnetic pole)
ROTATION_EPSILON = 1e-7

# Smoothing
AZIMUTH_WINDOW_SIZE = 20  # Number of recent north azimuths averaged

# Sensor/location rates requested from the host
SENSOR_RATE_HZ = 5.0            # "normal UI" sensor delay
LOCATION_INTERVAL_MS = 1000     # High accuracy location updates

# Main Square in Cracow
DEFAULT_TARGET_LATITUDE = 50.0610055
DEFAULT_TARGET_LONGITUDE = 19.940215
