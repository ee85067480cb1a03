#!/usr/bin/env python3
"""
Basic usage example of the compass navigation pipeline.

This example demonstrates how to use the core navigation algorithms
without platform sensors: a simulated walker turns in place and moves
toward the target while readings are printed.
"""

import sys
import os
import math
import numpy as np

# Add core modules to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from compassnav.navigation import NavigationController
from compassnav.sensors import Coordinate, LocationSource, SensorSource
from compassnav.sensors.nmea import nmea_checksum

GRAVITY = 9.81
FIELD_HORIZONTAL_UT = 20.0   # Horizontal geomagnetic component (μT)
FIELD_VERTICAL_UT = 45.0     # Downward geomagnetic component (μT)


def device_vectors(heading_deg, noise=0.0, rng=None):
    """
    Accelerometer and magnetometer readings for a device lying flat with
    its Y axis pointing at heading_deg (clockwise from magnetic north).
    """
    psi = math.radians(heading_deg)
    accel = np.array([0.0, 0.0, GRAVITY])
    mag = np.array([
        -FIELD_HORIZONTAL_UT * math.sin(psi),
        FIELD_HORIZONTAL_UT * math.cos(psi),
        -FIELD_VERTICAL_UT
    ])
    if rng is not None and noise > 0:
        accel = accel + rng.normal(0, noise, 3)
        mag = mag + rng.normal(0, noise, 3)
    return accel, mag


def simulate_walk(start, target, duration=30, sensor_rate_hz=5.0, seed=7):
    """
    Simulate a walker heading to the target while the device slowly turns.

    Yields:
        (t, accel, mag, coordinate_or_None); a location fix once per second
    """
    rng = np.random.default_rng(seed)
    dt = 1.0 / sensor_rate_hz
    steps = int(duration * sensor_rate_hz)

    for i in range(steps):
        t = i * dt
        heading = (12.0 * t) % 360.0
        accel, mag = device_vectors(heading, noise=0.05, rng=rng)

        coordinate = None
        if i % int(sensor_rate_hz) == 0:
            fraction = t / duration
            coordinate = Coordinate(
                start.latitude + (target.latitude - start.latitude) * fraction * 0.1,
                start.longitude + (target.longitude - start.longitude) * fraction * 0.1
            )
        yield t, accel, mag, coordinate


def to_nmea_gga(coordinate, utc="120000.00"):
    """Format a coordinate as a GGA sentence."""
    lat, lon = abs(coordinate.latitude), abs(coordinate.longitude)
    lat_str = f"{int(lat):02d}{(lat - int(lat)) * 60:07.4f}"
    lon_str = f"{int(lon):03d}{(lon - int(lon)) * 60:07.4f}"
    payload = (f"GPGGA,{utc},{lat_str},{'N' if coordinate.latitude >= 0 else 'S'},"
               f"{lon_str},{'E' if coordinate.longitude >= 0 else 'W'},1,08,0.9,210.0,M,40.0,M,,")
    return f"${payload}*{nmea_checksum(payload)}"


def write_session_log(path, start, target, duration=30):
    """Write a session log the console navigator can replay."""
    with open(path, "w") as f:
        f.write("# simulated walk\n")
        for t, accel, mag, coordinate in simulate_walk(start, target, duration):
            if coordinate is not None:
                f.write(to_nmea_gga(coordinate) + "\n")
            f.write("A,{:.4f},{:.4f},{:.4f}\n".format(*accel))
            f.write("M,{:.4f},{:.4f},{:.4f}\n".format(*mag))


class RecordingSink:
    """Keeps the latest readings."""

    def __init__(self):
        self.north = 0.0
        self.heading = 0.0
        self.distance = 0.0

    def on_north_azimuth_update(self, north_azimuth_deg):
        self.north = north_azimuth_deg

    def on_heading_update(self, heading_deg):
        self.heading = heading_deg

    def on_distance_update(self, distance_m):
        self.distance = distance_m


def main():
    """Run the example."""
    print("Compass Navigation Example")
    print("=" * 40)

    warsaw = Coordinate(52.2297, 21.0122)
    cracow = Coordinate(50.0610055, 19.940215)

    sensors = SensorSource()
    locations = LocationSource()
    sink = RecordingSink()
    controller = NavigationController(sink, sensors, locations)

    controller.start(cracow.latitude, cracow.longitude)
    print(f"Navigating to {controller.target.latitude:.6f}, {controller.target.longitude:.6f}")

    for i, (t, accel, mag, coordinate) in enumerate(simulate_walk(warsaw, cracow, duration=10)):
        if coordinate is not None:
            locations.emit(coordinate)
        sensors.emit_accelerometer(*accel)
        sensors.emit_magnetometer(*mag)

        if i % 5 == 0:
            print(f"t={t:4.1f}s  north {sink.north:6.1f}°  arrow {sink.heading % 360:6.1f}°  "
                  f"distance {sink.distance / 1000:7.2f} km")

    controller.stop()
    print("\nStatistics:", controller.get_statistics())

    session_path = os.path.join(os.path.dirname(__file__), "simulated_session.log")
    write_session_log(session_path, warsaw, cracow)
    print(f"Session log written to {session_path}")
    print(f"Replay it with: python platforms/console/main.py --session {session_path}")


if __name__ == "__main__":
    main()
