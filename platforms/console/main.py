#!/usr/bin/env python3
"""
Console compass navigator.

Replays a recorded session (or reads a serial GPS receiver) through the
navigation pipeline and prints the compass plate rotation, arrow rotation,
and distance to the target.

Examples:
  python platforms/console/main.py --session data/walk.log
  python platforms/console/main.py --session data/walk.log --lat 52.2297 --lon 21.0122
  python platforms/console/main.py --gps-port /dev/ttyUSB0 --session data/sensors.log --realtime
"""

import argparse
import logging
import os
import sys
import time
from typing import Optional, TextIO

# Add core modules to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from compassnav.math.utils import clamp_latitude, clamp_longitude
from compassnav.navigation import NavigationController
from compassnav.sensors import LocationSource, NmeaLocationSource, SensorSource
from config import Config
from hardware import SerialNmeaReader, SessionReplay

logger = logging.getLogger(__name__)

NO_SERVICES_ERROR = "Location services are disabled. Enable a GPS source and try again."


class ConsoleReadingsView:
    """
    Sink that renders readings as text.

    Distance is the last reading of each update, so a line is printed once
    all three values are known.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        self.compass_rotation = 0.0
        self.arrow_rotation = 0.0
        self.distance_text = ""
        self.update_count = 0

    def on_north_azimuth_update(self, north_azimuth_deg: float) -> None:
        self.compass_rotation = north_azimuth_deg

    def on_heading_update(self, heading_deg: float) -> None:
        # Rotation of the arrow image; the view wraps it
        self.arrow_rotation = heading_deg % 360.0

    def on_distance_update(self, distance_m: float) -> None:
        self.distance_text = f"Distance: ~{distance_m:.0f} m"
        self.update_count += 1
        print(f"Compass: {self.compass_rotation:6.1f}°  "
              f"Arrow: {self.arrow_rotation:6.1f}°  {self.distance_text}",
              file=self.stream)

    def show_message(self, text: str) -> None:
        print(text, file=self.stream)


class CompassNavigatorApp:
    """Host around the navigation controller: gating, target changes, status."""

    def __init__(self,
                 config: Config,
                 sensor_source: SensorSource,
                 location_source: LocationSource,
                 view: Optional[ConsoleReadingsView] = None):
        self.config = config
        self.location_source = location_source
        self.view = view or ConsoleReadingsView()
        self.navigation = NavigationController(
            self.view,
            sensor_source=sensor_source,
            location_source=location_source,
            window_size=config.filter_window_size
        )
        self.latitude = config.target_latitude
        self.longitude = config.target_longitude

    def is_location_service_enabled(self) -> bool:
        return self.location_source.enabled

    def resume(self) -> bool:
        """
        Start navigating to the current target if location is available.

        Returns:
            True if navigation started
        """
        if not self.is_location_service_enabled():
            self.view.show_message(NO_SERVICES_ERROR)
            return False

        self.navigation.start(self.latitude, self.longitude)
        self._update_navigation_text()
        return True

    def pause(self):
        self.navigation.stop()

    def change_target(self, latitude_text: str, longitude_text: str) -> bool:
        """
        Change the target from user input.

        Blank input keeps the current value; numbers are clamped to valid
        ranges.

        Raises:
            ValueError: input is not a number
        """
        self.navigation.stop()
        if latitude_text and latitude_text.strip():
            self.latitude = clamp_latitude(float(latitude_text))
        if longitude_text and longitude_text.strip():
            self.longitude = clamp_longitude(float(longitude_text))
        return self.resume()

    def _update_navigation_text(self):
        target = self.navigation.target
        self.view.show_message(f"Navigating to: {target.latitude:.6f}, {target.longitude:.6f}")


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Console compass navigator")
    ap.add_argument("--config", default="config.json", help="Path to JSON configuration")
    ap.add_argument("--session", help="Session log to replay (sensor lines and NMEA)")
    ap.add_argument("--gps-port", help="Serial port of an NMEA GPS receiver")
    ap.add_argument("--baud", type=int, help="GPS baud rate")
    ap.add_argument("--lat", help="Target latitude (blank keeps configured value)")
    ap.add_argument("--lon", help="Target longitude (blank keeps configured value)")
    ap.add_argument("--rate", type=float, help="Sensor rate (Hz)")
    ap.add_argument("--realtime", action="store_true", help="Pace session replay at the sensor rate")
    ap.add_argument("--print-config", action="store_true", help="Print configuration and exit")
    return ap.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    config = Config(args.config, create_if_missing=False)
    config.setup_logging()
    if args.session:
        config.set("session_file", args.session)
    if args.gps_port:
        config.set("gps_serial_port", args.gps_port)
    if args.baud:
        config.set("gps_baud_rate", args.baud)
    if args.rate:
        config.set("sensor_rate_hz", args.rate)

    if args.print_config:
        config.print_config()
        return 0

    sensor_source = SensorSource(rate_hz=config.sensor_rate_hz)
    location_source = NmeaLocationSource(interval_ms=config.location_interval_ms)

    replay = None
    if config.session_file:
        replay = SessionReplay(config.session_file, sensor_source, location_source,
                               realtime=args.realtime)

    gps_reader = None
    if config.gps_serial_port:
        gps_reader = SerialNmeaReader(location_source, config.gps_serial_port, config.gps_baud_rate)

    if gps_reader is not None and not gps_reader.open():
        gps_reader = None

    # Location is available when some input can deliver fixes
    location_source.enabled = gps_reader is not None or (replay is not None and replay.available)

    app = CompassNavigatorApp(config, sensor_source, location_source)
    try:
        if args.lat is not None or args.lon is not None:
            started = app.change_target(args.lat or "", args.lon or "")
        else:
            started = app.resume()
        if not started:
            return 1

        if gps_reader is not None:
            gps_reader.start()

        if replay is not None and replay.available:
            stats = replay.replay()
            logger.info("Replay finished: %s", stats)
        elif gps_reader is not None:
            while True:
                time.sleep(1.0)

    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")

    finally:
        app.pause()
        if gps_reader is not None:
            gps_reader.close()

    logger.info("Navigation statistics: %s", app.navigation.get_statistics())
    return 0


if __name__ == "__main__":
    sys.exit(main())
