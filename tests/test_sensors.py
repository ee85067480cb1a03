#!/usr/bin/env python3
"""
Unit tests for sensor types, orientation fusion, NMEA parsing and sources.
"""

import unittest
import threading
import math
import sys
import os
import numpy as np

# Add core modules to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from compassnav.sensors import (
    Vector3, SensorKind, SensorSample, OrientationFuser, Coordinate,
    NmeaLocationSource, NMEAParser, SensorSource, LocationSource,
)
from compassnav.sensors.imu import rotation_matrix, orientation, north_azimuth_degrees
from compassnav.sensors.nmea import nmea_checksum, parse_coordinate

GRAVITY = Vector3(0.0, 0.0, 9.81)


def magnetometer_for(heading_deg):
    """Field seen by a flat device whose Y axis points at heading_deg."""
    psi = math.radians(heading_deg)
    return Vector3(-20.0 * math.sin(psi), 20.0 * math.cos(psi), -45.0)


def sentence(payload):
    return f"${payload}*{nmea_checksum(payload)}"


GGA = sentence("GPGGA,123519,4807.038,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,")
RMC = sentence("GPRMC,123520,A,4807.038,N,01131.000,E,022.4,084.4,230394,003.1,W")


class TestVector3(unittest.TestCase):
    """Test Vector3."""

    def test_from_sequence(self):
        v = Vector3.from_sequence(np.array([1, 2, 3]))
        self.assertEqual(v, Vector3(1.0, 2.0, 3.0))
        np.testing.assert_array_equal(v.array, [1.0, 2.0, 3.0])

    def test_from_sequence_wrong_length(self):
        with self.assertRaises(ValueError):
            Vector3.from_sequence([1.0, 2.0])

    def test_is_finite(self):
        self.assertTrue(Vector3(0, 0, 0).is_finite)
        self.assertFalse(Vector3(float('nan'), 0, 0).is_finite)
        self.assertFalse(Vector3(0, float('-inf'), 0).is_finite)

    def test_sample_timestamp_defaults(self):
        sample = SensorSample(SensorKind.ACCELEROMETER, GRAVITY)
        self.assertIsNotNone(sample.timestamp)


class TestRotationMatrix(unittest.TestCase):
    """Test rotation matrix and orientation extraction."""

    def test_flat_device_facing_north(self):
        R = rotation_matrix(GRAVITY, magnetometer_for(0.0))

        np.testing.assert_allclose(R, np.eye(3), atol=1e-9)
        azimuth, pitch, roll = orientation(R)
        self.assertAlmostEqual(azimuth, 0.0)
        self.assertAlmostEqual(pitch, 0.0)
        self.assertAlmostEqual(roll, 0.0)

    def test_matrix_is_orthonormal(self):
        R = rotation_matrix(Vector3(1.2, -0.4, 9.7), Vector3(13.0, 22.0, -38.0))
        np.testing.assert_allclose(R @ R.T, np.eye(3), atol=1e-9)

    def test_degenerate_vectors(self):
        self.assertIsNone(rotation_matrix(Vector3(0, 0, 0), Vector3(0, 0, 0)))
        # Field parallel to gravity
        self.assertIsNone(rotation_matrix(GRAVITY, Vector3(0.0, 0.0, -45.0)))

    def test_overflowing_vectors(self):
        # Finite readings whose cross product overflows
        self.assertIsNone(rotation_matrix(Vector3(0.0, 0.0, 1e155), Vector3(1e155, 0.0, 0.0)))
        self.assertIsNone(rotation_matrix(Vector3(0.0, 1e300, 1e300), magnetometer_for(0.0)))

    def test_north_azimuth_rounding(self):
        self.assertEqual(north_azimuth_degrees(math.radians(-10.4)), 10.0)
        self.assertEqual(north_azimuth_degrees(math.radians(-10.6)), 11.0)
        # 359.7 rounds to 360, which is 0
        self.assertEqual(north_azimuth_degrees(math.radians(0.3)), 0.0)


class TestOrientationFuser(unittest.TestCase):
    """Test OrientationFuser."""

    def setUp(self):
        self.fuser = OrientationFuser()

    def test_requires_both_sensors(self):
        self.assertIsNone(self.fuser.update_accelerometer(GRAVITY))
        self.assertFalse(self.fuser.ready)
        self.assertEqual(self.fuser.update_magnetometer(magnetometer_for(0.0)), 0.0)
        self.assertTrue(self.fuser.ready)

    def test_compass_plate_rotation(self):
        self.fuser.update_accelerometer(GRAVITY)

        # Plate turns opposite to the device
        expected = {0.0: 0.0, 45.0: 315.0, 90.0: 270.0, 180.0: 180.0, 270.0: 90.0}
        for heading, north in expected.items():
            self.assertEqual(self.fuser.update_magnetometer(magnetometer_for(heading)), north)

    def test_recomputes_on_every_sample(self):
        self.fuser.update_magnetometer(magnetometer_for(90.0))
        self.assertEqual(self.fuser.update_accelerometer(GRAVITY), 270.0)
        self.assertEqual(self.fuser.update_accelerometer(GRAVITY), 270.0)

    def test_tagged_samples(self):
        self.fuser.update(SensorSample(SensorKind.ACCELEROMETER, GRAVITY))
        north = self.fuser.update(SensorSample(SensorKind.MAGNETOMETER, magnetometer_for(180.0)))
        self.assertEqual(north, 180.0)

    def test_degenerate_sample_dropped(self):
        self.assertIsNone(self.fuser.update_accelerometer(Vector3(0, 0, 0)))
        self.assertIsNone(self.fuser.update_magnetometer(Vector3(0, 0, 0)))
        self.assertEqual(self.fuser.degenerate_count, 1)

    def test_overflowing_sample_dropped(self):
        self.assertIsNone(self.fuser.update_accelerometer(Vector3(0.0, 0.0, 1e155)))
        self.assertIsNone(self.fuser.update_magnetometer(Vector3(1e155, 0.0, 0.0)))
        self.assertEqual(self.fuser.degenerate_count, 1)

    def test_non_finite_sample_not_stored(self):
        self.assertIsNone(self.fuser.update_accelerometer(Vector3(float('nan'), 0, 9.81)))
        self.assertIsNone(self.fuser.gravity)

    def test_reset(self):
        self.fuser.update_accelerometer(GRAVITY)
        self.fuser.update_magnetometer(magnetometer_for(0.0))
        self.fuser.reset()
        self.assertFalse(self.fuser.ready)
        self.assertIsNone(self.fuser.update_accelerometer(GRAVITY))

    def test_statistics(self):
        self.fuser.update_accelerometer(GRAVITY)
        self.fuser.update_magnetometer(magnetometer_for(0.0))
        stats = self.fuser.get_statistics()
        self.assertEqual(stats['sample_count'], 2)
        self.assertTrue(stats['ready'])


class TestNMEAParser(unittest.TestCase):
    """Test NMEAParser."""

    def setUp(self):
        self.parser = NMEAParser()

    def test_parse_coordinate(self):
        self.assertAlmostEqual(parse_coordinate("4807.038", "N"), 48.1173)
        self.assertAlmostEqual(parse_coordinate("01131.000", "E"), 11.516666667)
        self.assertAlmostEqual(parse_coordinate("3352.128", "S"), -33.8688)
        self.assertAlmostEqual(parse_coordinate("07400.600", "W"), -74.01)
        self.assertIsNone(parse_coordinate("", "N"))
        self.assertIsNone(parse_coordinate("4807.038", ""))
        self.assertIsNone(parse_coordinate("12", "N"))
        self.assertIsNone(parse_coordinate("4875.000", "N"))

    def test_gga(self):
        fix = self.parser.parse_sentence(GGA, timestamp=10.0)

        self.assertIsNotNone(fix)
        self.assertAlmostEqual(fix.latitude, 48.1173)
        self.assertAlmostEqual(fix.longitude, 11.516666667)
        self.assertEqual(fix.fix_quality, 1)
        self.assertEqual(fix.satellites_used, 8)
        self.assertAlmostEqual(fix.hdop, 0.9)
        self.assertAlmostEqual(fix.altitude, 545.4)
        self.assertEqual(fix.timestamp, 10.0)

    def test_rmc(self):
        fix = self.parser.parse_sentence(RMC)
        self.assertIsNotNone(fix)
        self.assertAlmostEqual(fix.latitude, 48.1173)
        self.assertEqual(fix.fix_quality, 1)

    def test_other_talker_ids(self):
        payload = "GNGGA,123519,4807.038,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,"
        self.assertIsNotNone(self.parser.parse_sentence(sentence(payload)))

    def test_void_rmc_has_no_fix(self):
        void = sentence("GPRMC,123520,V,,,,,,,230394,,")
        self.assertIsNone(self.parser.parse_sentence(void))
        self.assertEqual(self.parser.parse_errors, 0)

    def test_gga_without_fix(self):
        no_fix = sentence("GPGGA,123519,,,,,0,00,,,M,,M,,")
        self.assertIsNone(self.parser.parse_sentence(no_fix))

    def test_bad_checksum(self):
        corrupted = GGA[:-2] + ("00" if GGA[-2:] != "00" else "11")
        self.assertIsNone(self.parser.parse_sentence(corrupted))
        self.assertEqual(self.parser.parse_errors, 1)

    def test_missing_framing(self):
        self.assertIsNone(self.parser.parse_sentence("GPGGA,no,dollar"))
        self.assertEqual(self.parser.parse_errors, 1)

    def test_unsupported_sentence_is_not_an_error(self):
        gsv = sentence("GPGSV,3,1,11,03,03,111,00,04,15,270,00,06,01,010,00,13,06,292,00")
        self.assertIsNone(self.parser.parse_sentence(gsv))
        self.assertEqual(self.parser.parse_errors, 0)

    def test_truncated_sentence(self):
        self.assertIsNone(self.parser.parse_sentence(sentence("GPGGA,123519,4807.038")))
        self.assertEqual(self.parser.parse_errors, 1)

    def test_statistics(self):
        self.parser.parse_sentence(GGA)
        self.parser.parse_sentence("garbage")
        stats = self.parser.get_statistics()
        self.assertEqual(stats['sentences_processed'], 2)
        self.assertEqual(stats['parse_errors'], 1)
        self.assertTrue(stats['last_fix_valid'])


class TestSources(unittest.TestCase):
    """Test sensor and location sources."""

    def test_register_is_idempotent(self):
        source = SensorSource()
        received = []
        source.register(received.append)
        source.register(received.append)
        self.assertEqual(source.listener_count, 1)

        source.emit_accelerometer(0.0, 0.0, 9.81)
        self.assertEqual(len(received), 1)
        self.assertEqual(received[0].kind, SensorKind.ACCELEROMETER)
        self.assertEqual(received[0].vector, GRAVITY)

    def test_unregister(self):
        source = LocationSource()
        received = []
        source.register(received.append)
        source.unregister(received.append)
        source.unregister(received.append)

        source.emit(Coordinate(1.0, 2.0))
        self.assertEqual(received, [])
        self.assertEqual(source.listener_count, 0)

    def test_listener_may_unregister_while_called(self):
        source = SensorSource()
        calls = []

        def once(sample):
            calls.append(sample)
            source.unregister(once)

        source.register(once)
        source.emit_magnetometer(1.0, 2.0, 3.0)
        source.emit_magnetometer(1.0, 2.0, 3.0)
        self.assertEqual(len(calls), 1)


class TestNmeaLocationSource(unittest.TestCase):
    """Test NmeaLocationSource."""

    def setUp(self):
        self.source = NmeaLocationSource(interval_ms=1000)
        self.received = []
        self.source.register(self.received.append)

    def test_emits_coordinates(self):
        fix = self.source.feed(GGA, timestamp=100.0)

        self.assertIsNotNone(fix)
        self.assertEqual(len(self.received), 1)
        self.assertAlmostEqual(self.received[0].latitude, 48.1173)
        self.assertAlmostEqual(self.received[0].longitude, 11.516666667)

    def test_throttles_to_interval(self):
        self.source.feed(GGA, timestamp=100.0)
        self.assertIsNone(self.source.feed(RMC, timestamp=100.2))
        self.assertIsNotNone(self.source.feed(GGA, timestamp=101.0))
        self.assertEqual(len(self.received), 2)
        self.assertEqual(self.source.fix_count, 2)

    def test_no_throttling_when_interval_zero(self):
        source = NmeaLocationSource(interval_ms=0)
        self.assertIsNotNone(source.feed(GGA, timestamp=100.0))
        self.assertIsNotNone(source.feed(RMC, timestamp=100.0))

    def test_ignores_invalid_sentences(self):
        self.assertIsNone(self.source.feed("$GPGGA,bad*00", timestamp=1.0))
        self.assertEqual(self.received, [])
        self.assertEqual(self.source.get_statistics()['nmea_statistics']['parse_errors'], 1)

    def test_out_of_range_coordinate_dropped(self):
        far_north = sentence("GPGGA,123519,9930.000,N,01131.000,E,1,08,0.9,545.4,M,46.9,M,,")
        self.assertIsNone(self.source.feed(far_north, timestamp=100.0))
        self.assertEqual(self.received, [])
        self.assertEqual(self.source.get_statistics()['invalid_fixes'], 1)

        self.assertIsNotNone(self.source.feed(GGA, timestamp=101.0))
        self.assertTrue(self.received[0].is_valid)

    def test_concurrent_feeds_are_serialized(self):
        source = NmeaLocationSource(interval_ms=0)
        cracow = sentence("GPRMC,120000,A,5003.6603,N,01956.4129,E,000.0,000.0,230394,,")
        received = []
        other_reader_blocked = []

        def listener(coordinate):
            received.append(coordinate)
            if len(received) == 1:
                # A second reader feeding while this fix is being emitted waits for it
                other = threading.Thread(target=source.feed, args=(cracow, 100.0))
                other.start()
                other.join(timeout=0.2)
                other_reader_blocked.append(other.is_alive())
                self.other = other

        source.register(listener)
        source.feed(GGA, timestamp=100.0)
        self.other.join(timeout=2.0)

        self.assertEqual(other_reader_blocked, [True])
        self.assertEqual(len(received), 2)
        self.assertAlmostEqual(received[0].latitude, 48.1173)
        self.assertAlmostEqual(received[0].longitude, 11.516666667)
        self.assertAlmostEqual(received[1].latitude, 50.06100500)
        self.assertAlmostEqual(received[1].longitude, 19.940215)


if __name__ == '__main__':
    unittest.main()
