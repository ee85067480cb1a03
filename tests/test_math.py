#!/usr/bin/env python3
"""
Unit tests for geometry utilities.
"""

import unittest
import math
import random
import sys
import os

# Add core modules to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from compassnav.math import (
    normalize_degrees, mean, clamp, clamp_latitude, clamp_longitude,
    is_finite, haversine_distance, initial_bearing, distance_and_bearing,
)
from compassnav.math.constants import EARTH_MEAN_RADIUS_M
from compassnav.sensors import Coordinate

CRACOW = Coordinate(50.0610055, 19.940215)
WARSAW = Coordinate(52.2297, 21.0122)


class TestNormalizeDegrees(unittest.TestCase):
    """Test normalize_degrees."""

    def test_known_values(self):
        self.assertEqual(normalize_degrees(-90), 270)
        self.assertEqual(normalize_degrees(450), 90)
        self.assertEqual(normalize_degrees(0), 0)
        self.assertEqual(normalize_degrees(360), 0)
        self.assertEqual(normalize_degrees(-360), 0)

    def test_inputs_beyond_one_turn(self):
        self.assertAlmostEqual(normalize_degrees(-750), 330)
        self.assertAlmostEqual(normalize_degrees(1090.5), 10.5)

    def test_tiny_negative_stays_below_360(self):
        result = normalize_degrees(-1e-20)
        self.assertGreaterEqual(result, 0.0)
        self.assertLess(result, 360.0)

    def test_range_and_periodicity(self):
        """Result is in [0, 360) and invariant under whole turns."""
        rng = random.Random(1234)
        for _ in range(500):
            # Quarter degrees are exact in binary floating point
            x = rng.randint(-4_000_000, 4_000_000) / 4.0
            k = rng.randint(-50, 50)
            result = normalize_degrees(x)
            self.assertGreaterEqual(result, 0.0)
            self.assertLess(result, 360.0)
            self.assertEqual(normalize_degrees(x + 360 * k), result)


class TestMean(unittest.TestCase):
    """Test mean."""

    def test_empty_is_zero(self):
        self.assertEqual(mean([]), 0.0)

    def test_simple(self):
        self.assertEqual(mean([1.0, 2.0, 3.0, 4.0]), 2.5)

    def test_matches_sum_over_count(self):
        rng = random.Random(99)
        for _ in range(200):
            values = [rng.uniform(0, 360) for _ in range(rng.randint(1, 20))]
            self.assertLessEqual(abs(mean(values) - sum(values) / len(values)), 1e-5)

    def test_naive_mean_across_wrap(self):
        # Not a circular mean
        self.assertEqual(mean([359.0, 1.0]), 180.0)


class TestClamp(unittest.TestCase):
    """Test clamp helpers."""

    def test_clamp(self):
        self.assertEqual(clamp(-5, 0, 10), 0)
        self.assertEqual(clamp(15, 0, 10), 10)
        self.assertEqual(clamp(5, 0, 10), 5)
        self.assertEqual(clamp(0, 0, 0), 0)

    def test_invalid_range(self):
        with self.assertRaises(ValueError):
            clamp(1, 10, 0)

    def test_coordinate_clamps(self):
        self.assertEqual(clamp_latitude(91.5), 90.0)
        self.assertEqual(clamp_latitude(-100), -90.0)
        self.assertEqual(clamp_latitude(45.0), 45.0)
        self.assertEqual(clamp_longitude(181), 180.0)
        self.assertEqual(clamp_longitude(-360), -180.0)

    def test_is_finite(self):
        self.assertTrue(is_finite(1.0, -2.0, 0))
        self.assertFalse(is_finite(1.0, float('nan')))
        self.assertFalse(is_finite(float('inf')))


class TestDistanceAndBearing(unittest.TestCase):
    """Test great-circle distance and initial bearing."""

    def test_cracow_to_warsaw(self):
        distance, bearing = distance_and_bearing(CRACOW, WARSAW)

        self.assertAlmostEqual(distance, 252400, delta=1000)
        # Warsaw lies north-north-east of Cracow
        self.assertAlmostEqual(bearing, 16.8, delta=0.5)

    def test_same_point(self):
        rng = random.Random(5)
        for _ in range(100):
            point = Coordinate(rng.uniform(-90, 90), rng.uniform(-180, 180))
            distance, _ = distance_and_bearing(point, point)
            self.assertLessEqual(distance, 1e-3)

    def test_symmetric_distance(self):
        rng = random.Random(6)
        for _ in range(200):
            a = Coordinate(rng.uniform(-90, 90), rng.uniform(-180, 180))
            b = Coordinate(rng.uniform(-90, 90), rng.uniform(-180, 180))
            self.assertAlmostEqual(distance_and_bearing(a, b)[0],
                                   distance_and_bearing(b, a)[0], delta=1e-6)

    def test_one_degree_along_equator(self):
        distance = haversine_distance(0.0, 0.0, 0.0, 1.0)
        self.assertAlmostEqual(distance, EARTH_MEAN_RADIUS_M * math.radians(1.0), places=3)

    def test_bearing_is_not_normalized(self):
        # Due west
        self.assertAlmostEqual(initial_bearing(0.0, 0.0, 0.0, -1.0), -90.0)
        # Due east, north, south
        self.assertAlmostEqual(initial_bearing(0.0, 0.0, 0.0, 1.0), 90.0)
        self.assertAlmostEqual(initial_bearing(0.0, 0.0, 1.0, 0.0), 0.0)
        self.assertAlmostEqual(abs(initial_bearing(1.0, 0.0, 0.0, 0.0)), 180.0)

    def test_antipodal_points(self):
        distance = haversine_distance(0.0, 0.0, 0.0, 180.0)
        self.assertAlmostEqual(distance, math.pi * EARTH_MEAN_RADIUS_M, places=1)


if __name__ == '__main__':
    unittest.main()
