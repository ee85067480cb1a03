"""
Location types and the NMEA-backed location source.
"""

import logging
import math
import threading
from dataclasses import dataclass
from typing import Optional

from ..math.constants import LOCATION_INTERVAL_MS
from .nmea import NMEAParser, NMEAFix
from .sources import LocationSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Coordinate:
    """Latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.latitude) and math.isfinite(self.longitude)

    @property
    def is_valid(self) -> bool:
        """Check if the coordinate lies within geographic ranges."""
        return (self.is_finite and
                -90 <= self.latitude <= 90 and
                -180 <= self.longitude <= 180)


@dataclass
class LocationFix:
    """Location fix as reported by a receiver."""

    coordinate: Coordinate
    altitude: Optional[float] = None
    fix_quality: int = 0
    satellites: int = 0
    hdop: Optional[float] = None
    timestamp: Optional[float] = None

    @classmethod
    def from_nmea(cls, nmea_fix: NMEAFix) -> "LocationFix":
        return cls(
            coordinate=Coordinate(nmea_fix.latitude, nmea_fix.longitude),
            altitude=nmea_fix.altitude,
            fix_quality=nmea_fix.fix_quality,
            satellites=nmea_fix.satellites_used,
            hdop=nmea_fix.hdop,
            timestamp=nmea_fix.timestamp
        )


class NmeaLocationSource(LocationSource):
    """
    Location source fed with raw NMEA sentences.

    GGA and RMC usually arrive in pairs for the same epoch; fixes closer
    together than `interval_ms` are parsed but not emitted.

    Several readers may feed one source; each sentence is parsed and
    emitted under a lock, so fixes never mix fields from concurrent feeds.
    """

    def __init__(self, interval_ms: int = LOCATION_INTERVAL_MS, name: str = "nmea"):
        super().__init__(name)
        self.interval_ms = interval_ms
        self.parser = NMEAParser()
        self.last_fix: Optional[LocationFix] = None
        self.fix_count = 0
        self.invalid_fixes = 0
        self._lock = threading.Lock()

    def feed(self, sentence: str, timestamp: Optional[float] = None) -> Optional[LocationFix]:
        """
        Parse one sentence and emit its coordinate if it yields a fix.

        Coordinates outside geographic ranges are counted and dropped.

        Returns:
            The emitted LocationFix, or None
        """
        with self._lock:
            nmea_fix = self.parser.parse_sentence(sentence, timestamp)
            if nmea_fix is None:
                return None

            fix = LocationFix.from_nmea(nmea_fix)
            if not fix.coordinate.is_valid:
                self.invalid_fixes += 1
                logger.debug("Fix out of range dropped: %s", fix.coordinate)
                return None

            if self.last_fix is not None and self.interval_ms > 0:
                elapsed_ms = (fix.timestamp - self.last_fix.timestamp) * 1000.0
                if 0 <= elapsed_ms < self.interval_ms:
                    return None

            self.last_fix = fix
            self.fix_count += 1
            logger.debug("Fix %.6f, %.6f (quality %d, sats %d)",
                         fix.coordinate.latitude, fix.coordinate.longitude,
                         fix.fix_quality, fix.satellites)
            self.emit(fix.coordinate)
            return fix

    def get_statistics(self) -> dict:
        """Get source statistics."""
        return {
            'fix_count': self.fix_count,
            'invalid_fixes': self.invalid_fixes,
            'listeners': self.listener_count,
            'nmea_statistics': self.parser.get_statistics()
        }
