"""
NMEA 0183 parsing for location fixes.

Only the position-bearing sentences are understood:
- GGA: fix data (position, quality, satellites, HDOP, altitude)
- RMC: recommended minimum (position, status)

Any talker ID is accepted ($GP, $GN, $GL, ...).
"""

import logging
import time
from dataclasses import dataclass, replace
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


@dataclass
class NMEAFix:
    """Accumulated state of the most recent GGA/RMC sentences."""

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None

    fix_quality: int = 0  # 0=invalid, 1=GPS fix, 2=DGPS fix
    satellites_used: int = 0
    hdop: Optional[float] = None

    utc_time: Optional[str] = None
    timestamp: Optional[float] = None

    @property
    def has_position(self) -> bool:
        """True when the receiver reports a usable position."""
        return (self.fix_quality > 0 and
                self.latitude is not None and
                self.longitude is not None)


def nmea_checksum(payload: str) -> str:
    """XOR checksum of the characters between '$' and '*', as two hex digits."""
    checksum = 0
    for char in payload:
        checksum ^= ord(char)
    return f"{checksum:02X}"


def parse_coordinate(value: str, hemisphere: str) -> Optional[float]:
    """
    Convert an NMEA (D)DDMM.MMMM field to signed decimal degrees.

    Args:
        value: Coordinate field, e.g. "5003.6603" or "01956.4129"
        hemisphere: N/S for latitude, E/W for longitude

    Returns:
        Decimal degrees, negative for S/W, or None if the field is empty/invalid
    """
    if not value or hemisphere not in ('N', 'S', 'E', 'W'):
        return None

    dot = value.find('.')
    whole_len = dot if dot != -1 else len(value)
    # Minutes always take the last two integer digits
    if whole_len < 3:
        return None

    try:
        degrees = float(value[:whole_len - 2])
        minutes = float(value[whole_len - 2:])
    except ValueError:
        return None

    if minutes >= 60.0:
        return None

    decimal = degrees + minutes / 60.0
    return -decimal if hemisphere in ('S', 'W') else decimal


class NMEAParser:
    """
    Stateful NMEA sentence parser.

    GGA and RMC sentences update a shared fix; each successfully parsed
    sentence that leaves the fix with a usable position yields a snapshot.
    """

    def __init__(self):
        self.last_fix = NMEAFix()
        self.sentence_count = 0
        self.parse_errors = 0

        self._handlers = {
            'GGA': self._apply_gga,
            'RMC': self._apply_rmc,
        }

    def _split(self, sentence: str) -> Optional[List[str]]:
        """Validate framing and checksum, returning the comma separated fields."""
        if not sentence.startswith('$') or '*' not in sentence:
            return None

        payload, _, checksum = sentence[1:].partition('*')
        if nmea_checksum(payload) != checksum.strip().upper():
            return None

        return payload.split(',')

    def _apply_gga(self, fields: List[str]) -> bool:
        """$xxGGA,time,lat,N,lon,E,quality,sats,hdop,alt,M,geoid,M,age,station"""
        if len(fields) < 10:
            return False

        latitude = parse_coordinate(fields[2], fields[3])
        longitude = parse_coordinate(fields[4], fields[5])

        fix = self.last_fix
        fix.utc_time = fields[1] or fix.utc_time
        fix.fix_quality = int(fields[6]) if fields[6] else 0
        if fix.fix_quality > 0:
            fix.latitude = latitude if latitude is not None else fix.latitude
            fix.longitude = longitude if longitude is not None else fix.longitude
        if fields[7]:
            fix.satellites_used = int(fields[7])
        if fields[8]:
            fix.hdop = float(fields[8])
        if fields[9]:
            fix.altitude = float(fields[9])
        return True

    def _apply_rmc(self, fields: List[str]) -> bool:
        """$xxRMC,time,status,lat,N,lon,E,speed,course,date,magvar,E"""
        if len(fields) < 7:
            return False

        fix = self.last_fix
        fix.utc_time = fields[1] or fix.utc_time

        # V = void, receiver has no fix
        if fields[2] != 'A':
            fix.fix_quality = 0
            return True

        latitude = parse_coordinate(fields[3], fields[4])
        longitude = parse_coordinate(fields[5], fields[6])
        if latitude is None or longitude is None:
            return False

        fix.latitude = latitude
        fix.longitude = longitude
        if fix.fix_quality == 0:
            fix.fix_quality = 1
        return True

    def parse_sentence(self, sentence: str, timestamp: Optional[float] = None) -> Optional[NMEAFix]:
        """
        Parse a single NMEA sentence.

        Args:
            sentence: Raw sentence, with or without trailing CR/LF
            timestamp: Receive time; defaults to now

        Returns:
            Snapshot of the fix if the sentence carried a usable position,
            None otherwise (unsupported, malformed, or no fix)
        """
        self.sentence_count += 1

        fields = self._split(sentence.strip())
        if fields is None:
            self.parse_errors += 1
            logger.debug("Rejected NMEA sentence: %r", sentence)
            return None

        handler = self._handlers.get(fields[0][-3:])
        if handler is None:
            return None

        try:
            applied = handler(fields)
        except (ValueError, IndexError):
            applied = False

        if not applied:
            self.parse_errors += 1
            logger.debug("Malformed %s sentence: %r", fields[0], sentence)
            return None

        self.last_fix.timestamp = time.time() if timestamp is None else timestamp

        if not self.last_fix.has_position:
            return None
        return replace(self.last_fix)

    def get_statistics(self) -> Dict[str, Any]:
        """Get parser statistics."""
        return {
            'sentences_processed': self.sentence_count,
            'parse_errors': self.parse_errors,
            'error_rate': self.parse_errors / max(1, self.sentence_count),
            'last_fix_valid': self.last_fix.has_position
        }
