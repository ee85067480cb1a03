"""
Input adapters for the console navigator.

- SessionReplay: replays a recorded session log
- SerialNmeaReader: reads NMEA sentences from a serial GPS receiver
"""

import logging
import threading
import time
from pathlib import Path
from typing import Optional, Tuple, Union

import serial

from compassnav.sensors import NmeaLocationSource, SensorSource
from compassnav.sensors.imu import SensorKind, SensorSample, Vector3

logger = logging.getLogger(__name__)

SENSOR_TAGS = {
    'A': SensorKind.ACCELEROMETER,
    'M': SensorKind.MAGNETOMETER,
}


def parse_session_line(line: str) -> Optional[Tuple[str, Union[Tuple[SensorKind, Vector3], str]]]:
    """
    Classify one session log line.

    Format:
        A,x,y,z     accelerometer sample (m/s²)
        M,x,y,z     magnetometer sample (μT)
        $GPGGA,...  NMEA sentence
        # ...       comment

    Returns:
        ('sensor', (kind, vector)), ('nmea', sentence), or None for blank/comment lines

    Raises:
        ValueError: malformed line
    """
    line = line.strip()
    if not line or line.startswith('#'):
        return None

    if line.startswith('$'):
        return 'nmea', line

    fields = [f.strip() for f in line.split(',')]
    kind = SENSOR_TAGS.get(fields[0].upper())
    if kind is None or len(fields) != 4:
        raise ValueError(f"Unrecognized session line: {line!r}")

    return 'sensor', (kind, Vector3.from_sequence([float(v) for v in fields[1:]]))


class SessionReplay:
    """
    Replays a session log into a sensor source and an NMEA location source.

    Replay time advances by one sensor period per sensor line, so fix
    throttling behaves as it did when the session was recorded.
    """

    def __init__(self,
                 path: str,
                 sensor_source: SensorSource,
                 location_source: NmeaLocationSource,
                 realtime: bool = False):
        """
        Args:
            path: Session log file
            sensor_source: Receives accelerometer/magnetometer samples
            location_source: Receives NMEA sentences
            realtime: Sleep one sensor period between sensor lines
        """
        self.path = Path(path)
        self.sensor_source = sensor_source
        self.location_source = location_source
        self.realtime = realtime

        # Statistics
        self.sensor_lines = 0
        self.nmea_lines = 0
        self.bad_lines = 0

    @property
    def available(self) -> bool:
        return self.path.is_file()

    def replay(self, start_time: Optional[float] = None) -> dict:
        """
        Replay the whole file.

        Returns:
            Replay statistics
        """
        if not self.available:
            raise FileNotFoundError(f"Session log not found: {self.path}")

        period = 1.0 / max(self.sensor_source.rate_hz, 1e-3)
        clock = time.time() if start_time is None else start_time

        with self.path.open('r', encoding='ascii', errors='replace') as f:
            for line_number, line in enumerate(f, start=1):
                try:
                    parsed = parse_session_line(line)
                except ValueError as e:
                    self.bad_lines += 1
                    logger.warning("%s:%d: %s", self.path, line_number, e)
                    continue

                if parsed is None:
                    continue

                tag, payload = parsed
                if tag == 'nmea':
                    self.nmea_lines += 1
                    self.location_source.feed(payload, timestamp=clock)
                else:
                    kind, vector = payload
                    self.sensor_lines += 1
                    self.sensor_source.emit(SensorSample(kind, vector, timestamp=clock))
                    clock += period
                    if self.realtime:
                        time.sleep(period)

        return self.get_statistics()

    def get_statistics(self) -> dict:
        return {
            'sensor_lines': self.sensor_lines,
            'nmea_lines': self.nmea_lines,
            'bad_lines': self.bad_lines,
        }


class SerialNmeaReader:
    """
    Reads NMEA sentences from a serial GPS receiver on a background thread.
    """

    def __init__(self,
                 location_source: NmeaLocationSource,
                 serial_port: str = "/dev/ttyAMA0",
                 baud_rate: int = 9600):
        self.location_source = location_source
        self.serial_port = serial_port
        self.baud_rate = baud_rate
        self.serial_conn = None

        self.reader_thread = None
        self._stop = threading.Event()

        # Statistics
        self.sentences_received = 0
        self.read_errors = 0

    def open(self) -> bool:
        """
        Open the serial port.

        Returns:
            True if the receiver is reachable
        """
        try:
            self.serial_conn = serial.Serial(
                port=self.serial_port,
                baudrate=self.baud_rate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=1.0
            )
        except serial.SerialException as e:
            logger.error("GPS: cannot open %s: %s", self.serial_port, e)
            return False

        self.serial_conn.reset_input_buffer()
        logger.info("GPS: opened %s at %d baud", self.serial_port, self.baud_rate)
        return True

    def start(self):
        """Start the reader thread."""
        if self.serial_conn is None:
            raise RuntimeError("Serial port is not open")
        self._stop.clear()
        self.reader_thread = threading.Thread(target=self._reader_loop, daemon=True)
        self.reader_thread.start()

    def _reader_loop(self):
        while not self._stop.is_set():
            try:
                raw = self.serial_conn.readline()
            except serial.SerialException as e:
                self.read_errors += 1
                logger.error("GPS: read error: %s", e)
                time.sleep(0.1)
                continue

            sentence = raw.decode('ascii', errors='ignore').strip()
            if sentence.startswith('$'):
                self.sentences_received += 1
                self.location_source.feed(sentence)

    def close(self):
        """Stop the reader thread and close the port."""
        self._stop.set()
        if self.reader_thread and self.reader_thread.is_alive():
            self.reader_thread.join(timeout=2.0)
        self.reader_thread = None

        if self.serial_conn is not None:
            self.serial_conn.close()
            self.serial_conn = None
        logger.info("GPS: closed %s", self.serial_port)

    def get_statistics(self) -> dict:
        return {
            'sentences_received': self.sentences_received,
            'read_errors': self.read_errors,
            'serial_port': self.serial_port,
            'baud_rate': self.baud_rate
        }
