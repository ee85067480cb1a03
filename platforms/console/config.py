"""
Configuration manager for the console compass navigator.
"""

import copy
import json
import logging
import os
from typing import Dict, Any

logger = logging.getLogger(__name__)


class Config:
    """Configuration manager for the compass navigator."""

    DEFAULT_CONFIG = {
        # Navigation target (Main Square in Cracow)
        "target": {
            "latitude": 50.0610055,
            "longitude": 19.940215
        },

        # Pipeline
        "filter_window_size": 20,
        "sensor_rate_hz": 5.0,
        "location_interval_ms": 1000,

        # Inputs
        "session_file": None,
        "gps_serial_port": None,
        "gps_baud_rate": 9600,

        # Logging
        "enable_logging": True,
        "log_file": None,
        "log_level": "INFO"
    }

    def __init__(self, config_file: str = "config.json", create_if_missing: bool = True):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration file
            create_if_missing: Write the defaults when the file does not exist
        """
        self.config_file = config_file
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if os.path.exists(config_file):
            self.load_config()
        else:
            logger.info("Config file %s not found, using defaults", config_file)
            if create_if_missing:
                self.save_config()

    def load_config(self) -> bool:
        """
        Load configuration from file.

        Returns:
            True if loaded successfully
        """
        try:
            with open(self.config_file, 'r') as f:
                file_config = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Failed to load config %s: %s", self.config_file, e)
            return False

        if not isinstance(file_config, dict):
            logger.warning("Config %s is not a JSON object, ignored", self.config_file)
            return False

        # File values override defaults
        self._merge_config(self.config, file_config)
        logger.info("Configuration loaded from %s", self.config_file)
        return True

    def save_config(self) -> bool:
        """
        Save current configuration to file.

        Returns:
            True if saved successfully
        """
        try:
            with open(self.config_file, 'w') as f:
                json.dump(self.config, f, indent=2)
        except OSError as e:
            logger.warning("Failed to save config %s: %s", self.config_file, e)
            return False

        logger.info("Configuration saved to %s", self.config_file)
        return True

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]):
        """Recursively merge configuration dictionaries."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default=None):
        """Get configuration value by dotted key, e.g. "target.latitude"."""
        value = self.config
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any):
        """Set configuration value by dotted key."""
        keys = key.split('.')
        config = self.config
        for k in keys[:-1]:
            config = config.setdefault(k, {})
        config[keys[-1]] = value

    # Property accessors for common configuration values
    @property
    def target_latitude(self) -> float:
        return float(self.config["target"]["latitude"])

    @property
    def target_longitude(self) -> float:
        return float(self.config["target"]["longitude"])

    @property
    def filter_window_size(self) -> int:
        return int(self.config["filter_window_size"])

    @property
    def sensor_rate_hz(self) -> float:
        return float(self.config["sensor_rate_hz"])

    @property
    def location_interval_ms(self) -> int:
        return int(self.config["location_interval_ms"])

    @property
    def session_file(self):
        return self.config["session_file"]

    @property
    def gps_serial_port(self):
        return self.config["gps_serial_port"]

    @property
    def gps_baud_rate(self) -> int:
        return int(self.config["gps_baud_rate"])

    @property
    def enable_logging(self) -> bool:
        return bool(self.config["enable_logging"])

    @property
    def log_file(self):
        return self.config["log_file"]

    @property
    def log_level(self) -> str:
        return str(self.config["log_level"]).upper()

    def setup_logging(self):
        """Configure the root logger from the logging keys."""
        if not self.enable_logging:
            logging.disable(logging.CRITICAL)
            return

        level = getattr(logging, self.log_level, logging.INFO)
        logging.basicConfig(
            level=level,
            filename=self.log_file,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )

    def print_config(self):
        """Print current configuration."""
        print("=== Compass Navigator Configuration ===")
        print(json.dumps(self.config, indent=2))
