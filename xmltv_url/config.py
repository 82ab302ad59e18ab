"""
xmltv_url.config - Configuration management

Reads the optional XML settings file passed with --config-file. The file only
provides defaults: values given on the command line always take precedence.

Example:

    <?xml version="1.0" encoding="utf-8"?>
    <settings version="1">
      <setting id="url">http://example.com/guide.xml.gz</setting>
      <setting id="url">http://example.com/other.xml</setting>
      <setting id="days">3</setting>
      <setting id="offset">0</setting>
      <setting id="logfile">/var/log/tv_grab_xmltv_url.log</setting>
      <setting id="logrotate">true</setting>
      <setting id="interval">weekly</setting>
      <setting id="relogs">30</setting>
    </settings>
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import ConfigError

ROTATION_INTERVALS = ("daily", "weekly", "monthly")


class ConfigManager:
    """Manages tv_grab_xmltv_url configuration file"""

    # Valid settings and their types
    VALID_SETTINGS = {
        "url": list,
        "days": int,
        "offset": int,
        "logfile": str,
        "logrotate": str,
        "interval": str,
        "relogs": int,
    }

    DEFAULTS = {
        "url": [],
        "days": 0,
        "offset": 0,
        "logfile": "",
        "logrotate": "true",
        "interval": "daily",
        "relogs": 30,
    }

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = Path(config_file) if config_file else None
        self.settings: Dict[str, Any] = dict(self.DEFAULTS)
        self.settings["url"] = []
        self.version: str = "1"

    def load_config(self) -> Dict[str, Any]:
        """Load configuration file if one was given, return effective settings"""
        if self.config_file is None:
            logging.debug("No configuration file, using defaults")
            return self.settings

        if not self.config_file.is_file():
            raise ConfigError(f"configuration file not found: {self.config_file}")

        self._parse_config_file()
        return self.settings

    def _parse_config_file(self):
        try:
            tree = ET.parse(self.config_file)
        except (ET.ParseError, OSError) as e:
            raise ConfigError(f"cannot read configuration file {self.config_file}: {e}") from e

        root = tree.getroot()
        if root.tag != "settings":
            raise ConfigError(
                f"configuration file {self.config_file} has <{root.tag}> root, expected <settings>"
            )

        logging.info("Reading configuration from: %s", self.config_file)
        self.version = root.attrib.get("version", "1")

        urls: List[str] = []
        for setting in root.findall("setting"):
            setting_id = setting.get("id")
            setting_value = setting.get("value")
            if setting_value is None:
                setting_value = setting.text
            setting_value = (setting_value or "").strip()

            logging.debug("Config setting: %s = %s", setting_id, setting_value)

            if setting_id not in self.VALID_SETTINGS:
                logging.warning(
                    "Unknown configuration setting: %s = %s (ignored)", setting_id, setting_value
                )
                continue

            expected_type = self.VALID_SETTINGS[setting_id]
            if expected_type == list:
                if setting_value:
                    urls.append(setting_value)
            elif expected_type == int:
                self.settings[setting_id] = self._parse_integer(setting_id, setting_value)
            else:
                self.settings[setting_id] = setting_value

        self.settings["url"] = urls

    def _parse_integer(self, setting_id: str, value: str) -> int:
        if not value:
            return self.DEFAULTS[setting_id]
        try:
            return int(value)
        except ValueError as e:
            raise ConfigError(f"setting {setting_id} must be an integer, got: {value}") from e

    def _parse_boolean(self, value: Any) -> bool:
        """Parse boolean values from configuration"""
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes", "on")
        return bool(value)

    def get_log_file(self) -> Optional[Path]:
        logfile = self.settings.get("logfile", "")
        return Path(logfile).expanduser() if logfile else None

    def get_retention_config(self) -> Dict[str, Any]:
        """Get log rotation configuration"""
        logrotate = str(self.settings.get("logrotate", "true")).lower()

        if logrotate in ROTATION_INTERVALS:
            rotation_enabled = True
            rotation_interval = logrotate
        else:
            rotation_enabled = self._parse_boolean(logrotate)
            rotation_interval = str(self.settings.get("interval") or "daily").lower()
            if rotation_interval not in ROTATION_INTERVALS:
                logging.warning(
                    "Unknown log rotation interval: %s, using daily", rotation_interval
                )
                rotation_interval = "daily"

        return {
            "enabled": rotation_enabled,
            "interval": rotation_interval,
            "keep_files": max(0, self.settings.get("relogs", 30)),
            "logrotate_setting": self.settings.get("logrotate", "true"),
            "relogs_setting": self.settings.get("relogs", 30),
        }

    def log_config_summary(self):
        if self.config_file is None:
            return
        logging.info("Configuration summary (%s, version %s):", self.config_file, self.version)
        logging.info("  url: %d source(s)", len(self.settings["url"]))
        logging.info("  days: %s", self.settings["days"])
        logging.info("  offset: %s", self.settings["offset"])
        logging.info("  logfile: %s", self.settings["logfile"] or "(none)")
