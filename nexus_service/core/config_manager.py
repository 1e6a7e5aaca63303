"""Configuration manager for loading tool settings."""

import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional
import yaml

from ..utils.constants import (
    BIND_RETRY_DELAY,
    CONFIG_ENV_VAR,
    CONFIG_FILE,
    DEFAULT_LOG_LINES,
    DEFAULT_NEXUS_BIN,
    DEFAULT_PORT,
    DEFAULT_REGISTER_TIMEOUT,
    DEFAULT_STATUS_LOG_LINES,
    DEFAULT_SYSTEMCTL_TIMEOUT,
    DEFAULT_UNIT_DIR,
    DEFAULT_WORK_DIR,
    LOGSERVER_NAME,
    MAX_PORT,
    SERVICE_NAME,
)
from ..utils.privilege_helper import PrivilegeHelper

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages settings read from an optional YAML file."""

    INT_SETTINGS = (
        "port", "log_lines", "status_log_lines",
        "systemctl_timeout", "register_timeout", "bind_retry_delay",
    )

    def __init__(self, config_file: Optional[str] = None):
        """Initialize the config manager.

        Args:
            config_file: Explicit path; falls back to $NEXUS_SERVICE_CONFIG,
                then /etc/nexus-service/config.yaml
        """
        self.config_file = self._resolve_path(config_file)
        self.settings: Dict[str, Any] = {}
        self.loaded = False

    @staticmethod
    def _resolve_path(config_file: Optional[str]) -> Path:
        if config_file:
            return Path(config_file)
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return Path(env_path)
        return CONFIG_FILE

    def load_config(self) -> bool:
        """Load configuration from file.

        Returns:
            True if config loaded successfully, False otherwise
        """
        if not self.config_file.exists():
            logger.debug(f"Config file {self.config_file} not found, using defaults")
            self._load_defaults()
            return False

        try:
            with open(self.config_file, 'r') as f:
                data = yaml.safe_load(f)

            if not data:
                logger.warning("Empty config file, using defaults")
                self._load_defaults()
                return False

            if not self._validate_config(data):
                logger.error("Invalid config file, using defaults")
                self._load_defaults()
                return False

            self.settings = dict(data.get("settings") or {})
            self._ensure_default_settings()
            self.loaded = True

            logger.debug(f"Loaded settings from {self.config_file}")
            return True

        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error: {e}")
            self._load_defaults()
            return False
        except OSError as e:
            logger.error(f"Failed to load config: {e}")
            self._load_defaults()
            return False

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a setting value.

        Args:
            key: Setting key
            default: Default value if key not found

        Returns:
            Setting value or default
        """
        return self.settings.get(key, default)

    def unit_path(self, unit_name: str) -> Path:
        """Get the unit file path for a service name.

        Args:
            unit_name: Service name without suffix

        Returns:
            Path inside the configured unit directory
        """
        return Path(self.get_setting("unit_dir", DEFAULT_UNIT_DIR)) / f"{unit_name}.service"

    def _validate_config(self, data: dict) -> bool:
        """Validate configuration data structure.

        Args:
            data: Configuration dictionary

        Returns:
            True if valid, False otherwise
        """
        if not isinstance(data, dict):
            logger.error("Config must be a dictionary")
            return False

        if "version" not in data:
            logger.debug("Config missing version, assuming valid")

        settings = data.get("settings") or {}
        if not isinstance(settings, dict):
            logger.error("Settings must be a dictionary")
            return False

        for key in self.INT_SETTINGS:
            value = settings.get(key)
            if value is not None and (not isinstance(value, int) or isinstance(value, bool) or value < 0):
                logger.error(f"Setting {key} must be a non-negative integer, got {value!r}")
                return False

        port = settings.get("port")
        if port is not None and port > MAX_PORT:
            logger.error(f"Setting port must be at most {MAX_PORT}, got {port}")
            return False

        return True

    def _load_defaults(self):
        """Load default configuration."""
        self.settings = {}
        self._ensure_default_settings()

    def _ensure_default_settings(self):
        """Ensure all default settings exist.

        Keys left empty in the file (YAML null) get their default too.
        """
        defaults = {
            "nexus_bin": DEFAULT_NEXUS_BIN,
            "service_name": SERVICE_NAME,
            "logserver_name": LOGSERVER_NAME,
            "unit_dir": DEFAULT_UNIT_DIR,
            "user": PrivilegeHelper.get_current_username(),
            "work_dir": DEFAULT_WORK_DIR,
            "port": DEFAULT_PORT,
            "log_lines": DEFAULT_LOG_LINES,
            "status_log_lines": DEFAULT_STATUS_LOG_LINES,
            "systemctl_timeout": DEFAULT_SYSTEMCTL_TIMEOUT,
            "register_timeout": DEFAULT_REGISTER_TIMEOUT,
            "bind_retry_delay": BIND_RETRY_DELAY,
            "log_file": None,
        }

        for key, value in defaults.items():
            if self.settings.get(key) is None:
                self.settings[key] = value
