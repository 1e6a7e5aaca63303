"""Application constants and configuration."""

import os
from pathlib import Path

# Application metadata
APP_NAME = "nexus-service"
LOG_PREFIX = "[NEXUS-SERVICE]"

# Paths
CONFIG_DIR = Path("/etc/nexus-service")
CONFIG_FILE = CONFIG_DIR / "config.yaml"
CONFIG_ENV_VAR = "NEXUS_SERVICE_CONFIG"
DEFAULT_UNIT_DIR = "/etc/systemd/system"

# Units
SERVICE_NAME = "nexus-network"
LOGSERVER_NAME = "nexus-logserver"
SERVICE_DESCRIPTION = "Nexus Network Node"
LOGSERVER_DESCRIPTION = "Nexus Log HTTP Server"

# Default settings
DEFAULT_NEXUS_BIN = "/root/.nexus/bin/nexus-network"
DEFAULT_WORK_DIR = os.getenv("HOME") or "/root"
DEFAULT_PORT = 80
MAX_PORT = 65535
DEFAULT_LOG_LINES = 50
DEFAULT_STATUS_LOG_LINES = 10
DEFAULT_SYSTEMCTL_TIMEOUT = 30  # seconds
DEFAULT_REGISTER_TIMEOUT = 120  # seconds
BIND_RETRY_DELAY = 5  # seconds

# Formats the wallet and node id must match
WALLET_PATTERN = r"0x[a-fA-F0-9]{40}"
NODE_ID_PATTERN = r"[0-9]+"
