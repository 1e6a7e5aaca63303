"""Core functionality for systemd unit management."""

from .service_manager import ServiceManager
from .config_manager import ConfigManager
from .nexus_client import NexusClient
from .logserver import LogServer, StatusReporter

__all__ = ["ServiceManager", "ConfigManager", "NexusClient", "LogServer", "StatusReporter"]
