"""nexus-service - Install and control the Nexus network node under systemd."""

__version__ = "1.0.0"
