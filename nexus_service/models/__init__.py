"""Data models for systemd unit management."""

from .service import ServiceStatus, UnitConfig

__all__ = ["ServiceStatus", "UnitConfig"]
