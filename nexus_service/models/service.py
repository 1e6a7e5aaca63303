"""Data models for the generated systemd units."""

from dataclasses import dataclass
from enum import Enum


class ServiceStatus(Enum):
    """Enumeration of possible service states."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    FAILED = "failed"
    ACTIVATING = "activating"
    DEACTIVATING = "deactivating"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, status_str: str) -> 'ServiceStatus':
        """Convert a string to ServiceStatus enum.

        Args:
            status_str: Status string from systemctl

        Returns:
            ServiceStatus enum value
        """
        try:
            return cls(status_str.strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass
class UnitConfig:
    """Parameters substituted into a generated unit file.

    Attributes:
        name: Systemd unit name without the '.service' suffix
        description: Human readable description ([Unit] Description=)
        exec_start: Full command line for ExecStart=
        user: Account the process runs as (also used as its group)
        work_dir: Working directory, the only writable path under ProtectSystem
    """

    name: str
    description: str
    exec_start: str
    user: str = "root"
    work_dir: str = "/root"

    def __post_init__(self):
        """Validate unit configuration after initialization."""
        if not self.name:
            raise ValueError("Unit name cannot be empty")

        if not self.exec_start:
            raise ValueError(f"ExecStart for {self.name} cannot be empty")

        if not self.description:
            self.description = self.name
