"""Privilege helper for running systemctl and unit file writes as root."""

import logging
import os
import subprocess
from typing import List

from ..exceptions import PrivilegeError

logger = logging.getLogger(__name__)


class PrivilegeHelper:
    """Decides whether commands need a 'sudo' prefix and checks it is usable."""

    SUDO = "sudo"

    @staticmethod
    def is_root() -> bool:
        """Check if the process runs with an effective uid of 0.

        Returns:
            True if running as root, False otherwise
        """
        return os.geteuid() == 0

    @staticmethod
    def has_passwordless_sudo() -> bool:
        """Check if sudo can be used without a password prompt.

        Returns:
            True if 'sudo -n true' succeeds, False otherwise
        """
        try:
            result = subprocess.run(
                [PrivilegeHelper.SUDO, "-n", "true"],
                capture_output=True,
                text=True,
                timeout=10
            )
            return result.returncode == 0
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.debug(f"sudo check failed: {e}")
            return False

    @staticmethod
    def check():
        """Ensure root privileges or sudo access are available.

        Raises:
            PrivilegeError: If neither is available
        """
        if PrivilegeHelper.is_root() or PrivilegeHelper.has_passwordless_sudo():
            return
        raise PrivilegeError("This script requires root privileges or sudo access")

    @staticmethod
    def wrap(cmd: List[str]) -> List[str]:
        """Prefix a command with sudo unless already running as root.

        Args:
            cmd: Command and arguments

        Returns:
            Command list ready for subprocess.run
        """
        if PrivilegeHelper.is_root():
            return list(cmd)
        return [PrivilegeHelper.SUDO] + list(cmd)

    @staticmethod
    def get_current_username() -> str:
        """Get the current username.

        Returns:
            Current username
        """
        return os.getenv("USER") or os.getenv("USERNAME") or "root"
