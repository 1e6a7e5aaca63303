"""Service manager for interacting with systemd via systemctl."""

import subprocess
import logging
from typing import List, Tuple, Optional
from ..models.service import ServiceStatus
from ..utils.constants import DEFAULT_LOG_LINES, DEFAULT_SYSTEMCTL_TIMEOUT
from ..utils.privilege_helper import PrivilegeHelper

logger = logging.getLogger(__name__)


class ServiceManager:
    """Manages system-level systemd services via systemctl commands."""

    def __init__(self, timeout: int = DEFAULT_SYSTEMCTL_TIMEOUT):
        """Initialize the service manager.

        Args:
            timeout: Seconds to wait for each systemctl/journalctl call
        """
        self.timeout = timeout

    def is_enabled(self, service_name: str) -> bool:
        """Check if a service is enabled (installed).

        Args:
            service_name: Name of the systemd service

        Returns:
            True if 'systemctl is-enabled --quiet' succeeds
        """
        return self._query(["systemctl", "is-enabled", "--quiet", service_name])

    def get_service_status(self, service_name: str) -> ServiceStatus:
        """Get the current status of a service.

        Args:
            service_name: Name of the systemd service

        Returns:
            ServiceStatus enum value
        """
        cmd = ["systemctl", "show", service_name, "--property=ActiveState", "--value"]

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True
            )
            return ServiceStatus.from_string(result.stdout)

        except subprocess.TimeoutExpired:
            logger.error(f"Timeout getting status for {service_name}")
            return ServiceStatus.UNKNOWN
        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to get status for {service_name}: {e.stderr}")
            return ServiceStatus.UNKNOWN
        except OSError as e:
            logger.error(f"Could not run systemctl for {service_name}: {e}")
            return ServiceStatus.UNKNOWN

    def start_service(self, service_name: str) -> Tuple[bool, Optional[str]]:
        """Start a systemd service.

        Args:
            service_name: Name of the systemd service

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        return self._execute_systemctl_action("start", service_name)

    def stop_service(self, service_name: str) -> Tuple[bool, Optional[str]]:
        """Stop a systemd service.

        Args:
            service_name: Name of the systemd service

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        return self._execute_systemctl_action("stop", service_name)

    def restart_service(self, service_name: str) -> Tuple[bool, Optional[str]]:
        """Restart a systemd service.

        Args:
            service_name: Name of the systemd service

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        return self._execute_systemctl_action("restart", service_name)

    def enable_service(self, service_name: str) -> Tuple[bool, Optional[str]]:
        """Enable a systemd service to start on boot.

        Args:
            service_name: Name of the systemd service

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        return self._execute_systemctl_action("enable", service_name)

    def disable_service(self, service_name: str) -> Tuple[bool, Optional[str]]:
        """Disable a systemd service from starting on boot.

        Args:
            service_name: Name of the systemd service

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        return self._execute_systemctl_action("disable", service_name)

    def daemon_reload(self) -> Tuple[bool, Optional[str]]:
        """Make systemd re-read unit files after one was written or removed."""
        return self._run_privileged(["systemctl", "daemon-reload"], "reload systemd")

    def get_status_text(self, service_name: str, privileged: bool = False) -> Tuple[bool, str]:
        """Get the human readable 'systemctl status' report.

        Args:
            service_name: Name of the systemd service
            privileged: Run through sudo when not root

        Returns:
            Tuple of (systemctl exit status was zero, report text)
        """
        cmd = ["systemctl", "status", service_name, "--no-pager", "-l"]
        if privileged:
            cmd = PrivilegeHelper.wrap(cmd)

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
            # Inactive units exit 3 but still print a report
            return result.returncode == 0, result.stdout or result.stderr

        except subprocess.TimeoutExpired:
            logger.error(f"Timeout getting status report for {service_name}")
            return False, f"Error: Timeout while fetching status for {service_name}"
        except OSError as e:
            logger.error(f"Could not run systemctl for {service_name}: {e}")
            return False, f"Error: {e}"

    def get_service_logs(self, service_name: str, lines: int = DEFAULT_LOG_LINES) -> Tuple[bool, str]:
        """Get logs for a systemd service via journalctl.

        Args:
            service_name: Name of the systemd service
            lines: Number of log lines to retrieve

        Returns:
            Tuple of (success, log output or error text)
        """
        cmd = [
            "journalctl",
            "-u", service_name,
            "-n", str(lines),
            "--no-pager"
        ]

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True
            )
            return True, result.stdout

        except subprocess.TimeoutExpired:
            logger.error(f"Timeout getting logs for {service_name}")
            return False, f"Error: Timeout while fetching logs for {service_name}"
        except subprocess.CalledProcessError as e:
            logger.error(f"Failed to get logs for {service_name}: {e.stderr}")
            return False, f"Error: {e.stderr}"
        except OSError as e:
            logger.error(f"Could not run journalctl for {service_name}: {e}")
            return False, f"Error: {str(e)}"

    def _query(self, cmd: List[str]) -> bool:
        """Run a read-only systemctl check and report whether it exited 0."""
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
            return result.returncode == 0

        except (subprocess.TimeoutExpired, OSError) as e:
            logger.debug(f"{' '.join(cmd)} failed: {e}")
            return False

    def _execute_systemctl_action(
        self,
        action: str,
        service_name: str
    ) -> Tuple[bool, Optional[str]]:
        """Execute a systemctl action (start, stop, restart, etc.).

        Args:
            action: Systemctl action (start, stop, restart, enable, disable)
            service_name: Name of the systemd service

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        return self._run_privileged(["systemctl", action, service_name], f"{action} {service_name}")

    def _run_privileged(self, cmd: List[str], what: str) -> Tuple[bool, Optional[str]]:
        """Run a mutating command, escalating through sudo when needed."""
        cmd = PrivilegeHelper.wrap(cmd)

        try:
            subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True
            )
            logger.debug(f"Succeeded: {what}")
            return True, None

        except subprocess.TimeoutExpired:
            error_msg = f"Timeout while trying to {what}"
            logger.debug(error_msg)
            return False, error_msg

        except subprocess.CalledProcessError as e:
            error_msg = e.stderr.strip() if e.stderr else f"Failed to {what}"
            logger.debug(f"Failed to {what}: {error_msg}")
            return False, error_msg

        except OSError as e:
            error_msg = str(e)
            logger.debug(f"Could not {what}: {error_msg}")
            return False, error_msg
