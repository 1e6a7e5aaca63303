"""Main application coordinator for nexus-service.

Maps each command to systemctl/journalctl calls on the node unit or the
logserver unit. Failures that must stop the command are raised as
NexusServiceError subclasses; main() turns them into exit status 1.
"""

import logging
import shlex
import sys
from typing import Optional, Tuple

from .core.config_manager import ConfigManager
from .core.nexus_client import NexusClient
from .core.service_manager import ServiceManager
from .core.unit_writer import remove_unit, write_unit
from .exceptions import OperationError, PreconditionError, ValidationError
from .models.service import ServiceStatus, UnitConfig
from .utils.constants import APP_NAME, LOGSERVER_DESCRIPTION, SERVICE_DESCRIPTION
from .utils.privilege_helper import PrivilegeHelper
from .utils.validators import validate_node_id, validate_wallet_address

logger = logging.getLogger(__name__)

# States in which a unit still holds its process or is about to restart it
RUNNING_STATES = (ServiceStatus.ACTIVE, ServiceStatus.ACTIVATING)


class NexusServiceApp:
    """Installs and controls the node and logserver units."""

    def __init__(self, config_manager: ConfigManager):
        """Initialize the application.

        Args:
            config_manager: Loaded configuration
        """
        self.config_manager = config_manager
        self.service_manager = ServiceManager(config_manager.get_setting("systemctl_timeout"))
        self.nexus_client = NexusClient(
            config_manager.get_setting("nexus_bin"),
            config_manager.get_setting("register_timeout")
        )

        self.service_name = config_manager.get_setting("service_name")
        self.logserver_name = config_manager.get_setting("logserver_name")
        self.port = config_manager.get_setting("port")

    # ------------------------------------------------------------------
    # Node service
    # ------------------------------------------------------------------

    def install_service(
        self,
        node_id: Optional[str] = None,
        wallet: Optional[str] = None,
        max_difficulty: Optional[str] = None
    ):
        """Install and enable the node unit.

        Exactly one of node_id or wallet must be given. In wallet mode the
        wallet and node are registered first and the unit starts without
        --node-id.

        Raises:
            ValidationError: Neither or both identities given, or one is malformed
            PreconditionError: The node binary is missing
            PrivilegeError: No root or sudo
            OperationError: Registration, unit write or systemctl failed
        """
        if (node_id is None) == (wallet is None):
            raise ValidationError("Either --node-id or --wallet must be provided")

        if wallet is not None:
            validate_wallet_address(wallet)
        else:
            validate_node_id(node_id)

        self._check_nexus_binary()
        PrivilegeHelper.check()

        logger.info("Installing Nexus Network service...")

        if max_difficulty is not None:
            logger.warning(f"--max-difficulty {max_difficulty} is not supported yet and will not be applied")

        self._stop_existing(self.service_name, "service")

        if wallet is not None:
            logger.info(f"Registering wallet: {wallet}")
            success, error = self.nexus_client.register_user(wallet)
            if not success:
                raise OperationError(f"Failed to register wallet: {error}")

            logger.info("Registering node...")
            success, error = self.nexus_client.register_node()
            if not success:
                raise OperationError(f"Failed to register node: {error}")

            exec_start = self.nexus_client.exec_start()
        else:
            logger.info(f"Using node ID: {node_id}")
            exec_start = self.nexus_client.exec_start(node_id)

        self._install_unit(self.service_name, exec_start, SERVICE_DESCRIPTION)

        logger.info("Service installed and enabled successfully")
        logger.info(f"Run '{APP_NAME} start' to launch the service")

    def start_service(self):
        """Start the node unit; it must be installed (enabled) first."""
        logger.info(f"Starting {self.service_name} service...")
        self._start(self.service_name, "install")
        logger.info("Service started successfully")

    def stop_service(self):
        """Stop the node unit. A failed stop is only a warning."""
        logger.info(f"Stopping {self.service_name} service...")
        if self._stop(self.service_name):
            logger.info("Service stopped successfully")
        else:
            logger.warning("Service may not have been running")

    def restart_service(self):
        """Restart the node unit; it must be installed (enabled) first."""
        logger.info(f"Restarting {self.service_name} service...")
        PrivilegeHelper.check()
        self._require_installed(self.service_name, "install")

        success, error = self.service_manager.restart_service(self.service_name)
        if not success:
            raise OperationError(f"Failed to restart service: {error}")
        logger.info("Service restarted successfully")

    def show_status(self) -> Tuple[bool, str]:
        """Get the 'systemctl status' report for the node unit.

        Returns:
            Tuple of (unit is running, report text)
        """
        logger.info(f"Checking {self.service_name} service status...")
        return self.service_manager.get_status_text(self.service_name, privileged=True)

    def show_logs(self, lines: Optional[int] = None) -> str:
        """Get the last lines of the node unit's journal."""
        return self._logs(self.service_name, lines)

    def remove_service(self):
        """Stop, disable and delete the node unit."""
        logger.info(f"Removing {self.service_name} service...")
        if self._remove(self.service_name, "service"):
            logger.info("Service removed successfully")

    # ------------------------------------------------------------------
    # Logserver
    # ------------------------------------------------------------------

    def logserver_exec_start(self) -> str:
        """Build the ExecStart command line that runs the status server."""
        cmd = [
            sys.executable, "-m", "nexus_service", "serve-logserver",
            "--port", str(self.port),
            "--nexus-bin", self.nexus_client.binary,
        ]
        if self.config_manager.loaded:
            cmd += ["--config", str(self.config_manager.config_file.resolve())]
        return shlex.join(cmd)

    def install_logserver(self):
        """Install and enable the logserver unit."""
        logger.info("Installing Nexus Logserver service...")
        PrivilegeHelper.check()

        self._stop_existing(self.logserver_name, "logserver")
        self._install_unit(self.logserver_name, self.logserver_exec_start(), LOGSERVER_DESCRIPTION)

        logger.info("Logserver installed and enabled successfully")
        logger.info(f"Run '{APP_NAME} start-logserver' to launch the logserver")

    def start_logserver(self):
        """Start the logserver unit; it must be installed first."""
        logger.info(f"Starting {self.logserver_name} service...")
        self._start(self.logserver_name, "install-logserver")
        logger.info(f"Logserver started successfully on port {self.port}")

    def stop_logserver(self):
        """Stop the logserver unit. A failed stop is only a warning."""
        logger.info(f"Stopping {self.logserver_name} service...")
        if self._stop(self.logserver_name):
            logger.info("Logserver stopped successfully")
        else:
            logger.warning("Logserver may not have been running")

    def show_logserver_logs(self, lines: Optional[int] = None) -> str:
        """Get the last lines of the logserver unit's journal."""
        return self._logs(self.logserver_name, lines)

    def remove_logserver(self):
        """Stop, disable and delete the logserver unit."""
        logger.info(f"Removing {self.logserver_name} service...")
        if self._remove(self.logserver_name, "logserver"):
            logger.info("Logserver removed successfully")

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _check_nexus_binary(self):
        if not self.nexus_client.exists():
            raise PreconditionError(
                f"Nexus binary not found at: {self.nexus_client.binary}. "
                "Please ensure Nexus CLI is properly installed"
            )

    def _require_installed(self, unit: str, install_command: str):
        if not self.service_manager.is_enabled(unit):
            raise PreconditionError(
                f"Service {unit} is not installed. Run '{APP_NAME} {install_command}' first."
            )

    def _stop_existing(self, unit: str, label: str):
        """Stop and disable a unit, ignoring failures so reinstall is idempotent."""
        if self.service_manager.get_service_status(unit) in RUNNING_STATES:
            logger.warning(f"Stopping existing {label}...")
            success, error = self.service_manager.stop_service(unit)
            if not success:
                logger.debug(f"Ignoring failed stop of {unit}: {error}")

        if self.service_manager.is_enabled(unit):
            logger.warning(f"Disabling existing {label}...")
            success, error = self.service_manager.disable_service(unit)
            if not success:
                logger.debug(f"Ignoring failed disable of {unit}: {error}")

    def _install_unit(self, unit: str, exec_start: str, description: str):
        config = UnitConfig(
            name=unit,
            description=description,
            exec_start=exec_start,
            user=self.config_manager.get_setting("user"),
            work_dir=str(self.config_manager.get_setting("work_dir")),
        )
        write_unit(self.config_manager.unit_path(unit), config, self.service_manager.timeout)

        success, error = self.service_manager.daemon_reload()
        if not success:
            raise OperationError(f"Failed to reload systemd: {error}")

        success, error = self.service_manager.enable_service(unit)
        if not success:
            raise OperationError(f"Failed to enable {unit}: {error}")

    def _start(self, unit: str, install_command: str):
        PrivilegeHelper.check()
        self._require_installed(unit, install_command)

        success, error = self.service_manager.start_service(unit)
        if not success:
            raise OperationError(f"Failed to start {unit}: {error}")

    def _stop(self, unit: str) -> bool:
        PrivilegeHelper.check()
        success, error = self.service_manager.stop_service(unit)
        if not success:
            logger.debug(f"Stop of {unit} failed: {error}")
        return success

    def _logs(self, unit: str, lines: Optional[int]) -> str:
        if lines is None:
            lines = self.config_manager.get_setting("log_lines")
        logger.info(f"Showing last {lines} lines of {unit} service logs...")

        success, text = self.service_manager.get_service_logs(unit, lines)
        if not success:
            raise OperationError(text)
        return text

    def _remove(self, unit: str, label: str) -> bool:
        """Remove a unit; returns False when its file was already gone."""
        PrivilegeHelper.check()
        self._stop_existing(unit, label)

        path = self.config_manager.unit_path(unit)
        if not path.exists():
            logger.warning(f"{label.capitalize()} file not found: {path}")
            return False

        remove_unit(path, self.service_manager.timeout)
        success, error = self.service_manager.daemon_reload()
        if not success:
            raise OperationError(f"Failed to reload systemd: {error}")
        return True
