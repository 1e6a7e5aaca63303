"""Wrapper around the Nexus network CLI binary."""

import logging
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from ..utils.constants import DEFAULT_REGISTER_TIMEOUT

logger = logging.getLogger(__name__)


class NexusClient:
    """Runs the participation client binary for version queries and registration."""

    def __init__(self, binary: str, timeout: int = DEFAULT_REGISTER_TIMEOUT):
        """Initialize the client.

        Args:
            binary: Path to the nexus-network executable
            timeout: Seconds to wait for registration calls
        """
        self.binary = binary
        self.timeout = timeout

    def exists(self) -> bool:
        """Check if the binary is present on disk."""
        return Path(self.binary).is_file()

    def version(self) -> Optional[str]:
        """Get the output of '<binary> --version'.

        Returns:
            Version string, 'Unknown' if the call failed, None if the binary is missing
        """
        if not self.exists():
            return None

        try:
            result = subprocess.run(
                [self.binary, "--version"],
                capture_output=True,
                text=True,
                timeout=10,
                check=True
            )
            return result.stdout.strip() or "Unknown"

        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            logger.debug(f"Could not get version from {self.binary}: {e}")
            return "Unknown"

    def exec_start(self, node_id: Optional[str] = None) -> str:
        """Build the ExecStart command line for headless mode.

        Args:
            node_id: Numeric node id, or None when the node was registered by wallet

        Returns:
            Command line string
        """
        cmd = [self.binary, "start", "--headless"]
        if node_id is not None:
            cmd += ["--node-id", node_id]
        return shlex.join(cmd)

    def register_user(self, wallet_address: str) -> Tuple[bool, Optional[str]]:
        """Register a wallet address with the network.

        Args:
            wallet_address: Validated 0x-prefixed address

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        return self._run(["register-user", "--wallet-address", wallet_address])

    def register_node(self) -> Tuple[bool, Optional[str]]:
        """Register this machine as a node of the registered user.

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        return self._run(["register-node"])

    def _run(self, args: List[str]) -> Tuple[bool, Optional[str]]:
        """Run the binary with arguments, passing its output through."""
        cmd = [self.binary] + args

        try:
            subprocess.run(cmd, timeout=self.timeout, check=True)
            return True, None

        except subprocess.TimeoutExpired:
            error_msg = f"Timeout while running {' '.join(args)}"
            logger.debug(error_msg)
            return False, error_msg

        except subprocess.CalledProcessError as e:
            error_msg = f"{args[0]} exited with status {e.returncode}"
            logger.debug(error_msg)
            return False, error_msg

        except OSError as e:
            logger.debug(f"Could not run {self.binary}: {e}")
            return False, str(e)
