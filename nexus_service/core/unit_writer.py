"""Generate, write and delete systemd unit files."""

import logging
import subprocess
from pathlib import Path

from ..exceptions import OperationError
from ..models.service import UnitConfig
from ..utils.privilege_helper import PrivilegeHelper

logger = logging.getLogger(__name__)

UNIT_TEMPLATE = """[Unit]
Description={description}
After=network.target
Wants=network.target

[Service]
Type=simple
ExecStart={exec_start}
Restart=always
RestartSec=5
User={user}
Group={user}
WorkingDirectory={work_dir}
StandardOutput=journal
StandardError=journal
SyslogIdentifier={name}

# Security settings
NoNewPrivileges=true
PrivateTmp=true
ProtectSystem=strict
ProtectHome=true
ReadWritePaths={work_dir}

[Install]
WantedBy=multi-user.target
"""


def render_unit(config: UnitConfig) -> str:
    """Render the unit file text for a service.

    Args:
        config: Unit parameters

    Returns:
        Complete unit file content
    """
    return UNIT_TEMPLATE.format(
        name=config.name,
        description=config.description,
        exec_start=config.exec_start,
        user=config.user,
        work_dir=config.work_dir,
    )


def write_unit(path: Path, config: UnitConfig, timeout: int = 30):
    """Write a unit file, replacing any existing one.

    As root the file is written directly, otherwise it is piped through
    'sudo tee'.

    Args:
        path: Destination, e.g. /etc/systemd/system/nexus-network.service
        config: Unit parameters
        timeout: Seconds to wait for 'sudo tee'

    Raises:
        OperationError: If the file could not be written
    """
    content = render_unit(config)
    logger.info(f"Creating systemd service file: {path}")

    if PrivilegeHelper.is_root():
        try:
            path.write_text(content)
        except OSError as e:
            raise OperationError(f"Failed to write {path}: {e}") from e
        return

    try:
        subprocess.run(
            PrivilegeHelper.wrap(["tee", str(path)]),
            input=content,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True
        )
    except subprocess.CalledProcessError as e:
        error_msg = e.stderr.strip() if e.stderr else f"tee exited with {e.returncode}"
        raise OperationError(f"Failed to write {path}: {error_msg}") from e
    except (subprocess.TimeoutExpired, OSError) as e:
        raise OperationError(f"Failed to write {path}: {e}") from e


def remove_unit(path: Path, timeout: int = 30):
    """Delete a unit file.

    Args:
        path: Unit file to delete
        timeout: Seconds to wait for 'sudo rm'

    Raises:
        OperationError: If the file could not be removed
    """
    if PrivilegeHelper.is_root():
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise OperationError(f"Failed to remove {path}: {e}") from e
        return

    try:
        subprocess.run(
            PrivilegeHelper.wrap(["rm", "-f", str(path)]),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True
        )
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
        raise OperationError(f"Failed to remove {path}: {e}") from e
