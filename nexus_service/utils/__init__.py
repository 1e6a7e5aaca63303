"""Utility functions and constants."""

from .constants import *
from .privilege_helper import PrivilegeHelper
from .validators import validate_node_id, validate_wallet_address

__all__ = [
    "APP_NAME", "CONFIG_FILE", "SERVICE_NAME", "LOGSERVER_NAME",
    "PrivilegeHelper", "validate_node_id", "validate_wallet_address",
]
