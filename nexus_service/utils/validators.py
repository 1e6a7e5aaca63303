"""Input validation for the install command."""

import re

from ..exceptions import ValidationError
from .constants import NODE_ID_PATTERN, WALLET_PATTERN

_WALLET_RE = re.compile(WALLET_PATTERN)
_NODE_ID_RE = re.compile(NODE_ID_PATTERN, re.ASCII)


def is_valid_wallet_address(wallet: str) -> bool:
    """Check for '0x' followed by exactly 40 hexadecimal characters."""
    return bool(wallet) and _WALLET_RE.fullmatch(wallet) is not None


def is_valid_node_id(node_id: str) -> bool:
    """Check for one or more decimal digits."""
    return bool(node_id) and _NODE_ID_RE.fullmatch(node_id) is not None


def validate_wallet_address(wallet: str) -> str:
    """Validate a wallet address.

    Args:
        wallet: Address given on the command line

    Returns:
        The address unchanged

    Raises:
        ValidationError: If the address is malformed
    """
    if not is_valid_wallet_address(wallet):
        raise ValidationError(
            f"Invalid wallet address format: {wallet}",
            "Expected format: 0x followed by 40 hexadecimal characters"
        )
    return wallet


def validate_node_id(node_id: str) -> str:
    """Validate a node id.

    Args:
        node_id: Node id given on the command line

    Returns:
        The node id unchanged

    Raises:
        ValidationError: If the node id is not numeric
    """
    if not is_valid_node_id(node_id):
        raise ValidationError(
            f"Invalid node ID format: {node_id}",
            "Node ID must be a numeric value"
        )
    return node_id
