"""Exceptions raised by the service controller."""


class NexusServiceError(Exception):
    """Base class for failures that end a command with exit status 1."""

    pass


class ValidationError(NexusServiceError):
    """Malformed user input (wallet address, node id, line count).

    Attributes:
        hint: Description of the expected format, reported after the message
    """

    def __init__(self, message: str, hint: str = ""):
        super().__init__(message)
        self.hint = hint


class PreconditionError(NexusServiceError):
    """Something required is missing: the node binary or an installed unit."""

    pass


class PrivilegeError(NexusServiceError):
    """Neither root nor passwordless sudo is available."""

    pass


class OperationError(NexusServiceError):
    """A systemctl call, file write or registration step failed."""

    pass
