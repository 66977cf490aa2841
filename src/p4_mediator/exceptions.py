"""Custom exceptions for p4-mediator."""

from typing import Optional, Sequence


class P4MediatorError(Exception):
    """Base exception for all p4-mediator errors."""
    pass


class ConnectionNotFoundError(P4MediatorError):
    """Raised when an operation needs a connection but the path is not under any workspace."""

    def __init__(self, path: str, message: str = None):
        """Initialize exception.

        Args:
            path: Path that could not be routed to a connection
            message: Optional custom message
        """
        self.path = path
        if message is None:
            message = f"No Perforce connection is configured for '{path}'"
        super().__init__(message)


class CommandFailedError(P4MediatorError):
    """Raised when the p4 client exits nonzero, times out, or cannot be started."""

    def __init__(
        self,
        argv: Sequence[str],
        exit_code: Optional[int],
        stderr: str = "",
        timed_out: bool = False,
        message: str = None,
    ):
        """Initialize exception.

        Args:
            argv: Command line that was run (password already redacted)
            exit_code: Process exit code, or None if the process never completed
            stderr: Captured standard error text
            timed_out: True if the command was killed after the timeout
            message: Optional custom message
        """
        self.argv = list(argv)
        self.exit_code = exit_code
        self.stderr = stderr
        self.timed_out = timed_out
        if message is None:
            command = " ".join(self.argv)
            if timed_out:
                message = f"Command timed out: {command}"
            elif exit_code is None:
                message = f"Command could not be started: {command}"
            else:
                message = f"Command failed with exit code {exit_code}: {command}"
            if stderr and stderr.strip():
                message = f"{message}\n{stderr.strip()}"
        super().__init__(message)


class ConfigDecodeError(P4MediatorError):
    """Raised when a persisted preference or connection string is malformed."""

    def __init__(self, value: str, reason: str, message: str = None):
        """Initialize exception.

        Args:
            value: The stored value that failed to decode
            reason: Why decoding failed
            message: Optional custom message
        """
        self.value = value
        self.reason = reason
        if message is None:
            message = f"Cannot decode stored value: {reason}"
        super().__init__(message)


class StatusUnavailableError(P4MediatorError):
    """Raised when a confirmed delete cannot determine the file's Perforce status."""

    def __init__(self, path: str, message: str = None):
        self.path = path
        if message is None:
            message = f"'{path}' is not revisioned and will not be deleted through Perforce"
        super().__init__(message)
