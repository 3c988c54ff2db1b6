"""back-me-up: back_me_up/__util__.py
Exceptions and small helpers shared by all modules.
"""

TRANSFER_FAILED = 20


class AbortError(Exception):
    """Raised to end a backup session early.

    ``exit_code`` is the process exit status the command line returns.
    """

    exit_code = 1

    def __init__(self, message: str = "", path=None) -> None:
        super().__init__(message)
        self.path = path


class LoggingUnavailable(AbortError):
    """The syslog sink could not be installed."""

    exit_code = 33


class DestinationUnwritable(AbortError):
    """The destination root is not a writable directory."""

    exit_code = 77


class UpdateDeclined(AbortError):
    """The operator refused to update today's existing generation."""

    exit_code = 30


class CreateError(AbortError):
    """The generation directory could not be created."""

    exit_code = 31


class WriteError(AbortError):
    """The rsync filter rule file could not be written."""

    exit_code = 32


def log_heading(caption: str) -> str:
    """Formatted heading for logging output sections."""
    return f"--[ {caption} ]--"
