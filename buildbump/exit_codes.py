"""
Standard exit codes and error types for buildbump.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Any, Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
API_ERROR = 65           # External collaborator failed (registry, kubectl)
CONFIG_ERROR = 66        # Configuration file error
PERMISSION_ERROR = 67    # Insufficient permissions
NETWORK_ERROR = 68       # Network connection failed
DATA_ERROR = 70          # Precondition violation / malformed input
BUILD_FAILED = 72        # Build job reported failure
BUILD_TIMED_OUT = 73     # Build job did not finish within the timeout
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ConnectionError': NETWORK_ERROR,
    'TimeoutError': NETWORK_ERROR,
    'ValueError': DATA_ERROR,
    'OverflowError': DATA_ERROR,
    'JSONDecodeError': DATA_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that carries the exit code the CLI should terminate with.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class PreconditionError(CommandError, ValueError):
    """Raised when an input violates a precondition.

    The message always names the offending field and its value so an
    operator can diagnose the problem from the error alone.
    """
    def __init__(self, field: str, value: Any, reason: str = "invalid value"):
        super().__init__(f"{field}={value!r}: {reason}", DATA_ERROR)
        self.field = field
        self.value = value
        self.reason = reason


class InvalidClassification(PreconditionError):
    """Raised when a version bump is requested for a non-releasing change."""
    def __init__(self, value: Any):
        super().__init__(
            "classification", value,
            "cannot bump a version for a change that does not trigger a release"
        )


class APIError(CommandError):
    """Raised when an external collaborator call fails."""
    def __init__(self, message: str):
        super().__init__(message, API_ERROR)


class RegistryError(APIError):
    """Raised when the image registry cannot be queried."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BuildSubmissionError(APIError):
    """Raised when the build-execution system rejects a job."""


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class WaitCancelled(CommandError):
    """Raised when the caller abandons a build wait before a terminal state."""
    def __init__(self, message: str = "Wait for build cancelled"):
        super().__init__(message, INTERRUPTED)
