"""
Standard exit codes and error types for labelfixer.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
API_ERROR = 65           # GitHub API call failed
CONFIG_ERROR = 66        # Configuration file or rule table error
DATA_ERROR = 70          # Data format or validation error
PARTIAL_SUCCESS = 71     # Some issues succeeded, some failed
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'ConnectionError': API_ERROR,
    'TimeoutError': API_ERROR,
    'ValueError': DATA_ERROR,
    'KeyError': DATA_ERROR,
    'JSONDecodeError': DATA_ERROR,
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
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigError(CommandError):
    """Raised when the configuration or the rule table is malformed."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class FetchError(CommandError):
    """Raised when issues or timelines cannot be fetched from the source."""
    def __init__(self, message: str):
        super().__init__(message, API_ERROR)


class ReplayError(CommandError):
    """Raised when an issue timeline contains a malformed event."""
    def __init__(self, message: str, issue_number: Optional[int] = None):
        super().__init__(message, DATA_ERROR)
        self.issue_number = issue_number


class MutationError(CommandError):
    """Raised when a single label add/remove call fails."""
    def __init__(self, message: str, issue_number: Optional[int] = None, label: Optional[str] = None):
        super().__init__(message, API_ERROR)
        self.issue_number = issue_number
        self.label = label


class PartialSuccessError(CommandError):
    """Raised when some issues succeed and some fail."""
    def __init__(self, message: str, succeeded: int = 0, failed: int = 0):
        super().__init__(message, PARTIAL_SUCCESS)
        self.succeeded = succeeded
        self.failed = failed
