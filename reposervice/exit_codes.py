"""
Standard exit codes and error types for reposervice.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
OPERATION_ERROR = 64     # External git/ssh command failed
CONFIG_ERROR = 66        # Configuration file error
PERMISSION_ERROR = 67    # Insufficient permissions
AUTH_ERROR = 69          # SSH authentication failed
DIRECTORY_ERROR = 72     # Directory create/remove failed
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ValueError': USAGE_ERROR,
    'ConfigError': CONFIG_ERROR,
    'OperationFailedError': OPERATION_ERROR,
    'CredentialsError': AUTH_ERROR,
    'DirectoryError': DIRECTORY_ERROR,
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
    exit_code = getattr(exc, 'exit_code', None)
    if isinstance(exit_code, int):
        return exit_code
    return EXCEPTION_EXIT_CODES.get(exc.__class__.__name__, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class OperationFailedError(CommandError):
    """Raised when a repository operation ended in a reportable failure."""
    def __init__(self, message: str, operation: str = "", code: Optional[int] = None):
        super().__init__(message, OPERATION_ERROR)
        self.operation = operation
        self.code = code


class CredentialsError(CommandError):
    """Raised when the SSH reachability/authentication check fails."""
    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message, AUTH_ERROR)
        self.code = code


class DirectoryError(CommandError):
    """Raised when a repository directory cannot be created or emptied."""
    def __init__(self, message: str):
        super().__init__(message, DIRECTORY_ERROR)
