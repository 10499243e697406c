"""
Standard exit codes for orgsync commands.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
MANIFEST_ERROR = 64      # Manifest missing or invalid
API_ERROR = 65           # Remote hosting API call failed
CONFIG_ERROR = 66        # Configuration file error
PERMISSION_ERROR = 67    # Insufficient permissions
NETWORK_ERROR = 68       # Network connection failed
GIT_ERROR = 69           # A git command failed fatally (e.g. clone)
DATA_ERROR = 70          # Desired-state document invalid
MOVE_CONFLICT = 71       # Destination of a move already exists
PROMPT_TIMEOUT = 72      # Interactive prompt was not answered in time
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ConnectionError': NETWORK_ERROR,
    'TimeoutError': NETWORK_ERROR,
    'ValueError': DATA_ERROR,
    'KeyError': DATA_ERROR,
    'JSONDecodeError': DATA_ERROR,
    'YAMLError': DATA_ERROR,
    'GitCommandError': GIT_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: Exception) -> int:
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
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class ManifestNotFoundError(CommandError):
    """Raised when no manifest file exists in the current directory or above."""
    def __init__(self, filename: str, cwd: Optional[str] = None):
        message = f"File {filename} not found"
        if cwd:
            message += f" in {cwd} or any parent directory"
        super().__init__(message + ". See 'orgsync sync --help'", MANIFEST_ERROR)
        self.filename = filename


class ManifestError(CommandError):
    """Raised when the manifest exists but has unexpected contents."""
    def __init__(self, message: str):
        super().__init__(message, MANIFEST_ERROR)


class DefinitionError(CommandError):
    """Raised when the desired-state document is missing or inconsistent."""
    def __init__(self, message: str):
        super().__init__(message, DATA_ERROR)


class APIError(CommandError):
    """Raised when an external API call fails."""
    def __init__(self, message: str):
        super().__init__(message, API_ERROR)


class MoveConflictError(CommandError):
    """Raised when a confirmed move would overwrite an existing directory."""
    def __init__(self, source: str, destination: str):
        super().__init__(
            f"Cannot move {source} -> {destination}: destination already exists",
            MOVE_CONFLICT
        )
        self.source = source
        self.destination = destination


class PromptTimeoutError(CommandError):
    """Raised when an interactive prompt with a timeout expires."""
    def __init__(self, timeout: float):
        super().__init__(f"No answer given within {timeout:g} seconds", PROMPT_TIMEOUT)
        self.timeout = timeout
