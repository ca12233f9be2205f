"""
Standard exit codes for repofleet commands.

Following Unix/POSIX conventions for command-line tools. Both batch
commands exit 1 when any repository failed or when a fatal precondition
(missing generator, unusable root directory, bad config) stopped the run.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # Any failed item, or a fatal precondition
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.

    Only raised for conditions that abort a whole run before any
    repository is processed. Per-repository problems are reported as
    outcomes instead.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, GENERAL_ERROR)


class PrerequisiteMissingError(CommandError):
    """Raised when a required external tool is not installed."""
    def __init__(self, tool: str, hint: Optional[str] = None):
        message = f"{tool} is not installed or not in PATH"
        if hint:
            message += f" ({hint})"
        super().__init__(message, GENERAL_ERROR)
        self.tool = tool


class RootDirectoryError(CommandError):
    """Raised when the target or repositories root cannot be created or read."""
    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot use directory '{path}': {reason}", GENERAL_ERROR)
        self.path = path
        self.reason = reason
