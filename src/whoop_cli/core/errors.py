"""Error types and process exit codes.

Every failure the CLI reports to the user is a WhoopError carrying the exit
code the process should terminate with:

    GENERAL_ERROR (1): bad input, API failures, invalid sleep data
    AUTH_ERROR (2): missing/expired credentials, OAuth failures
    RATE_LIMIT (3): WHOOP API returned 429
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 2
    RATE_LIMIT = 3


class WhoopError(Exception):
    """Base error for all user-facing failures."""

    def __init__(
        self,
        message: str,
        exit_code: ExitCode = ExitCode.GENERAL_ERROR,
        http_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code
        self.http_status = http_status


class AuthError(WhoopError):
    """Authentication is missing, expired, or the OAuth flow failed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ExitCode.AUTH_ERROR)


class RateLimitError(WhoopError):
    """WHOOP API rate limit exceeded."""

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        super().__init__(message, ExitCode.RATE_LIMIT, 429)
        self.retry_after = retry_after


class InvalidSleepDataError(WhoopError):
    """A sleep session lacks the fields wake detection needs."""


class InvalidDateError(WhoopError):
    """A date argument is not a valid YYYY-MM-DD calendar date."""
