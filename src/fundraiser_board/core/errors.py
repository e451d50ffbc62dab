"""Custom exception hierarchy for the fundraiser board.

Provides structured error handling with severity levels and context.
"""

from enum import Enum
from typing import Any


class ErrorSeverity(Enum):
    """Error severity levels for monitoring and logging."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class FundraiserBoardError(Exception):
    """Base exception for all fundraiser board errors.

    Attributes:
        message: Human-readable error message
        details: Additional context as key-value pairs
        severity: Error severity level
    """

    severity: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "severity": self.severity.value,
            "details": self.details,
        }


class ConfigurationError(FundraiserBoardError):
    """Configuration validation or loading error.

    Raised when:
    - Config file is malformed
    - A required credential is missing
    - Values fail validation
    """

    severity = ErrorSeverity.CRITICAL


class DataNotFoundError(FundraiserBoardError):
    """The spreadsheet does not contain the data the board needs."""

    severity = ErrorSeverity.WARNING


class APIError(FundraiserBoardError):
    """External API errors (Google Sheets, DigitalOcean).

    Raised when:
    - API request fails
    - Invalid API response
    - Authentication errors
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details, cause)
        self.status_code = status_code


class ServiceError(FundraiserBoardError):
    """Display endpoint failure for a single board."""

    def __init__(
        self,
        message: str,
        target: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        details: dict[str, Any] = {"target": target}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details, cause)
        self.target = target
        self.status_code = status_code


class TransientServiceError(ServiceError):
    """Retryable display failure (service unavailable)."""

    severity = ErrorSeverity.WARNING


class PermanentServiceError(ServiceError):
    """Display failure that is not retried, or that ran out of retries."""


class LayoutError(FundraiserBoardError):
    """Content cannot be laid out on the board grid."""


class UpdateCycleError(FundraiserBoardError):
    """At least one board failed during an update cycle.

    Attributes:
        outcomes: Per-board publish outcomes of the failed cycle
    """

    def __init__(self, message: str, outcomes: list[Any]) -> None:
        failed = [o.target for o in outcomes if not o.ok]
        super().__init__(message, {"failed": ", ".join(failed)})
        self.outcomes = outcomes


class DeploymentError(FundraiserBoardError):
    """Droplet provisioning failed."""

    severity = ErrorSeverity.CRITICAL
