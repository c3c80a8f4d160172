"""
Unified exception hierarchy for the import tracker.

This module defines the exception hierarchy with FinanceAppError as the
base exception, so the CLI, the Streamlit page and the polling engine can
handle import failures consistently.
"""

from typing import Optional


class FinanceAppError(Exception):
    """
    Base exception class for all import tracker errors.

    All custom exceptions in the application should inherit from this class
    to enable unified error handling and consistent error messages.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
        original_error: Optional original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ) -> None:
        """
        Initialize FinanceAppError.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        msg = self.message
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            msg = f"{msg} ({detail_str})"
        return msg


class ConfigError(FinanceAppError):
    """Raised when configuration loading or validation fails."""
    pass


class ApiError(FinanceAppError):
    """
    Raised when an import API request fails.

    Covers both transport failures (no response) and non-2xx responses.
    The status text is what gets surfaced to the user verbatim.

    Attributes:
        status_text: Server reason phrase or transport error message
        status_code: HTTP status code, or None for transport failures
    """

    def __init__(
        self,
        status_text: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ) -> None:
        super().__init__(status_text, details=details, original_error=original_error)
        self.status_text = status_text
        self.status_code = status_code


class ImportJobError(FinanceAppError):
    """Base error for import job submission and tracking failures."""
    pass


class SubmissionError(ImportJobError):
    """Raised when an import job cannot be created. Never retried."""
    pass


class PollFetchError(ImportJobError):
    """Raised when a status fetch fails. Terminal for the poll session."""
    pass


class EvaluationFault(ImportJobError):
    """Raised when a fetched job representation cannot be interpreted."""
    pass


class UIError(FinanceAppError):
    """Raised when UI operations fail (Streamlit or CLI rendering issues)."""
    pass
