"""
Unit tests for the unified exception hierarchy.

Tests exception creation, attributes, string representations, and error context.
"""

import pytest
from exceptions import (
    FinanceAppError,
    ConfigError,
    ApiError,
    ImportJobError,
    SubmissionError,
    PollFetchError,
    EvaluationFault,
    UIError
)


class TestFinanceAppError:
    """Test base FinanceAppError class."""

    def test_basic_exception_creation(self):
        """Test creating a basic FinanceAppError."""
        error = FinanceAppError("Test error message")
        assert str(error) == "Test error message"
        assert error.message == "Test error message"
        assert error.details == {}
        assert error.original_error is None

    def test_exception_with_details(self):
        """Test creating exception with details dictionary."""
        details = {"key1": "value1", "key2": 123}
        error = FinanceAppError("Test error", details=details)
        assert error.message == "Test error"
        assert error.details == details
        assert "key1=value1" in str(error)
        assert "key2=123" in str(error)

    def test_exception_with_original_error(self):
        """Test creating exception with original error chaining."""
        original = ValueError("Original error")
        error = FinanceAppError("Wrapped error", original_error=original)
        assert error.original_error == original
        assert isinstance(error.original_error, ValueError)


class TestApiError:
    """Test ApiError attributes."""

    def test_http_error(self):
        error = ApiError("Not Found", status_code=404, details={"url": "/api/imports/9"})
        assert isinstance(error, FinanceAppError)
        assert error.status_text == "Not Found"
        assert error.message == "Not Found"
        assert error.status_code == 404
        assert "url=/api/imports/9" in str(error)

    def test_transport_error(self):
        original = ConnectionError("refused")
        error = ApiError("Unable to connect", original_error=original)
        assert error.status_code is None
        assert error.original_error is original


class TestExceptionHierarchy:
    """Test the import error taxonomy."""

    @pytest.mark.parametrize("error_class", [SubmissionError, PollFetchError, EvaluationFault])
    def test_import_errors(self, error_class):
        error = error_class("Import failed", details={"import_id": 7})
        assert isinstance(error, ImportJobError)
        assert isinstance(error, FinanceAppError)
        assert error.details["import_id"] == 7

    def test_config_and_ui_errors_are_not_import_errors(self):
        assert not isinstance(ConfigError("x"), ImportJobError)
        assert not isinstance(UIError("x"), ImportJobError)

    def test_catch_all_with_base(self):
        with pytest.raises(FinanceAppError):
            raise PollFetchError("Bad Gateway")
