"""
Custom exception hierarchy for the SiteInspect application.

Every error raised by the store, the upload handler, the API layer and the
client package derives from SiteInspectException, which carries the HTTP
status code and the machine-readable error code used in API responses.
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError


class SiteInspectException(Exception):
    """
    Base exception for all SiteInspect-specific errors.

    Attributes:
        error_code: String identifier for the error type
        message: User-friendly error message
        details: Technical details for logging/debugging
        status_code: HTTP status code for API responses
        suggestions: Optional list of resolution suggestions
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize SiteInspectException.

        Args:
            message: User-friendly error message
            error_code: String identifier for the error type
            status_code: HTTP status code (default: 500)
            details: Technical details for logging
            suggestions: List of suggestions for resolution
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for API responses.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "suggestions": self.suggestions,
        }

    def __str__(self) -> str:
        """String representation of the exception."""
        return f"{self.error_code}: {self.message}"

    def __repr__(self) -> str:
        """Detailed string representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}', "
            f"status_code={self.status_code})"
        )


class ValidationError(SiteInspectException):
    """
    Raised when input validation fails.

    Used for malformed nested JSON fields, schema violations and a missing
    document on create. Maps to HTTP 400 Bad Request.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize ValidationError.

        Args:
            message: User-friendly error message
            field: Name of the field that failed validation
            details: Technical details about the validation failure
            suggestions: List of suggestions for fixing the validation error
        """
        error_details = details or {}
        if field:
            error_details["field"] = field

        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details=error_details,
            suggestions=suggestions or ["Check the input format and try again"],
        )


class NotFoundError(SiteInspectException):
    """
    Raised when a report id does not match any stored record.

    Maps to HTTP 404 Not Found.
    """

    def __init__(
        self,
        message: str = "Report not found",
        report_id: Optional[str] = None,
        collection: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize NotFoundError.

        Args:
            message: User-friendly error message
            report_id: Identifier that was looked up
            collection: Report collection that was searched
            details: Technical details about the lookup
        """
        error_details = details or {}
        if report_id:
            error_details["report_id"] = report_id
        if collection:
            error_details["collection"] = collection

        super().__init__(
            message=message,
            error_code="REPORT_NOT_FOUND",
            status_code=404,
            details=error_details,
            suggestions=["Refresh the report list and try again"],
        )


class PersistenceError(SiteInspectException):
    """
    Raised when the report store or the upload directory fails.

    Maps to HTTP 500 Internal Server Error.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize PersistenceError.

        Args:
            message: User-friendly error message
            operation: Store operation that failed (e.g., 'create', 'save')
            details: Technical details about the failure
            suggestions: List of suggestions for resolution
        """
        error_details = details or {}
        if operation:
            error_details["operation"] = operation

        super().__init__(
            message=message,
            error_code="PERSISTENCE_ERROR",
            status_code=500,
            details=error_details,
            suggestions=suggestions
            or ["Try again later", "Contact support if the problem persists"],
        )


class UpstreamError(SiteInspectException):
    """
    Raised when an external service (the weather lookup) fails.

    Maps to HTTP 502 Bad Gateway.
    """

    def __init__(
        self,
        message: str,
        service_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize UpstreamError.

        Args:
            message: User-friendly error message
            service_name: Name of the failing external service
            details: Technical details about the failure
        """
        error_details = details or {}
        if service_name:
            error_details["service_name"] = service_name

        super().__init__(
            message=message,
            error_code="UPSTREAM_ERROR",
            status_code=502,
            details=error_details,
            suggestions=["Enter the value manually"],
        )


class APIError(SiteInspectException):
    """
    Raised for unexpected responses from the report API.

    Used by the client package when a call fails for a reason other than a
    missing report or a validation error.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "API_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize APIError.

        Args:
            message: User-friendly error message
            error_code: Specific API error code
            status_code: HTTP status code
            details: Technical details about the API error
            suggestions: List of suggestions for resolution
        """
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status_code,
            details=details,
            suggestions=suggestions or ["Try again later"],
        )


class ConfigurationError(SiteInspectException):
    """
    Raised when application configuration is invalid or incomplete.

    Maps to HTTP 500 Internal Server Error.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize ConfigurationError.

        Args:
            message: User-friendly error message
            config_key: Configuration key that is invalid
            details: Technical details about the configuration error
        """
        error_details = details or {}
        if config_key:
            error_details["config_key"] = config_key

        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            status_code=500,
            details=error_details,
            suggestions=["Check environment variables are set correctly"],
        )


def validation_error_from_pydantic(exc: PydanticValidationError) -> ValidationError:
    """
    Convert a pydantic validation failure into a ValidationError.

    The first failing field is reported as ``field``; every failure is listed
    under ``details["validation_errors"]``.
    """
    errors = [
        {
            "field": ".".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg", "Validation error"),
            "code": error.get("type", "validation_error"),
        }
        for error in exc.errors()
    ]
    first = errors[0]["field"] if errors else None
    return ValidationError(
        f"Invalid report fields: {', '.join(e['field'] for e in errors)}",
        field=first or None,
        details={"validation_errors": errors},
    )
