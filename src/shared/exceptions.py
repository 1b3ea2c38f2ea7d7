"""Custom exception hierarchy for the anime catalog service.

All service-specific exceptions inherit from CatalogServiceError,
enabling consistent error handling and structured error responses.

Exception hierarchy:
    CatalogServiceError (base)
    ├── ConfigurationError
    ├── ValidationError
    ├── InvalidTokenError
    ├── MalformedReferenceError
    ├── NotFoundError
    └── CatalogStoreError
        └── RetryableError

Unmatched catalog lines are not represented here: the parser drops them
without raising.
"""

from typing import Any


class CatalogServiceError(Exception):
    """Base exception for all catalog service errors.

    Provides structured error information suitable for logging
    and API error responses.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code for metrics/filtering
        details: Additional context as key-value pairs
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize service error.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (e.g., 'INVALID_TOKEN')
            details: Additional context for debugging
        """
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSON serialization.

        Returns:
            Dictionary with error_code, error_message, and details.
            Note: Uses 'error_message' instead of 'message' to avoid conflicts
            with Python's logging module which reserves 'message' internally.
        """
        return {
            "error_code": self.error_code,
            "error_message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.error_code!r}, {self.message!r})"


class ConfigurationError(CatalogServiceError):
    """Raised when the service is misconfigured.

    This covers:
    - Missing stream token signing secret
    - Signing secret shorter than the minimum length
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "CONFIGURATION_ERROR", details)


class ValidationError(CatalogServiceError):
    """Raised when a required input field is missing or empty."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "VALIDATION_ERROR", details)


class InvalidTokenError(CatalogServiceError):
    """Raised when a stream token cannot be trusted.

    This covers:
    - Malformed token structure
    - Signature mismatch
    - Expired token
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "INVALID_TOKEN", details)


class MalformedReferenceError(CatalogServiceError):
    """Raised when an episode reference cannot be decoded.

    A well-formed reference looks like '<animeId>-<season>-<episode>'.
    """

    def __init__(self, reference: str, reason: str) -> None:
        super().__init__(
            f"Malformed episode reference '{reference}': {reason}",
            "MALFORMED_REFERENCE",
            {"reference": reference, "reason": reason},
        )


class NotFoundError(CatalogServiceError):
    """Raised when an anime, season or episode is absent from the catalog.

    details["resource"] names the lookup stage that failed.
    """

    def __init__(self, resource: str, identifier: str | int, details: dict[str, Any] | None = None) -> None:
        error_details = {"resource": resource, "identifier": identifier}
        error_details.update(details or {})
        super().__init__(
            f"{resource.capitalize()} not found: {identifier}",
            "NOT_FOUND",
            error_details,
        )
        self.resource = resource


class CatalogStoreError(CatalogServiceError):
    """Raised when the catalog store rejects a read or write.

    This covers:
    - DynamoDB access errors
    - Malformed items that cannot be loaded into models
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "CATALOG_STORE_ERROR", details)


class RetryableError(CatalogStoreError):
    """Raised for transient store errors that exhausted their retries."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize retryable error.

        Args:
            message: Error description
            original_error: The underlying exception that triggered this
            details: Additional context
        """
        error_details = details or {}
        if original_error:
            error_details["original_error"] = str(original_error)
            error_details["original_error_type"] = type(original_error).__name__

        super().__init__(message, error_details)
        self.error_code = "RETRYABLE_ERROR"
        self.original_error = original_error
