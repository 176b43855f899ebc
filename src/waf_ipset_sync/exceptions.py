"""Exception hierarchy for WAF IP set synchronization.

Every failure a sync run can hit is raised as one of these, so the terminal
reporting step can extract status code, error type and request id without
inspecting arbitrary exception shapes.

Exception Hierarchy:
    IPSetSyncError (base for all package exceptions)
    ├── ConfigurationError (invalid settings)
    ├── RangeSourceError (published range document problems)
    │   ├── NetworkError (document unreachable, timed out, non-2xx)
    │   └── FormatError (document missing the expected structure)
    └── APIError (WAFv2 rejected a request)
        ├── DirectoryError (listing IP sets failed)
        └── ConcurrencyError (lock token was stale)

Usage:
    from waf_ipset_sync.exceptions import APIError, ConcurrencyError

    try:
        writer.update(ip_set, addresses, Scope.GLOBAL, updated_at)
    except ConcurrencyError as e:
        logger.warning("IP set changed underneath us: %s", e.request_id)
"""

from __future__ import annotations

from typing import Any


class IPSetSyncError(Exception):
    """Base exception for all waf-ipset-sync errors.

    Attributes:
        message: Human-readable error message.
        details: Additional context about the error (optional).
        error_code: Machine-readable error code (optional).
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            details: Additional context as key-value pairs.
            error_code: Machine-readable error code.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.error_code = error_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for structured logging.

        Returns:
            Dictionary with error details suitable for JSON serialization.
        """
        result: dict[str, Any] = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.error_code:
            result["code"] = self.error_code
        if self.details:
            result["details"] = self.details
        return result


class ConfigurationError(IPSetSyncError):
    """Configuration-related errors.

    Raised when environment settings fail validation.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ) -> None:
        super().__init__(
            message, details=details, error_code=error_code or "CONFIGURATION_ERROR"
        )


class RangeSourceError(IPSetSyncError):
    """Errors retrieving or reading the published IP range document."""


class NetworkError(RangeSourceError):
    """The range document could not be retrieved.

    Covers connection failures, timeouts and non-2xx responses.

    Attributes:
        url: The URL that was requested.
        status_code: HTTP status of the response, if one was received.
    """

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ) -> None:
        """Initialize network error.

        Args:
            message: Description of the failure.
            url: The URL that was requested.
            status_code: HTTP status code if the server answered.
            details: Additional context.
            error_code: Machine-readable error code.
        """
        details = details or {}
        if url:
            details["url"] = url
        if status_code:
            details["status_code"] = status_code
        super().__init__(
            message, details=details, error_code=error_code or "NETWORK_ERROR"
        )
        self.url = url
        self.status_code = status_code


class FormatError(RangeSourceError):
    """The range document does not have the expected structure."""

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ) -> None:
        """Initialize format error.

        Args:
            message: What was missing or malformed.
            details: Additional context.
            error_code: Machine-readable error code.
        """
        super().__init__(
            message, details=details, error_code=error_code or "FORMAT_ERROR"
        )


class APIError(IPSetSyncError):
    """WAFv2 rejected a request.

    Attributes:
        status_code: HTTP status code returned by the backend.
        error_type: Backend error code (e.g. ``WAFDuplicateItemException``).
        request_id: Backend request id, for support cases.
        operation: The API operation that failed (e.g. ``UpdateIPSet``).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_type: str | None = None,
        request_id: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            message: Description of the API error.
            status_code: HTTP status code from the backend.
            error_type: Backend error code.
            request_id: Backend request id.
            operation: Name of the API operation.
            details: Additional context.
            error_code: Machine-readable error code.
        """
        details = details or {}
        if status_code:
            details["status_code"] = status_code
        if error_type:
            details["error_type"] = error_type
        if request_id:
            details["request_id"] = request_id
        if operation:
            details["operation"] = operation
        super().__init__(message, details=details, error_code=error_code or "API_ERROR")
        self.status_code = status_code
        self.error_type = error_type
        self.request_id = request_id
        self.operation = operation

    def __str__(self) -> str:
        """Return string representation."""
        parts = [self.message]
        if self.error_type:
            parts.append(f"({self.error_type})")
        if self.request_id:
            parts.append(f"[request id: {self.request_id}]")
        return " ".join(parts)


class DirectoryError(APIError):
    """Listing the existing IP sets failed.

    Raised by the directory lookup; not retried.
    """


class ConcurrencyError(APIError):
    """The lock token presented on update was stale.

    Raised when another writer changed the IP set between our read and our
    update (``WAFOptimisticLockException``).
    """


__all__ = [
    "APIError",
    "ConcurrencyError",
    "ConfigurationError",
    "DirectoryError",
    "FormatError",
    "IPSetSyncError",
    "NetworkError",
    "RangeSourceError",
]
