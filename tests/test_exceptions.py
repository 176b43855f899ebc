"""Tests for the exception hierarchy.

Covers:
- Exception initialization with various parameters
- Details dictionary population
- Error code assignment
- to_dict() serialization for structured logging
- Exception inheritance
"""

import pytest

from waf_ipset_sync.exceptions import (
    APIError,
    ConcurrencyError,
    ConfigurationError,
    DirectoryError,
    FormatError,
    IPSetSyncError,
    NetworkError,
    RangeSourceError,
)


class TestIPSetSyncError:
    """Tests for IPSetSyncError base exception class."""

    @pytest.mark.unit
    def test_basic_initialization(self) -> None:
        """Verify basic initialization with message only."""
        error = IPSetSyncError("Test error message")

        assert str(error) == "Test error message"
        assert error.message == "Test error message"
        assert error.details == {}
        assert error.error_code is None

    @pytest.mark.unit
    def test_to_dict_basic(self) -> None:
        """Verify to_dict() with message only."""
        error = IPSetSyncError("Simple error")

        assert error.to_dict() == {"error": "IPSetSyncError", "message": "Simple error"}

    @pytest.mark.unit
    def test_to_dict_full(self) -> None:
        """Verify to_dict() with all fields."""
        error = IPSetSyncError("Full error", details={"key": "value"}, error_code="FULL")

        assert error.to_dict() == {
            "error": "IPSetSyncError",
            "message": "Full error",
            "code": "FULL",
            "details": {"key": "value"},
        }


class TestConfigurationError:
    """Tests for settings errors."""

    @pytest.mark.unit
    def test_default_code(self) -> None:
        """Verify ConfigurationError default error code and base class."""
        error = ConfigurationError("Invalid configuration: WAF_SCOPE", details={"invalid": ["WAF_SCOPE"]})

        assert error.error_code == "CONFIGURATION_ERROR"
        assert error.details == {"invalid": ["WAF_SCOPE"]}
        assert isinstance(error, IPSetSyncError)


class TestRangeSourceErrors:
    """Tests for range document errors."""

    @pytest.mark.unit
    def test_network_error_with_status(self) -> None:
        """Verify NetworkError records url and status code."""
        error = NetworkError(
            "Download failed", url="https://example.com/ip-ranges.json", status_code=503
        )

        assert error.url == "https://example.com/ip-ranges.json"
        assert error.status_code == 503
        assert error.details["status_code"] == 503
        assert error.error_code == "NETWORK_ERROR"

    @pytest.mark.unit
    def test_network_error_without_status(self) -> None:
        """Verify a timeout carries no status code."""
        error = NetworkError("Timed out", url="https://example.com")

        assert error.status_code is None
        assert "status_code" not in error.details

    @pytest.mark.unit
    def test_format_error_code(self) -> None:
        """Verify FormatError default error code."""
        error = FormatError("No prefixes", details={"index": 2})

        assert error.error_code == "FORMAT_ERROR"
        assert error.details == {"index": 2}

    @pytest.mark.unit
    def test_inheritance(self) -> None:
        """Verify both range errors share the RangeSourceError base."""
        assert issubclass(NetworkError, RangeSourceError)
        assert issubclass(FormatError, RangeSourceError)
        assert issubclass(RangeSourceError, IPSetSyncError)


class TestAPIError:
    """Tests for WAFv2 API errors."""

    @pytest.mark.unit
    def test_metadata(self) -> None:
        """Verify backend metadata is kept as attributes and details."""
        error = APIError(
            "UpdateIPSet failed",
            status_code=400,
            error_type="WAFInvalidParameterException",
            request_id="req-1",
            operation="UpdateIPSet",
        )

        assert error.status_code == 400
        assert error.error_type == "WAFInvalidParameterException"
        assert error.request_id == "req-1"
        assert error.operation == "UpdateIPSet"
        assert error.details == {
            "status_code": 400,
            "error_type": "WAFInvalidParameterException",
            "request_id": "req-1",
            "operation": "UpdateIPSet",
        }
        assert error.error_code == "API_ERROR"

    @pytest.mark.unit
    def test_str_includes_type_and_request_id(self) -> None:
        """Verify string form includes error type and request id."""
        error = APIError("CreateIPSet failed", error_type="WAFLimitsExceededException", request_id="abc")

        assert str(error) == "CreateIPSet failed (WAFLimitsExceededException) [request id: abc]"

    @pytest.mark.unit
    def test_str_message_only(self) -> None:
        """Verify string form without metadata."""
        assert str(APIError("Boom")) == "Boom"

    @pytest.mark.unit
    def test_subclasses(self) -> None:
        """Verify directory and concurrency errors are API errors."""
        assert issubclass(DirectoryError, APIError)
        assert issubclass(ConcurrencyError, APIError)

        error = ConcurrencyError("stale", status_code=400, error_type="WAFOptimisticLockException")
        assert isinstance(error, IPSetSyncError)
        assert error.status_code == 400
