"""Tests for the Lambda entry point."""

import json
import os
from unittest.mock import patch

import pytest

from tests.conftest import GLOBAL_NAME, make_fetcher
from waf_ipset_sync.exceptions import ConcurrencyError
from waf_ipset_sync.handler import lambda_handler
from waf_ipset_sync.synchronizer import IPSetSynchronizer


@pytest.fixture
def wired(fake_waf, sample_document):
    """Route handler-built synchronizers to the fake WAF."""

    def factory(settings=None):
        return IPSetSynchronizer(
            settings, client=fake_waf, fetcher=make_fetcher(sample_document)
        )

    with patch("waf_ipset_sync.handler.IPSetSynchronizer", side_effect=factory):
        yield fake_waf


def _sns_event(message: dict) -> dict:
    return {"Records": [{"EventSource": "aws:sns", "Sns": {"Message": json.dumps(message)}}]}


class TestLambdaHandler:
    """Tests for lambda_handler."""

    def test_success_record(self, mock_env_vars, wired):
        """Test an SNS trigger produces a success record."""
        event = _sns_event(
            {"create-time": "2023-11-14-22-13-20", "url": "https://example.com/ip-ranges.json"}
        )

        record = lambda_handler(event, None)

        assert record["source"] == "Test-Lambda"
        assert record["status"] == "success"
        assert record["statusCode"] == 200
        assert record["globalIpNum"] == 3
        assert record["regionalIpNum"] == 2
        assert record["changedAt"] == "2023-11-14-22-13-20"
        assert record["url"] == "https://example.com/ip-ranges.json"
        assert wired.by_name(GLOBAL_NAME) is not None

    def test_failure_record_returned(self, mock_env_vars, wired):
        """Test failures are returned as records, not raised."""
        wired.add(GLOBAL_NAME)
        wired.update_errors[GLOBAL_NAME] = ConcurrencyError(
            "stale", status_code=400, error_type="WAFOptimisticLockException", request_id="req-1"
        )

        record = lambda_handler({"create-time": "t1", "url": "u1"}, None)

        assert record["status"] == "failed"
        assert record["errorType"] == "WAFOptimisticLockException"
        assert record["requestId"] == "req-1"
        assert record["changedAt"] == "t1"

    def test_empty_event(self, mock_env_vars, wired):
        """Test an event without metadata still runs the sync."""
        record = lambda_handler({}, None)

        assert record["status"] == "success"
        assert record["changedAt"] is None

    def test_invalid_configuration_returns_record(self):
        """Test invalid settings still produce a failed record."""
        event = {"create-time": "t1", "url": "u1"}

        with patch.dict(os.environ, {"WAF_SCOPE": "bogus"}):
            record = lambda_handler(event, None)

        assert record["status"] == "failed"
        assert record["statusCode"] == 500
        assert record["errorType"] == "ConfigurationError"
        assert record["requestId"] == "N/A"
        assert record["source"] == "AutoUpdateWafIpSetOfCloudFront-Lambda"
        assert record["changedAt"] == "t1"
