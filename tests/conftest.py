"""Pytest configuration for waf-ipset-sync tests."""

import itertools
import os
import threading
from typing import Any
from unittest.mock import patch

import httpx
import pytest

from waf_ipset_sync.exceptions import APIError, ConcurrencyError, DirectoryError
from waf_ipset_sync.models import IPSet
from waf_ipset_sync.ranges import CloudFrontRangeFetcher
from waf_ipset_sync.settings import IPSetSyncSettings, reset_settings

# Test constants
TEST_NAME_PREFIX = "Test-"
GLOBAL_NAME = "Test-CloudFront-Global"
REGIONAL_NAME = "Test-CloudFront-Regional"
TEST_RANGES_URL = "https://ip-ranges.example.com/ip-ranges.json"

SAMPLE_DOCUMENT: dict[str, Any] = {
    "syncToken": "1700000000",
    "createDate": "2023-11-14-22-13-20",
    "prefixes": [
        {"ip_prefix": "120.52.22.96/27", "region": "GLOBAL", "service": "CLOUDFRONT"},
        {"ip_prefix": "3.5.140.0/22", "region": "ap-northeast-2", "service": "EC2"},
        {"ip_prefix": "205.251.249.0/24", "region": "GLOBAL", "service": "CLOUDFRONT"},
        {"ip_prefix": "13.124.199.0/24", "region": "ap-northeast-2", "service": "CLOUDFRONT"},
        {"ip_prefix": "130.176.0.0/17", "region": "GLOBAL", "service": "CLOUDFRONT"},
        {"ip_prefix": "34.226.14.0/24", "region": "us-east-1", "service": "CLOUDFRONT"},
    ],
    "ipv6_prefixes": [
        {"ipv6_prefix": "2600:9000::/28", "region": "GLOBAL", "service": "CLOUDFRONT"},
    ],
}

GLOBAL_PREFIXES = ("120.52.22.96/27", "205.251.249.0/24", "130.176.0.0/17")
REGIONAL_PREFIXES = ("13.124.199.0/24", "34.226.14.0/24")


class FakeWAF:
    """In-memory stand-in for WAFv2Client that enforces lock tokens.

    Attributes:
        calls: (operation, name) tuples in call order
        update_errors: IP set name -> exception raised by UpdateIPSet
        list_error: Exception raised by ListIPSets, if set
    """

    def __init__(self) -> None:
        self.ip_sets: dict[str, IPSet] = {}
        self.calls: list[tuple[str, str | None]] = []
        self.update_requests: list[dict[str, Any]] = []
        self.update_errors: dict[str, Exception] = {}
        self.list_error: Exception | None = None
        self._ids = itertools.count(1)
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()

    def _next_token(self) -> str:
        return f"token-{next(self._tokens)}"

    def add(self, name: str, addresses: list[str] | None = None) -> IPSet:
        """Seed an existing IP set."""
        ip_set = IPSet(
            id=f"id-{next(self._ids)}",
            name=name,
            lock_token=self._next_token(),
            addresses=list(addresses or []),
        )
        self.ip_sets[ip_set.id] = ip_set
        return ip_set

    def by_name(self, name: str) -> IPSet | None:
        for ip_set in self.ip_sets.values():
            if ip_set.name == name:
                return ip_set
        return None

    def operations(self, operation: str) -> list[str | None]:
        return [name for op, name in self.calls if op == operation]

    def list_ip_sets(self) -> list[IPSet]:
        with self._lock:
            self.calls.append(("ListIPSets", None))
            if self.list_error is not None:
                raise self.list_error
            return [
                IPSet(id=s.id, name=s.name, lock_token=s.lock_token)
                for s in self.ip_sets.values()
            ]

    def get_ip_set(self, ip_set_id: str, name: str) -> IPSet:
        with self._lock:
            self.calls.append(("GetIPSet", name))
            return self.ip_sets[ip_set_id].model_copy(deep=True)

    def create_ip_set(
        self, name: str, addresses: list[str], description: str | None = None
    ) -> IPSet:
        with self._lock:
            self.calls.append(("CreateIPSet", name))
            if self.by_name(name) is not None:
                raise APIError(
                    "CreateIPSet failed: duplicate",
                    status_code=400,
                    error_type="WAFDuplicateItemException",
                    request_id="req-duplicate",
                )
            ip_set = IPSet(
                id=f"id-{next(self._ids)}",
                name=name,
                lock_token=self._next_token(),
                addresses=list(addresses),
                description=description,
            )
            self.ip_sets[ip_set.id] = ip_set
            return ip_set.model_copy(deep=True)

    def update_ip_set(
        self,
        ip_set_id: str,
        name: str,
        addresses: list[str],
        description: str | None,
        lock_token: str,
    ) -> str:
        with self._lock:
            self.calls.append(("UpdateIPSet", name))
            self.update_requests.append(
                {"name": name, "addresses": list(addresses), "lock_token": lock_token}
            )
            if name in self.update_errors:
                raise self.update_errors[name]

            current = self.ip_sets[ip_set_id]
            if current.lock_token != lock_token:
                raise ConcurrencyError(
                    "UpdateIPSet rejected a stale lock token",
                    status_code=400,
                    error_type="WAFOptimisticLockException",
                    request_id="req-stale",
                )

            current.addresses = list(addresses)
            current.description = description
            current.lock_token = self._next_token()
            return current.lock_token


def make_fetcher(
    document: Any = None,
    status_code: int = 200,
    error: Exception | None = None,
) -> CloudFrontRangeFetcher:
    """Build a fetcher backed by httpx.MockTransport."""

    def handler(request: httpx.Request) -> httpx.Response:
        if error is not None:
            raise error
        return httpx.Response(status_code, json=document)

    return CloudFrontRangeFetcher(
        url=TEST_RANGES_URL, transport=httpx.MockTransport(handler)
    )


@pytest.fixture(autouse=True)
def reset_settings_after_test():
    """Reset settings singleton after each test."""
    yield
    reset_settings()


@pytest.fixture
def mock_env_vars():
    """Set environment variables for testing."""
    with patch.dict(
        os.environ,
        {
            "NAME_PREFIX": TEST_NAME_PREFIX,
            "IP_RANGES_URL": TEST_RANGES_URL,
            "AWS_REGION": "us-east-1",
        },
    ):
        yield


@pytest.fixture
def settings() -> IPSetSyncSettings:
    """Settings with the test name prefix."""
    return IPSetSyncSettings(
        name_prefix=TEST_NAME_PREFIX,
        ip_ranges_url=TEST_RANGES_URL,
        aws_region="us-east-1",
    )


@pytest.fixture
def sample_document() -> dict[str, Any]:
    """Range document with 3 global, 2 regional and 1 non-CloudFront prefix."""
    return SAMPLE_DOCUMENT


@pytest.fixture
def fake_waf() -> FakeWAF:
    """Empty in-memory WAF."""
    return FakeWAF()


@pytest.fixture
def listing_error() -> DirectoryError:
    """A ListIPSets rejection with backend metadata."""
    return DirectoryError(
        "ListIPSets failed: access denied",
        status_code=403,
        error_type="AccessDeniedException",
        request_id="req-list",
    )
