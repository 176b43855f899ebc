"""WAF IP set sync package.

Keeps two AWS WAFv2 IP sets, one for GLOBAL and one for regional CloudFront
ranges, in sync with the ranges AWS publishes in ``ip-ranges.json``.

Example:
    ```python
    import asyncio

    from waf_ipset_sync import IPSetSynchronizer, TriggerMetadata

    synchronizer = IPSetSynchronizer()
    outcome = asyncio.run(synchronizer.sync(TriggerMetadata(url="...")))
    print(outcome.to_record())
    ```

Lambda:
    Handler ``waf_ipset_sync.handler.lambda_handler``, subscribed to the
    ``AmazonIpSpaceChanged`` SNS topic.
"""

from waf_ipset_sync.client import WAFv2Client
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
from waf_ipset_sync.models import (
    AddressRange,
    CloudFrontRanges,
    IPSet,
    OutcomeStatus,
    Scope,
    SyncOutcome,
    TriggerMetadata,
)
from waf_ipset_sync.settings import (
    IPSetSyncSettings,
    get_settings,
    reset_settings,
)
from waf_ipset_sync.synchronizer import IPSetSynchronizer

__all__ = [
    "APIError",
    "AddressRange",
    "CloudFrontRanges",
    "ConcurrencyError",
    "ConfigurationError",
    "DirectoryError",
    "FormatError",
    "IPSet",
    "IPSetSyncError",
    "IPSetSyncSettings",
    "IPSetSynchronizer",
    "NetworkError",
    "OutcomeStatus",
    "RangeSourceError",
    "Scope",
    "SyncOutcome",
    "TriggerMetadata",
    "WAFv2Client",
    "get_settings",
    "reset_settings",
]

__version__ = "0.1.0"
