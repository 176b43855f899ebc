"""Fetcher for the published CloudFront IP ranges.

Retrieves AWS ``ip-ranges.json`` and partitions the CloudFront prefixes into
the GLOBAL and regional sets. Prefix syntax is not checked here; WAF rejects
malformed addresses on write.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from waf_ipset_sync.exceptions import FormatError, NetworkError
from waf_ipset_sync.models import AddressRange, CloudFrontRanges
from waf_ipset_sync.settings import AWS_IP_RANGES_URL

logger = logging.getLogger(__name__)

CLOUDFRONT_SERVICE = "CLOUDFRONT"
GLOBAL_REGION = "GLOBAL"


def parse_prefixes(document: Any) -> list[AddressRange]:
    """Read the CloudFront entries of the ``prefixes`` array.

    Entries of other services are skipped without looking at their other
    fields.

    Args:
        document: Parsed JSON document.

    Returns:
        Every CloudFront IPv4 prefix entry, in document order.

    Raises:
        FormatError: If the document or an entry lacks the expected fields.
    """
    if not isinstance(document, dict):
        msg = "IP range document is not a JSON object"
        raise FormatError(msg)

    prefixes = document.get("prefixes")
    if not isinstance(prefixes, list):
        msg = "IP range document has no 'prefixes' array"
        raise FormatError(msg)

    ranges: list[AddressRange] = []
    for index, entry in enumerate(prefixes):
        if not isinstance(entry, dict):
            msg = f"Prefix entry {index} is not an object"
            raise FormatError(msg, details={"index": index})

        if entry.get("service") != CLOUDFRONT_SERVICE:
            continue

        missing = [k for k in ("ip_prefix", "region") if k not in entry]
        if missing:
            msg = f"Prefix entry {index} is missing {', '.join(missing)}"
            raise FormatError(msg, details={"index": index, "missing": missing})

        try:
            address_range = AddressRange(
                ip_prefix=entry["ip_prefix"],
                service=entry["service"],
                region=entry["region"],
            )
        except ValidationError as e:
            msg = f"Prefix entry {index} has a field of the wrong type"
            raise FormatError(msg, details={"index": index}) from e

        ranges.append(address_range)

    return ranges


def partition_prefixes(document: Any) -> CloudFrontRanges:
    """Split the CloudFront prefixes of a document into GLOBAL and regional.

    Args:
        document: Parsed JSON document.

    Returns:
        CloudFrontRanges preserving document order within each scope.

    Raises:
        FormatError: If the document lacks the expected structure.
    """
    global_ranges: list[str] = []
    regional_ranges: list[str] = []

    for address_range in parse_prefixes(document):
        if address_range.region == GLOBAL_REGION:
            global_ranges.append(address_range.ip_prefix)
        else:
            regional_ranges.append(address_range.ip_prefix)

    sync_token = document.get("syncToken")
    create_date = document.get("createDate")

    return CloudFrontRanges(
        global_ranges=tuple(global_ranges),
        regional_ranges=tuple(regional_ranges),
        sync_token=str(sync_token) if sync_token is not None else None,
        create_date=str(create_date) if create_date is not None else None,
    )


class CloudFrontRangeFetcher:
    """Fetcher for the CloudFront prefixes of AWS ``ip-ranges.json``."""

    def __init__(
        self,
        url: str = AWS_IP_RANGES_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            url: Location of the range document.
            timeout: HTTP request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def fetch(self) -> CloudFrontRanges:
        """Fetch and partition the CloudFront ranges.

        Returns:
            CloudFrontRanges with the GLOBAL and regional prefixes.

        Raises:
            NetworkError: If the document cannot be retrieved.
            FormatError: If the document lacks the expected structure.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(self.url)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            msg = f"Timed out fetching IP ranges from {self.url}"
            raise NetworkError(msg, url=self.url) from e
        except httpx.HTTPStatusError as e:
            msg = f"IP range download returned HTTP {e.response.status_code}"
            raise NetworkError(
                msg, url=self.url, status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            msg = f"Could not fetch IP ranges from {self.url}: {e}"
            raise NetworkError(msg, url=self.url) from e

        try:
            document = response.json()
        except ValueError as e:
            msg = "IP range document is not valid JSON"
            raise FormatError(msg) from e

        ranges = partition_prefixes(document)

        logger.info(
            "Fetched CloudFront ranges (syncToken=%s, createDate=%s)",
            ranges.sync_token,
            ranges.create_date,
        )
        logger.debug("Global IPs : %d", len(ranges.global_ranges))
        logger.debug("Regional IPs : %d", len(ranges.regional_ranges))

        return ranges
