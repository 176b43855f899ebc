"""Pydantic models for IP ranges, WAF IP sets and sync outcomes."""

import json
import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class Scope(str, Enum):
    """Partition of the CloudFront ranges, one IP set each."""

    GLOBAL = "Global"
    REGIONAL = "Regional"


class OutcomeStatus(str, Enum):
    """Status of a sync run."""

    SUCCESS = "success"
    FAILED = "failed"


class AddressRange(BaseModel):
    """A single prefix entry from the published range document.

    Attributes:
        ip_prefix: IPv4 CIDR range
        service: Publishing service (e.g. CLOUDFRONT, EC2)
        region: Region the range serves, or GLOBAL
    """

    model_config = ConfigDict(frozen=True)

    ip_prefix: str
    service: str
    region: str


class CloudFrontRanges(BaseModel):
    """CloudFront prefixes partitioned into the two managed scopes.

    Attributes:
        global_ranges: Prefixes whose region is GLOBAL, in document order
        regional_ranges: All other CloudFront prefixes, in document order
        sync_token: Document version published by AWS (if present)
        create_date: Document publication time (if present)
    """

    model_config = ConfigDict(frozen=True)

    global_ranges: tuple[str, ...] = ()
    regional_ranges: tuple[str, ...] = ()
    sync_token: str | None = None
    create_date: str | None = None

    def for_scope(self, scope: Scope) -> tuple[str, ...]:
        """Return the prefixes belonging to a scope."""
        if scope is Scope.GLOBAL:
            return self.global_ranges
        return self.regional_ranges


class IPSet(BaseModel):
    """A WAFv2 IP set.

    Listing returns summaries without addresses; GetIPSet fills them in.

    Attributes:
        id: IP set identifier
        name: IP set name (unique per scope by naming convention)
        lock_token: Version marker required to update the IP set
        addresses: CIDR ranges currently in the set
        description: Optional description
        arn: Amazon Resource Name
    """

    id: str
    name: str
    lock_token: str | None = None
    addresses: list[str] = Field(default_factory=list)
    description: str | None = None
    arn: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any], lock_token: str | None = None) -> "IPSet":
        """Build from a boto3 ``IPSet`` or ``IPSetSummary`` structure.

        Args:
            data: The structure returned by WAFv2.
            lock_token: Token returned alongside the structure, if separate.

        Returns:
            IPSet instance.
        """
        return cls(
            id=data["Id"],
            name=data["Name"],
            lock_token=lock_token or data.get("LockToken"),
            addresses=list(data.get("Addresses", [])),
            description=data.get("Description"),
            arn=data.get("ARN"),
        )


class TriggerMetadata(BaseModel):
    """Context from the triggering event, echoed into the outcome.

    Attributes:
        changed_at: When AWS changed the range document (``create-time``)
        url: Where the range document was published
    """

    changed_at: Any = None
    url: Any = None

    @classmethod
    def from_event(cls, event: Any) -> "TriggerMetadata":
        """Extract trigger metadata from an SNS envelope or a flat record.

        The ``AmazonIpSpaceChanged`` notification arrives as an SNS record
        whose ``Message`` is a JSON string. Direct invocations pass the
        fields at the top level. Unreadable events produce empty metadata.

        Args:
            event: The raw invocation event.

        Returns:
            TriggerMetadata with whatever fields were present.
        """
        if not isinstance(event, dict):
            return cls()

        payload: Any = event
        records = event.get("Records")
        if isinstance(records, list) and records:
            try:
                payload = json.loads(records[0]["Sns"]["Message"])
            except (KeyError, TypeError, ValueError):
                logger.warning("Could not read SNS message from trigger event")
                return cls()

        if not isinstance(payload, dict):
            return cls()

        return cls(changed_at=payload.get("create-time"), url=payload.get("url"))


class SyncOutcome(BaseModel):
    """Result record of one sync run, handed to the notifier.

    Field names serialize to the camelCase keys the notifier consumes.
    """

    model_config = ConfigDict(populate_by_name=True)

    source: str
    status_code: int = Field(alias="statusCode")
    status: OutcomeStatus
    color: str
    title: str
    message: str
    changed_at: Any = Field(default=None, alias="changedAt")
    update_ip_set_at: str = Field(alias="updateIpSetAt")
    url: Any = None
    global_ip_num: int | None = Field(default=None, alias="globalIpNum")
    regional_ip_num: int | None = Field(default=None, alias="regionalIpNum")
    error_type: str | None = Field(default=None, alias="errorType")
    request_id: str | None = Field(default=None, alias="requestId")

    @property
    def succeeded(self) -> bool:
        """Whether the run succeeded."""
        return self.status is OutcomeStatus.SUCCESS

    def to_record(self) -> dict[str, Any]:
        """Serialize to the outbound record.

        Success records carry the address counts, failure records carry the
        error type and request id.

        Returns:
            JSON-serializable dictionary.
        """
        if self.succeeded:
            exclude = {"error_type", "request_id"}
        else:
            exclude = {"global_ip_num", "regional_ip_num"}
        return self.model_dump(by_alias=True, mode="json", exclude=exclude)
