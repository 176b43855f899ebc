"""Synchronizer keeping the CloudFront WAF IP sets in line with AWS.

Orchestrates one run: fetch the published ranges and locate the existing IP
sets concurrently, plan a create or update per scope, apply both concurrently
and report a single outcome.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any

from waf_ipset_sync.client import WAFv2Client
from waf_ipset_sync.directory import IPSetDirectory, Lookup
from waf_ipset_sync.models import CloudFrontRanges, SyncOutcome, TriggerMetadata
from waf_ipset_sync.ranges import CloudFrontRangeFetcher
from waf_ipset_sync.reconciler import Create, SyncPlan, plan
from waf_ipset_sync.reporter import (
    Err,
    ErrorDetail,
    Ok,
    SyncResult,
    SyncSummary,
    build_outcome,
)
from waf_ipset_sync.settings import IPSetSyncSettings, get_settings
from waf_ipset_sync.writer import IPSetWriter, WriteResult

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """Current UTC time as ISO 8601 with milliseconds and a Z suffix."""
    now = datetime.now(tz=timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _first_error(results: list[Any], labels: tuple[str, ...]) -> BaseException | None:
    """Log every failed branch and return the first failure in branch order."""
    first: BaseException | None = None
    for label, result in zip(labels, results):
        if isinstance(result, BaseException):
            logger.error("%s failed: %s", label, result)
            if first is None:
                first = result
    return first


class IPSetSynchronizer:
    """Synchronizer for the global and regional CloudFront IP sets.

    Example:
        ```python
        synchronizer = IPSetSynchronizer()

        # Preview changes without applying
        preview = asyncio.run(synchronizer.preview())

        # Apply and get the outcome record
        outcome = asyncio.run(synchronizer.sync(trigger))
        print(outcome.to_record())
        ```
    """

    def __init__(
        self,
        settings: IPSetSyncSettings | None = None,
        client: WAFv2Client | None = None,
        fetcher: CloudFrontRangeFetcher | None = None,
    ) -> None:
        """Initialize the synchronizer.

        Args:
            settings: Optional settings. If not provided, reads from environment.
            client: Optional WAFv2 client. If not provided, creates one.
            fetcher: Optional range fetcher. If not provided, creates one.
        """
        self.settings = settings or get_settings()
        self._client = client
        self._fetcher = fetcher

    @property
    def client(self) -> WAFv2Client:
        """Get or create the WAFv2 client."""
        if self._client is None:
            self._client = WAFv2Client(self.settings)
        return self._client

    @property
    def fetcher(self) -> CloudFrontRangeFetcher:
        """Get or create the range fetcher."""
        if self._fetcher is None:
            self._fetcher = CloudFrontRangeFetcher(
                url=self.settings.ip_ranges_url,
                timeout=self.settings.request_timeout,
            )
        return self._fetcher

    @property
    def names(self) -> tuple[str, str]:
        """Configured global and regional IP set names."""
        return self.settings.global_ip_set_name, self.settings.regional_ip_set_name

    async def fetch_ranges(self) -> CloudFrontRanges:
        """Fetch the CloudFront ranges without touching WAF."""
        return await self.fetcher.fetch()

    async def _gather_inputs(self) -> tuple[CloudFrontRanges, tuple[Lookup, Lookup]]:
        """Fetch ranges and locate IP sets concurrently.

        Raises:
            IPSetSyncError: The first failure of the two, after both finished.
        """
        directory = IPSetDirectory(self.client)
        results = await asyncio.gather(
            self.fetcher.fetch(),
            directory.locate(*self.names),
            return_exceptions=True,
        )

        error = _first_error(results, ("Fetching IP ranges", "Listing IP sets"))
        if error is not None:
            raise error

        ranges, existing = results
        return ranges, existing

    async def plan(self) -> SyncPlan:
        """Plan the sync without applying it."""
        ranges, existing = await self._gather_inputs()
        return plan(ranges, existing, self.names)

    async def _apply(self, sync_plan: SyncPlan, updated_at: str) -> tuple[WriteResult, ...]:
        """Apply both actions concurrently, letting each finish.

        Raises:
            IPSetSyncError: The first failing branch (global before regional).
        """
        writer = IPSetWriter(self.client)
        actions = sync_plan.actions()
        results = await asyncio.gather(
            *(writer.apply(action, updated_at) for action in actions),
            return_exceptions=True,
        )

        labels = tuple(f"{action.scope.value} IP set '{action.name}'" for action in actions)
        error = _first_error(results, labels)
        if error is not None:
            raise error

        return tuple(results)

    async def _run(self, updated_at: str) -> SyncSummary:
        ranges, existing = await self._gather_inputs()
        sync_plan = plan(ranges, existing, self.names)

        writes = await self._apply(sync_plan, updated_at)
        logger.info("Applied writes: %s", writes)

        return SyncSummary(
            global_count=len(ranges.global_ranges),
            regional_count=len(ranges.regional_ranges),
            writes=writes,
        )

    async def sync(self, trigger: TriggerMetadata | None = None) -> SyncOutcome:
        """Sync both IP sets and report the outcome.

        Every failure ends the run and is reported; nothing is retried.

        Args:
            trigger: Metadata from the triggering event, echoed in the outcome.

        Returns:
            SyncOutcome for the notifier.
        """
        trigger = trigger or TriggerMetadata()
        updated_at = utc_timestamp()
        start_time = time.monotonic()

        result: SyncResult
        try:
            result = Ok(await self._run(updated_at))
        except Exception as e:
            logger.exception("Failed to sync CloudFront IP sets")
            result = Err(ErrorDetail.from_exception(e))

        outcome = build_outcome(result, trigger, updated_at, self.settings.source_name)

        logger.info(
            "Sync %s in %.1fs (status code %d)",
            outcome.status.value,
            time.monotonic() - start_time,
            outcome.status_code,
        )
        return outcome

    async def preview(self) -> list[dict[str, Any]]:
        """Preview what a sync would change, per scope.

        Returns:
            One dict per scope with the planned action and the diff.
        """
        sync_plan = await self.plan()
        previews = []

        for action in sync_plan.actions():
            current_ips: list[str] = []
            if not isinstance(action, Create):
                current = await asyncio.to_thread(
                    self.client.get_ip_set, action.ip_set.id, action.ip_set.name
                )
                current_ips = current.addresses

            current_set = set(current_ips)
            new_set = set(action.addresses)
            to_add = [ip for ip in action.addresses if ip not in current_set]
            to_remove = sorted(current_set - new_set)

            previews.append(
                {
                    "scope": action.scope.value,
                    "ip_set_name": action.name,
                    "action": "create" if isinstance(action, Create) else "update",
                    "current_count": len(current_set),
                    "new_count": len(action.addresses),
                    "to_add": to_add,
                    "to_remove": to_remove,
                    "will_change": isinstance(action, Create) or bool(to_add or to_remove),
                }
            )

        return previews
