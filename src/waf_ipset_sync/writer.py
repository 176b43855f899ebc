"""Create and update operations for the managed IP sets.

Updates follow the WAFv2 optimistic locking protocol: the IP set is re-read
immediately before every write and the lock token from that read is the one
presented. The token from the initial listing is never used for a write.
Nothing here retries; a stale token surfaces as ConcurrencyError.
"""

import asyncio
import logging
from dataclasses import dataclass

from waf_ipset_sync.client import WAFv2Client
from waf_ipset_sync.models import IPSet, Scope
from waf_ipset_sync.reconciler import Action, Create

logger = logging.getLogger(__name__)


def build_description(scope: Scope, updated_at: str) -> str:
    """Description stamped on every written IP set."""
    return f"CloudFront {scope.value} IP List / Updated : {updated_at}"


@dataclass(frozen=True)
class WriteResult:
    """Outcome of one successful create or update.

    Attributes:
        scope: Scope that was written
        name: IP set name
        created: True for a create, False for an update
        lock_token: Token after the write (NextLockToken on update)
        address_count: Number of addresses written
    """

    scope: Scope
    name: str
    created: bool
    lock_token: str | None
    address_count: int


class IPSetWriter:
    """Executes planned actions against WAFv2."""

    def __init__(self, client: WAFv2Client) -> None:
        self.client = client

    async def create(
        self,
        name: str,
        addresses: list[str],
        scope: Scope,
        updated_at: str,
    ) -> IPSet:
        """Create an IP set.

        Args:
            name: IP set name.
            addresses: Prefixes the set should hold.
            scope: Scope, used in the description.
            updated_at: ISO timestamp for the description.

        Returns:
            The created IPSet.

        Raises:
            APIError: If WAFv2 rejects the request.
        """
        logger.info("Creating IP set '%s' with %d addresses", name, len(addresses))
        return await asyncio.to_thread(
            self.client.create_ip_set,
            name,
            addresses,
            build_description(scope, updated_at),
        )

    async def update(
        self,
        ip_set: IPSet,
        addresses: list[str],
        scope: Scope,
        updated_at: str,
    ) -> str:
        """Replace the addresses of an existing IP set.

        Args:
            ip_set: The IP set as found by the directory lookup.
            addresses: Complete new list of prefixes.
            scope: Scope, used in the description.
            updated_at: ISO timestamp for the description.

        Returns:
            The next lock token.

        Raises:
            ConcurrencyError: If the IP set changed after the re-read.
            APIError: If the read or the update is rejected.
        """
        current = await asyncio.to_thread(self.client.get_ip_set, ip_set.id, ip_set.name)

        logger.info(
            "Updating IP set '%s': %d -> %d addresses",
            ip_set.name,
            len(current.addresses),
            len(addresses),
        )
        return await asyncio.to_thread(
            self.client.update_ip_set,
            current.id,
            current.name,
            addresses,
            build_description(scope, updated_at),
            current.lock_token,
        )

    async def apply(self, action: Action, updated_at: str) -> WriteResult:
        """Execute a planned action.

        Args:
            action: Create or Update from the plan.
            updated_at: ISO timestamp for the description.

        Returns:
            WriteResult describing the write.
        """
        addresses = list(action.addresses)

        if isinstance(action, Create):
            created = await self.create(action.name, addresses, action.scope, updated_at)
            return WriteResult(
                scope=action.scope,
                name=created.name,
                created=True,
                lock_token=created.lock_token,
                address_count=len(addresses),
            )

        next_token = await self.update(action.ip_set, addresses, action.scope, updated_at)
        return WriteResult(
            scope=action.scope,
            name=action.name,
            created=False,
            lock_token=next_token,
            address_count=len(addresses),
        )
