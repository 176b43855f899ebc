"""Lookup of the managed IP sets among the existing ones."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Union

from waf_ipset_sync.client import WAFv2Client
from waf_ipset_sync.models import IPSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Found:
    """An IP set with the requested name exists."""

    ip_set: IPSet


@dataclass(frozen=True)
class NotFound:
    """No IP set with the requested name exists yet."""

    name: str


Lookup = Union[Found, NotFound]


def find_by_name(ip_sets: list[IPSet], name: str) -> Lookup:
    """Return the first IP set whose name matches exactly.

    Args:
        ip_sets: Listed IP sets.
        name: Name to look for.

    Returns:
        Found with the first match, or NotFound.
    """
    for ip_set in ip_sets:
        if ip_set.name == name:
            return Found(ip_set)
    return NotFound(name)


class IPSetDirectory:
    """Locates the global and regional IP sets in the configured scope."""

    def __init__(self, client: WAFv2Client) -> None:
        self.client = client

    async def locate(self, global_name: str, regional_name: str) -> tuple[Lookup, Lookup]:
        """Locate both managed IP sets with a single listing.

        Args:
            global_name: Name of the GLOBAL ranges IP set.
            regional_name: Name of the regional ranges IP set.

        Returns:
            Lookups for the global and regional IP sets.

        Raises:
            DirectoryError: If listing fails.
        """
        ip_sets = await asyncio.to_thread(self.client.list_ip_sets)

        global_lookup = find_by_name(ip_sets, global_name)
        regional_lookup = find_by_name(ip_sets, regional_name)

        logger.debug("Global IP Set : %s", global_lookup)
        logger.debug("Regional IP Set : %s", regional_lookup)
        return global_lookup, regional_lookup
