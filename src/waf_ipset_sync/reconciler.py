"""Planning of create/update actions for the managed IP sets.

The published range document is the source of truth: every action carries the
full freshly fetched prefix list for its scope and replaces whatever the IP
set held before.
"""

from dataclasses import dataclass
from typing import Union

from waf_ipset_sync.directory import Found, Lookup
from waf_ipset_sync.models import CloudFrontRanges, IPSet, Scope


@dataclass(frozen=True)
class Create:
    """Create a missing IP set."""

    scope: Scope
    name: str
    addresses: tuple[str, ...]


@dataclass(frozen=True)
class Update:
    """Replace the addresses of an existing IP set."""

    scope: Scope
    ip_set: IPSet
    addresses: tuple[str, ...]

    @property
    def name(self) -> str:
        return self.ip_set.name


Action = Union[Create, Update]


@dataclass(frozen=True)
class SyncPlan:
    """One action per managed IP set."""

    global_action: Action
    regional_action: Action

    def actions(self) -> tuple[Action, Action]:
        return self.global_action, self.regional_action


def plan_action(scope: Scope, name: str, lookup: Lookup, addresses: tuple[str, ...]) -> Action:
    """Choose the action for one scope.

    Args:
        scope: Scope being planned.
        name: Configured IP set name for the scope.
        lookup: Result of locating the IP set.
        addresses: Fetched prefixes for the scope.

    Returns:
        Update if the IP set exists, Create otherwise.
    """
    if isinstance(lookup, Found):
        return Update(scope=scope, ip_set=lookup.ip_set, addresses=addresses)
    return Create(scope=scope, name=name, addresses=addresses)


def plan(
    ranges: CloudFrontRanges,
    existing: tuple[Lookup, Lookup],
    names: tuple[str, str],
) -> SyncPlan:
    """Plan the sync of both IP sets.

    Args:
        ranges: Fetched CloudFront ranges.
        existing: Lookups for the global and regional IP sets.
        names: Configured global and regional IP set names.

    Returns:
        SyncPlan with one Create or Update per scope.
    """
    global_lookup, regional_lookup = existing
    global_name, regional_name = names

    return SyncPlan(
        global_action=plan_action(
            Scope.GLOBAL, global_name, global_lookup, ranges.for_scope(Scope.GLOBAL)
        ),
        regional_action=plan_action(
            Scope.REGIONAL,
            regional_name,
            regional_lookup,
            ranges.for_scope(Scope.REGIONAL),
        ),
    )
