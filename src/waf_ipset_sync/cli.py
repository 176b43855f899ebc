"""CLI commands for CloudFront IP set synchronization.

Provides a command-line interface for running, previewing and inspecting
the sync outside Lambda.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from waf_ipset_sync.models import TriggerMetadata
from waf_ipset_sync.settings import get_settings
from waf_ipset_sync.synchronizer import IPSetSynchronizer
from waf_ipset_sync.utils.logging import setup_logging

PREVIEW_LIMIT = 10


def _load_event(path: Path | None) -> dict[str, Any]:
    """Read a trigger event from a JSON file.

    Args:
        path: Event file, or None for an empty event.

    Returns:
        Parsed event.
    """
    if path is None:
        return {}
    with path.open() as f:
        return json.load(f)


def _print_preview(previews: list[dict[str, Any]]) -> None:
    for preview in previews:
        print(f"\n{preview['scope']} IP set: {preview['ip_set_name']} ({preview['action']})")
        print(f"Current IPs: {preview['current_count']}")
        print(f"New IPs: {preview['new_count']}")

        if preview["to_add"]:
            print(f"\n📥 To Add ({len(preview['to_add'])}):")
            for ip in preview["to_add"][:PREVIEW_LIMIT]:
                print(f"  + {ip}")
            if len(preview["to_add"]) > PREVIEW_LIMIT:
                print(f"  ... and {len(preview['to_add']) - PREVIEW_LIMIT} more")

        if preview["to_remove"]:
            print(f"\n📤 To Remove ({len(preview['to_remove'])}):")
            for ip in preview["to_remove"][:PREVIEW_LIMIT]:
                print(f"  - {ip}")
            if len(preview["to_remove"]) > PREVIEW_LIMIT:
                print(f"  ... and {len(preview['to_remove']) - PREVIEW_LIMIT} more")

        if not preview["will_change"]:
            print("\n✓ No changes needed")


def cmd_sync(args: argparse.Namespace) -> int:
    """Sync the CloudFront IP sets.

    Args:
        args: Parsed command line arguments.

    Returns:
        Exit code (0 for success).
    """
    if args.dry_run:
        return cmd_preview(args)

    trigger = TriggerMetadata.from_event(_load_event(args.event))
    outcome = asyncio.run(IPSetSynchronizer().sync(trigger))

    if args.json:
        print(json.dumps(outcome.to_record(), indent=2))
    elif outcome.succeeded:
        print(
            f"✓ Synced {outcome.global_ip_num} global and "
            f"{outcome.regional_ip_num} regional IPs"
        )
    else:
        print(
            f"❌ Sync failed: {outcome.error_type} "
            f"(status {outcome.status_code}, request id {outcome.request_id})"
        )

    return 0 if outcome.succeeded else 1


def cmd_preview(args: argparse.Namespace) -> int:
    """Preview changes for both IP sets.

    Args:
        args: Parsed command line arguments.

    Returns:
        Exit code.
    """
    previews = asyncio.run(IPSetSynchronizer().preview())

    if args.json:
        print(json.dumps(previews, indent=2))
    else:
        _print_preview(previews)

    return 0


def cmd_fetch(args: argparse.Namespace) -> int:
    """Fetch and display the CloudFront ranges (without syncing).

    Args:
        args: Parsed command line arguments.

    Returns:
        Exit code.
    """
    ranges = asyncio.run(IPSetSynchronizer().fetch_ranges())

    if args.json:
        print(json.dumps(ranges.model_dump(mode="json"), indent=2))
    else:
        print(f"\nFetched {len(ranges.global_ranges)} global IPs:")
        for ip in ranges.global_ranges:
            print(f"  {ip}")
        print(f"\nFetched {len(ranges.regional_ranges)} regional IPs:")
        for ip in ranges.regional_ranges:
            print(f"  {ip}")

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command line arguments.

    Returns:
        Exit code.
    """
    parser = argparse.ArgumentParser(
        description="Keep AWS WAF IP sets in sync with CloudFront IP ranges",
        prog="waf-ipset-sync",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Sync command
    sync_parser = subparsers.add_parser("sync", help="Sync both IP sets")
    sync_parser.add_argument(
        "-e", "--event",
        type=Path,
        help="JSON file with the trigger event (SNS record or flat record)",
    )
    sync_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview changes without applying",
    )
    sync_parser.add_argument("--json", action="store_true", help="Output as JSON")
    sync_parser.set_defaults(func=cmd_sync)

    # Preview command
    preview_parser = subparsers.add_parser("preview", help="Preview changes")
    preview_parser.add_argument("--json", action="store_true", help="Output as JSON")
    preview_parser.set_defaults(func=cmd_preview)

    # Fetch command
    fetch_parser = subparsers.add_parser("fetch", help="Fetch CloudFront IP ranges")
    fetch_parser.add_argument("--json", action="store_true", help="Output as JSON")
    fetch_parser.set_defaults(func=cmd_fetch)

    args = parser.parse_args(argv)

    try:
        setup_logging(logging.DEBUG if args.verbose else get_settings().log_level)
        return args.func(args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logging.exception("Unexpected error")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
