"""Command-line front end for the people directory.

Usage:
    people-directory [--page N] [--refresh] [--offline] [--db-path PATH]

Fetches users (or reads the cache when offline), then prints one page.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace

from .app import open_store
from .config import DirectoryConfig
from .logging_utils import configure_structured_logging, directory_logger
from .store import AppState


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="people-directory",
        description="Browse a paginated people directory, online or from the local cache",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # First run: fetch and cache
    people-directory

    # Page 3 of the cached data, without touching the network
    people-directory --offline --page 3

    # Re-fetch even though the cache is populated
    people-directory --refresh
        """,
    )
    parser.add_argument("--page", type=int, default=1, help="Page to show (default: 1)")
    parser.add_argument("--refresh", action="store_true", help="Force a network refresh")
    parser.add_argument("--offline", action="store_true", help="Simulate offline mode")
    parser.add_argument("--db-path", help="SQLite cache file (default: from environment)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def render(state: AppState) -> str:
    """Format the visible page as plain text."""
    lines = []
    if state.error:
        lines.append(f"! {state.error}")
    for user in state.users:
        star = "*" if user.is_favorite else " "
        lines.append(
            f"{star} {user.name.full:<28} {user.email:<36} "
            f"{user.location.city}, {user.location.country}"
        )
    lines.append(
        f"Page {state.current_page}/{state.total_pages} - {len(state.all_users)} profiles"
        f" ({'online' if state.is_online else 'offline'})"
    )
    return "\n".join(lines)


async def run(args: argparse.Namespace) -> int:
    config = DirectoryConfig.from_env()
    if args.db_path:
        config = replace(config, db_path=args.db_path)

    log = directory_logger(__name__, db_path=str(config.db_path))

    async with open_store(config) as store:
        if args.offline:
            await store.toggle_manual_offline()
        else:
            await store.fetch_users(force_refresh=args.refresh)

        if args.page != 1 and not store.go_to_page(args.page):
            log.warning(
                f"Page {args.page} is out of range; showing page 1", extra={"page": args.page}
            )

        state = store.state
        print(render(state))
        return 0 if state.all_users else 1


def main() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()
    level = logging.DEBUG if args.verbose else logging.WARNING

    if args.json_logs:
        configure_structured_logging(level=level)
    else:
        logging.basicConfig(level=level, format="%(levelname)s  %(message)s")
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)


if __name__ == "__main__":
    main()
