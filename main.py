#!/usr/bin/env python3
"""
X Content Cleaner - Entry Point

Bulk-removes posts, replies, reposts and followers from an X profile by
driving a logged-in browser, one item at a time.

Usage:
    python main.py --username <username> [options]

Examples:
    python main.py --username someone
    python main.py --username someone --content replies --limit 50 --verbose
"""

import argparse
import asyncio
import dataclasses
import sys
from pathlib import Path

# Ensure project root is in path
sys.path.insert(0, str(Path(__file__).parent))

from config import CONTENT_VIEWS, DEFAULT_VIEW_ORDER, CleanerConfig
from utils import setup_logging, print_banner, confirm_action
from cleaner import ContentCleaner


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="X Content Cleaner - Bulk-remove content from your X profile",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --username someone
      Delete posts (reposts are undone) and then replies

  %(prog)s --username someone --content followers --limit 20
      Remove up to 20 followers that have not posted in 180 days

  %(prog)s --username someone --content posts --yes --verbose
      Delete posts without a confirmation prompt, with debug logging

Safety Notes:
  - Removal is permanent; there is no dry run
  - Use a small --limit first to verify behavior
  - Log in manually in the browser window; the session is kept in ./browser_data
        """,
    )

    parser.add_argument(
        "--username",
        "-u",
        required=True,
        help="X username whose profile to clean (without @)",
    )

    parser.add_argument(
        "--content",
        "-c",
        choices=sorted(CONTENT_VIEWS) + ["all"],
        default="all",
        help="What to remove; 'all' means posts then replies (default: all)",
    )

    parser.add_argument(
        "--limit",
        "-l",
        type=int,
        default=None,
        help="Maximum number of items to process per content type (default: no limit)",
    )

    tuning = parser.add_argument_group("tuning")
    tuning.add_argument("--max-empty-scans", type=int, help="Empty scans before a feed counts as done")
    tuning.add_argument("--max-item-failures", type=int, help="Consecutive failures before an item is skipped")
    tuning.add_argument("--scroll-amount", type=int, help="Pixels scrolled after each item")
    tuning.add_argument("--menu-delay", type=float, help="Seconds to let menus and dialogs render")
    tuning.add_argument("--deletion-delay", type=float, help="Seconds to wait after a confirmed removal")
    tuning.add_argument("--scroll-delay", type=float, help="Seconds to wait for content after scrolling")
    tuning.add_argument("--item-delay", type=float, help="Seconds between items")
    tuning.add_argument("--log-interval", type=int, help="Log progress every N removals")
    tuning.add_argument(
        "--inactive-days",
        type=int,
        help="Only remove followers with no posts for this many days; 0 removes every follower (default: 180)",
    )

    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run browser in headless mode (needs an existing logged-in session)",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable detailed debug logging",
    )

    parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Skip confirmation prompts (use with caution)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0",
    )

    return parser.parse_args(argv)


# CLI option -> CleanerConfig field
_CONFIG_OPTIONS = {
    "limit": "max_items",
    "max_empty_scans": "max_empty_scans",
    "max_item_failures": "max_item_failures",
    "scroll_amount": "scroll_amount",
    "menu_delay": "menu_settle",
    "deletion_delay": "after_deletion",
    "scroll_delay": "scroll_load",
    "item_delay": "between_items",
    "log_interval": "log_interval",
    "inactive_days": "inactive_days",
}


def build_config(args: argparse.Namespace) -> CleanerConfig:
    """CleanerConfig defaults overridden by any option given on the command line."""
    overrides = {
        field: getattr(args, option)
        for option, field in _CONFIG_OPTIONS.items()
        if getattr(args, option) is not None
    }
    return dataclasses.replace(CleanerConfig(), **overrides)


def selected_views(args: argparse.Namespace) -> list:
    if args.content == "all":
        return list(DEFAULT_VIEW_ORDER)
    return [args.content]


async def main_async(args: argparse.Namespace) -> int:
    """
    Async main function.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    logger = setup_logging(verbose=args.verbose)

    try:
        config = build_config(args)
    except ValueError as e:
        logger.error(f"Invalid option: {e}")
        return 2

    views = selected_views(args)

    print_banner()

    logger.info("=" * 50)
    logger.info("Configuration:")
    logger.info(f"  Username:    @{args.username}")
    logger.info(f"  Content:     {', '.join(views)}")
    logger.info(f"  Limit:       {config.max_items or 'none'}")
    if "followers" in views:
        logger.info(f"  Inactive:    {config.inactive_days or 'off'} days")
    logger.info(f"  Verbose:     {args.verbose}")
    logger.info(f"  Auto-confirm:{args.yes}")
    logger.info("=" * 50)

    if not args.yes:
        logger.warning("⚠️  Content will be permanently removed!")
        if not confirm_action(f"Remove {', '.join(views)} from @{args.username}?"):
            logger.info("Operation cancelled by user")
            return 0

    try:
        async with ContentCleaner(
            username=args.username,
            config=config,
            headless=args.headless,
        ) as cleaner:

            report = await cleaner.run(views)

            return 0 if not report.errors else 1

    except KeyboardInterrupt:
        logger.info("\n\nOperation cancelled by user (Ctrl+C)")
        return 130

    except Exception as e:
        logger.error(f"Fatal error: {e}")
        if args.verbose:
            logger.exception("Traceback:")
        return 1


def main():
    """Main entry point."""
    args = parse_arguments()

    try:
        exit_code = asyncio.run(main_async(args))
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
