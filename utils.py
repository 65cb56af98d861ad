"""
Utility functions for X Content Cleaner.
Includes logging, reporting and console helpers.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from config import OUTPUT


# =============================================================================
# DATA CLASSES
# =============================================================================
@dataclass
class CleanupReport:
    """Summary report of one cleaner session."""
    session_start: str
    session_end: str = ""
    username: str = ""
    views: Dict[str, Dict[str, int]] = field(default_factory=dict)
    removed_users: List[str] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)  # per-item, non-fatal
    errors: List[str] = field(default_factory=list)  # fatal, ended the session

    def total(self, key: str) -> int:
        return sum(counts.get(key, 0) for counts in self.views.values())


# =============================================================================
# LOGGING SETUP
# =============================================================================
def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure logging with both file and console handlers."""
    log_dir = os.path.dirname(OUTPUT["log_file"])
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir, exist_ok=True)

    level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Module loggers (x_cleaner.controller, ...) propagate here
    logger = logging.getLogger('x_cleaner')
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(
        '%(asctime)s | %(levelname)-8s | %(message)s',
        datefmt='%H:%M:%S'
    ))
    logger.addHandler(console_handler)

    file_handler = logging.FileHandler(OUTPUT["log_file"], encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger


class ColoredFormatter(logging.Formatter):
    """Custom formatter with color support for terminal output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m',
    }

    def format(self, record):
        # Colour a copy so the file handler still sees the plain level name
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        reset = self.COLORS['RESET']
        record.levelname = f"{color}{record.levelname}{reset}"
        return super().format(record)


# =============================================================================
# USERNAME HELPERS
# =============================================================================
# First path segments that are X pages, not profiles
RESERVED_PATHS = {"home", "explore", "notifications", "messages", "settings", "i", "search"}


def extract_username(text: str) -> Optional[str]:
    """
    Extract a username from "@name", "name" or a profile link like "/name".

    Args:
        text: Handle text or href

    Returns:
        Clean username without prefix, or None
    """
    if not text:
        return None

    username = text.strip().lstrip('@')
    if username.startswith('/'):
        # Only bare profile links, not /name/status/... or /name/followers
        parts = username.strip('/').split('/')
        if len(parts) != 1:
            return None
        username = parts[0]

    if username.lower() in RESERVED_PATHS:
        return None

    # Validate it looks like a username (alphanumeric + underscore)
    if re.match(r'^[a-zA-Z0-9_]+$', username):
        return username

    return None


# =============================================================================
# DISPLAY HELPERS
# =============================================================================
def print_banner():
    """Display application banner."""
    banner = """
+---------------------------------------------------------------+
|                                                               |
|                     X Content Cleaner                         |
|                                                               |
|    Bulk-remove posts, replies, reposts and followers from     |
|    your X profile, one item at a time.                        |
|                                                               |
+---------------------------------------------------------------+
"""
    print(banner)


def print_summary(report: CleanupReport, max_failures: int = 10):
    """Print formatted summary of a cleaner session."""
    rows = []
    for name, counts in report.views.items():
        row = (
            f"|  {name.capitalize() + ':':<14} {counts.get('succeeded', 0):>6} removed "
            f"{counts.get('failed', 0):>6} failed {counts.get('processed', 0):>6} processed"
        )
        if 'kept' in counts:
            row += f" {counts['kept']:>6} kept (active)"
        rows.append(row)
    rows = "\n".join(rows)

    rate = rate_per_minute(report.total('processed'), report.session_start, report.session_end)

    summary = f"""
+---------------------------------------------------------------+
|                       CLEANUP SUMMARY
+---------------------------------------------------------------+
|  Profile:        @{report.username}
{rows}
|  Total removed:  {report.total('succeeded')}
|  Total failed:   {report.total('failed')}
|  Duration:       {calculate_duration(report.session_start, report.session_end)}
|  Rate:           {rate:.1f} per minute
+---------------------------------------------------------------+
"""
    print(summary)

    if report.removed_users:
        print("Removed users:")
        for username in report.removed_users:
            print(f"   @{username}")

    if report.failures:
        print("\nFailures:")
        for failure in report.failures[:max_failures]:
            print(f"   {failure}")
        if len(report.failures) > max_failures:
            print(f"   ... and {len(report.failures) - max_failures} more")


def rate_per_minute(count: int, start: str, end: str) -> float:
    """Items per minute between two ISO timestamps (0 if unknown)."""
    try:
        start_dt = datetime.fromisoformat(start)
        end_dt = datetime.fromisoformat(end) if end else datetime.now()
    except (TypeError, ValueError):
        return 0.0

    seconds = (end_dt - start_dt).total_seconds()
    if seconds <= 0:
        return 0.0
    return count / seconds * 60


def calculate_duration(start: str, end: str) -> str:
    """Calculate human-readable duration between two ISO timestamps."""
    try:
        start_dt = datetime.fromisoformat(start)
        end_dt = datetime.fromisoformat(end) if end else datetime.now()
    except (TypeError, ValueError):
        return "N/A"

    delta = end_dt - start_dt
    minutes, seconds = divmod(int(delta.total_seconds()), 60)
    hours, minutes = divmod(minutes, 60)

    if hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    elif minutes > 0:
        return f"{minutes}m {seconds}s"
    else:
        return f"{seconds}s"


def confirm_action(message: str, default: bool = False) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message to display
        default: Default response if user just presses Enter

    Returns:
        True if confirmed, False otherwise
    """
    suffix = " [Y/n]: " if default else " [y/N]: "
    response = input(message + suffix).strip().lower()

    if not response:
        return default

    return response in ('y', 'yes')
