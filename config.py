"""
Configuration constants for X Content Cleaner.
Update selectors here as X's DOM structure changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

# =============================================================================
# BROWSER CONFIGURATION
# =============================================================================
BROWSER_CONFIG = {
    "headless": False,
    "slow_mo": 100,  # milliseconds between actions
    "viewport": None,  # None = use full screen size
    "user_data_dir": "./browser_data",  # Persistent session storage
    "click_timeout_ms": 5000,
    "navigation_timeout_ms": 60000,
}

# =============================================================================
# TIMING CONFIGURATION (seconds)
# =============================================================================
DELAYS = {
    "menu_settle": 0.5,  # menu / sheet render after a click
    "after_deletion": 1.0,  # feed re-render after a confirmed removal
    "scroll_load": 3.0,  # new content after scrolling
    "between_items": 1.0,  # pacing between removals
    "page_load": 3.0,  # seconds for page to load
    "profile_load": 2.0,  # follower profile render before reading post times
    "login_check_interval": 2.0,  # seconds between login status checks
    "login_timeout": 300,
}

# =============================================================================
# LIMITS & SAFETY
# =============================================================================
LIMITS = {
    "max_empty_scans": 3,  # consecutive empty scans before the feed is done
    "max_item_failures": 3,  # consecutive failures before an item is skipped
    "max_retry_attempts": 3,  # page navigation retries
    "log_interval": 10,  # log progress every N removals
    "scroll_amount": 150,  # pixels after each processed item
    "empty_scroll_amount": 300,  # pixels when a scan finds nothing
    "error_scroll_amount": 150,  # pixels to move past a failed item
    "inactive_days": 180,  # followers silent this long are removed (0 = remove all)
}

# =============================================================================
# X SELECTORS
# Note: These may need updating as X changes their DOM
# =============================================================================
SELECTORS = {
    # Item containers (data-testid values)
    "tweet": "tweet",
    "user_cell": "UserCell",

    # Controls inside an item
    "caret": "caret",
    "unretweet": "unretweet",
    "user_actions": "userActions",

    # Menu / confirmation
    "menu_item_role": "menuitem",
    "confirm_button": "confirmationSheetConfirm",
    "unretweet_confirm": "unretweetConfirm",

    # Login detection
    "profile_button": '[data-testid="SideNav_AccountSwitcher_Button"]',
    "home_timeline": '[data-testid="primaryColumn"]',
}

# Attribute the snapshot script stamps on every captured element
UID_ATTRIBUTE = "data-cleaner-uid"

# Link whose href identifies a container (keyed by container data-testid)
KEY_SELECTORS = {
    "tweet": 'a[href*="/status/"]',
    "UserCell": 'a[role="link"][href^="/"]',
}

# Post timestamps on a follower's profile page (pinned posts included)
ACTIVITY_SELECTORS = {
    "post_time": 'article[data-testid="tweet"] time[datetime]',
}

# =============================================================================
# TEXT PATTERNS (for locating elements by text)
# =============================================================================
TEXT_PATTERNS = {
    "more_label": "More",
    "delete": ("Delete",),
    "remove_follower": ("Remove this follower", "Remove follower"),
    "repost_markers": r"\bReposted\b|\bYou reposted\b|\bretweeted\b",
}

# =============================================================================
# URLS
# =============================================================================
URLS = {
    "base": "https://x.com",
    "profile_template": "https://x.com/{username}",
}

# =============================================================================
# OUTPUT CONFIGURATION
# =============================================================================
OUTPUT = {
    "log_file": "./x_cleaner.log",
    "screenshots_dir": "./screenshots",
}


# =============================================================================
# CONTENT VIEWS
# =============================================================================
@dataclass(frozen=True)
class ContentView:
    """One profile tab the cleaner can empty."""
    name: str
    url_suffix: str
    container_testid: str
    menu_patterns: Tuple[str, ...]
    detect_reposts: bool = True
    check_activity: bool = False  # spare items whose owner posted recently


CONTENT_VIEWS = {
    # Reposts live on the posts tab and are told apart by their markers
    "posts": ContentView("posts", "", SELECTORS["tweet"], TEXT_PATTERNS["delete"]),
    "replies": ContentView(
        "replies", "/with_replies", SELECTORS["tweet"], TEXT_PATTERNS["delete"]
    ),
    "followers": ContentView(
        "followers",
        "/followers",
        SELECTORS["user_cell"],
        TEXT_PATTERNS["remove_follower"],
        detect_reposts=False,
        check_activity=True,
    ),
}

# Order used by --content all
DEFAULT_VIEW_ORDER = ("posts", "replies")


def profile_url(username: str, view: ContentView) -> str:
    """Base profile location plus the view's suffix."""
    base = URLS["profile_template"].format(username=username.lstrip("@"))
    return base + view.url_suffix


# =============================================================================
# RUN CONFIGURATION
# =============================================================================
@dataclass(frozen=True)
class CleanerConfig:
    """Tunables for one run, passed explicitly into the executor and controller."""
    menu_settle: float = DELAYS["menu_settle"]
    after_deletion: float = DELAYS["after_deletion"]
    scroll_load: float = DELAYS["scroll_load"]
    between_items: float = DELAYS["between_items"]
    scroll_amount: int = LIMITS["scroll_amount"]
    empty_scroll_amount: int = LIMITS["empty_scroll_amount"]
    error_scroll_amount: int = LIMITS["error_scroll_amount"]
    max_empty_scans: int = LIMITS["max_empty_scans"]
    max_item_failures: int = LIMITS["max_item_failures"]
    log_interval: int = LIMITS["log_interval"]
    inactive_days: int = LIMITS["inactive_days"]
    profile_load: float = DELAYS["profile_load"]
    max_items: Optional[int] = None

    def __post_init__(self):
        if self.max_empty_scans < 1:
            raise ValueError("max_empty_scans must be at least 1")
        if self.max_item_failures < 1:
            raise ValueError("max_item_failures must be at least 1")
        if self.log_interval < 1:
            raise ValueError("log_interval must be at least 1")
        if self.max_items is not None and self.max_items < 1:
            raise ValueError("max_items must be positive when set")
        if self.inactive_days < 0:
            raise ValueError("inactive_days cannot be negative")
        for name in ("menu_settle", "after_deletion", "scroll_load", "between_items", "profile_load"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")
