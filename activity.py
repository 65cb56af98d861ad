"""
Follower activity check.

Visits a follower's profile in a second tab and reads the timestamps of the
posts it shows. Followers whose newest visible post is older than
``inactive_days`` are eligible for removal. Anything that cannot be
determined (private account, no posts, load failure) keeps the follower.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from playwright.async_api import BrowserContext, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from config import ACTIVITY_SELECTORS, BROWSER_CONFIG, DELAYS, URLS
from snapshot import CandidateItem
from utils import extract_username


logger = logging.getLogger("x_cleaner.activity")

# Returns the datetime attribute of every matched <time> element
_POST_TIMES_SCRIPT = "els => els.map(e => e.getAttribute('datetime'))"


def parse_post_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a <time datetime="..."> value (ISO 8601, usually with a Z suffix)."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_inactive(last_post: Optional[datetime], inactive_days: int, now: Optional[datetime] = None) -> bool:
    """True if ``last_post`` is more than ``inactive_days`` days before ``now``."""
    if last_post is None:
        return False
    now = now or datetime.now(timezone.utc)
    return now - last_post > timedelta(days=inactive_days)


class ActivityChecker:
    """
    Eligibility check for the followers view.

    Usage:
        checker = ActivityChecker(context, inactive_days=180)
        eligible, reason = await checker(item)
        await checker.close()
    """

    def __init__(
        self,
        context: BrowserContext,
        inactive_days: int = 180,
        profile_load: float = DELAYS["profile_load"],
    ):
        self.context = context
        self.inactive_days = inactive_days
        self.profile_load = profile_load
        self.page: Optional[Page] = None

    async def __call__(self, item: CandidateItem) -> Tuple[bool, str]:
        """
        Decide whether a follower cell should be removed.

        Returns:
            Tuple of (eligible, reason)
        """
        if self.inactive_days == 0:
            return True, "inactivity check disabled"

        username = extract_username(item.key)
        if not username:
            return False, "no_username"

        try:
            last_post = await self.last_post_time(username)
        except PlaywrightError as e:
            return False, f"profile_load_failed: {e}"

        if last_post is None:
            return False, "no_posts_visible"
        if is_inactive(last_post, self.inactive_days):
            logger.info(f"  @{username} inactive since {last_post.date().isoformat()}")
            return True, f"inactive since {last_post.date().isoformat()}"
        return False, f"active (last post {last_post.date().isoformat()})"

    async def last_post_time(self, username: str) -> Optional[datetime]:
        """Newest post timestamp visible on ``username``'s profile, if any."""
        page = await self._profile_page()
        url = URLS["profile_template"].format(username=username)
        try:
            await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=BROWSER_CONFIG["navigation_timeout_ms"],
            )
        except PlaywrightTimeout:
            logger.warning(f"Profile @{username} slow to load, reading what is there")
        await asyncio.sleep(self.profile_load)

        values = await page.eval_on_selector_all(ACTIVITY_SELECTORS["post_time"], _POST_TIMES_SCRIPT)
        # A pinned post can be older than the rest, so take the newest
        times = [t for t in (parse_post_timestamp(v) for v in values or ()) if t is not None]
        return max(times) if times else None

    async def close(self):
        if self.page is not None:
            await self.page.close()
            self.page = None

    async def _profile_page(self) -> Page:
        # Separate tab so the followers list and its handles stay intact
        if self.page is None:
            self.page = await self.context.new_page()
        return self.page
