"""
X Content Cleaner - session and orchestration.
Owns the browser, waits for a manual login and runs the removal loop
once per content view.
"""

import asyncio
import logging
import os
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from playwright.async_api import async_playwright, Page, BrowserContext, Error as PlaywrightError, TimeoutError as PlaywrightTimeout

from config import BROWSER_CONFIG, CONTENT_VIEWS, DELAYS, LIMITS, OUTPUT, SELECTORS, URLS
from config import CleanerConfig, ContentView, profile_url
from activity import ActivityChecker
from controller import Outcome, OutcomeRecord, PaginationController
from executor import ActionExecutor
from host import PlaywrightHost
from snapshot import SnapshotInterpreter
from utils import CleanupReport, extract_username, print_summary


class ContentCleaner:
    """
    Removes content from an X profile through a logged-in browser.

    Usage:
        async with ContentCleaner(username="someone") as cleaner:
            await cleaner.run(["posts", "replies"])
    """

    def __init__(
        self,
        username: str,
        config: Optional[CleanerConfig] = None,
        headless: bool = False,
    ):
        self.username = username.lstrip("@")
        self.config = config or CleanerConfig()
        self.headless = headless

        self.logger = logging.getLogger('x_cleaner')
        self.playwright = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None
        self.host: Optional[PlaywrightHost] = None

        self.report = CleanupReport(
            session_start=datetime.now().isoformat(),
            username=self.username,
        )

    async def __aenter__(self):
        await self.initialize_browser()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()

    async def initialize_browser(self):
        """Initialize Playwright browser with persistent context."""
        self.logger.info("Initializing browser...")

        self.playwright = await async_playwright().start()

        # Persistent context keeps the manual login between runs
        self.context = await self.playwright.chromium.launch_persistent_context(
            user_data_dir=BROWSER_CONFIG["user_data_dir"],
            headless=self.headless,
            slow_mo=BROWSER_CONFIG["slow_mo"],
            viewport=BROWSER_CONFIG["viewport"],
            args=[
                '--disable-blink-features=AutomationControlled',
                '--no-sandbox',
            ]
        )

        if self.context.pages:
            self.page = self.context.pages[0]
        else:
            self.page = await self.context.new_page()

        self.host = PlaywrightHost(self.page)
        self.logger.info("Browser initialized successfully")

    async def cleanup(self):
        """Clean up browser resources."""
        self.logger.info("Cleaning up browser resources...")

        if self.context:
            await self.context.close()
        if self.playwright:
            await self.playwright.stop()

    async def wait_for_login(self) -> bool:
        """
        Navigate to X and wait for the user to log in manually.

        Returns:
            True if login detected, False otherwise
        """
        self.logger.info("Navigating to X...")
        await self.host.navigate(URLS["base"])
        await asyncio.sleep(DELAYS["page_load"])

        if await self._is_logged_in():
            self.logger.info("✓ Already logged in!")
            return True

        print("\n" + "=" * 60)
        print("  MANUAL LOGIN REQUIRED")
        print("=" * 60)
        print("\n  Please log in to your X account in the browser.")
        print("  The script will continue automatically once login is detected.")
        print("\n" + "=" * 60 + "\n")

        max_wait_time = DELAYS["login_timeout"]
        elapsed = 0

        while elapsed < max_wait_time:
            await asyncio.sleep(DELAYS["login_check_interval"])
            elapsed += DELAYS["login_check_interval"]

            if await self._is_logged_in():
                self.logger.info("✓ Login detected!")
                return True

            if elapsed % 30 == 0:
                self.logger.info(f"Still waiting for login... ({int(max_wait_time - elapsed)}s remaining)")

        self.logger.error("Login timeout - please try again")
        return False

    async def _is_logged_in(self) -> bool:
        """Check if user is currently logged in."""
        for selector in (SELECTORS["profile_button"], SELECTORS["home_timeline"]):
            try:
                if await self.page.query_selector(selector):
                    return True
            except Exception as e:
                self.logger.debug(f"Login check failed for {selector}: {e}")
        return False

    async def navigate_to_view(self, view: ContentView) -> bool:
        """
        Open the profile tab for ``view`` and wait for its feed to render.

        Returns:
            True if the feed showed at least one item, False if it loaded empty
        """
        url = profile_url(self.username, view)
        self.logger.info(f"Navigating to {view.name}: {url}")

        for attempt in range(LIMITS["max_retry_attempts"]):
            await self.host.navigate(url)
            await asyncio.sleep(DELAYS["page_load"])

            if await self._handle_page_error():
                self.logger.info("Handled page error, waiting for content...")
                await asyncio.sleep(DELAYS["page_load"])

            try:
                await self.page.wait_for_selector(
                    f'[data-testid="{view.container_testid}"]',
                    timeout=15000,
                )
                self.logger.info(f"✓ {view.name.capitalize()} loaded")
                return True
            except PlaywrightTimeout:
                self.logger.warning(f"No {view.name} visible yet (attempt {attempt + 1})")

        # An empty tab is a valid state; the controller confirms it with empty scans
        return False

    async def _handle_page_error(self) -> bool:
        """
        Check for and handle X page errors like 'Something went wrong'.

        Returns:
            True if error was found and retry clicked, False otherwise
        """
        try:
            retry_btn = await self.page.query_selector('[role="button"]:has-text("Retry")')
            if retry_btn:
                self.logger.info("Found 'Retry' button - clicking...")
                await retry_btn.click()
                await asyncio.sleep(3)
                return True

            error_text = await self.page.query_selector('text="Something went wrong"')
            if error_text:
                self.logger.info("Error detected - reloading page...")
                await self.page.reload()
                await asyncio.sleep(3)
                return True

            return False
        except PlaywrightError as e:
            self.logger.debug(f"Error handling page error: {e}")
            return False

    async def clean_view(self, view: ContentView) -> Dict[str, int]:
        """Run the removal loop on one profile tab."""
        await self.navigate_to_view(view)

        interpreter = SnapshotInterpreter(view)
        executor = ActionExecutor(self.host, interpreter, self.config)

        checker = None
        if view.check_activity and self.config.inactive_days:
            self.logger.info(
                f"Only removing {view.name} with no posts in the last "
                f"{self.config.inactive_days} days"
            )
            checker = ActivityChecker(self.context, self.config.inactive_days, self.config.profile_load)

        controller = PaginationController(
            self.host, interpreter, executor, self.config, label=view.name, eligibility=checker
        )
        try:
            counters = await controller.run()
        finally:
            if checker is not None:
                await checker.close()

        self.record_outcomes(view, controller.outcomes)
        summary = counters.summary()
        if checker is not None:
            summary["kept"] = counters.kept
        return summary

    def record_outcomes(self, view: ContentView, outcomes: List[OutcomeRecord]):
        """Copy per-item failures and removed followers into the session report."""
        for record in outcomes:
            if record.result is Outcome.FAILED:
                self.report.failures.append(f"{view.name}: '{record.item.preview}' - {record.reason}")
            elif record.result is Outcome.DELETED and view.check_activity:
                username = extract_username(record.item.key)
                if username:
                    self.report.removed_users.append(username)

    async def take_screenshot(self, name: str) -> str:
        """Take a screenshot for debugging."""
        os.makedirs(OUTPUT["screenshots_dir"], exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = os.path.join(OUTPUT["screenshots_dir"], f"{name}_{timestamp}.png")

        await self.page.screenshot(path=path, full_page=True)
        self.logger.info(f"Screenshot saved: {path}")

        return path

    async def run(self, views: Iterable[str]) -> CleanupReport:
        """
        Log in, then empty each requested view in order.

        Args:
            views: Names from CONTENT_VIEWS, e.g. ["posts", "replies"]

        Returns:
            CleanupReport with per-view counters
        """
        selected = [CONTENT_VIEWS[name] for name in views]

        try:
            if not await self.wait_for_login():
                raise RuntimeError("Login failed or timed out")

            for view in selected:
                print(f"\n=== Processing {view.name.capitalize()} ===")
                self.report.views[view.name] = await self.clean_view(view)

            self.report.session_end = datetime.now().isoformat()
            print_summary(self.report)
            return self.report

        except Exception as e:
            self.logger.error(f"Error during cleanup: {e}")
            self.report.errors.append(str(e))
            self.report.session_end = datetime.now().isoformat()

            try:
                await self.take_screenshot("error")
            except Exception as screenshot_error:
                self.logger.debug(f"Error screenshot failed: {screenshot_error}")

            raise
