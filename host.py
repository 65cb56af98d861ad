"""
Host primitives the cleaner drives the page with.

The automaton only ever talks to a ``Host``: capture a snapshot, click a
handle, resolve a dialog, run a script, sleep. ``PlaywrightHost`` is the real
implementation over a Playwright page.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Protocol

from playwright.async_api import Dialog, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from config import BROWSER_CONFIG, KEY_SELECTORS, UID_ATTRIBUTE
from snapshot import Handle, Snapshot


logger = logging.getLogger("x_cleaner.host")


class HostError(Exception):
    """A host primitive failed."""


class StaleHandleError(HostError):
    """A handle from an older snapshot was used after the page changed."""

    def __init__(self, handle: Handle, current_generation: int):
        super().__init__(
            f"Stale handle {handle} (current snapshot generation {current_generation})"
        )
        self.handle = handle
        self.current_generation = current_generation


class Host(Protocol):
    async def navigate(self, url: str) -> None: ...

    async def capture_snapshot(self) -> Snapshot: ...

    async def click(self, handle: Handle) -> None: ...

    async def accept_dialog(self) -> bool: ...

    async def dismiss_dialog(self) -> None: ...

    async def run_script(self, source: str, arg: Any = None) -> Any: ...

    async def sleep(self, seconds: float) -> None: ...


def scroll_script() -> str:
    return "(pixels) => { window.scrollBy(0, pixels); }"


# Walks the DOM, stamps every interesting element with a per-capture uid and
# returns the compacted tree. Uninteresting wrappers are flattened away.
# Containers listed in keySelectors also carry the href of their first
# matching link (status link for posts, profile link for user cells).
SNAPSHOT_SCRIPT = """
([generation, attr, keySelectors]) => {
  const INTERESTING = 'article,button,[data-testid],[role="button"],[role="menuitem"],[role="dialog"]';
  let counter = 0;
  const keyOf = (el, testid) => {
    const selector = keySelectors[testid];
    if (!selector) return '';
    const link = el.querySelector(selector);
    return link ? (link.getAttribute('href') || '') : '';
  };
  const visit = (el, out) => {
    for (const child of el.children) {
      if (child.matches(INTERESTING)) {
        const uid = `${generation}-${counter++}`;
        const testid = child.getAttribute('data-testid') || '';
        child.setAttribute(attr, uid);
        const node = {
          uid,
          tag: child.tagName.toLowerCase(),
          role: child.getAttribute('role') || '',
          testid,
          label: child.getAttribute('aria-label') || '',
          text: (child.innerText || '').slice(0, 500),
          key: keyOf(child, testid),
          children: [],
        };
        out.push(node);
        visit(child, node.children);
      } else {
        visit(child, out);
      }
    }
  };
  const root = {uid: '', tag: 'body', role: '', testid: '', label: '', text: '', key: '', children: []};
  if (document.body) visit(document.body, root.children);
  return root;
}
"""


class PlaywrightHost:
    """
    Host primitives over a Playwright page.

    Every mutating primitive bumps the generation, so a handle is only
    accepted until the page is touched again.

    Native dialogs are resolved inside the dialog listener: Playwright keeps
    the triggering click pending until the dialog is handled, so the answer
    cannot wait for a later call. ``accept_dialog`` then reports whether the
    last click opened a dialog that was accepted.
    """

    def __init__(
        self,
        page: Page,
        click_timeout_ms: int = BROWSER_CONFIG["click_timeout_ms"],
        accept_dialogs: bool = True,
    ):
        self.page = page
        self.click_timeout_ms = click_timeout_ms
        self.accept_dialogs = accept_dialogs
        self.generation = 0
        self._accepted_dialogs: List[str] = []
        page.on("dialog", self._on_dialog)

    async def _on_dialog(self, dialog: Dialog):
        logger.debug(f"Native dialog opened: {dialog.type} {dialog.message!r}")
        self._invalidate()
        try:
            if self.accept_dialogs:
                await dialog.accept()
                self._accepted_dialogs.append(dialog.message)
            else:
                await dialog.dismiss()
        except PlaywrightError as e:
            logger.warning(f"Could not resolve dialog {dialog.message!r}: {e}")

    def _invalidate(self):
        self.generation += 1

    async def navigate(self, url: str) -> None:
        self._invalidate()
        try:
            # networkidle is too strict for X's constant activity
            await self.page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=BROWSER_CONFIG["navigation_timeout_ms"],
            )
        except PlaywrightTimeout:
            logger.warning("Page load slow, continuing anyway...")
        except PlaywrightError as e:
            raise HostError(f"Navigation to {url} failed: {e}") from e

    async def capture_snapshot(self) -> Snapshot:
        self._invalidate()
        try:
            payload = await self.page.evaluate(
                SNAPSHOT_SCRIPT, [self.generation, UID_ATTRIBUTE, KEY_SELECTORS]
            )
        except PlaywrightError as e:
            raise HostError(f"Snapshot failed: {e}") from e
        return Snapshot.from_payload(payload, self.generation)

    async def click(self, handle: Handle) -> None:
        if handle.generation != self.generation:
            raise StaleHandleError(handle, self.generation)
        self._invalidate()
        self._accepted_dialogs.clear()
        locator = self.page.locator(f'[{UID_ATTRIBUTE}="{handle.uid}"]')
        try:
            await locator.click(timeout=self.click_timeout_ms)
        except PlaywrightError as e:
            raise HostError(f"Click on {handle} failed: {e}") from e

    async def accept_dialog(self) -> bool:
        """True if the last click opened a native dialog that was accepted."""
        if not self._accepted_dialogs:
            return False
        self._accepted_dialogs.pop(0)
        return True

    async def dismiss_dialog(self) -> None:
        """Close in-page menus and sheets with Escape."""
        self._invalidate()
        self._accepted_dialogs.clear()
        try:
            await self.page.keyboard.press("Escape")
        except PlaywrightError as e:
            raise HostError(f"Dismiss failed: {e}") from e

    async def run_script(self, source: str, arg: Any = None) -> Any:
        self._invalidate()
        try:
            return await self.page.evaluate(source, arg)
        except PlaywrightError as e:
            raise HostError(f"Script failed: {e}") from e

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
