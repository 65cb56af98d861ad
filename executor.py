"""
Per-item removal.

Ordinary items:  open menu -> locate delete entry -> click it -> confirm.
Reposts:         click undo-repost -> confirm.

Every step is one host action followed by a settle pause. Any miss or
host failure ends this item only; the page is nudged back to a neutral
state before the failure is returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from config import CleanerConfig
from host import Host
from snapshot import CandidateItem, ItemKind, SnapshotInterpreter


CONTROL_NOT_FOUND = "control_not_found"
CONFIRM_NOT_FOUND = "confirm_not_found"


@dataclass(frozen=True)
class RemovalResult:
    success: bool
    reason: str = ""

    @classmethod
    def ok(cls) -> "RemovalResult":
        return cls(True)

    @classmethod
    def failure(cls, reason: str) -> "RemovalResult":
        return cls(False, reason)


class ActionExecutor:
    """Runs the removal state machine for one candidate at a time."""

    def __init__(self, host: Host, interpreter: SnapshotInterpreter, config: CleanerConfig):
        self.host = host
        self.interpreter = interpreter
        self.config = config
        self.logger = logging.getLogger("x_cleaner.executor")

    async def perform_removal(self, item: CandidateItem) -> RemovalResult:
        """
        Remove ``item`` from the live page.

        ``item`` must come from the most recent snapshot; its handles are
        used once and never after the first click.

        Returns:
            RemovalResult, success only if every step of the path completed
        """
        if not item.is_deletable:
            return RemovalResult.failure(CONTROL_NOT_FOUND)

        try:
            if item.kind is ItemKind.REPOST:
                result = await self._undo_repost(item)
            else:
                result = await self._delete(item)
        except Exception as e:
            self.logger.debug(f"Host failure on '{item.preview}': {e}")
            await self._recover()
            return RemovalResult.failure(str(e) or type(e).__name__)

        if not result.success:
            await self._recover()
        return result

    async def _delete(self, item: CandidateItem) -> RemovalResult:
        # OpenMenu
        await self.host.click(item.action_control.handle)
        await self.host.sleep(self.config.menu_settle)

        # LocateDeleteControl
        menu = self.interpreter.find_menu_control(await self.host.capture_snapshot())
        if menu is None:
            self.logger.debug(f"No delete entry in menu for '{item.preview}'")
            return RemovalResult.failure(CONTROL_NOT_FOUND)

        # ClickDelete
        await self.host.click(menu.handle)
        await self.host.sleep(self.config.menu_settle)

        # ConfirmDialog
        return await self._confirm(item)

    async def _undo_repost(self, item: CandidateItem) -> RemovalResult:
        # ClickUndo
        await self.host.click(item.action_control.handle)
        await self.host.sleep(self.config.menu_settle)

        # ConfirmUndo
        return await self._confirm(item)

    async def _confirm(self, item: CandidateItem) -> RemovalResult:
        confirm = self.interpreter.find_confirm_control(await self.host.capture_snapshot())
        if confirm is not None:
            await self.host.click(confirm.handle)
        elif not await self.host.accept_dialog():
            self.logger.debug(f"No confirmation for '{item.preview}'")
            return RemovalResult.failure(CONFIRM_NOT_FOUND)

        await self.host.sleep(self.config.after_deletion)
        return RemovalResult.ok()

    async def _recover(self):
        """Best effort: close whatever menu or sheet is still open."""
        try:
            # let the failed click settle before pressing Escape
            await self.host.sleep(self.config.menu_settle)
            await self.host.dismiss_dialog()
            await self.host.sleep(self.config.menu_settle)
        except Exception as e:
            self.logger.debug(f"Recovery after failure did not complete: {e}")
