"""
Pagination controller: the scan -> act -> scroll loop.

One item is acted on per snapshot. Acting invalidates every other handle
from that snapshot, so the loop always re-captures before the next item.
A failed item is not queued for retry: it is retried only if it is still
present in a later scan, and only up to ``max_item_failures`` times in a row.

With an eligibility check (followers: inactivity), items it spares are
remembered for the run and never checked twice. A scan that spared new
items counts as progress, not as an empty scan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple

from config import CleanerConfig
from executor import ActionExecutor, RemovalResult
from host import Host, scroll_script
from snapshot import CandidateItem, SnapshotInterpreter


# Async predicate deciding whether an actionable item should be removed.
# Returns (eligible, reason); the reason is kept for items it spares.
Eligibility = Callable[[CandidateItem], Awaitable[Tuple[bool, str]]]


class Outcome(str, Enum):
    DELETED = "deleted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class RunCounters:
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    kept: int = 0
    consecutive_empty_scans: int = 0
    scans: int = 0

    def summary(self) -> Dict[str, int]:
        return {
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
        }


@dataclass
class OutcomeRecord:
    item: CandidateItem
    result: Outcome
    reason: str = ""


@dataclass
class _FailureTracker:
    """Consecutive failures per item fingerprint."""
    limit: int
    counts: Dict[str, int] = field(default_factory=dict)

    def exhausted(self, item: CandidateItem) -> bool:
        return self.counts.get(item.fingerprint, 0) >= self.limit

    def record(self, item: CandidateItem, success: bool):
        if success:
            self.counts.pop(item.fingerprint, None)
        else:
            self.counts[item.fingerprint] = self.counts.get(item.fingerprint, 0) + 1


class PaginationController:
    """
    Drives one content view until the feed stays empty.

    Usage:
        controller = PaginationController(host, interpreter, executor, config, label="posts")
        counters = await controller.run()
    """

    def __init__(
        self,
        host: Host,
        interpreter: SnapshotInterpreter,
        executor: ActionExecutor,
        config: CleanerConfig,
        label: str = "items",
        eligibility: Optional[Eligibility] = None,
    ):
        self.host = host
        self.interpreter = interpreter
        self.executor = executor
        self.config = config
        self.label = label
        self.eligibility = eligibility
        self.logger = logging.getLogger("x_cleaner.controller")

        self.counters = RunCounters()
        self.outcomes: List[OutcomeRecord] = []
        self._failures = _FailureTracker(config.max_item_failures)
        self._kept: Set[str] = set()

    async def run(self) -> RunCounters:
        """
        Scan, act and scroll until ``max_empty_scans`` consecutive scans find
        nothing to act on (or ``max_items`` items were processed).

        Returns:
            RunCounters for this run
        """
        self.counters = RunCounters()
        self.outcomes = []
        self._failures = _FailureTracker(self.config.max_item_failures)
        self._kept = set()

        self.logger.info(f"Starting removal of {self.label}...")

        while True:
            # Scanning
            snapshot = await self.host.capture_snapshot()
            self.counters.scans += 1
            candidates = self.interpreter.extract_candidates(snapshot)
            target, newly_kept = await self._select(candidates)

            if target is None and newly_kept:
                # Items were checked and spared: progress, not an empty scan
                self.counters.consecutive_empty_scans = 0
                await self._scroll(self.config.scroll_amount)
                continue

            if target is None:
                # WaitingForMore
                self.counters.consecutive_empty_scans += 1
                if self.counters.consecutive_empty_scans >= self.config.max_empty_scans:
                    self.logger.info(
                        f"No more {self.label} found after "
                        f"{self.counters.consecutive_empty_scans} attempts"
                    )
                    break
                self.logger.debug(
                    f"Nothing to remove (attempt {self.counters.consecutive_empty_scans}/"
                    f"{self.config.max_empty_scans}), scrolling for more"
                )
                await self._scroll(self.config.empty_scroll_amount)
                continue

            # Acting
            self.counters.consecutive_empty_scans = 0
            result = await self._act(target)

            if self.config.max_items and self.counters.processed >= self.config.max_items:
                self.logger.info(f"Reached limit of {self.config.max_items} {self.label}")
                break

            await self.host.sleep(self.config.between_items)
            if not result.success and self.config.error_scroll_amount:
                await self._scroll(self.config.error_scroll_amount)
            await self._scroll(self.config.scroll_amount)

        # Terminated
        self.logger.info(
            f"✓ Completed {self.label}: {self.counters.succeeded} removed, "
            f"{self.counters.failed} failed, {self.counters.processed} processed"
        )
        return self.counters

    async def _select(self, candidates: List[CandidateItem]) -> Tuple[Optional[CandidateItem], int]:
        """
        First candidate that can be acted on; the rest are recorded as skipped.

        With an eligibility check, each item is checked once per run. Items it
        spares are remembered and passed over silently in later scans.

        Returns:
            (target or None, number of items spared during this scan)
        """
        newly_kept = 0
        for item in candidates:
            if not item.is_deletable:
                self._record(item, Outcome.SKIPPED, "no_action_control")
                continue
            if self._failures.exhausted(item):
                self._record(item, Outcome.SKIPPED, "failure_limit")
                continue
            if self.eligibility is not None:
                if item.fingerprint in self._kept:
                    continue
                eligible, reason = await self._check(item)
                if not eligible:
                    self._kept.add(item.fingerprint)
                    self.counters.kept += 1
                    newly_kept += 1
                    self._record(item, Outcome.SKIPPED, reason)
                    self.logger.info(f"  ✓ Kept '{item.preview}': {reason}")
                    continue
            return item, newly_kept
        return None, newly_kept

    async def _check(self, item: CandidateItem) -> Tuple[bool, str]:
        try:
            return await self.eligibility(item)
        except Exception as e:
            self.logger.warning(f"  Could not check '{item.preview}': {e}")
            return False, f"check_failed: {e}"

    async def _act(self, item: CandidateItem) -> RemovalResult:
        self.logger.debug(f"Removing {item.kind.value}: '{item.preview}'")
        try:
            result = await self.executor.perform_removal(item)
        except Exception as e:
            result = RemovalResult.failure(str(e) or type(e).__name__)

        self.counters.processed += 1
        self._failures.record(item, result.success)

        if result.success:
            self.counters.succeeded += 1
            self._record(item, Outcome.DELETED)
            if self.counters.succeeded % self.config.log_interval == 0:
                self.logger.info(f"✓ Removed {self.counters.succeeded} {self.label}...")
        else:
            self.counters.failed += 1
            self._record(item, Outcome.FAILED, result.reason)
            self.logger.warning(f"  ✗ Failed to remove '{item.preview}': {result.reason}")
        return result

    async def _scroll(self, pixels: int):
        await self.host.run_script(scroll_script(), pixels)
        await self.host.sleep(self.config.scroll_load)

    def _record(self, item: CandidateItem, result: Outcome, reason: str = ""):
        if result is Outcome.SKIPPED:
            self.counters.skipped += 1
            self.logger.debug(f"  Skipped '{item.preview}': {reason}")
        self.outcomes.append(OutcomeRecord(item, result, reason))
