"""
Replay Scheduler

Drives every feed concurrently against one shared ReplayTimeline.

Per-feed state machine:
    NOT_STARTED -> ADVANCING -> (SKIPPING | WAITING -> EMITTING) -> ... -> DONE

INVARIANTS:
- One driver per feed; a feed's cursor is touched by its driver only
- Emissions within a feed are time ordered and never earlier than their
  fire time
- Records before the cruise origin are skipped, not emitted, not warned
- Every feed is closed exactly once after all drivers finish

RULES:
- An emission error is logged and the driver continues
- A negative delay aborts the run
- No cross-feed ordering
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from cruisereplay.errors import EmitError, ReplayInvariantError
from cruisereplay.feeds.types import FeedSequence
from .timeline import (
    ReplayTimeline,
    STARTUP_GRACE_SECONDS,
    compute_cruise_origin,
    validate_warp,
)

logger = logging.getLogger(__name__)


class DriverState(Enum):
    NOT_STARTED = "NOT_STARTED"
    ADVANCING = "ADVANCING"
    SKIPPING = "SKIPPING"
    WAITING = "WAITING"
    EMITTING = "EMITTING"
    DONE = "DONE"


async def sleep_until(deadline: float) -> None:
    """
    Suspend until the event loop clock reaches deadline.

    Re-arms if the loop wakes us within its clock resolution of the deadline,
    so callers never resume early.
    """
    loop = asyncio.get_running_loop()
    remaining = deadline - loop.time()
    while remaining > 0:
        await asyncio.sleep(remaining)
        remaining = deadline - loop.time()


class FeedDriver:
    """
    Replays one feed against the shared timeline.

    RULE: Owns the feed's cursor exclusively.
    RULE: Exactly one suspension per emitted record.
    """

    def __init__(self, feed: FeedSequence, timeline: ReplayTimeline):
        self.feed = feed
        self.timeline = timeline
        self.state = DriverState.NOT_STARTED
        self.emitted = 0
        self.skipped = 0
        self.failed = 0

    async def run(self) -> None:
        """
        Run until the feed is exhausted.

        Raises:
            ReplayInvariantError: If a record's computed delay is negative
        """
        name = self.feed.name()
        while True:
            self.state = DriverState.ADVANCING
            if not self.feed.next():
                break

            t = self.feed.time()
            if t < self.timeline.cruise_origin:
                self.state = DriverState.SKIPPING
                self.skipped += 1
                continue

            delay = self.timeline.delay(t)
            if delay < 0:
                raise ReplayInvariantError(f"{name}: delay < 0, {delay}s, for {t}")

            self.state = DriverState.WAITING
            loop = asyncio.get_running_loop()
            fire_at = self.timeline.replay_origin + delay
            logger.debug(
                "%s timer set for %s in %s",
                name,
                self.timeline.fire_wall(t).isoformat(),
                timedelta(seconds=max(fire_at - loop.time(), 0.0)),
            )
            await sleep_until(fire_at)
            logger.debug("%s timer fired at %s", name, datetime.now(timezone.utc).isoformat())

            self.state = DriverState.EMITTING
            try:
                await asyncio.to_thread(self.feed.emit)
            except EmitError as e:
                self.failed += 1
                logger.error("%s", e)
            else:
                self.emitted += 1

        self.state = DriverState.DONE
        logger.info(
            "%s done: %d emitted, %d skipped, %d failed",
            name, self.emitted, self.skipped, self.failed,
        )

    def summary(self) -> Dict[str, Any]:
        return {
            'records': len(self.feed),
            'emitted': self.emitted,
            'skipped': self.skipped,
            'failed': self.failed,
            'state': self.state.value,
        }

    def __repr__(self) -> str:
        return f"FeedDriver({self.feed.name()}, {self.state.value}, emitted={self.emitted})"


class ReplayScheduler:
    """
    Coordinator: fans out one driver per feed and waits for all of them.

    Usage:
        scheduler = ReplayScheduler(feeds, warp=2.0)
        summary = scheduler.replay()
    """

    def __init__(
        self,
        feeds: Sequence[FeedSequence],
        warp: float = 1.0,
        cruise_start: Optional[datetime] = None,
        startup_grace: float = STARTUP_GRACE_SECONDS,
    ):
        """
        Initialize scheduler.

        Args:
            feeds: Fully loaded feeds, each driven by exactly one driver
            warp: Warp factor (> 0)
            cruise_start: Explicit cruise-time origin; default is the
                earliest record over all feeds
            startup_grace: Seconds between scheduling and the replay origin

        Raises:
            ValueError: If warp is not positive or grace is negative
        """
        if startup_grace < 0:
            raise ValueError(f"startup grace must be >= 0, got {startup_grace!r}")
        self.feeds = list(feeds)
        self.warp = validate_warp(warp)
        self.cruise_start = cruise_start
        self.startup_grace = startup_grace
        self.timeline: Optional[ReplayTimeline] = None
        self.drivers: List[FeedDriver] = []
        self._closed = False

    async def run(self) -> Dict[str, Any]:
        """
        Replay every feed to completion, then close all feeds.

        Returns:
            Summary dict with cruise/replay origins, warp and per-feed counts

        Raises:
            ReplayInvariantError: If any driver computed a negative delay;
                remaining drivers are cancelled first
        """
        loop = asyncio.get_running_loop()
        cruise_origin = compute_cruise_origin(self.feeds, self.cruise_start)
        self.timeline = ReplayTimeline.begin(
            cruise_origin, self.warp, loop.time(), self.startup_grace
        )
        logger.info("cruise start = %s", cruise_origin.isoformat())
        logger.info("replay cruise start = %s", self.timeline.replay_origin_wall.isoformat())
        logger.info("warp = %s", self.warp)

        self.drivers = [FeedDriver(f, self.timeline) for f in self.feeds]
        tasks = [
            asyncio.create_task(d.run(), name=f"replay-{d.feed.name()}")
            for d in self.drivers
        ]

        logger.info("waiting on %d feeds", len(tasks))
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        finally:
            self.close()
        logger.info("all feeds complete, closing")
        return self.summary()

    def replay(self) -> Dict[str, Any]:
        """Blocking entry point: run the replay on a fresh event loop."""
        return asyncio.run(self.run())

    def close(self) -> None:
        """Close every feed once. Close errors are logged per feed."""
        if self._closed:
            return
        self._closed = True
        for feed in self.feeds:
            try:
                feed.close()
            except OSError as e:
                logger.error("%s: close: %s", feed.name(), e)

    def summary(self) -> Dict[str, Any]:
        return {
            'cruise_origin': self.timeline.cruise_origin if self.timeline else None,
            'replay_origin': self.timeline.replay_origin_wall if self.timeline else None,
            'warp': self.warp,
            'feeds': {d.feed.name(): d.summary() for d in self.drivers},
        }

    def __repr__(self) -> str:
        return f"ReplayScheduler(feeds={len(self.feeds)}, warp={self.warp})"
