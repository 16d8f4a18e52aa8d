"""
Replay Timeline

Maps cruise time to replay time:

    fire_time = replay_origin + (record_time - cruise_origin) / warp

INVARIANTS:
- warp > 0
- replay_origin is on the event loop's monotonic clock
- Records before cruise_origin are never scheduled (callers skip them)
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from cruisereplay.feeds.types import FeedSequence, ZERO_TIME

# Replay starts this long after scheduling so the first emission is never
# in the past.
STARTUP_GRACE_SECONDS = 5.0


def compute_cruise_origin(
    feeds: Iterable[FeedSequence],
    start: Optional[datetime] = None,
) -> datetime:
    """
    Determine the cruise-time origin shared by all feeds.

    Args:
        feeds: Loaded feeds
        start: Explicit override; returned unchanged when given

    Returns:
        start, or the minimum over feeds of their earliest record not at
        ZERO_TIME. ZERO_TIME if no feed has a real timestamp.
    """
    if start is not None:
        return start
    earliest = [f.earliest_known() for f in feeds]
    earliest = [t for t in earliest if t != ZERO_TIME]
    if not earliest:
        return ZERO_TIME
    return min(earliest)


def validate_warp(warp: float) -> float:
    if not isinstance(warp, (int, float)) or not math.isfinite(warp) or warp <= 0:
        raise ValueError(f"warp must be a positive number, got {warp!r}")
    return float(warp)


@dataclass(frozen=True)
class ReplayTimeline:
    """
    Shared cruise-time to replay-time mapping.

    Fields:
        cruise_origin: Cruise time that maps to replay_origin
        replay_origin: Event loop time (monotonic seconds) of cruise_origin
        replay_origin_wall: Wall-clock equivalent of replay_origin (for logs)
        warp: Cruise seconds per replay second
    """
    cruise_origin: datetime
    replay_origin: float
    replay_origin_wall: datetime
    warp: float = 1.0

    @classmethod
    def begin(
        cls,
        cruise_origin: datetime,
        warp: float,
        now: float,
        grace: float = STARTUP_GRACE_SECONDS,
    ) -> "ReplayTimeline":
        """
        Create a timeline whose replay origin is now + grace.

        Args:
            cruise_origin: Cruise-time origin
            warp: Warp factor (> 0)
            now: Current event loop time
            grace: Startup grace in seconds
        """
        wall = datetime.now(timezone.utc) + timedelta(seconds=grace)
        return cls(
            cruise_origin=cruise_origin,
            replay_origin=now + grace,
            replay_origin_wall=wall,
            warp=validate_warp(warp),
        )

    def delay(self, t: datetime) -> float:
        """Replay seconds between the replay origin and t's emission."""
        return (t - self.cruise_origin).total_seconds() / self.warp

    def fire_time(self, t: datetime) -> float:
        """Event loop time at which t should be emitted."""
        return self.replay_origin + self.delay(t)

    def fire_wall(self, t: datetime) -> datetime:
        """Wall-clock time at which t should be emitted (for logs)."""
        return self.replay_origin_wall + timedelta(seconds=self.delay(t))
