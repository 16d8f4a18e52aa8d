"""
Feed Types

Shared data types and the capability contract every replayable feed exposes.

INVARIANTS:
- Records are immutable once ingested
- A feed's records are sorted non-decreasing by time
- All times are timezone-aware UTC datetimes
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional, Protocol, runtime_checkable


# "No data" time value. Sorts before every real timestamp.
ZERO_TIME = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class TimestampedRecord:
    """
    One emission unit of a feed.

    Fields:
        time: Cruise time the unit was recorded (UTC)
        payload: Feed-specific unit (source path, text line, text block)
        source: Input file the unit came from, if the sink needs it
    """
    time: datetime
    payload: Any
    source: Optional[str] = None


@dataclass(frozen=True)
class FeedWarning:
    """Non-fatal ingestion anomaly surfaced to the operator."""
    message: str

    def __str__(self) -> str:
        return self.message


@runtime_checkable
class FeedSequence(Protocol):
    """
    Capability interface driven by the replay scheduler.

    RULE: Exactly one driver touches a feed for its whole lifetime.
    RULE: emit() before the first successful next() is a no-op.
    RULE: close() is idempotent.
    """

    def name(self) -> str:
        ...

    def earliest(self) -> datetime:
        ...

    def earliest_known(self) -> datetime:
        ...

    def next(self) -> bool:
        ...

    def time(self) -> Optional[datetime]:
        ...

    def emit(self) -> None:
        ...

    def close(self) -> None:
        ...

    def __len__(self) -> int:
        ...

    def warnings(self) -> List[FeedWarning]:
        ...
