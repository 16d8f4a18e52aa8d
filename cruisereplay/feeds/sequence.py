"""
Feed Sequence

Concrete feed: a named, time-ordered record cursor composed with a sink.

INVARIANTS:
- Content is fixed after construction (only the cursor and sink state change)
- Forward-only progression
- Emission touches only the record at the cursor
"""

from datetime import datetime
from typing import Iterable, List, Optional

from .cursor import RecordCursor
from .sinks import Sink
from .types import FeedWarning, TimestampedRecord


class Feed:
    """
    A replayable feed implementing the FeedSequence contract.

    Variants differ only by ingestor (how records are built) and sink (what
    emitting does); cursor logic is shared.
    """

    def __init__(
        self,
        name: str,
        records: Iterable[TimestampedRecord],
        sink: Sink,
        warnings: Optional[List[FeedWarning]] = None,
    ):
        """
        Initialize feed.

        Args:
            name: Stable identifier used in logs
            records: Records in discovery order (sorted by the cursor)
            sink: Side effect performed for each emitted record
            warnings: Ingestion warnings collected while building records
        """
        self._name = name
        self._cursor = RecordCursor(records)
        self._sink = sink
        self._warnings = list(warnings or [])
        self._closed = False

    def name(self) -> str:
        return self._name

    def earliest(self) -> datetime:
        return self._cursor.earliest()

    def earliest_known(self) -> datetime:
        return self._cursor.earliest_known()

    def next(self) -> bool:
        return self._cursor.advance()

    def time(self) -> Optional[datetime]:
        """Time of the record at the cursor; None before the first next()."""
        record = self._cursor.current()
        return record.time if record is not None else None

    def current(self) -> Optional[TimestampedRecord]:
        return self._cursor.current()

    def emit(self) -> None:
        """
        Perform the sink's side effect for the record at the cursor.

        No-op before the first successful next().

        Raises:
            EmitError: If the side effect failed
        """
        record = self._cursor.current()
        if record is None:
            return
        self._sink.emit(record)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._sink.close()

    def warnings(self) -> List[FeedWarning]:
        return list(self._warnings)

    def records(self) -> List[TimestampedRecord]:
        return self._cursor.records

    def __len__(self) -> int:
        return len(self._cursor)

    def __repr__(self) -> str:
        return f"Feed({self._name}, {self._cursor!r}, warnings={len(self._warnings)})"
