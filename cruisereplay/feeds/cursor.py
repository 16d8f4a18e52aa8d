"""
Ordered Record Cursor

Forward-only iterator over time-sorted records, shared by every feed.

INVARIANTS:
- Records sorted by time with a stable sort (ties keep discovery order)
- Cursor starts before the first record
- Cursor moves forward one step at a time, never past len(records)
"""

from datetime import datetime
from typing import Iterable, List, Optional

from .types import TimestampedRecord, ZERO_TIME


class RecordCursor:
    """
    Time-ordered records plus the index of the current record.

    The index is -1 until the first successful advance().
    """

    def __init__(self, records: Iterable[TimestampedRecord]):
        """
        Initialize cursor over records.

        Args:
            records: Records in discovery order (sorted here)
        """
        # sorted() is stable
        self._records: List[TimestampedRecord] = sorted(records, key=lambda r: r.time)
        self._index = -1

    def advance(self) -> bool:
        """
        Move to the next record.

        Returns:
            True if the cursor now points at a record, False once exhausted.
            Stays False on repeated calls.
        """
        if self._index + 1 < len(self._records):
            self._index += 1
            return True
        self._index = len(self._records)
        return False

    def current(self) -> Optional[TimestampedRecord]:
        """Record at the cursor, or None before first / after last."""
        if 0 <= self._index < len(self._records):
            return self._records[self._index]
        return None

    def earliest(self) -> datetime:
        """Time of the first record, or ZERO_TIME when empty."""
        if self._records:
            return self._records[0].time
        return ZERO_TIME

    def earliest_known(self) -> datetime:
        """Time of the first record not at ZERO_TIME, or ZERO_TIME if none."""
        for record in self._records:
            if record.time != ZERO_TIME:
                return record.time
        return ZERO_TIME

    @property
    def position(self) -> int:
        return self._index

    @property
    def records(self) -> List[TimestampedRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        consumed = min(self._index + 1, len(self._records))
        return f"RecordCursor({consumed}/{len(self._records)})"
