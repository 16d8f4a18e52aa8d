"""
Timestamp helpers for SeaFlow-style file names and output buckets.

All times are forced to UTC, even when the source carries a different
timezone designator.
"""

import os
import re
from datetime import datetime, timezone

from cruisereplay.errors import TimestampError


# Hours, minutes and seconds are separated by hyphens (filesystem safe).
# Anything after the seconds (offset designator, extension) is ignored.
FILENAME_TIME_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2})-(\d{2})-(\d{2}(?:\.\d+)?)(?:.+)?$"
)


def parse_utc(date_hour: str, minute: str, second: str) -> datetime:
    """
    Build a UTC datetime from 'YYYY-MM-DDThh', 'mm' and 'ss[.fff...]'.

    Fractional seconds beyond microsecond precision are truncated.

    Raises:
        TimestampError: If the fields do not form a valid time
    """
    whole, _, frac = second.partition(".")
    micros = int((frac + "000000")[:6]) if frac else 0
    try:
        t = datetime.strptime(f"{date_hour}:{minute}:{whole}", "%Y-%m-%dT%H:%M:%S")
    except ValueError as e:
        raise TimestampError(str(e)) from e
    return t.replace(microsecond=micros, tzinfo=timezone.utc)


def time_from_filename(path: str) -> datetime:
    """
    Parse the timestamp embedded in a SeaFlow file name.

    Args:
        path: File path; only the base name is examined

    Returns:
        UTC time encoded in the name

    Raises:
        TimestampError: If the name does not carry a valid timestamp
    """
    base = os.path.basename(path)
    m = FILENAME_TIME_RE.match(base)
    if m is None:
        raise TimestampError(f"file timestamp could not be parsed for {path}")
    try:
        return parse_utc(m.group(1), m.group(2), m.group(3))
    except TimestampError as e:
        raise TimestampError(f"file timestamp could not be parsed for {path}: {e}") from e


def day_of_year_dir(t: datetime) -> str:
    """Output bucket name '<year>_<day of year, 3 digits>'."""
    return f"{t.year}_{t.timetuple().tm_yday:03d}"


def filename_time(t: datetime) -> str:
    """
    Render a time the way SeaFlow names files and logs entries.

    Example: 2021-05-01T10-00-05+00:00
    """
    return t.astimezone(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S") + "+00:00"
