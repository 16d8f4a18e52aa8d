"""
SFL feed ingestor.

SFL files are tab-separated: a header line followed by one data line per
EVT file. The first column is an ISO 8601 timestamp with offset (25 chars),
which is trusted only to the second and always read as UTC.

RULES:
- A malformed line warns and is skipped; the rest of the file survives
- The header is prepended to each file's second line so it is re-emitted
- Lines from all files are sorted together by time
"""

import logging
from typing import Iterable

from cruisereplay.errors import FeedLoadError, TimestampError
from .sequence import Feed
from .sinks import CRLF, DailyAppendSink
from .timestamps import parse_utc
from .types import FeedWarning, TimestampedRecord

logger = logging.getLogger(__name__)

NAME = "sfl"

# Length of the first column, e.g. 2021-05-01T10:00:00+00:00 or the
# file-name style 2021-05-01T10-00-00+00-00
TIMESTAMP_WIDTH = 25


def parse_sfl_time(field: str):
    """
    Parse the first 19 characters of an SFL time column as UTC.

    The separators after the hour and minute are not checked, so both
    colon and hyphen forms are read.

    Raises:
        TimestampError: If the characters are not a valid timestamp
    """
    local = field[:19]
    if len(local) != 19:
        raise TimestampError(f"malformed timestamp {field!r}")
    return parse_utc(local[:13], local[14:16], local[17:19])


def load_sfl(files: Iterable[str], out_dir: str) -> Feed:
    """
    Build the SFL feed from discovered file paths.

    Args:
        files: SFL file paths in discovery order
        out_dir: Output root directory

    Returns:
        SFL feed

    Raises:
        FeedLoadError: If a file cannot be read
    """
    records = []
    warnings = []
    for path in files:
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                lines = [line.rstrip("\n") for line in f]
        except OSError as e:
            raise FeedLoadError(NAME, str(e)) from e

        header = ""
        for line_num, text in enumerate(lines, start=1):
            if line_num == 1:
                header = text
                continue
            cols = text.split("\t")
            if len(cols) < 2 or len(cols[0]) != TIMESTAMP_WIDTH:
                warnings.append(FeedWarning(f"sfl: unparsable line {path}:{line_num}"))
                continue
            try:
                t = parse_sfl_time(cols[0])
            except TimestampError as e:
                warnings.append(
                    FeedWarning(f"sfl: could not parse timestamp {path}:{line_num} {e}")
                )
                continue
            if line_num == 2:
                text = header + CRLF + text
            records.append(TimestampedRecord(time=t, payload=text, source=path))

    logger.debug("sfl: %d lines, %d warnings", len(records), len(warnings))
    return Feed(NAME, records, DailyAppendSink(NAME, out_dir), warnings)
