"""
EVT feed ingestor.

One record per binary EVT file; record time comes from the file name and
emission copies the file into its per-day output bucket.
"""

import logging
from typing import Iterable

from cruisereplay.errors import TimestampError
from .sequence import Feed
from .sinks import FileCopySink
from .timestamps import time_from_filename
from .types import FeedWarning, TimestampedRecord, ZERO_TIME

logger = logging.getLogger(__name__)

NAME = "evt"


def load_evt(files: Iterable[str], out_dir: str) -> Feed:
    """
    Build the EVT feed from discovered file paths.

    Files with an unparsable name timestamp produce a warning and are kept at
    ZERO_TIME (sorted first).

    Args:
        files: EVT file paths in discovery order
        out_dir: Output root directory

    Returns:
        EVT feed
    """
    records = []
    warnings = []
    for path in files:
        try:
            t = time_from_filename(path)
        except TimestampError as e:
            warnings.append(FeedWarning(f"evt: bad timestamp in {path}: {e}"))
            t = ZERO_TIME
        records.append(TimestampedRecord(time=t, payload=path, source=path))

    logger.debug("evt: %d files, %d warnings", len(records), len(warnings))
    return Feed(NAME, records, FileCopySink(NAME, out_dir), warnings)
