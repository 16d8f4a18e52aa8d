"""
SeaFlow instrument log feed ingestor.

Every handled log event becomes one record whose payload is the event
rendered back into log form (timestamp line + event line). Records are
appended to a single rolling SFlog.txt on emission.
"""

import logging
from datetime import datetime

from cruisereplay.errors import FeedLoadError
from cruisereplay.parsers.sealog import EventScanner, UNHANDLED
from .sequence import Feed
from .sinks import CRLF, RollingLogSink
from .timestamps import filename_time
from .types import FeedWarning, TimestampedRecord

logger = logging.getLogger(__name__)

NAME = "seaflowlog"


def render_event(t: datetime, line: str) -> str:
    """Log-form rendering: '2021-05-01T10-00-00+00:00' CRLF event line."""
    return f"{filename_time(t)}{CRLF}{line}"


def load_sealog(path: str, out_dir: str) -> Feed:
    """
    Build the SeaFlow log feed.

    Args:
        path: SeaFlow V1 instrument log file
        out_dir: Output root directory

    Returns:
        SeaFlow log feed

    Raises:
        FeedLoadError: If the log cannot be read
    """
    records = []
    warnings = []
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            for event in EventScanner(f):
                if event.name == UNHANDLED:
                    warnings.append(FeedWarning(
                        f"seaflowlog: unhandled event at line {event.line_number}: {event.line}"
                    ))
                    continue
                records.append(TimestampedRecord(
                    time=event.time, payload=render_event(event.time, event.line),
                ))
    except OSError as e:
        raise FeedLoadError(NAME, str(e)) from e

    logger.debug("seaflowlog: %d events, %d warnings", len(records), len(warnings))
    return Feed(NAME, records, RollingLogSink(NAME, out_dir), warnings)
