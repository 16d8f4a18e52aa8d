"""
Underway feed ingestor.

Reads the ship's underway feed (optionally gzip compressed), keeps the lines
the underway parser accepts, sorts them, then coalesces lines that share a
whole second into one datagram so emission is at most 1 Hz.
"""

import gzip
import logging
from datetime import timedelta
from typing import List

from cruisereplay.errors import FeedLoadError
from cruisereplay.parsers.underway import PARSER_REGISTRY, UnderwayParseError, whitelist
from .sequence import Feed
from .sinks import DatagramSink
from .types import FeedWarning, TimestampedRecord

logger = logging.getLogger(__name__)

NAME = "underway"


def coalesce_by_second(records: List[TimestampedRecord]) -> List[TimestampedRecord]:
    """
    Merge consecutive records whose times truncate to the same second.

    Args:
        records: Records sorted by time

    Returns:
        One record per distinct second, keyed by the truncated time, with
        payloads joined by newline in original order
    """
    merged: List[TimestampedRecord] = []
    if not records:
        return merged

    second = records[0].time.replace(microsecond=0)
    lines = [records[0].payload]
    for rec in records[1:]:
        t = rec.time.replace(microsecond=0)
        if t == second:
            lines.append(rec.payload)
        else:
            merged.append(TimestampedRecord(time=second, payload="\n".join(lines)))
            second = t
            lines = [rec.payload]
    merged.append(TimestampedRecord(time=second, payload="\n".join(lines)))
    return merged


def load_underway(
    path: str,
    host: str,
    port: int,
    throttle_sec: float,
    parser_name: str = "Kilo Moana",
) -> Feed:
    """
    Build the underway feed and dial its datagram destination.

    Args:
        path: Underway feed file (.gz is decompressed)
        host: Destination host
        port: Destination port
        throttle_sec: Minimum spacing between lines of one record type
        parser_name: Key into PARSER_REGISTRY

    Returns:
        Underway feed

    Raises:
        FeedLoadError: If the destination cannot be dialed, the parser is
            unknown, or the file cannot be read
    """
    factory = PARSER_REGISTRY.get(parser_name)
    if factory is None:
        raise FeedLoadError(NAME, f"invalid parser choice {parser_name!r}")
    parser = factory("", timedelta(seconds=throttle_sec))

    sink = DatagramSink(NAME, host, port)
    try:
        records, warnings = _read_lines(path, parser)
    except FeedLoadError:
        sink.close()
        raise

    # sorted() is stable
    records.sort(key=lambda r: r.time)
    coalesced = coalesce_by_second(records)
    logger.debug(
        "underway: %d lines coalesced to %d records, %d warnings",
        len(records), len(coalesced), len(warnings),
    )
    return Feed(NAME, coalesced, sink, warnings)


def _read_lines(path, parser):
    records = []
    warnings = []
    opener = gzip.open if path.endswith(".gz") else open
    try:
        with opener(path, "rb") as f:
            for line_num, raw in enumerate(f, start=1):
                line = whitelist(raw).decode("ascii")
                try:
                    parsed = parser.parse_line(line)
                except UnderwayParseError as e:
                    warnings.append(FeedWarning(f"underway: line {line_num}: {e}"))
                    continue
                if parsed.ok():
                    records.append(TimestampedRecord(time=parsed.time, payload=line))
    except (OSError, EOFError) as e:
        raise FeedLoadError(NAME, str(e)) from e
    return records, warnings
