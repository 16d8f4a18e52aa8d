"""
Emission Sinks

The side effect performed when a feed's record fires.

- FileCopySink: copy the record's source file into a per-day bucket
- DailyAppendSink: append the record's line to its source file's copy
- RollingLogSink: append the record's text block to one fixed log file
- DatagramSink: send the record's payload as one UDP datagram

RULES:
- A sink is owned by exactly one feed (no cross-driver contention)
- Output handles are opened lazily on first emit
- I/O failures surface as EmitError; nothing is retried
- close() is idempotent
"""

import logging
import os
import shutil
import socket
from typing import Optional, Protocol, TextIO

from cruisereplay.errors import EmitError, FeedLoadError, TimestampError
from .timestamps import day_of_year_dir, time_from_filename
from .types import TimestampedRecord

logger = logging.getLogger(__name__)

# Instrument-native line terminator for file outputs
CRLF = "\r\n"


class Sink(Protocol):
    def emit(self, record: TimestampedRecord) -> None:
        ...

    def close(self) -> None:
        ...


def bucket_dir(out_dir: str, subtree: tuple, bucket: str) -> str:
    path = os.path.join(out_dir, *subtree, bucket)
    os.makedirs(path, exist_ok=True)
    return path


class FileCopySink:
    """
    One output file per record, same base name as the source file.

    Output: <out_dir>/datafiles/evt/<year>_<doy>/<basename>
    Bucket is derived from the record's time.
    """

    SUBTREE = ("datafiles", "evt")

    def __init__(self, feed: str, out_dir: str):
        self.feed = feed
        self.out_dir = out_dir

    def emit(self, record: TimestampedRecord) -> None:
        src = record.payload
        try:
            out = bucket_dir(self.out_dir, self.SUBTREE, day_of_year_dir(record.time))
            shutil.copyfile(src, os.path.join(out, os.path.basename(src)))
        except OSError as e:
            raise EmitError(self.feed, str(e), e) from e

    def close(self) -> None:
        pass


class DailyAppendSink:
    """
    Append each record's line to the output copy of its source file.

    Output: <out_dir>/datafiles/evt/<year>_<doy>/<source basename>
    Bucket is derived from the source file name's timestamp. One handle is
    kept open and swapped when a record belongs to a different file.
    """

    SUBTREE = ("datafiles", "evt")

    def __init__(self, feed: str, out_dir: str):
        self.feed = feed
        self.out_dir = out_dir
        self._file: Optional[TextIO] = None
        self._path: Optional[str] = None

    def _output_path(self, source: str) -> str:
        try:
            t = time_from_filename(source)
        except TimestampError as e:
            raise EmitError(self.feed, str(e), e) from e
        try:
            out = bucket_dir(self.out_dir, self.SUBTREE, day_of_year_dir(t))
        except OSError as e:
            raise EmitError(self.feed, str(e), e) from e
        return os.path.join(out, os.path.basename(source))

    def emit(self, record: TimestampedRecord) -> None:
        path = self._output_path(record.source)
        try:
            if self._file is None or self._path != path:
                self.close()
                self._file = open(path, "a", encoding="utf-8", newline="")
                self._path = path
            self._file.write(record.payload + CRLF)
            self._file.flush()
        except OSError as e:
            raise EmitError(self.feed, str(e), e) from e

    def close(self) -> None:
        if self._file is not None:
            f, self._file, self._path = self._file, None, None
            f.close()


class RollingLogSink:
    """
    Append every record to a single log file.

    Output: <out_dir>/logs/<filename>
    """

    def __init__(self, feed: str, out_dir: str, filename: str = "SFlog.txt"):
        self.feed = feed
        self.path = os.path.join(out_dir, "logs", filename)
        self._file: Optional[TextIO] = None

    def emit(self, record: TimestampedRecord) -> None:
        try:
            if self._file is None:
                os.makedirs(os.path.dirname(self.path), exist_ok=True)
                self._file = open(self.path, "a", encoding="utf-8", newline="")
            self._file.write(record.payload + CRLF)
            self._file.flush()
        except OSError as e:
            raise EmitError(self.feed, str(e), e) from e

    def close(self) -> None:
        if self._file is not None:
            f, self._file = self._file, None
            f.close()


class DatagramSink:
    """
    Connectionless datagram destination, dialed once at construction.

    Each emission sends payload + newline. No acknowledgement, no retry.
    Broadcast is enabled so limited-broadcast destinations work.
    """

    def __init__(self, feed: str, host: str, port: int):
        self.feed = feed
        self.address = (host, port)
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.connect(self.address)
        except OSError as e:
            sock.close()
            raise FeedLoadError(feed, f"cannot dial udp {host}:{port}: {e}") from e
        self._sock: Optional[socket.socket] = sock
        logger.debug("%s: dialed udp %s:%d", feed, host, port)

    def emit(self, record: TimestampedRecord) -> None:
        if self._sock is None:
            raise EmitError(self.feed, "datagram socket is closed")
        try:
            self._sock.send((record.payload + "\n").encode("utf-8"))
        except OSError as e:
            raise EmitError(self.feed, str(e), e) from e

    def close(self) -> None:
        if self._sock is not None:
            sock, self._sock = self._sock, None
            sock.close()
