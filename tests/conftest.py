"""
Shared fixtures for cruise replay tests.
"""

import socket
import time
from datetime import datetime, timedelta, timezone
from typing import List, Tuple

import pytest

from cruisereplay.errors import EmitError
from cruisereplay.feeds import Feed, TimestampedRecord

T0 = datetime(2021, 5, 1, 10, 0, 0, tzinfo=timezone.utc)


def at(seconds: float) -> datetime:
    """T0 + seconds."""
    return T0 + timedelta(seconds=seconds)


class RecordingSink:
    """Sink that remembers what was emitted and when (monotonic clock)."""

    def __init__(self, fail_on=()):
        self.emitted: List[Tuple[TimestampedRecord, float]] = []
        self.fail_on = set(fail_on)
        self.close_calls = 0

    def emit(self, record: TimestampedRecord) -> None:
        if record.payload in self.fail_on:
            raise EmitError("fake", f"cannot emit {record.payload}")
        self.emitted.append((record, time.monotonic()))

    def close(self) -> None:
        self.close_calls += 1

    @property
    def payloads(self) -> List[str]:
        return [r.payload for r, _ in self.emitted]


def make_feed(name: str, offsets, fail_on=()) -> Tuple[Feed, RecordingSink]:
    """Feed with one record per offset (seconds after T0), payload 'name:i'."""
    sink = RecordingSink(fail_on=fail_on)
    records = [
        TimestampedRecord(time=at(off), payload=f"{name}:{i}")
        for i, off in enumerate(offsets)
    ]
    return Feed(name, records, sink), sink


@pytest.fixture
def udp_receiver():
    """Local UDP socket; yields (socket, port)."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2.0)
    yield sock, sock.getsockname()[1]
    sock.close()
