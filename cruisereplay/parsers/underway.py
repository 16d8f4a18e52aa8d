"""
Underway Feed Line Parser

Parses the ship's underway data feed as logged aboard. Each line is a
logger timestamp followed by an NMEA-style sentence:

    2021-05-01T10:00:00.250Z $GPGGA,100000.25,2118.0,N,15752.0,W,1,09,0.9,3.1,M

The sentence ID (GPGGA above) is the record type. The parser rate limits
each record type independently so the replayed feed stays close to what
shipboard acquisition software actually consumes.

RULES:
- Malformed lines raise UnderwayParseError (caller turns it into a warning)
- Unknown record types and throttled lines are not errors, just not ok()
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, FrozenSet, Optional

from cruisereplay.timeutil import parse_iso_utc


class UnderwayParseError(ValueError):
    """A line could not be parsed."""


def whitelist(data: bytes) -> bytes:
    """
    Remove bytes that are not printable ASCII or tab.

    Args:
        data: Raw line bytes

    Returns:
        Cleaned bytes
    """
    return bytes(b for b in data if b == 0x09 or 0x20 <= b <= 0x7E)


def nmea_checksum(body: str) -> int:
    """XOR of all characters between '$' and '*'."""
    cs = 0
    for ch in body:
        cs ^= ord(ch)
    return cs


@dataclass(frozen=True)
class ParsedLine:
    """
    Result of parsing one underway line.

    Fields:
        time: Logger timestamp (UTC)
        record_type: Sentence ID
        line: Cleaned line text
        accepted: True if the type is known and passed the throttle
    """
    time: datetime
    record_type: str
    line: str
    accepted: bool

    def ok(self) -> bool:
        return self.accepted


class KiloMoanaParser:
    """
    Underway parser for R/V Kilo Moana.

    Throttle: a line of a given record type is accepted only if it is at least
    `throttle` after the last accepted line of that type. Zero accepts all.
    """

    # Sentence IDs published on the Kilo Moana underway feed
    RECORD_TYPES: FrozenSet[str] = frozenset({
        "GPGGA",   # GPS fix
        "GPRMC",   # recommended minimum nav
        "GPVTG",   # course and speed over ground
        "GPZDA",   # date and time
        "SBE45",   # thermosalinograph
        "SBE38",   # intake temperature
        "WXMET",   # meteorology package
        "PAR",     # photosynthetically active radiation
        "FLUOR",   # underway fluorometer
    })

    def __init__(self, project: str = "", throttle: timedelta = timedelta(0)):
        """
        Initialize parser.

        Args:
            project: Project/cruise label (informational)
            throttle: Minimum spacing between accepted lines of one type
        """
        self.project = project
        self.throttle = throttle
        self._last: Dict[str, datetime] = {}

    def parse_line(self, line: str) -> ParsedLine:
        """
        Parse one cleaned line.

        Raises:
            UnderwayParseError: If the line is malformed
        """
        stamp, sep, sentence = line.strip().partition(" ")
        sentence = sentence.strip()
        if not sep or not sentence.startswith("$"):
            raise UnderwayParseError(f"no sentence in {line!r}")
        try:
            t = parse_iso_utc(stamp)
        except ValueError as e:
            raise UnderwayParseError(f"bad timestamp {stamp!r}: {e}") from e

        body = sentence[1:]
        if "*" in body:
            body, _, given = body.rpartition("*")
            try:
                expected = int(given, 16)
            except ValueError as e:
                raise UnderwayParseError(f"bad checksum field {given!r}") from e
            if nmea_checksum(body) != expected:
                raise UnderwayParseError(
                    f"checksum mismatch: got {given}, computed {nmea_checksum(body):02X}"
                )

        record_type = body.split(",", 1)[0]
        accepted = record_type in self.RECORD_TYPES and self._admit(record_type, t)
        return ParsedLine(time=t, record_type=record_type, line=line, accepted=accepted)

    def _admit(self, record_type: str, t: datetime) -> bool:
        last: Optional[datetime] = self._last.get(record_type)
        if last is not None and self.throttle > timedelta(0) and t - last < self.throttle:
            return False
        self._last[record_type] = t
        return True


ParserFactory = Callable[[str, timedelta], KiloMoanaParser]

PARSER_REGISTRY: Dict[str, ParserFactory] = {
    "Kilo Moana": KiloMoanaParser,
}
