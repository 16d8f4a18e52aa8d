"""
SeaFlow Instrument Log Scanner

Scans a SeaFlow V1 instrument log (SFlog.txt). The log is a sequence of
timestamp lines, each followed by one or more event lines:

    2021-05-01T10-00-00+00:00
    Starting acquisition

Timestamp lines set the current time; every non-blank line after one is an
event at that time. Events are classified by keyword. Anything that matches
no keyword, or appears before the first timestamp, is "unhandled".
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterator, List, Optional, TextIO, Tuple

UNHANDLED = "unhandled"

TIMESTAMP_LINE_RE = re.compile(
    r"^#?\s*(\d{4}-\d{2}-\d{2})T(\d{2})[-:](\d{2})[-:](\d{2})(?:\.(\d+))?"
    r"(Z|[+-]\d{2}:?\d{2})?\s*$"
)

# First match wins
EVENT_KEYWORDS: List[Tuple[str, re.Pattern]] = [
    ("shutdown", re.compile(r"\bshut\s*down\b", re.I)),
    ("start", re.compile(r"\bstart(ed|ing)?\b", re.I)),
    ("stop", re.compile(r"\bstop(ped|ping)?\b", re.I)),
    ("filter", re.compile(r"\bfilter\b", re.I)),
    ("flow", re.compile(r"\bflow\b", re.I)),
    ("laser", re.compile(r"\blaser\b", re.I)),
    ("stain", re.compile(r"\bstain(ed|ing)?\b", re.I)),
    ("calibration", re.compile(r"\bcalibrat(e|ed|ion|ing)\b", re.I)),
    ("focus", re.compile(r"\bfocus(ed|ing)?\b", re.I)),
    ("pmt", re.compile(r"\bpmt\b", re.I)),
    ("sheath", re.compile(r"\bsheath\b", re.I)),
    ("bead", re.compile(r"\bbeads?\b", re.I)),
]


@dataclass(frozen=True)
class LogEvent:
    """
    One instrument log event.

    Fields:
        name: Event class, or "unhandled"
        time: Time of the preceding timestamp line (None if there was none)
        line: Raw event text
        line_number: 1-based line number in the log
    """
    name: str
    time: Optional[datetime]
    line: str
    line_number: int


def parse_log_time(text: str) -> Optional[datetime]:
    """Parse a timestamp line; None if the line is not one."""
    m = TIMESTAMP_LINE_RE.match(text)
    if m is None:
        return None
    date, hh, mm, ss, frac, offset = m.groups()
    try:
        t = datetime.strptime(f"{date}T{hh}:{mm}:{ss}", "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return None
    if frac:
        t = t.replace(microsecond=int((frac + "000000")[:6]))
    tz = timezone.utc
    if offset and offset != "Z":
        sign = -1 if offset[0] == "-" else 1
        digits = offset[1:].replace(":", "")
        tz = timezone(sign * timedelta(hours=int(digits[:2]), minutes=int(digits[2:])))
    return t.replace(tzinfo=tz).astimezone(timezone.utc)


def classify(line: str) -> str:
    for name, pattern in EVENT_KEYWORDS:
        if pattern.search(line):
            return name
    return UNHANDLED


class EventScanner:
    """
    Line-oriented event scanner.

    Iterating yields LogEvent objects. I/O errors from the stream propagate.
    """

    def __init__(self, stream: TextIO):
        self._stream = stream

    def __iter__(self) -> Iterator[LogEvent]:
        current: Optional[datetime] = None
        for line_number, raw in enumerate(self._stream, start=1):
            text = raw.rstrip("\r\n")
            if not text.strip():
                continue
            t = parse_log_time(text.strip())
            if t is not None:
                current = t
                continue
            name = classify(text) if current is not None else UNHANDLED
            yield LogEvent(name=name, time=current, line=text, line_number=line_number)
