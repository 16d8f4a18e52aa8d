"""
Instrument line parsers used by the feed ingestors.
"""

from .underway import (
    KiloMoanaParser,
    ParsedLine,
    PARSER_REGISTRY,
    UnderwayParseError,
    whitelist,
)
from .sealog import EventScanner, LogEvent, UNHANDLED

__all__ = [
    "KiloMoanaParser",
    "ParsedLine",
    "PARSER_REGISTRY",
    "UnderwayParseError",
    "whitelist",
    "EventScanner",
    "LogEvent",
    "UNHANDLED",
]
