"""
Feeds Package

Ingestors that turn raw cruise data into replayable feed sequences.

Components:
- types: records, warnings and the FeedSequence contract
- cursor: shared ordered-record cursor
- sequence: Feed (cursor + sink composition)
- sinks: emission side effects
- evt / sfl / underway / sealog: per-instrument ingestors
"""

from .types import FeedSequence, FeedWarning, TimestampedRecord, ZERO_TIME
from .cursor import RecordCursor
from .sequence import Feed
from .discovery import find_evt_files, find_sfl_files
from .evt import load_evt
from .sfl import load_sfl
from .underway import coalesce_by_second, load_underway
from .sealog import load_sealog

__all__ = [
    'FeedSequence',
    'FeedWarning',
    'TimestampedRecord',
    'ZERO_TIME',
    'RecordCursor',
    'Feed',
    'find_evt_files',
    'find_sfl_files',
    'load_evt',
    'load_sfl',
    'coalesce_by_second',
    'load_underway',
    'load_sealog',
]
