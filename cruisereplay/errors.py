"""
Error taxonomy for cruise replay.

RULES:
- Per-unit ingestion problems never raise out of an ingestor (they become
  FeedWarning entries).
- EmitError is recoverable: the feed driver logs it and moves on.
- Everything else aborts the run.
"""

from typing import Optional


class CruiseReplayError(Exception):
    """Base class for all cruise replay errors."""


class ConfigError(CruiseReplayError):
    """Operator configuration is invalid."""


class FeedLoadError(CruiseReplayError):
    """
    A feed could not be loaded at all.

    Raised for missing or unreadable input files, unreadable search roots,
    undialable datagram destinations and unknown parser names.
    """

    def __init__(self, feed: str, message: str):
        super().__init__(f"{feed}: {message}")
        self.feed = feed


class EmitError(CruiseReplayError):
    """Performing one record's side effect failed."""

    def __init__(self, feed: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{feed}: {message}")
        self.feed = feed
        self.cause = cause


class ReplayInvariantError(CruiseReplayError):
    """A computed replay delay was negative (ingestion or clock bug)."""


class TimestampError(ValueError):
    """A single timestamp could not be parsed."""
