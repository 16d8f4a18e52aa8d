"""
Cruise Replay

Replays recorded instrument feeds from a research cruise at their original
relative timing, optionally warped, so acquisition software can be exercised
against realistic traffic.

Components:
- feeds: ingestors and the feed sequence contract
- parsers: instrument-specific line parsers used by the ingestors
- replay: timeline and concurrent per-feed scheduler
"""

__version__ = "0.1.0"
