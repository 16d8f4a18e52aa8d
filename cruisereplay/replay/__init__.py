"""
Replay Package

Real-time scheduling of loaded feeds.

Components:
- timeline: cruise-time to replay-time mapping with warp
- scheduler: per-feed drivers and the fan-in coordinator
"""

from .timeline import ReplayTimeline, STARTUP_GRACE_SECONDS, compute_cruise_origin
from .scheduler import DriverState, FeedDriver, ReplayScheduler

__all__ = [
    'ReplayTimeline',
    'STARTUP_GRACE_SECONDS',
    'compute_cruise_origin',
    'DriverState',
    'FeedDriver',
    'ReplayScheduler',
]
