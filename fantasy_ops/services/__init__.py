"""Operational logic built on top of the clients."""

from fantasy_ops.services.segment_generation import SegmentGenerator
from fantasy_ops.services.session import (
    SegmentRecord,
    Session,
    SessionProgress,
    create_session,
    load_session,
)
from fantasy_ops.services.video_concatenation import (
    ConcatenationConfig,
    ConcatenationResult,
    VideoConcatenator,
)

__all__ = [
    "ConcatenationConfig",
    "ConcatenationResult",
    "SegmentGenerator",
    "SegmentRecord",
    "Session",
    "SessionProgress",
    "VideoConcatenator",
    "create_session",
    "load_session",
]
