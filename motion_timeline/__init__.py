"""
Frame/step timeline model for video motion tracking.

Tracks store sparse per-frame channels (position, calibration, ...) against a clip window,
derivatives are recomputed from positions by finite differences, and tracks can be
exported under a trimmed clip.
"""

from motion_timeline.converters.trim import FrameRemapper
from motion_timeline.engine.derivatives import DerivativeAlgorithm, DerivativeEngine, DerivativeParams
from motion_timeline.engine.interpolation import Interpolator
from motion_timeline.errors import InvalidClipWindow, MotionTimelineError, NotAKeyframe
from motion_timeline.formats.context import TimelineContext
from motion_timeline.ir import ChannelKind, ClipWindow, RemapPolicy, SparseChannel, Track
from motion_timeline.util.timing import FrameTime, frame_index_time, uniform_frame_time

__all__ = [
    "ChannelKind",
    "ClipWindow",
    "DerivativeAlgorithm",
    "DerivativeEngine",
    "DerivativeParams",
    "FrameRemapper",
    "FrameTime",
    "Interpolator",
    "InvalidClipWindow",
    "MotionTimelineError",
    "NotAKeyframe",
    "RemapPolicy",
    "SparseChannel",
    "TimelineContext",
    "Track",
    "frame_index_time",
    "uniform_frame_time",
]
