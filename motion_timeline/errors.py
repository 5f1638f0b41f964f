from typing import Any


class MotionTimelineError(Exception):
    """Base class for all errors raised by motion_timeline."""


class InvalidClipWindow(MotionTimelineError):
    def __init__(self, start_frame: Any, stride: Any, step_count: Any):
        super().__init__()
        self.start_frame = start_frame
        self.stride = stride
        self.step_count = step_count

    def __str__(self):
        return (
            f"Invalid clip window (start_frame={self.start_frame}, stride={self.stride}, "
            f"step_count={self.step_count}).\n"
            f"start_frame must be >= 0, stride and step_count must be >= 1."
        )


class NotAKeyframe(MotionTimelineError):
    def __init__(self, frame: int, kind: Any = None):
        super().__init__()
        self.frame = frame
        self.kind = kind

    def __str__(self):
        channel = f" of the {self.kind.value} channel" if self.kind is not None else ""
        return f"Frame {self.frame}{channel} is not a keyframe"
