from typing import Callable

FrameTime = Callable[[int], float]
"""Maps a frame number to its wall-clock time in seconds. Must be monotonic in the frame number."""


def frame_index_time(frame: int) -> float:
    """Uses the frame number itself as the time, so derivatives come out per frame."""
    return float(frame)


def uniform_frame_time(frame_rate: float, start_time: float = 0.0) -> FrameTime:
    """Frame time for footage recorded at a constant *frame_rate* (frames per second)."""
    if frame_rate <= 0:
        raise ValueError(f"Frame rate must be positive, got {frame_rate}")

    def _frame_time(frame: int) -> float:
        return start_time + frame / frame_rate

    return _frame_time
