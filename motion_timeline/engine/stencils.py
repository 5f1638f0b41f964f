"""
Finite-difference stencils over the position samples of a clip.

All functions work in step numbers of the clip and return ``None``
when any sample the stencil needs is missing or outside the clip.
"""
import logging
from numbers import Real
from typing import Any, Dict, Iterable, List, Optional, Tuple

from motion_timeline.ir.channel import SparseChannel
from motion_timeline.ir.clip import ClipWindow
from motion_timeline.util.timing import FrameTime, frame_index_time

logger = logging.getLogger(__name__)

Vector = Tuple[float, ...]


def _as_vector(value: Any) -> Vector:
    if isinstance(value, Real):
        return (float(value),)
    return tuple(float(component) for component in value)


def is_step_frame(clip: ClipWindow, frame: int) -> bool:
    """Frame is one of the clip's steps (stride-aligned and inside the step count)."""
    if frame < clip.start_frame or (frame - clip.start_frame) % clip.stride != 0:
        return False
    return clip.frame_to_step(frame) < clip.step_count


class PositionSamples:
    """Position samples of a channel, indexed by the step number of the clip."""

    def __init__(self, position: SparseChannel, clip: ClipWindow, frame_time: Optional[FrameTime] = None):
        self.clip = clip
        self.frame_time = frame_time or frame_index_time
        self.by_step: Dict[int, Vector] = {}
        self.scalar = False
        for frame, value in position.items():
            if not is_step_frame(clip, frame):
                continue
            self.by_step[clip.frame_to_step(frame)] = _as_vector(value)
            self.scalar = isinstance(value, Real)

    def has(self, step: int) -> bool:
        return step in self.by_step

    def points(self, steps: Iterable[int]) -> Optional[List[Vector]]:
        result = []
        for step in steps:
            if step < 0 or step >= self.clip.step_count or step not in self.by_step:
                return None
            result.append(self.by_step[step])
        return result

    def window(self, low: int, high: int) -> Optional[List[Vector]]:
        return self.points(range(low, high + 1))

    def time(self, step: int) -> float:
        return self.frame_time(self.clip.step_to_frame(step))

    def elapsed(self, low: int, high: int) -> Optional[float]:
        """Time between two steps, ``None`` if the times do not increase."""
        elapsed = self.time(high) - self.time(low)
        if elapsed <= 0:
            logger.warning(
                f"Frame times are not increasing between frames "
                f"{self.clip.step_to_frame(low)} and {self.clip.step_to_frame(high)}, skipping"
            )
            return None
        return elapsed

    def step_duration(self, low: int, high: int) -> Optional[float]:
        """Mean time per step between two steps."""
        elapsed = self.elapsed(low, high)
        if elapsed is None:
            return None
        return elapsed / (high - low)

    def output(self, vector: Vector) -> Any:
        """Converts a computed vector back to the shape of the stored positions."""
        return vector[0] if self.scalar else vector


def quadratic_weights(spill: int) -> List[float]:
    """
    Weights of the second derivative of a least-squares parabola through ``2*spill+1`` samples.

    spill=1 gives ``[1, -2, 1]``, spill=2 gives ``[2, -1, -2, -1, 2] / 7``.
    """
    offsets = range(-spill, spill + 1)
    mean_square = sum(k * k for k in offsets) / len(offsets)
    deviations = [k * k - mean_square for k in offsets]
    norm = sum(d * d for d in deviations)
    return [2 * d / norm for d in deviations]


def _difference(samples: PositionSamples, low: int, high: int) -> Optional[Vector]:
    window = samples.window(low, high)
    if window is None:
        return None
    elapsed = samples.elapsed(low, high)
    if elapsed is None:
        return None
    return tuple((b - a) / elapsed for a, b in zip(window[0], window[-1]))


def central_velocity(samples: PositionSamples, step: int, spill: int) -> Optional[Vector]:
    return _difference(samples, step - spill, step + spill)


def one_sided_velocity(samples: PositionSamples, step: int, spill: int, forward: bool) -> Optional[Vector]:
    if forward:
        return _difference(samples, step, step + spill)
    return _difference(samples, step - spill, step)


def central_acceleration(samples: PositionSamples, step: int, spill: int) -> Optional[Vector]:
    window = samples.window(step - spill, step + spill)
    if window is None:
        return None
    duration = samples.step_duration(step - spill, step + spill)
    if duration is None:
        return None
    weights = quadratic_weights(spill)
    dims = len(window[0])
    return tuple(
        sum(w * value[dim] for w, value in zip(weights, window)) / (duration * duration) for dim in range(dims)
    )


def one_sided_acceleration(samples: PositionSamples, step: int, spill: int, forward: bool) -> Optional[Vector]:
    if forward:
        steps = (step, step + spill, step + 2 * spill)
    else:
        steps = (step - 2 * spill, step - spill, step)
    # The samples in between are part of the stencil too
    if samples.window(steps[0], steps[-1]) is None:
        return None
    first, middle, last = samples.points(steps)
    duration = samples.step_duration(steps[0], steps[-1])
    if duration is None:
        return None
    interval = spill * duration
    return tuple((a - 2 * b + c) / (interval * interval) for a, b, c in zip(first, middle, last))
