import logging
import math
from enum import Enum
from numbers import Real
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from motion_timeline.engine.bounce import StencilSide, find_bounces, pick_side
from motion_timeline.engine.stencils import (
    PositionSamples,
    Vector,
    central_acceleration,
    central_velocity,
    is_step_frame,
    one_sided_acceleration,
    one_sided_velocity,
)
from motion_timeline.ir.channel import ChannelKind, SparseChannel
from motion_timeline.ir.clip import ClipWindow
from motion_timeline.util.timing import FrameTime

logger = logging.getLogger(__name__)


class DerivativeAlgorithm(Enum):
    FINITE_DIFF = "finite_diff"
    FINITE_DIFF_VSPILL2 = "finite_diff_vspill2"
    """Finite differences with the velocity spill fixed to 2"""
    BOUNCE_DETECT = "bounce_detect"
    """Finite differences that never smooth across a detected bounce"""


class DerivativeParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    spill: int = Field(default=1, ge=1)
    """Half width of the velocity stencil, in steps"""
    acceleration_spill: int = Field(default=2, ge=1)
    """Half width of the acceleration stencil, in steps"""
    algorithm: DerivativeAlgorithm = DerivativeAlgorithm.FINITE_DIFF
    bounce_sharpness: float = Field(default=2.0, gt=0)
    """
    How much larger the velocity jump at a reversal has to be than the velocity changes around it
    for the reversal to count as a bounce.
    """

    @property
    def velocity_spill(self) -> int:
        if self.algorithm == DerivativeAlgorithm.FINITE_DIFF_VSPILL2:
            return 2
        return self.spill

    @property
    def reach(self) -> int:
        """Number of steps around a changed position whose derivatives may change with it."""
        stencil = max(self.velocity_spill, 2 * self.acceleration_spill)
        if self.algorithm == DerivativeAlgorithm.BOUNCE_DETECT:
            return max(self.velocity_spill + 1, 2) + stencil
        return stencil


def _first_step_at_or_after(clip: ClipWindow, frame: int) -> int:
    if frame <= clip.start_frame:
        return 0
    step = clip.frame_to_step(frame)
    if not is_step_frame(clip, frame):
        step += 1
    return step


def _velocity_at(
    samples: PositionSamples, step: int, params: DerivativeParams, bounces: Optional[List[int]]
) -> Optional[Vector]:
    spill = params.velocity_spill
    if bounces is None:
        return central_velocity(samples, step, spill)
    side = pick_side(step, spill, spill, bounces)
    if side == StencilSide.CENTRAL:
        return central_velocity(samples, step, spill)
    if side is None:
        return None
    return one_sided_velocity(samples, step, spill, forward=side == StencilSide.FORWARD)


def _acceleration_at(
    samples: PositionSamples, step: int, params: DerivativeParams, bounces: Optional[List[int]]
) -> Optional[Vector]:
    spill = params.acceleration_spill
    if bounces is None:
        return central_acceleration(samples, step, spill)
    side = pick_side(step, spill, 2 * spill, bounces)
    if side == StencilSide.CENTRAL:
        return central_acceleration(samples, step, spill)
    if side is None:
        return None
    return one_sided_acceleration(samples, step, spill, forward=side == StencilSide.FORWARD)


class DerivativeEngine:
    @staticmethod
    def recompute(
        position: SparseChannel,
        clip: ClipWindow,
        params: Optional[DerivativeParams] = None,
        start_frame: Optional[int] = None,
        step_count: Optional[int] = None,
        frame_time: Optional[FrameTime] = None,
        velocity: Optional[SparseChannel] = None,
        acceleration: Optional[SparseChannel] = None,
    ) -> Tuple[SparseChannel, SparseChannel]:
        """
        Recomputes velocity and acceleration for a range of steps of the clip.

        Only positions at the clip's step frames are used. A derivative is left absent
        when any sample of its stencil is missing or falls outside the clip.
        The result for a frame depends on the position channel alone, never on the requested range.

        :param start_frame: First frame of the range. Unaligned frames round up to the next step.
            Defaults to the start of the clip.
        :param step_count: Number of steps in the range, defaults to the rest of the clip.
        :param frame_time: Time of a frame, defaults to the frame number itself.
        :param velocity: Channel to update in place, a new channel is created if not given.
        :param acceleration: Channel to update in place, a new channel is created if not given.
        :return: The velocity and acceleration channels
        """
        params = params or DerivativeParams()
        velocity = velocity if velocity is not None else SparseChannel(kind=ChannelKind.VELOCITY)
        acceleration = acceleration if acceleration is not None else SparseChannel(kind=ChannelKind.ACCELERATION)

        first_step = _first_step_at_or_after(clip, clip.start_frame if start_frame is None else start_frame)
        if step_count is None:
            step_count = clip.step_count - first_step
        if step_count < 1:
            return velocity, acceleration

        range_start = clip.step_to_frame(first_step)
        range_end = clip.step_to_frame(first_step + step_count - 1)
        velocity.clear_range(range_start, range_end)
        acceleration.clear_range(range_start, range_end)

        last_step = min(first_step + step_count - 1, clip.step_count - 1)
        if last_step < first_step:
            return velocity, acceleration

        samples = PositionSamples(position, clip, frame_time)
        bounces = None
        if params.algorithm == DerivativeAlgorithm.BOUNCE_DETECT:
            # Only bounces this close can change the stencil of a step in range
            margin = max(params.velocity_spill, 2 * params.acceleration_spill)
            scan = range(max(first_step - margin, 0), min(last_step + margin, clip.step_count - 1) + 1)
            bounces = find_bounces(samples, scan, params.velocity_spill, params.bounce_sharpness)

        written = 0
        for step in range(first_step, last_step + 1):
            frame = clip.step_to_frame(step)
            v = _velocity_at(samples, step, params, bounces)
            if v is not None:
                velocity.set(frame, samples.output(v), keyframe=False)
                written += 1
            a = _acceleration_at(samples, step, params, bounces)
            if a is not None:
                acceleration.set(frame, samples.output(a), keyframe=False)
                written += 1

        logger.debug(
            f"Recomputed derivatives for frames {range_start}-{range_end} "
            f"using {params.algorithm.value}, {written} value(s) written"
        )
        return velocity, acceleration

    @staticmethod
    def dirty_range(clip: ClipWindow, frame: int, params: Optional[DerivativeParams] = None) -> Tuple[int, int]:
        """
        Range of steps whose derivatives may change when the position at ``frame`` changes.

        :return: ``(start_frame, step_count)`` of the range, clipped to the clip
        """
        params = params or DerivativeParams()
        step = min(max(clip.frame_to_step(frame), 0), clip.step_count - 1)
        low = max(step - params.reach, 0)
        high = min(step + params.reach, clip.step_count - 1)
        return clip.step_to_frame(low), high - low + 1

    @staticmethod
    def angular_data(
        position: SparseChannel,
        clip: ClipWindow,
        params: Optional[DerivativeParams] = None,
        frame_time: Optional[FrameTime] = None,
    ) -> Tuple[SparseChannel, SparseChannel, SparseChannel]:
        """
        Polar angle of each position around the origin, with its angular velocity and acceleration.

        The angle is unwrapped so a full turn keeps counting up instead of jumping back by 2*pi.
        Bounce detection does not apply to angles, plain finite differences are used instead.

        :return: ``(theta, omega, alpha)`` channels
        """
        params = params or DerivativeParams()
        if params.algorithm == DerivativeAlgorithm.BOUNCE_DETECT:
            params = params.model_copy(update={"algorithm": DerivativeAlgorithm.FINITE_DIFF})

        theta = SparseChannel(kind=ChannelKind.ANGLE)
        previous = 0.0
        for frame, value in position.items():
            if not is_step_frame(clip, frame):
                continue
            if isinstance(value, Real) or len(value) < 2:
                raise ValueError(f"Angular data needs 2D positions, got {value} at frame {frame}")
            angle = math.atan2(value[1], value[0])
            while angle - previous > math.pi:
                angle -= 2 * math.pi
            while angle - previous < -math.pi:
                angle += 2 * math.pi
            theta.set(frame, angle, keyframe=False)
            previous = angle

        omega, alpha = DerivativeEngine.recompute(theta, clip, params, frame_time=frame_time)
        return theta, omega, alpha
