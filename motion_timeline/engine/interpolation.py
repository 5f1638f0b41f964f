import logging
from numbers import Real
from typing import Any, List, Optional

from motion_timeline.errors import NotAKeyframe
from motion_timeline.ir.channel import SparseChannel
from motion_timeline.ir.clip import ClipWindow

logger = logging.getLogger(__name__)


def _lerp(start: Any, end: Any, t: float) -> Any:
    if isinstance(start, Real) and isinstance(end, Real):
        return start + (end - start) * t
    if len(start) != len(end):
        raise ValueError(f"Cannot interpolate between values of different dimensions: {start} and {end}")
    return tuple(a + (b - a) * t for a, b in zip(start, end))


def _frame_clip(channel: SparseChannel, clip: Optional[ClipWindow]) -> ClipWindow:
    if clip is not None:
        return clip
    max_frame = channel.max_frame or 0
    return ClipWindow(start_frame=0, stride=1, step_count=max_frame + 1)


def _gap_frames(clip: ClipWindow, from_frame: int, to_frame: int) -> List[int]:
    """Step frames lying strictly between the two frames."""
    first_step = clip.frame_to_step(from_frame)
    last_step = clip.frame_to_step(to_frame)
    frames = []
    for step in range(max(first_step, 0), min(last_step, clip.step_count - 1) + 1):
        frame = clip.step_to_frame(step)
        if from_frame < frame < to_frame:
            frames.append(frame)
    return frames


class Interpolator:
    """Fills the gaps between keyframes of a channel by linear interpolation."""

    @staticmethod
    def fill(
        channel: SparseChannel,
        from_frame: int,
        to_frame: int,
        clip: Optional[ClipWindow] = None,
    ) -> int:
        """
        Interpolates every step frame strictly between two keyframes.

        Interpolated samples already in the gap are overwritten, keyframes in the gap are kept.
        Without a clip every frame in the gap is a step.

        :return: Number of samples written
        """
        for frame in (from_frame, to_frame):
            if not channel.is_keyframe(frame):
                raise NotAKeyframe(frame, channel.kind)
        if to_frame <= from_frame:
            raise ValueError(f"Cannot fill from frame {from_frame} to an earlier frame {to_frame}")

        clip = _frame_clip(channel, clip)
        first_step = clip.frame_to_step(from_frame)
        span = clip.frame_to_step(to_frame) - first_step
        if span < 2:
            return 0
        start_value = channel.get(from_frame)
        end_value = channel.get(to_frame)

        written = 0
        for frame in _gap_frames(clip, from_frame, to_frame):
            if channel.is_keyframe(frame):
                continue
            t = (clip.frame_to_step(frame) - first_step) / span
            channel.set(frame, _lerp(start_value, end_value, t), keyframe=False)
            written += 1
        return written

    @staticmethod
    def fill_all(channel: SparseChannel, clip: Optional[ClipWindow] = None) -> int:
        """Fills every gap between consecutive keyframes, in ascending frame order."""
        clip = _frame_clip(channel, clip)
        written = 0
        for from_frame, to_frame in channel.iter_keyframe_pairs():
            written += Interpolator.fill(channel, from_frame, to_frame, clip)
        logger.debug(f"Interpolated {written} sample(s) of the {channel.kind.value} channel")
        return written

    @staticmethod
    def remove_keyframe(channel: SparseChannel, frame: int, clip: Optional[ClipWindow] = None):
        """
        Removes a keyframe together with the interpolated run around it.

        The interpolated samples between the previous and the next keyframe are cleared,
        then the gap is filled again from those two keyframes if both exist.
        """
        if not channel.is_keyframe(frame):
            raise NotAKeyframe(frame, channel.kind)
        clip = _frame_clip(channel, clip)

        keys = channel.keyframes()
        idx = keys.index(frame)
        prev_key = keys[idx - 1] if idx > 0 else None
        next_key = keys[idx + 1] if idx + 1 < len(keys) else None

        channel.remove(frame)
        low = prev_key + 1 if prev_key is not None else frame
        high = next_key - 1 if next_key is not None else frame
        cleared = channel.clear_range(low, high, keep_keyframes=True)
        logger.debug(f"Removed keyframe {frame} and {cleared} interpolated sample(s)")

        if prev_key is not None and next_key is not None:
            Interpolator.fill(channel, prev_key, next_key, clip)
