from typing import List, Optional

from pydantic import BaseModel, ConfigDict, model_validator
from typing_extensions import Self

from motion_timeline.errors import InvalidClipWindow


class ClipWindow(BaseModel):
    """
    Defines which raw video frames make up a clip and how they map to the clip's steps.

    Step ``n`` of the clip is frame ``start_frame + n * stride``.
    The window is immutable, every ``with_*`` method returns a new window.
    """

    model_config = ConfigDict(frozen=True)

    start_frame: int = 0
    stride: int = 1
    """Number of frames between two consecutive steps."""
    step_count: int = 1
    play_all_steps: bool = False
    """If set, every frame from the start up to ``last_frame`` is part of the clip, aligned or not."""
    last_frame: Optional[int] = None
    """Last recorded frame, used by ``play_all_steps``. Defaults to the end frame."""

    @model_validator(mode="after")
    def _check_window(self) -> Self:
        if self.start_frame < 0 or self.stride < 1 or self.step_count < 1:
            raise InvalidClipWindow(self.start_frame, self.stride, self.step_count)
        return self

    @property
    def end_frame(self) -> int:
        return self.start_frame + self.stride * (self.step_count - 1)

    def frame_to_step(self, frame: int) -> int:
        """
        Converts a frame number to a step number.
        A frame that falls between two steps maps to the previous step,
        frames less than one stride before the start map to step 0 (truncation towards zero).
        """
        delta = frame - self.start_frame
        if delta >= 0:
            return delta // self.stride
        return -(-delta // self.stride)

    def step_to_frame(self, step: int) -> int:
        return self.start_frame + step * self.stride

    def includes(self, frame: int) -> bool:
        """Whether the frame is one of the clip's step frames."""
        if frame < self.start_frame:
            return False
        if self.play_all_steps:
            last = self.last_frame if self.last_frame is not None else self.end_frame
            return frame <= last
        if (frame - self.start_frame) % self.stride != 0:
            return False
        return self.frame_to_step(frame) < self.step_count

    def step_frames(self) -> List[int]:
        return [self.step_to_frame(step) for step in range(self.step_count)]

    def with_start_frame(self, start_frame: int) -> "ClipWindow":
        return self._replace(start_frame=start_frame)

    def with_stride(self, stride: int) -> "ClipWindow":
        return self._replace(stride=stride)

    def with_step_count(self, step_count: int) -> "ClipWindow":
        return self._replace(step_count=step_count)

    def trimmed(self, start_frame: int, end_frame: int) -> "ClipWindow":
        """
        Returns a window with the same stride that covers ``start_frame..end_frame``.

        The end is rounded to the nearest step, rounding down when it lies exactly
        half way between two steps.
        """
        end_frame = max(end_frame, start_frame)
        count, rem = divmod(end_frame - start_frame, self.stride)
        if rem / self.stride > 0.5:
            count += 1
        return self._replace(start_frame=start_frame, step_count=count + 1)

    def _replace(self, **changes) -> "ClipWindow":
        # model_copy(update=...) skips validation
        values = self.model_dump()
        values.update(changes)
        return ClipWindow(**values)
