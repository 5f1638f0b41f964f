from enum import Enum
from typing import Any, Dict, Generic, Iterator, List, Optional, Sequence, Set, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, model_validator
from typing_extensions import Self

T = TypeVar("T")


class RemapPolicy(Enum):
    """How a channel is re-keyed when its track is exported under a different clip window"""

    COORDINATE_KEYFRAME = "coordinate_keyframe"
    """Rounds unaligned frames up, always keeps a value at step 0"""
    POINT = "point"
    """Keeps only frames that are steps of the new clip"""
    CALIBRATION_PAIR = "calibration_pair"
    """Keeps every keyframe, frames before the start collapse onto step 0"""
    CARRY_FORWARD = "carry_forward"
    """Carries the latest value across stride gaps"""
    CARRY_FORWARD_BOUNDED = "carry_forward_bounded"
    """Like CARRY_FORWARD, but stops at the end of the new clip"""
    RANGE = "range"
    """Start/end frame pair, start rounds up and end rounds down"""


class ChannelKind(Enum):
    POSITION = "position"
    VELOCITY = "velocity"
    ACCELERATION = "acceleration"
    COORDINATE_SYSTEM = "coordinate_system"
    """Origin/angle/scale keyframes of the reference frame"""
    CALIBRATION_PAIR = "calibration_pair"
    TAPE_LENGTH = "tape_length"
    ANGLE = "angle"
    FITTED_CIRCLE = "fitted_circle"
    RANGE_PAIR = "range_pair"

    @property
    def policy(self) -> RemapPolicy:
        return _KIND_POLICIES[self]


_KIND_POLICIES: Dict[ChannelKind, RemapPolicy] = {
    ChannelKind.POSITION: RemapPolicy.POINT,
    ChannelKind.VELOCITY: RemapPolicy.POINT,
    ChannelKind.ACCELERATION: RemapPolicy.POINT,
    ChannelKind.FITTED_CIRCLE: RemapPolicy.POINT,
    ChannelKind.COORDINATE_SYSTEM: RemapPolicy.COORDINATE_KEYFRAME,
    ChannelKind.CALIBRATION_PAIR: RemapPolicy.CALIBRATION_PAIR,
    ChannelKind.TAPE_LENGTH: RemapPolicy.CARRY_FORWARD,
    ChannelKind.ANGLE: RemapPolicy.CARRY_FORWARD_BOUNDED,
    ChannelKind.RANGE_PAIR: RemapPolicy.RANGE,
}


class SparseChannel(BaseModel, Generic[T]):
    """
    Per-frame samples of one quantity of a track.

    Most frames have no sample. Frames in ``keyframe_set`` hold explicitly authored values,
    every other present sample was interpolated or derived.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: ChannelKind = ChannelKind.POSITION
    samples: Dict[int, T] = {}
    keyframe_set: Set[int] = set()

    @model_validator(mode="after")
    def _check_frames(self) -> Self:
        negative = [frame for frame in self.samples if frame < 0]
        if negative:
            raise ValueError(f"Frame numbers must be >= 0, got {sorted(negative)}")
        orphaned = self.keyframe_set - self.samples.keys()
        if orphaned:
            raise ValueError(f"Keyframes {sorted(orphaned)} have no value")
        return self

    @staticmethod
    def from_list(
        values: Sequence[Optional[Any]],
        kind: ChannelKind = ChannelKind.POSITION,
        keyframes: Optional[Sequence[int]] = None,
    ) -> "SparseChannel":
        """
        Builds a channel from a dense list indexed by frame, ``None`` marks a missing sample.
        All present samples are keyframes unless ``keyframes`` is given.
        """
        samples = {frame: value for frame, value in enumerate(values) if value is not None}
        keyframe_set = set(samples) if keyframes is None else set(keyframes)
        return SparseChannel(kind=kind, samples=samples, keyframe_set=keyframe_set)

    def get(self, frame: int, default: Optional[T] = None) -> Optional[T]:
        return self.samples.get(frame, default)

    def set(self, frame: int, value: Optional[T], keyframe: bool = True):
        """Sets the sample at a frame. Setting ``None`` removes the sample."""
        if value is None:
            self.remove(frame)
            return
        if frame < 0:
            raise ValueError(f"Frame numbers must be >= 0, got {frame}")
        self.samples[frame] = value
        if keyframe:
            self.keyframe_set.add(frame)
        else:
            self.keyframe_set.discard(frame)

    def remove(self, frame: int) -> Optional[T]:
        self.keyframe_set.discard(frame)
        return self.samples.pop(frame, None)

    def clear_range(self, start_frame: int, end_frame: int, keep_keyframes: bool = False) -> int:
        """Removes the samples in ``start_frame..end_frame`` (inclusive), returns how many were removed."""
        to_remove = [
            frame
            for frame in self.samples
            if start_frame <= frame <= end_frame and not (keep_keyframes and frame in self.keyframe_set)
        ]
        for frame in to_remove:
            self.remove(frame)
        return len(to_remove)

    def keyframes(self) -> List[int]:
        return sorted(self.keyframe_set)

    def is_keyframe(self, frame: int) -> bool:
        return frame in self.keyframe_set

    def frames(self) -> List[int]:
        return sorted(self.samples)

    def items(self) -> List[Tuple[int, T]]:
        return [(frame, self.samples[frame]) for frame in self.frames()]

    @property
    def max_frame(self) -> Optional[int]:
        return max(self.samples) if self.samples else None

    def to_list(self, length: Optional[int] = None) -> List[Optional[T]]:
        """Dense list indexed by frame, sized ``max_frame + 1`` unless ``length`` is given."""
        if length is None:
            length = 0 if self.max_frame is None else self.max_frame + 1
        return [self.samples.get(frame) for frame in range(length)]

    def copy_channel(self) -> "SparseChannel":
        return self.model_copy(deep=True)

    def empty_like(self, kind: Optional[ChannelKind] = None) -> "SparseChannel":
        return SparseChannel(kind=kind or self.kind)

    def __len__(self) -> int:
        return len(self.samples)

    def __contains__(self, frame: object) -> bool:
        return frame in self.samples

    def iter_keyframe_pairs(self) -> Iterator[Tuple[int, int]]:
        keys = self.keyframes()
        return zip(keys, keys[1:])
