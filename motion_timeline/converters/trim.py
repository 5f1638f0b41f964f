import logging
from typing import Any, Callable, Dict, Optional, Tuple

from motion_timeline.ir.channel import ChannelKind, RemapPolicy, SparseChannel
from motion_timeline.ir.clip import ClipWindow
from motion_timeline.ir.track import Track

logger = logging.getLogger(__name__)


def _put(result: SparseChannel, new_clip: ClipWindow, step: int, value: Any, keyframe: bool) -> bool:
    if step < 0 or step >= new_clip.step_count:
        return False
    result.set(step, value, keyframe=keyframe)
    return True


def _remap_coordinate_keyframes(old_clip: ClipWindow, new_clip: ClipWindow, channel: SparseChannel) -> SparseChannel:
    result = channel.empty_like()
    for frame, value in channel.items():
        if frame >= new_clip.end_frame and frame > new_clip.start_frame:
            break
        step = max(old_clip.frame_to_step(frame), 0)
        # Keyframes between two steps take effect at the next step
        if frame > new_clip.start_frame and not new_clip.includes(frame):
            step += 1
        _put(result, new_clip, step, value, channel.is_keyframe(frame))
    return result


def _remap_points(old_clip: ClipWindow, new_clip: ClipWindow, channel: SparseChannel) -> SparseChannel:
    result = channel.empty_like()
    skipped = 0
    for frame, value in channel.items():
        if not new_clip.includes(frame) or not _put(
            result, new_clip, old_clip.frame_to_step(frame), value, channel.is_keyframe(frame)
        ):
            skipped += 1
    if skipped:
        logger.debug(f"Dropped {skipped} {channel.kind.value} sample(s) outside of the new clip")
    return result


def _remap_calibration_pairs(old_clip: ClipWindow, new_clip: ClipWindow, channel: SparseChannel) -> SparseChannel:
    result = channel.empty_like()
    for frame, value in channel.items():
        step = max(old_clip.frame_to_step(frame), 0)
        _put(result, new_clip, step, value, channel.is_keyframe(frame))
    return result


def _remap_carried(
    old_clip: ClipWindow, new_clip: ClipWindow, channel: SparseChannel, bounded: bool
) -> SparseChannel:
    result = channel.empty_like()
    if channel.max_frame is None:
        return result

    carry: Optional[int] = None
    for frame in range(0, min(old_clip.end_frame, channel.max_frame + 1) + 1):
        if bounded and frame > new_clip.end_frame:
            break
        if frame in channel:
            carry = frame
        if not new_clip.includes(frame) or carry is None:
            continue
        # The latest value seen, possibly from a frame skipped by the stride
        _put(result, new_clip, old_clip.frame_to_step(frame), channel.get(carry), channel.is_keyframe(carry))
        carry = None
    return result


def _remap_carry_forward(old_clip: ClipWindow, new_clip: ClipWindow, channel: SparseChannel) -> SparseChannel:
    return _remap_carried(old_clip, new_clip, channel, bounded=False)


def _remap_carry_forward_bounded(
    old_clip: ClipWindow, new_clip: ClipWindow, channel: SparseChannel
) -> SparseChannel:
    return _remap_carried(old_clip, new_clip, channel, bounded=True)


_POLICY_HANDLERS: Dict[RemapPolicy, Callable[[ClipWindow, ClipWindow, SparseChannel], SparseChannel]] = {
    RemapPolicy.COORDINATE_KEYFRAME: _remap_coordinate_keyframes,
    RemapPolicy.POINT: _remap_points,
    RemapPolicy.CALIBRATION_PAIR: _remap_calibration_pairs,
    RemapPolicy.CARRY_FORWARD: _remap_carry_forward,
    RemapPolicy.CARRY_FORWARD_BOUNDED: _remap_carry_forward_bounded,
}


class FrameRemapper:
    """
    Re-keys track data from raw frame numbers to the step numbers of a trimmed clip.

    The result of a remap is addressed by :meth:`export_clip`: step ``n`` of the old clip
    becomes frame ``n`` of the exported data.
    """

    @staticmethod
    def remap(
        old_clip: ClipWindow,
        new_clip: ClipWindow,
        channel: SparseChannel,
        policy: Optional[RemapPolicy] = None,
    ) -> SparseChannel:
        """
        Remaps a channel to step numbers. The input channel is not modified.

        :param policy: How to treat frames that are not steps of the new clip.
            Defaults to the policy of the channel's kind.
        """
        policy = policy or channel.kind.policy
        if policy == RemapPolicy.RANGE:
            raise ValueError("Range pairs are not stored per frame, use FrameRemapper.remap_range instead")
        result = _POLICY_HANDLERS[policy](old_clip, new_clip, channel)
        logger.debug(f"Remapped {len(channel)} {channel.kind.value} sample(s) to {len(result)} using {policy.value}")
        return result

    @staticmethod
    def remap_range(
        old_clip: ClipWindow,
        new_clip: ClipWindow,
        start: Optional[int],
        end: Optional[int],
    ) -> Tuple[Optional[int], Optional[int]]:
        """
        Remaps a start/end frame pair. The start rounds up to the next step, the end rounds down.
        Frames at or before 0 and missing values are passed through as they are.
        """
        new_start = start
        if start is not None and start > 0:
            new_start = old_clip.frame_to_step(start)
            if start > new_clip.start_frame and not new_clip.includes(start):
                new_start += 1
            new_start = max(new_start, 0)
        new_end = end
        if end is not None and end > 0:
            new_end = max(old_clip.frame_to_step(end), 0)
        return new_start, new_end

    @staticmethod
    def remap_track(old_clip: ClipWindow, new_clip: ClipWindow, track: Track) -> Track:
        """Remaps every channel of a track with its kind's policy, and the track's validity range."""
        channels = {}
        for kind, channel in track.channels.items():
            if kind == ChannelKind.RANGE_PAIR:
                channels[kind] = FrameRemapper._remap_range_pairs(old_clip, new_clip, channel)
            else:
                # The key decides the policy, the channel may carry a default kind
                remapped = FrameRemapper.remap(old_clip, new_clip, channel, kind.policy)
                remapped.kind = kind
                channels[kind] = remapped
        start_frame, end_frame = FrameRemapper.remap_range(old_clip, new_clip, track.start_frame, track.end_frame)
        return Track(
            track_id=track.track_id,
            name=track.name,
            channels=channels,
            start_frame=start_frame,
            end_frame=end_frame,
        )

    @staticmethod
    def _remap_range_pairs(old_clip: ClipWindow, new_clip: ClipWindow, channel: SparseChannel) -> SparseChannel:
        """Range pair samples are ``(start, end)`` frame pairs, both the key and the pair are remapped."""
        result = channel.empty_like()
        for frame, (start, end) in channel.items():
            step = max(old_clip.frame_to_step(frame), 0)
            pair = FrameRemapper.remap_range(old_clip, new_clip, start, end)
            _put(result, new_clip, step, pair, channel.is_keyframe(frame))
        return result

    @staticmethod
    def export_clip(old_clip: ClipWindow) -> ClipWindow:
        """Clip addressing remapped data: one frame per step of the old clip."""
        return ClipWindow(start_frame=0, stride=1, step_count=old_clip.step_count)

    @staticmethod
    def export_track(clip: ClipWindow, track: Track) -> Tuple[Track, ClipWindow]:
        """
        Exports a track trimmed to a clip.

        :return: The remapped track and the clip that addresses it
        """
        exported = FrameRemapper.remap_track(clip, clip, track)
        logger.info(
            f"Exported track {track.track_id} from frames {clip.start_frame}-{clip.end_frame} "
            f"(stride {clip.stride}) to {clip.step_count} step(s)"
        )
        return exported, FrameRemapper.export_clip(clip)
