import pytest

from motion_timeline.engine import Interpolator
from motion_timeline.errors import NotAKeyframe
from motion_timeline.ir import ChannelKind, ClipWindow, SparseChannel


@pytest.fixture
def two_keys() -> SparseChannel:
    return SparseChannel.from_list([0.0, None, None, None, 8.0])


class TestFill:
    def test_linear_fill(self, two_keys):
        written = Interpolator.fill(two_keys, 0, 4)

        assert written == 3
        assert two_keys.to_list() == [0.0, 2.0, 4.0, 6.0, 8.0]
        assert two_keys.keyframes() == [0, 4]

    def test_fill_is_idempotent(self, two_keys):
        Interpolator.fill(two_keys, 0, 4)
        first = two_keys.items()

        Interpolator.fill(two_keys, 0, 4)

        assert two_keys.items() == first
        assert two_keys.keyframes() == [0, 4]

    def test_fill_respects_stride(self):
        channel = SparseChannel.from_list([0.0] + [None] * 7 + [8.0])
        clip = ClipWindow(start_frame=0, stride=2, step_count=5)

        Interpolator.fill(channel, 0, 8, clip)

        assert channel.frames() == [0, 2, 4, 6, 8]
        assert channel.get(2) == 2.0
        assert channel.get(6) == 6.0

    def test_fill_vectors(self):
        channel = SparseChannel.from_list([(0.0, 10.0), None, (4.0, 6.0)])

        Interpolator.fill(channel, 0, 2)

        assert channel.get(1) == (2.0, 8.0)

    def test_fill_overwrites_interpolated_but_keeps_keyframes(self):
        channel = SparseChannel.from_list([0.0, 99.0, 100.0, None, 8.0], keyframes=[0, 2, 4])

        Interpolator.fill(channel, 0, 4)

        assert channel.get(1) == 2.0
        assert channel.get(2) == 100.0
        assert channel.get(3) == 6.0
        assert channel.is_keyframe(2)

    def test_adjacent_keyframes_are_noop(self):
        channel = SparseChannel.from_list([0.0, 1.0])
        assert Interpolator.fill(channel, 0, 1) == 0

    def test_non_keyframe_endpoint_raises(self, two_keys):
        with pytest.raises(NotAKeyframe) as exc_info:
            Interpolator.fill(two_keys, 0, 3)
        assert exc_info.value.frame == 3

    def test_reversed_endpoints_raise(self, two_keys):
        with pytest.raises(ValueError):
            Interpolator.fill(two_keys, 4, 0)

    def test_mismatched_dimensions_raise(self):
        channel = SparseChannel.from_list([(0.0, 1.0), None, (1.0, 2.0, 3.0)])
        with pytest.raises(ValueError):
            Interpolator.fill(channel, 0, 2)


class TestFillAll:
    def test_fills_every_gap(self):
        channel = SparseChannel.from_list([0.0, None, 2.0, None, None, 8.0])

        written = Interpolator.fill_all(channel)

        assert written == 3
        assert channel.to_list() == pytest.approx([0.0, 1.0, 2.0, 4.0, 6.0, 8.0])

    def test_no_keyframes(self):
        channel = SparseChannel(kind=ChannelKind.POSITION)
        assert Interpolator.fill_all(channel) == 0


class TestRemoveKeyframe:
    def test_inner_keyframe_refills_gap(self):
        channel = SparseChannel.from_list([0.0, None, None, None, 4.0, None, None, None, 0.0])
        Interpolator.fill_all(channel)
        assert channel.get(2) == 2.0

        Interpolator.remove_keyframe(channel, 4)

        assert channel.keyframes() == [0, 8]
        assert channel.to_list() == [0.0] * 9
        assert not channel.is_keyframe(4)

    def test_last_keyframe_clears_tail(self):
        channel = SparseChannel.from_list([0.0, None, None, None, 4.0, None, None, None, 0.0])
        Interpolator.fill_all(channel)

        Interpolator.remove_keyframe(channel, 8)

        assert channel.keyframes() == [0, 4]
        assert channel.frames() == [0, 1, 2, 3, 4]

    def test_first_keyframe_clears_head(self):
        channel = SparseChannel.from_list([0.0, None, 2.0, None, 4.0])
        Interpolator.fill_all(channel)

        Interpolator.remove_keyframe(channel, 0)

        assert channel.frames() == [2, 3, 4]

    def test_remove_non_keyframe_raises(self, two_keys):
        Interpolator.fill(two_keys, 0, 4)
        with pytest.raises(NotAKeyframe):
            Interpolator.remove_keyframe(two_keys, 2)
