import pytest

from motion_timeline.engine import DerivativeAlgorithm, DerivativeEngine, DerivativeParams
from motion_timeline.engine.stencils import quadratic_weights
from motion_timeline.ir import ChannelKind, ClipWindow, SparseChannel
from motion_timeline.util.timing import uniform_frame_time


class TestQuadraticWeights:
    def test_spill_one(self):
        assert quadratic_weights(1) == pytest.approx([1.0, -2.0, 1.0])

    def test_spill_two(self):
        assert quadratic_weights(2) == pytest.approx([2 / 7, -1 / 7, -2 / 7, -1 / 7, 2 / 7])


class TestFiniteDiff:
    def test_velocity_spill_one(self, squares, clip):
        params = DerivativeParams(spill=1)

        velocity, _ = DerivativeEngine.recompute(squares, clip, params)

        assert velocity.frames() == list(range(1, 9))
        for frame in velocity.frames():
            assert velocity.get(frame) == pytest.approx(2.0 * frame)
        assert velocity.kind == ChannelKind.VELOCITY
        assert velocity.keyframes() == []

    def test_acceleration_least_squares(self, squares, clip):
        _, acceleration = DerivativeEngine.recompute(squares, clip, DerivativeParams())

        assert acceleration.frames() == list(range(2, 8))
        for frame in acceleration.frames():
            assert acceleration.get(frame) == pytest.approx(2.0)

    def test_acceleration_spill_one(self, squares, clip):
        _, acceleration = DerivativeEngine.recompute(squares, clip, DerivativeParams(acceleration_spill=1))

        assert acceleration.frames() == list(range(1, 9))
        assert acceleration.get(1) == pytest.approx(2.0)

    def test_fixed_velocity_spill_two(self, squares, clip):
        params = DerivativeParams(spill=1, algorithm=DerivativeAlgorithm.FINITE_DIFF_VSPILL2)

        velocity, _ = DerivativeEngine.recompute(squares, clip, params)

        assert velocity.frames() == list(range(2, 8))
        assert velocity.get(4) == pytest.approx(8.0)

    def test_missing_sample_leaves_stencil_undefined(self, squares, clip):
        squares.remove(5)

        velocity, acceleration = DerivativeEngine.recompute(squares, clip, DerivativeParams(spill=1))

        for frame in (4, 5, 6):
            assert frame not in velocity
        assert 3 in velocity
        assert 7 in velocity
        for frame in (3, 4, 5, 6, 7):
            assert frame not in acceleration

    def test_stride(self):
        position = SparseChannel.from_list([float(f * f) for f in range(9)])
        clip = ClipWindow(start_frame=0, stride=2, step_count=5)

        velocity, acceleration = DerivativeEngine.recompute(position, clip, DerivativeParams(spill=1))

        assert velocity.frames() == [2, 4, 6]
        assert velocity.get(4) == pytest.approx(8.0)
        assert acceleration.frames() == [4]
        assert acceleration.get(4) == pytest.approx(2.0)

    def test_frames_outside_clip_are_ignored(self, squares):
        squares.set(0, 1000.0)
        clip = ClipWindow(start_frame=1, stride=1, step_count=9)

        velocity, _ = DerivativeEngine.recompute(squares, clip, DerivativeParams(spill=1))

        assert 1 not in velocity
        assert velocity.get(2) == pytest.approx(4.0)

    def test_frame_time(self):
        position = SparseChannel.from_list([float(f) for f in range(5)])
        clip = ClipWindow(start_frame=0, stride=1, step_count=5)

        velocity, _ = DerivativeEngine.recompute(
            position, clip, DerivativeParams(spill=1), frame_time=uniform_frame_time(10.0)
        )

        assert velocity.get(2) == pytest.approx(10.0)

    def test_vector_positions(self, clip):
        position = SparseChannel.from_list([(float(f), 2.0 * f) for f in range(10)])

        velocity, acceleration = DerivativeEngine.recompute(position, clip, DerivativeParams(spill=1))

        assert velocity.get(5) == pytest.approx((1.0, 2.0))
        assert acceleration.get(5) == pytest.approx((0.0, 0.0))

    def test_degenerate_clip_has_no_output(self, squares):
        clip = ClipWindow(start_frame=0, stride=1, step_count=2)

        velocity, acceleration = DerivativeEngine.recompute(squares, clip, DerivativeParams(spill=1))

        assert len(velocity) == 0
        assert len(acceleration) == 0

    def test_recompute_is_deterministic(self, squares, clip):
        first = DerivativeEngine.recompute(squares, clip, DerivativeParams())
        second = DerivativeEngine.recompute(squares, clip, DerivativeParams())

        assert first[0].items() == second[0].items()
        assert first[1].items() == second[1].items()


class TestRecomputeRange:
    def test_sub_ranges_match_full_recompute(self, squares, clip):
        params = DerivativeParams(spill=1)
        full_velocity, full_acceleration = DerivativeEngine.recompute(squares, clip, params)

        velocity = SparseChannel(kind=ChannelKind.VELOCITY)
        acceleration = SparseChannel(kind=ChannelKind.ACCELERATION)
        DerivativeEngine.recompute(squares, clip, params, 5, 5, velocity=velocity, acceleration=acceleration)
        DerivativeEngine.recompute(squares, clip, params, 0, 5, velocity=velocity, acceleration=acceleration)

        assert velocity.items() == full_velocity.items()
        assert acceleration.items() == full_acceleration.items()

    def test_frames_outside_range_are_untouched(self, squares, clip):
        velocity = SparseChannel(kind=ChannelKind.VELOCITY)
        velocity.set(1, -1.0, keyframe=False)
        velocity.set(4, -1.0, keyframe=False)

        DerivativeEngine.recompute(squares, clip, DerivativeParams(spill=1), 3, 2, velocity=velocity)

        assert velocity.get(1) == -1.0
        assert velocity.get(4) == pytest.approx(8.0)
        assert velocity.frames() == [1, 3, 4]

    def test_range_clears_stale_values(self, squares, clip):
        velocity = SparseChannel(kind=ChannelKind.VELOCITY)
        velocity.set(0, 123.0, keyframe=False)

        DerivativeEngine.recompute(squares, clip, DerivativeParams(spill=1), 0, 2, velocity=velocity)

        assert 0 not in velocity
        assert velocity.frames() == [1]

    def test_unaligned_start_rounds_up(self, squares):
        clip = ClipWindow(start_frame=0, stride=2, step_count=5)

        velocity, _ = DerivativeEngine.recompute(squares, clip, DerivativeParams(spill=1), 3, 1)

        assert velocity.frames() == [4]

    def test_dirty_range_recompute_matches_full(self, squares, clip):
        params = DerivativeParams(spill=1)
        velocity, acceleration = DerivativeEngine.recompute(squares, clip, params)

        squares.set(5, 0.0)
        start_frame, step_count = DerivativeEngine.dirty_range(clip, 5, params)
        DerivativeEngine.recompute(
            squares, clip, params, start_frame, step_count, velocity=velocity, acceleration=acceleration
        )

        expected_velocity, expected_acceleration = DerivativeEngine.recompute(squares, clip, params)
        assert velocity.items() == expected_velocity.items()
        assert acceleration.items() == expected_acceleration.items()


class TestDirtyRange:
    def test_middle_of_clip(self):
        clip = ClipWindow(start_frame=0, stride=1, step_count=20)
        assert DerivativeEngine.dirty_range(clip, 10, DerivativeParams(spill=1, acceleration_spill=2)) == (6, 9)

    def test_clipped_to_window(self):
        clip = ClipWindow(start_frame=0, stride=1, step_count=20)
        params = DerivativeParams(spill=1, acceleration_spill=2)

        assert DerivativeEngine.dirty_range(clip, 1, params) == (0, 6)
        assert DerivativeEngine.dirty_range(clip, 19, params) == (15, 5)

    def test_strided_clip(self):
        clip = ClipWindow(start_frame=3, stride=2, step_count=20)
        params = DerivativeParams(spill=1, acceleration_spill=1)

        assert DerivativeEngine.dirty_range(clip, 11, params) == (7, 5)

    def test_bounce_detection_widens_range(self):
        clip = ClipWindow(start_frame=0, stride=1, step_count=40)
        finite = DerivativeEngine.dirty_range(clip, 20, DerivativeParams(spill=2))
        bounce = DerivativeEngine.dirty_range(
            clip, 20, DerivativeParams(spill=2, algorithm=DerivativeAlgorithm.BOUNCE_DETECT)
        )

        assert bounce[1] > finite[1]
