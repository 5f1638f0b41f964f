import pytest

from motion_timeline.ir import ChannelKind, ClipWindow, SparseChannel


@pytest.fixture
def epsilon() -> float:
    return 1e-6


@pytest.fixture
def clip() -> ClipWindow:
    return ClipWindow(start_frame=0, stride=1, step_count=10)


@pytest.fixture
def squares() -> SparseChannel:
    """Positions x = f^2 at frames 0..9, constant acceleration of 2."""
    return SparseChannel.from_list([float(f * f) for f in range(10)], ChannelKind.POSITION)
