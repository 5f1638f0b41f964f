"""
Bounce detection for the bounce-aware derivative algorithm.

A bounce is a step where the motion reverses abruptly, e.g. a ball hitting the floor.
Symmetric stencils would average the velocity across it, so the derivative engine
keeps its stencils on one side of every bounce found here.
"""
import bisect
import logging
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from motion_timeline.engine.stencils import PositionSamples, central_velocity, one_sided_velocity

logger = logging.getLogger(__name__)


class StencilSide(Enum):
    CENTRAL = "central"
    BACKWARD = "backward"
    FORWARD = "forward"


def _step_velocity(samples: PositionSamples, step: int, dim: int) -> Optional[float]:
    """Velocity between ``step - 1`` and ``step``."""
    velocity = one_sided_velocity(samples, step, 1, forward=False)
    return None if velocity is None else velocity[dim]


def is_bounce(samples: PositionSamples, step: int, spill: int, sharpness: float) -> bool:
    """
    A step is a bounce when, for some component, the symmetric velocity one step before it
    and one step after it have opposite signs and the velocity jumps at the step by at least
    ``sharpness`` times the velocity change at the neighboring steps.

    The sharpness check keeps a smooth turning point (the top of a throw) from being taken for a bounce.
    """
    if not samples.has(step):
        return False
    before = central_velocity(samples, step - 1, spill)
    after = central_velocity(samples, step + 1, spill)
    if before is None or after is None:
        return False

    for dim, (v_before, v_after) in enumerate(zip(before, after)):
        if v_before * v_after >= 0:
            continue
        incoming = _step_velocity(samples, step, dim)
        outgoing = _step_velocity(samples, step + 1, dim)
        if incoming is None or outgoing is None:
            continue
        jump = abs(outgoing - incoming)
        if jump == 0:
            continue

        neighbor_changes = []
        earlier = _step_velocity(samples, step - 1, dim)
        if earlier is not None:
            neighbor_changes.append(abs(incoming - earlier))
        later = _step_velocity(samples, step + 2, dim)
        if later is not None:
            neighbor_changes.append(abs(later - outgoing))

        if not neighbor_changes or jump >= sharpness * max(neighbor_changes):
            return True
    return False


def find_bounces(samples: PositionSamples, steps: Iterable[int], spill: int, sharpness: float) -> List[int]:
    """Bounce steps among ``steps``, in ascending order."""
    bounces = sorted(step for step in set(steps) if is_bounce(samples, step, spill, sharpness))
    if bounces:
        logger.debug(f"Found bounces at steps {bounces}")
    return bounces


def enclosing_bounces(bounces: Sequence[int], step: int) -> Tuple[Optional[int], Optional[int]]:
    """Closest bounce at or before the step, and closest bounce after it."""
    idx = bisect.bisect_right(bounces, step)
    left = bounces[idx - 1] if idx > 0 else None
    right = bounces[idx] if idx < len(bounces) else None
    return left, right


def pick_side(step: int, half_width: int, reach: int, bounces: Sequence[int]) -> Optional[StencilSide]:
    """
    Chooses the stencil for a step so it never crosses a bounce.
    A stencil may end on a bounce, since the sample there belongs to both sides of it.

    :param half_width: Half width of the symmetric stencil
    :param reach: Length of a one-sided stencil
    :return: ``None`` if no stencil fits between the surrounding bounces
    """
    left, right = enclosing_bounces(bounces, step)

    def fits(low: int, high: int) -> bool:
        return (left is None or low >= left) and (right is None or high <= right)

    if step != left:
        if fits(step - half_width, step + half_width):
            return StencilSide.CENTRAL
        if fits(step - reach, step):
            return StencilSide.BACKWARD
    if fits(step, step + reach):
        return StencilSide.FORWARD
    return None
