"""
Packaging rounding policy.

Allocations are rounded to the semi-product's packaging unit once the
allocator has converged, never during intermediate steps.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from config import settings


class RoundingMode(str, Enum):
    """Direction used when snapping to the packaging unit."""
    NEAREST = "nearest"
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class RoundingPolicy:
    """
    Round quantities to a multiple of ``granularity``.

    A policy without granularity returns values unchanged.
    Results are never negative.
    """

    granularity: Optional[float] = None
    mode: RoundingMode = RoundingMode.NEAREST

    def apply(self, value: float) -> float:
        if not self.granularity or value <= 0:
            return max(value, 0.0)

        # Trim float noise so exact multiples stay put under UP/DOWN
        units = round(value / self.granularity, 9)
        if self.mode == RoundingMode.UP:
            steps = math.ceil(units)
        elif self.mode == RoundingMode.DOWN:
            steps = math.floor(units)
        else:
            # Half away from zero, not banker's rounding
            steps = math.floor(units + 0.5)

        return max(round(steps * self.granularity, 9), 0.0)

    def apply_within(
        self,
        values: Sequence[float],
        budget: float,
        minimums: Optional[Sequence[float]] = None,
    ) -> list[float]:
        """
        Round every value without letting the total exceed ``budget``.

        Values are rounded one by one first. While the total is over the
        budget, lines that were rounded up drop back one unit, the largest
        upward adjustment first. Lines that would fall under their minimum
        drop last. Rounding every line down never exceeds a budget the
        unrounded values fit in, so the loop always ends within budget.

        Args:
            values: Converged quantities
            budget: Room left for these lines
            minimums: Per-line floors, aligned with ``values``

        Returns:
            Rounded quantities aligned with ``values``
        """
        rounded = [self.apply(v) for v in values]
        if not self.granularity:
            return rounded

        minimums = minimums or [0.0] * len(values)
        rounded_up = sorted(
            (i for i, (r, v) in enumerate(zip(rounded, values)) if r > v),
            key=lambda i: (
                rounded[i] - self.granularity < minimums[i],
                -(rounded[i] - values[i]),
                i,
            ),
        )
        for i in rounded_up:
            if round(sum(rounded) - budget, 9) <= 0:
                break
            rounded[i] = max(round(rounded[i] - self.granularity, 9), 0.0)

        return rounded


NO_ROUNDING = RoundingPolicy()


def resolve_rounding_policy(packaging_granularity: Optional[float]) -> RoundingPolicy:
    """
    Build the policy for a semi-product family.

    Uses the family's packaging unit, falling back to the configured
    default unit; the mode always comes from settings.

    Args:
        packaging_granularity: Packaging unit from the catalog, if any

    Returns:
        RoundingPolicy (NO_ROUNDING when no unit is known)
    """
    granularity = packaging_granularity or settings.batch_default_granularity
    if not granularity:
        return NO_ROUNDING
    return RoundingPolicy(
        granularity=granularity,
        mode=RoundingMode(settings.batch_default_rounding_mode)
    )
