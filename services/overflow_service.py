"""
Overflow detection for batch allocations.

Shared by both overflow branches of the allocator (fixed quantities
over capacity, minimums exhausting capacity) and by post-hoc checks of
quantities the user edited after recompute.
"""

from typing import Iterable

import structlog

from models.batch_planning import OverflowReport

logger = structlog.get_logger(__name__)

# Percentages are reported with this many decimals; the overflow verdict
# is taken on the reported value so 100.0 is never flagged by float noise.
PERCENTAGE_DECIMALS = 4


def detect_overflow(
    capacity: float,
    fixed_sum: float,
    final_allocations: Iterable[float],
) -> OverflowReport:
    """
    Compare fixed plus allocated quantities against capacity.

    overflow_percentage = (fixed_sum + sum(final_allocations)) / capacity x 100
    is_overflow = overflow_percentage > 100

    Args:
        capacity: Resolved batch capacity (> 0)
        fixed_sum: Sum of user-fixed quantities
        final_allocations: Quantities of the non-fixed lines

    Returns:
        OverflowReport

    Raises:
        ValueError: If capacity is not positive
    """
    if capacity <= 0:
        raise ValueError(f"capacity must be positive, got {capacity}")

    total = fixed_sum + sum(final_allocations)
    percentage = round(total / capacity * 100, PERCENTAGE_DECIMALS)
    is_overflow = percentage > 100
    deficit = total - capacity if is_overflow else 0.0

    if is_overflow:
        logger.debug(
            "overflow_detected",
            capacity=capacity,
            total=total,
            overflow_percentage=percentage
        )

    return OverflowReport(
        capacity=capacity,
        total_quantity=total,
        is_overflow=is_overflow,
        overflow_percentage=percentage,
        deficit=deficit,
    )
