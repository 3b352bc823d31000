"""
Capacity resolution for batch planning.

Turns the user-selected control mode and value into the single target
quantity the allocator distributes. Pure functions, no I/O.
"""

import math
from typing import Iterable, Optional

import structlog

from exceptions import InvalidControlValueError
from models.batch_planning import CandidateVariant, ControlMode, SemiProductInfo

logger = structlog.get_logger(__name__)


def check_control_value(control_mode: ControlMode, control_value: Optional[float]) -> float:
    """Reject missing, non-numeric, non-finite and non-positive control values."""
    if control_value is None:
        raise InvalidControlValueError(control_mode.value, control_value, "value is required")
    if isinstance(control_value, bool) or not isinstance(control_value, (int, float)):
        raise InvalidControlValueError(control_mode.value, control_value, "value must be numeric")
    if not math.isfinite(control_value):
        raise InvalidControlValueError(control_mode.value, control_value, "value must be finite")
    if control_value <= 0:
        raise InvalidControlValueError(control_mode.value, control_value, "value must be greater than 0")
    return float(control_value)


def resolve_capacity(
    semi_product: SemiProductInfo,
    control_mode: ControlMode,
    control_value: Optional[float],
    candidates: Iterable[CandidateVariant] = (),
) -> float:
    """
    Resolve the batch capacity.

    - MMQ_MULTIPLIER: semi-product MMQ x control_value
    - TOTAL_WEIGHT: control_value as-is (production unit, e.g. grams)
    - TARGET_DAYS_COVERAGE: sum of daily consumption rates x control_value days

    Args:
        semi_product: Semi-product metadata
        control_mode: Selected control mode
        control_value: Multiplier, weight or day count
        candidates: Candidate variants (needed for coverage mode)

    Returns:
        Capacity, always > 0

    Raises:
        InvalidControlValueError: Non-positive value or missing mode metadata
    """
    value = check_control_value(control_mode, control_value)

    if control_mode == ControlMode.MMQ_MULTIPLIER:
        mmq = semi_product.minimal_manufacturing_quantity
        if not mmq:
            raise InvalidControlValueError(
                control_mode.value,
                control_value,
                f"semi-product {semi_product.code} has no minimal manufacturing quantity"
            )
        capacity = mmq * value

    elif control_mode == ControlMode.TOTAL_WEIGHT:
        capacity = value

    elif control_mode == ControlMode.TARGET_DAYS_COVERAGE:
        rates = [
            c.daily_consumption_rate
            for c in candidates
            if c.daily_consumption_rate is not None
        ]
        capacity = sum(rate * value for rate in rates)
        if capacity <= 0:
            raise InvalidControlValueError(
                control_mode.value,
                control_value,
                "no consumption rate data for candidates"
            )

    else:  # pragma: no cover - enum is exhaustive
        raise InvalidControlValueError(str(control_mode), control_value, "unknown control mode")

    logger.debug(
        "capacity_resolved",
        semi_product_code=semi_product.code,
        control_mode=control_mode.value,
        control_value=value,
        capacity=capacity
    )
    return capacity
