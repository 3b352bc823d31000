"""
Input validation and normalization for batch planning.

Everything here runs before any catalog access so malformed requests
fail fast with a typed error instead of a silent default.
"""

import math
from datetime import date, timedelta
from typing import Iterable, Optional

import structlog

from config import settings
from exceptions import (
    DuplicateConstraintError,
    InvalidDateRangeError,
    InvalidFixedQuantityError,
)
from models.batch_planning import BatchPlanRequest, CandidateVariant, ProductConstraint
from services.capacity_service import check_control_value

logger = structlog.get_logger(__name__)


def validate_constraints(constraints: Iterable[ProductConstraint]) -> dict[str, ProductConstraint]:
    """
    Check user overrides and index them by variant code.

    Raises:
        DuplicateConstraintError: Same variant listed twice
        InvalidFixedQuantityError: Fixed variant without a usable quantity
    """
    by_code: dict[str, ProductConstraint] = {}
    for constraint in constraints:
        if constraint.variant_code in by_code:
            raise DuplicateConstraintError(constraint.variant_code)
        if constraint.is_fixed:
            quantity = constraint.fixed_quantity
            if quantity is None or not math.isfinite(quantity) or quantity < 0:
                raise InvalidFixedQuantityError(constraint.variant_code, quantity)
        by_code[constraint.variant_code] = constraint
    return by_code


def resolve_sales_window(
    from_date: Optional[date],
    to_date: Optional[date],
    today: Optional[date] = None,
) -> tuple[date, date]:
    """
    Fill in the consumption-history window.

    Defaults: to_date = today, and from_date such that the window holds
    batch_sales_window_days dates, both ends included.

    Raises:
        InvalidDateRangeError: from_date after to_date
    """
    end = to_date or today or date.today()
    start = from_date or end - timedelta(days=settings.batch_sales_window_days - 1)
    if start > end:
        raise InvalidDateRangeError(start.isoformat(), end.isoformat())
    return start, end


def validate_plan_request(request: BatchPlanRequest) -> dict[str, ProductConstraint]:
    """
    Validate a recompute request.

    Args:
        request: Incoming request

    Returns:
        Constraints indexed by variant code

    Raises:
        InvalidControlValueError, DuplicateConstraintError,
        InvalidFixedQuantityError, InvalidDateRangeError
    """
    check_control_value(request.control_mode, request.control_value)
    if request.from_date and request.to_date and request.from_date > request.to_date:
        raise InvalidDateRangeError(request.from_date.isoformat(), request.to_date.isoformat())
    return validate_constraints(request.constraints)


def apply_constraints(
    candidates: Iterable[CandidateVariant],
    constraints: dict[str, ProductConstraint],
) -> tuple[CandidateVariant, ...]:
    """
    Overlay user overrides on a fresh catalog snapshot.

    The snapshot itself is never modified; overridden candidates are
    copies. Constraints naming variants outside the family are ignored.
    """
    candidates = tuple(candidates)
    known = {c.code for c in candidates}
    unknown = sorted(code for code in constraints if code not in known)
    if unknown:
        logger.warning("constraints_for_unknown_variants_ignored", variant_codes=unknown)

    result = []
    for candidate in candidates:
        constraint = constraints.get(candidate.code)
        if constraint is None:
            result.append(candidate)
        elif constraint.is_fixed:
            result.append(candidate.model_copy(update={
                "is_fixed": True,
                "fixed_quantity": constraint.fixed_quantity,
            }))
        else:
            result.append(candidate.model_copy(update={
                "is_fixed": False,
                "fixed_quantity": None,
            }))
    return tuple(result)
