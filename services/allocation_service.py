"""
Proportional allocation of batch capacity — Core business logic.

Distributes the capacity left after user-fixed quantities across the
free variants in proportion to their weight factor, raising any variant
whose share falls below its minimal manufacturing quantity (MMQ) to that
floor and redistributing the rest (iterative water-filling).

Infeasible inputs are reported in the result, never raised:
- fixed quantities alone over capacity: free lines get 0, fixed lines flagged
- free minimums add up to more than the remainder: floors are filled in
  the order water-filling would raise them, the first floor that does not
  fit gets what is left, and every line short of its floor is flagged

Before packaging rounding, every line is non-decreasing in capacity.
"""

import math
from collections import defaultdict
from typing import Iterable, Optional, Sequence

import structlog

from models.batch_planning import (
    AllocationNote,
    AllocationResult,
    CandidateAllocation,
    CandidateVariant,
    Infeasibility,
)
from services.overflow_service import detect_overflow
from services.rounding import NO_ROUNDING, RoundingPolicy

logger = structlog.get_logger(__name__)


def _proportional_shares(remaining: float, candidates: Sequence[CandidateVariant]) -> list[float]:
    """Split ``remaining`` by weight factor; all-zero weights get nothing."""
    total_weight = sum(c.weight_factor for c in candidates)
    if total_weight <= 0 or remaining <= 0:
        return [0.0] * len(candidates)
    return [remaining * c.weight_factor / total_weight for c in candidates]


def _coverage(candidate: CandidateVariant, quantity: float) -> tuple[Optional[float], Optional[float]]:
    """Stock and days of coverage after producing ``quantity``."""
    if candidate.current_stock is None:
        return None, None
    future_stock = candidate.current_stock + quantity
    if not candidate.daily_consumption_rate:
        return future_stock, None
    return future_stock, round(future_stock / candidate.daily_consumption_rate, 1)


def _line(
    candidate: CandidateVariant,
    quantity: float,
    note: AllocationNote,
    is_below_minimum: bool = False,
    is_fixed_and_overflowing: bool = False,
) -> CandidateAllocation:
    future_stock, future_days = _coverage(candidate, quantity)
    return CandidateAllocation(
        code=candidate.code,
        display_name=candidate.display_name,
        is_fixed=candidate.is_fixed,
        minimal_manufacturing_quantity=candidate.minimal_manufacturing_quantity,
        weight_factor=candidate.weight_factor,
        shelf_life_days=candidate.shelf_life_days,
        allocated_quantity=quantity,
        is_below_minimum=is_below_minimum,
        is_fixed_and_overflowing=is_fixed_and_overflowing,
        was_optimized=not candidate.is_fixed,
        note=note,
        future_stock=future_stock,
        future_days_coverage=future_days,
    )


def _priority(candidate: CandidateVariant) -> float:
    """MMQ per unit of weight; the higher it is, the sooner the floor binds."""
    mmq = candidate.minimal_manufacturing_quantity
    if candidate.weight_factor <= 0:
        return math.inf if mmq > 0 else 0.0
    return mmq / candidate.weight_factor


def _fill_minimums(
    remaining: float,
    free: Sequence[CandidateVariant],
) -> tuple[list[float], list[AllocationNote]]:
    """
    Exhausted regime: the free minimums add up to more than ``remaining``.

    Candidates are grouped by priority and groups are served highest
    first. A group whose floors fit gets them in full; the first group
    that does not fit shares what is left in proportion to its floors,
    and later groups get nothing. Zero-MMQ candidates stay at zero.

    Returns:
        (quantities, notes) aligned with ``free``
    """
    quantities = [0.0] * len(free)
    notes = [AllocationNote.PROPORTIONAL] * len(free)

    groups = defaultdict(list)
    for i, candidate in enumerate(free):
        if candidate.minimal_manufacturing_quantity > 0:
            groups[_priority(candidate)].append(i)

    left = remaining
    for priority in sorted(groups, reverse=True):
        members = groups[priority]
        need = sum(free[i].minimal_manufacturing_quantity for i in members)
        granted = min(need, max(left, 0.0))
        for i in members:
            mmq = free[i].minimal_manufacturing_quantity
            if granted >= need:
                quantities[i] = mmq
                notes[i] = AllocationNote.RAISED_TO_MINIMUM
            else:
                quantities[i] = granted * mmq / need
                notes[i] = AllocationNote.BELOW_MINIMUM
        left -= granted

        logger.debug(
            "minimum_group_filled",
            priority=priority,
            members=len(members),
            need=need,
            granted=granted
        )

    return quantities, notes


def _water_fill(
    remaining: float,
    free: Sequence[CandidateVariant],
) -> tuple[list[float], list[AllocationNote]]:
    """
    Fixed-point loop over the still-free candidates.

    Each pass computes proportional shares for the active set. Candidates
    whose share is under their MMQ are raised to it and leave the set;
    a share exactly at the MMQ satisfies the floor. Only called when all
    free minimums fit into ``remaining``, so raising never runs dry.

    Returns:
        (quantities, notes) aligned with ``free``
    """
    quantities = [0.0] * len(free)
    notes = [AllocationNote.PROPORTIONAL] * len(free)
    active = list(range(len(free)))

    # Every pass either settles the active set or removes at least one index
    for iteration in range(len(free) + 1):
        if not active:
            break

        shares = _proportional_shares(remaining, [free[i] for i in active])
        short = [
            i for i, share in zip(active, shares)
            if share < free[i].minimal_manufacturing_quantity
        ]

        logger.debug(
            "allocation_iteration",
            iteration=iteration,
            active=len(active),
            short=len(short),
            remaining=remaining
        )

        if not short:
            for i, share in zip(active, shares):
                quantities[i] = share
            break

        for i in short:
            quantities[i] = free[i].minimal_manufacturing_quantity
            notes[i] = AllocationNote.RAISED_TO_MINIMUM
            remaining -= free[i].minimal_manufacturing_quantity
        short_set = set(short)
        active = [i for i in active if i not in short_set]

    return quantities, notes


def _average_coverage(lines: Sequence[CandidateAllocation]) -> Optional[float]:
    """Mean future days of coverage over lines where it is known."""
    known = [line.future_days_coverage for line in lines if line.future_days_coverage is not None]
    if not known:
        return None
    return round(sum(known) / len(known), 1)


def allocate(
    capacity: float,
    candidates: Iterable[CandidateVariant],
    rounding: RoundingPolicy = NO_ROUNDING,
) -> AllocationResult:
    """
    Allocate capacity across candidates.

    Args:
        capacity: Resolved batch capacity (> 0)
        candidates: Candidate variants, fixed and free
        rounding: Packaging policy applied to free lines after convergence

    Returns:
        AllocationResult with lines in input order
    """
    candidates = tuple(candidates)
    fixed = [c for c in candidates if c.is_fixed]
    free = [c for c in candidates if not c.is_fixed]
    fixed_sum = sum(c.pinned_quantity for c in fixed)

    if fixed_sum > capacity:
        report = detect_overflow(capacity, fixed_sum, [0.0] * len(free))
        logger.warning(
            "fixed_quantities_exceed_capacity",
            capacity=capacity,
            fixed_sum=fixed_sum,
            deficit=fixed_sum - capacity
        )
        lines = [
            _line(c, c.pinned_quantity, AllocationNote.FIXED, is_fixed_and_overflowing=True)
            if c.is_fixed
            else _line(c, 0.0, AllocationNote.ZEROED_BY_OVERFLOW)
            for c in candidates
        ]
        return AllocationResult(
            capacity=capacity,
            allocations=lines,
            fixed_sum=fixed_sum,
            total_allocated=fixed_sum,
            is_overflow=True,
            infeasibility=Infeasibility.FIXED_EXCEEDS_CAPACITY,
            overflow_percentage=report.overflow_percentage,
            deficit=fixed_sum - capacity,
            fixed_count=len(fixed),
            optimized_count=len(free),
            achieved_average_coverage=_average_coverage(lines),
        )

    remaining = capacity - fixed_sum
    minimums = [c.minimal_manufacturing_quantity for c in free]
    exhausted = sum(minimums) > remaining
    if exhausted:
        quantities, notes = _fill_minimums(remaining, free)
    else:
        quantities, notes = _water_fill(remaining, free)

    quantities = rounding.apply_within(quantities, remaining, minimums)
    report = detect_overflow(capacity, fixed_sum, quantities)

    free_lines = iter([
        _line(c, q, note, is_below_minimum=note == AllocationNote.BELOW_MINIMUM)
        for c, q, note in zip(free, quantities, notes)
    ])
    lines = [
        _line(c, c.pinned_quantity, AllocationNote.FIXED) if c.is_fixed else next(free_lines)
        for c in candidates
    ]

    if exhausted:
        logger.warning(
            "minimums_exhaust_capacity",
            capacity=capacity,
            below_minimum=[c.code for c, n in zip(free, notes) if n == AllocationNote.BELOW_MINIMUM]
        )

    return AllocationResult(
        capacity=capacity,
        allocations=lines,
        fixed_sum=fixed_sum,
        total_allocated=report.total_quantity,
        is_overflow=report.is_overflow,
        infeasibility=Infeasibility.MINIMUM_EXHAUSTION if exhausted else Infeasibility.NONE,
        overflow_percentage=report.overflow_percentage,
        deficit=report.deficit,
        fixed_count=len(fixed),
        optimized_count=len(free),
        achieved_average_coverage=_average_coverage(lines),
    )
