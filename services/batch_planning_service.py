"""
Batch planning service — recompute orchestration.

One recompute: validate the request, read a fresh catalog snapshot,
overlay the user's fixed quantities, resolve capacity, allocate, and
optionally derive manufacture order drafts. No state survives between
requests.
"""

from datetime import date
from typing import Optional

import structlog

from models.batch_planning import (
    AllocationRequest,
    AllocationResult,
    BatchPlanRequest,
    BatchPlanResponse,
    Infeasibility,
    OverflowReport,
    RevalidateRequest,
)
from services.allocation_service import allocate
from services.batch_draft_service import generate_drafts
from services.capacity_service import resolve_capacity
from services.catalog_service import get_catalog_service
from services.overflow_service import detect_overflow
from services.rounding import RoundingPolicy, resolve_rounding_policy
from services.validation_service import (
    apply_constraints,
    resolve_sales_window,
    validate_plan_request,
)

logger = structlog.get_logger(__name__)


def evaluate(
    request: AllocationRequest,
    rounding: Optional[RoundingPolicy] = None,
) -> AllocationResult:
    """
    Evaluate an allocation request without any I/O.

    Identical requests always produce identical results.

    Args:
        request: Immutable allocation request
        rounding: Packaging policy; defaults to the semi-product's

    Returns:
        AllocationResult

    Raises:
        InvalidControlValueError: Capacity cannot be resolved
    """
    if rounding is None:
        rounding = resolve_rounding_policy(request.semi_product.packaging_granularity)

    capacity = resolve_capacity(
        request.semi_product,
        request.control_mode,
        request.control_value,
        request.candidates,
    )
    return allocate(capacity, request.candidates, rounding)


class BatchPlanningService:
    """
    Batch planning business logic.

    Wires the catalog snapshot into the pure allocation engine.
    """

    def __init__(self):
        self.catalog = get_catalog_service()

    def build_request(
        self,
        request: BatchPlanRequest,
        today: Optional[date] = None,
    ) -> AllocationRequest:
        """
        Turn an API request into an immutable allocation request.

        Args:
            request: Recompute request from the UI
            today: Reference date for the default consumption window

        Returns:
            AllocationRequest over a fresh candidate snapshot

        Raises:
            InvalidControlValueError, InvalidFixedQuantityError,
            DuplicateConstraintError, InvalidDateRangeError,
            UnknownSemiProductError, NoCandidateVariantsError,
            MetadataUnavailableError
        """
        constraints = validate_plan_request(request)
        from_date, to_date = resolve_sales_window(request.from_date, request.to_date, today)

        semi_product = self.catalog.get_semi_product(request.semi_product_code)
        candidates = self.catalog.get_candidates(semi_product.code, from_date, to_date)

        return AllocationRequest(
            semi_product=semi_product,
            control_mode=request.control_mode,
            control_value=request.control_value,
            candidates=apply_constraints(candidates, constraints),
        )

    def calculate(
        self,
        request: BatchPlanRequest,
        today: Optional[date] = None,
    ) -> BatchPlanResponse:
        """
        Recompute the allocation for a semi-product.

        Overflow is reported in the response, not raised.
        """
        logger.info(
            "calculating_batch_plan",
            semi_product_code=request.semi_product_code,
            control_mode=request.control_mode.value,
            control_value=request.control_value,
            constraints=len(request.constraints)
        )

        allocation_request = self.build_request(request, today)
        result = evaluate(allocation_request)

        if result.is_overflow or result.infeasibility != Infeasibility.NONE:
            logger.warning(
                "batch_plan_infeasible",
                semi_product_code=request.semi_product_code,
                infeasibility=result.infeasibility.value,
                overflow_percentage=result.overflow_percentage
            )

        logger.info(
            "batch_plan_calculated",
            semi_product_code=request.semi_product_code,
            capacity=result.capacity,
            total_allocated=result.total_allocated,
            fixed_count=result.fixed_count,
            optimized_count=result.optimized_count
        )

        return BatchPlanResponse(
            semi_product=allocation_request.semi_product,
            control_mode=allocation_request.control_mode,
            control_value=allocation_request.control_value,
            result=result,
        )

    def calculate_with_drafts(
        self,
        request: BatchPlanRequest,
        manufacture_date: date,
        today: Optional[date] = None,
    ) -> BatchPlanResponse:
        """
        Recompute and derive manufacture order drafts.

        Raises:
            MissingShelfLifeError: A planned variant has no shelf life
        """
        response = self.calculate(request, today)
        drafts = generate_drafts(response.result, manufacture_date)
        return response.model_copy(update={
            "manufacture_date": manufacture_date,
            "drafts": drafts,
        })

    @staticmethod
    def revalidate(request: RevalidateRequest) -> OverflowReport:
        """Check user-edited quantities against the capacity again."""
        report = detect_overflow(
            request.capacity,
            0.0,
            [line.quantity for line in request.lines],
        )
        logger.info(
            "batch_plan_revalidated",
            capacity=request.capacity,
            overflow_percentage=report.overflow_percentage,
            is_overflow=report.is_overflow
        )
        return report


# Singleton instance
_service: Optional[BatchPlanningService] = None


def get_batch_planning_service() -> BatchPlanningService:
    """Get or create BatchPlanningService instance."""
    global _service
    if _service is None:
        _service = BatchPlanningService()
    return _service
