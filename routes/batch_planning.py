"""
Batch planning API routes.

POST /api/batch-planning/calculate   — Recompute the allocation
POST /api/batch-planning/drafts      — Recompute and derive order drafts
POST /api/batch-planning/revalidate  — Re-check edited quantities
POST /api/batch-planning/commit      — Hand drafts to a manufacture order
"""

from datetime import date

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.batch_planning import (
    BatchPlanRequest,
    BatchPlanResponse,
    OverflowReport,
    RevalidateRequest,
)
from models.manufacture_order import ManufactureOrderCommit, ManufactureOrderCreated
from services.batch_planning_service import BatchPlanningService, get_batch_planning_service
from services.manufacture_order_service import get_manufacture_order_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/batch-planning", tags=["Batch Planning"])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/calculate", response_model=BatchPlanResponse)
def calculate_batch_plan(request: BatchPlanRequest):
    """
    Recompute the allocation for one semi-product.

    Every call reads fresh catalog data. Overflow (fixed quantities above
    capacity, or minimums that cannot all be met) is reported in the
    result flags, not as an error.
    """
    try:
        service = get_batch_planning_service()
        return service.calculate(request)
    except Exception as e:
        return handle_error(e)


@router.post("/drafts", response_model=BatchPlanResponse)
def calculate_batch_drafts(
    request: BatchPlanRequest,
    manufacture_date: date = Query(..., description="Planned manufacture date"),
):
    """
    Recompute and derive manufacture order drafts.

    Each non-zero line gets a default lot number and an expiration date
    of manufacture_date + shelf life.
    """
    try:
        service = get_batch_planning_service()
        return service.calculate_with_drafts(request, manufacture_date)
    except Exception as e:
        return handle_error(e)


@router.post("/revalidate", response_model=OverflowReport)
def revalidate_batch_plan(request: RevalidateRequest):
    """Check user-edited quantities against the capacity."""
    try:
        return BatchPlanningService.revalidate(request)
    except Exception as e:
        return handle_error(e)


@router.post("/commit", response_model=ManufactureOrderCreated, status_code=201)
def commit_batch_plan(data: ManufactureOrderCommit):
    """
    Create a manufacture order from finalized drafts.

    The order starts in state "draft".
    """
    try:
        service = get_manufacture_order_service()
        return service.commit(data)
    except Exception as e:
        return handle_error(e)
