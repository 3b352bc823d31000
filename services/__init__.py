"""
Business logic services.

Each service handles one step of batch planning.
"""

from services.rounding import RoundingMode, RoundingPolicy, NO_ROUNDING, resolve_rounding_policy
from services.capacity_service import check_control_value, resolve_capacity
from services.overflow_service import detect_overflow
from services.allocation_service import allocate
from services.validation_service import (
    validate_constraints,
    validate_plan_request,
    resolve_sales_window,
    apply_constraints,
)
from services.batch_draft_service import default_lot_number, generate_drafts
from services.catalog_service import CatalogService, get_catalog_service
from services.batch_planning_service import (
    BatchPlanningService,
    get_batch_planning_service,
    evaluate,
)
from services.manufacture_order_service import (
    ManufactureOrderService,
    get_manufacture_order_service,
)

__all__ = [
    "RoundingMode",
    "RoundingPolicy",
    "NO_ROUNDING",
    "resolve_rounding_policy",
    "check_control_value",
    "resolve_capacity",
    "detect_overflow",
    "allocate",
    "validate_constraints",
    "validate_plan_request",
    "resolve_sales_window",
    "apply_constraints",
    "default_lot_number",
    "generate_drafts",
    "CatalogService",
    "get_catalog_service",
    "BatchPlanningService",
    "get_batch_planning_service",
    "evaluate",
    "ManufactureOrderService",
    "get_manufacture_order_service",
]
