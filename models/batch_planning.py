"""
Batch planning schemas.

Batch planning answers: "How much of each variant should one batch of
this semi-product produce?" Engine inputs and results are immutable;
API request/response wrappers are regular schemas.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import Field

from models.base import BaseSchema, FrozenSchema
from models.manufacture_order import BatchDraftLine


class ControlMode(str, Enum):
    """How the batch capacity is derived from the control value."""
    MMQ_MULTIPLIER = "mmq_multiplier"              # semi-product MMQ x value
    TOTAL_WEIGHT = "total_weight"                  # value taken as-is
    TARGET_DAYS_COVERAGE = "target_days_coverage"  # sum of daily rates x value


class Infeasibility(str, Enum):
    """Why an allocation could not satisfy every constraint."""
    NONE = "none"
    FIXED_EXCEEDS_CAPACITY = "fixed_exceeds_capacity"
    MINIMUM_EXHAUSTION = "minimum_exhaustion"


class AllocationNote(str, Enum):
    """How a line's quantity was decided."""
    FIXED = "fixed"
    PROPORTIONAL = "proportional"
    RAISED_TO_MINIMUM = "raised_to_minimum"
    BELOW_MINIMUM = "below_minimum"
    ZEROED_BY_OVERFLOW = "zeroed_by_overflow"


# ===================
# ENGINE INPUTS
# ===================

class SemiProductInfo(FrozenSchema):
    """Catalog metadata of the semi-product being planned."""

    code: str = Field(..., min_length=1)
    display_name: str = ""
    minimal_manufacturing_quantity: Optional[float] = Field(None, ge=0)
    packaging_granularity: Optional[float] = Field(
        None,
        gt=0,
        description="Packaging unit allocations are rounded to"
    )


class CandidateVariant(FrozenSchema):
    """One producible variant of the semi-product family."""

    code: str = Field(..., min_length=1)
    display_name: str = ""
    minimal_manufacturing_quantity: float = Field(default=0, ge=0)
    weight_factor: float = Field(default=0, ge=0, description="Relative demand share")
    is_fixed: bool = False
    fixed_quantity: Optional[float] = Field(None, ge=0)
    shelf_life_days: Optional[int] = Field(None, ge=0)
    daily_consumption_rate: Optional[float] = Field(None, ge=0)
    current_stock: Optional[float] = None

    @property
    def pinned_quantity(self) -> float:
        """Quantity the allocator must honor for a fixed candidate."""
        return self.fixed_quantity or 0.0


class AllocationRequest(FrozenSchema):
    """One recompute call, evaluated independently of any other."""

    semi_product: SemiProductInfo
    control_mode: ControlMode
    control_value: float
    candidates: tuple[CandidateVariant, ...] = ()

    @property
    def semi_product_code(self) -> str:
        return self.semi_product.code


# ===================
# ENGINE RESULTS
# ===================

class CandidateAllocation(FrozenSchema):
    """Allocation outcome for a single candidate."""

    code: str
    display_name: str = ""
    is_fixed: bool = False
    minimal_manufacturing_quantity: float = 0
    weight_factor: float = 0
    shelf_life_days: Optional[int] = None

    allocated_quantity: float = Field(..., ge=0)
    is_below_minimum: bool = False
    is_fixed_and_overflowing: bool = False
    was_optimized: bool = False
    note: AllocationNote

    # Coverage projection (only when stock and rate are known)
    future_stock: Optional[float] = None
    future_days_coverage: Optional[float] = None


class OverflowReport(FrozenSchema):
    """Feasibility verdict for a set of quantities against a capacity."""

    capacity: float
    total_quantity: float
    is_overflow: bool
    overflow_percentage: float = Field(..., description="Total / capacity x 100, may exceed 100")
    deficit: float = Field(default=0, ge=0, description="Quantity above capacity")


class AllocationResult(FrozenSchema):
    """Output of one recompute."""

    capacity: float
    allocations: tuple[CandidateAllocation, ...] = ()

    fixed_sum: float = 0
    total_allocated: float = 0

    is_overflow: bool = False
    infeasibility: Infeasibility = Infeasibility.NONE
    overflow_percentage: float = 0
    deficit: float = 0

    fixed_count: int = 0
    optimized_count: int = 0
    achieved_average_coverage: Optional[float] = Field(
        None, description="Mean future days of coverage over lines where it is known"
    )

    def get(self, code: str) -> Optional[CandidateAllocation]:
        """Find the allocation line for a variant code."""
        for allocation in self.allocations:
            if allocation.code == code:
                return allocation
        return None


# ===================
# API SCHEMAS
# ===================

class ProductConstraint(BaseSchema):
    """User override for one variant."""

    variant_code: str = Field(..., min_length=1, description="Variant code")
    is_fixed: bool = Field(default=False, description="Pin this variant's quantity")
    fixed_quantity: Optional[float] = Field(None, description="Pinned quantity")


class BatchPlanRequest(BaseSchema):
    """Recompute request sent by the planning screen."""

    semi_product_code: str = Field(..., min_length=1, description="Semi-product code")
    control_mode: ControlMode = Field(..., description="Capacity control mode")
    control_value: Optional[float] = Field(None, description="Multiplier, weight or days")
    constraints: list[ProductConstraint] = Field(default_factory=list)
    from_date: Optional[date] = Field(None, description="Consumption window start")
    to_date: Optional[date] = Field(None, description="Consumption window end")


class BatchPlanResponse(BaseSchema):
    """Allocation plus, when requested, the derived draft lines."""

    semi_product: SemiProductInfo
    control_mode: ControlMode
    control_value: float
    result: AllocationResult
    manufacture_date: Optional[date] = None
    drafts: Optional[list[BatchDraftLine]] = None


class RevalidateLine(BaseSchema):
    """User-edited quantity to re-check against capacity."""

    variant_code: str = Field(..., min_length=1)
    quantity: float = Field(..., ge=0)


class RevalidateRequest(BaseSchema):
    """Post-hoc feasibility check of edited quantities."""

    capacity: float = Field(..., gt=0)
    lines: list[RevalidateLine] = Field(default_factory=list)
