"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    FrozenSchema,
)
from models.batch_planning import (
    ControlMode,
    Infeasibility,
    AllocationNote,
    SemiProductInfo,
    CandidateVariant,
    AllocationRequest,
    CandidateAllocation,
    OverflowReport,
    AllocationResult,
    ProductConstraint,
    BatchPlanRequest,
    BatchPlanResponse,
    RevalidateLine,
    RevalidateRequest,
)
from models.manufacture_order import (
    BatchDraftLine,
    ManufactureOrderCommit,
    ManufactureOrderCreated,
)

__all__ = [
    # Base
    "BaseSchema",
    "FrozenSchema",
    # Batch planning
    "ControlMode",
    "Infeasibility",
    "AllocationNote",
    "SemiProductInfo",
    "CandidateVariant",
    "AllocationRequest",
    "CandidateAllocation",
    "OverflowReport",
    "AllocationResult",
    "ProductConstraint",
    "BatchPlanRequest",
    "BatchPlanResponse",
    "RevalidateLine",
    "RevalidateRequest",
    # Manufacture order
    "BatchDraftLine",
    "ManufactureOrderCommit",
    "ManufactureOrderCreated",
]
