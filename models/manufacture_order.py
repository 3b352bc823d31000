"""
Batch draft and manufacture order hand-off schemas.

Draft lines are editable by the user (lot number, expiration date)
until they are committed as a manufacture order.
"""

from datetime import date
from typing import Optional

from pydantic import Field, model_validator

from models.base import BaseSchema


class BatchDraftLine(BaseSchema):
    """One manufacture order line derived from a non-zero allocation."""

    variant_code: str = Field(..., min_length=1, description="Product variant code")
    display_name: str = Field(default="", description="Variant name for display")
    planned_quantity: float = Field(..., gt=0, description="Quantity to manufacture")
    lot_number: str = Field(..., min_length=1, description="Lot number, user-editable")
    expiration_date: date = Field(..., description="Expiration date, user-editable")


class ManufactureOrderCommit(BaseSchema):
    """Finalized draft lines handed to manufacture order creation."""

    semi_product_code: str = Field(..., min_length=1, description="Semi-product code")
    manufacture_date: date = Field(..., description="Planned manufacture date")
    responsible_person: Optional[str] = Field(None, description="Who will run the batch")
    lines: list[BatchDraftLine] = Field(..., min_length=1, description="Lines to produce")

    @model_validator(mode="after")
    def check_unique_variants(self):
        """A variant may appear only once per order."""
        seen = set()
        for line in self.lines:
            if line.variant_code in seen:
                raise ValueError(f"Variant {line.variant_code} appears more than once")
            seen.add(line.variant_code)
        return self


class ManufactureOrderCreated(BaseSchema):
    """Reference to the order created from committed drafts."""

    order_id: str = Field(..., description="Manufacture order UUID")
    order_number: str = Field(..., description="Human-readable order number")
    semi_product_code: str
    state: str = Field(default="draft", description="Initial order state")
    line_count: int = Field(..., ge=1)
