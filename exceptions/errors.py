"""
Custom exception classes for the application.

Input and metadata failures are raised; business infeasibility
(overflow, below-minimum lines) is reported in the allocation result.
"""

import math
from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "UNKNOWN_SEMI_PRODUCT")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


# ===================
# BATCH PLANNING INPUT ERRORS
# ===================

class InvalidControlValueError(ValidationError):
    """Control value unusable for the selected control mode."""

    def __init__(self, control_mode: str, control_value: Any, reason: str):
        # JSON responses cannot carry nan/inf
        if isinstance(control_value, float) and not math.isfinite(control_value):
            control_value = str(control_value)
        super().__init__(
            code="INVALID_CONTROL_VALUE",
            message=f"Invalid control value for {control_mode}: {reason}",
            details={
                "control_mode": control_mode,
                "control_value": control_value,
                "reason": reason,
            }
        )


class UnknownSemiProductError(NotFoundError):
    """Semi-product code not present in the catalog."""

    def __init__(self, semi_product_code: str):
        super().__init__(
            resource="Semi-product",
            identifier=semi_product_code,
            code="UNKNOWN_SEMI_PRODUCT"
        )


class NoCandidateVariantsError(ValidationError):
    """No product is manufactured from the semi-product."""

    def __init__(self, semi_product_code: str):
        super().__init__(
            code="NO_CANDIDATE_VARIANTS",
            message=f"No products found that use semi-product '{semi_product_code}'",
            details={"semi_product_code": semi_product_code}
        )


class MissingShelfLifeError(ValidationError):
    """Variant with a planned quantity has no shelf-life data."""

    def __init__(self, variant_code: str):
        super().__init__(
            code="MISSING_SHELF_LIFE",
            message=f"Variant {variant_code} has no shelf life configured",
            details={"variant_code": variant_code}
        )


class InvalidFixedQuantityError(ValidationError):
    """Fixed candidate without a usable quantity."""

    def __init__(self, variant_code: str, fixed_quantity: Any):
        if isinstance(fixed_quantity, float) and not math.isfinite(fixed_quantity):
            fixed_quantity = str(fixed_quantity)
        super().__init__(
            code="INVALID_FIXED_QUANTITY",
            message=f"Fixed quantity for {variant_code} must be a non-negative number",
            details={"variant_code": variant_code, "fixed_quantity": fixed_quantity}
        )


class DuplicateConstraintError(ValidationError):
    """Same variant pinned more than once in a single request."""

    def __init__(self, variant_code: str):
        super().__init__(
            code="DUPLICATE_CONSTRAINT",
            message=f"Variant {variant_code} appears more than once in constraints",
            details={"variant_code": variant_code}
        )


class InvalidDateRangeError(ValidationError):
    """Consumption window starts after it ends."""

    def __init__(self, from_date: str, to_date: str):
        super().__init__(
            code="INVALID_DATE_RANGE",
            message="from_date must not be after to_date",
            details={"from_date": from_date, "to_date": to_date}
        )


# ===================
# COLLABORATOR ERRORS
# ===================

class MetadataUnavailableError(ExternalServiceError):
    """Catalog or consumption history could not be read."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="catalog",
            message=message,
            details=details,
            code="METADATA_UNAVAILABLE"
        )


class ManufactureOrderCommitError(ExternalServiceError):
    """Manufacture order creation rejected or failed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="manufacture_orders",
            message=message,
            details=details,
            code="MANUFACTURE_ORDER_COMMIT_FAILED"
        )
