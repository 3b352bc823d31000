"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ExternalServiceError,

    # Batch planning input
    InvalidControlValueError,
    UnknownSemiProductError,
    NoCandidateVariantsError,
    MissingShelfLifeError,
    InvalidFixedQuantityError,
    DuplicateConstraintError,
    InvalidDateRangeError,

    # Collaborators
    MetadataUnavailableError,
    ManufactureOrderCommitError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ExternalServiceError",

    # Batch planning input
    "InvalidControlValueError",
    "UnknownSemiProductError",
    "NoCandidateVariantsError",
    "MissingShelfLifeError",
    "InvalidFixedQuantityError",
    "DuplicateConstraintError",
    "InvalidDateRangeError",

    # Collaborators
    "MetadataUnavailableError",
    "ManufactureOrderCommitError",
]
