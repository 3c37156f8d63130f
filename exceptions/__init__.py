"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DatabaseError,

    # Import
    MalformedInputError,
    SchemaError,
    PriceConflictError,

    # Resolution
    InvalidLocationCodeError,
    InvalidSearchQueryError,
    TooManyProductsError,
    LocationNotServiceableError,
    PriceNotFoundError,
    ServiceabilityNotFoundError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DatabaseError",

    # Import
    "MalformedInputError",
    "SchemaError",
    "PriceConflictError",

    # Resolution
    "InvalidLocationCodeError",
    "InvalidSearchQueryError",
    "TooManyProductsError",
    "LocationNotServiceableError",
    "PriceNotFoundError",
    "ServiceabilityNotFoundError",
]
