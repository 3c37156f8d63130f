"""
Custom exception classes for the application.

Every error the API can return is an AppError with a stable code.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PRICE_NOT_FOUND")
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
        self.timestamp = datetime.utcnow().isoformat()
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
        code: Optional[str] = None,
        message: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=message or f"{resource} not found",
            status_code=404,
            details={"id": identifier, **(details or {})}
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


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# IMPORT ERRORS
# ===================

class MalformedInputError(ValidationError):
    """Uploaded file is unreadable or has no data rows. Nothing is written."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="MALFORMED_INPUT",
            message=message,
            details=details
        )


class SchemaError(ValidationError):
    """Header row does not match the price sheet layout. Nothing is written."""

    def __init__(
        self,
        message: str,
        invalid_headers: Optional[list[str]] = None,
        details: Optional[dict] = None
    ):
        payload = dict(details or {})
        if invalid_headers:
            payload["invalid_headers"] = invalid_headers
        super().__init__(
            code="SCHEMA_ERROR",
            message=message,
            details=payload
        )
        self.invalid_headers = invalid_headers or []


class PriceConflictError(ConflictError):
    """Storage rejected a write for violating price uniqueness."""

    def __init__(self, product_id: str, location_code: str, reason: str = ""):
        super().__init__(
            code="PRICE_CONFLICT",
            message=f"Concurrent write conflict for {product_id} at {location_code}",
            details={
                "product_id": product_id,
                "location_code": location_code,
                "reason": reason,
            }
        )


# ===================
# RESOLUTION ERRORS
# ===================

class InvalidLocationCodeError(ValidationError):
    """Location code is not six ASCII digits."""

    def __init__(self, location_code: str):
        super().__init__(
            code="INVALID_LOCATION_CODE",
            message="Please enter a valid 6-digit location code",
            details={"provided": location_code}
        )


class InvalidSearchQueryError(ValidationError):
    """Location search term is too short."""

    def __init__(self, query: str, min_length: int):
        super().__init__(
            code="INVALID_SEARCH_QUERY",
            message=f"Search query must be at least {min_length} characters",
            details={"provided": query, "min_length": min_length}
        )


class TooManyProductsError(ValidationError):
    """Bulk request exceeds the configured product limit."""

    def __init__(self, requested: int, limit: int):
        super().__init__(
            code="TOO_MANY_PRODUCTS",
            message=f"Maximum {limit} products allowed per request",
            details={"limit": limit, "requested": requested}
        )


class LocationNotServiceableError(AppError):
    """
    Location is known to be excluded from delivery (or has no coverage).

    Deliberately not a NotFoundError: callers must be able to tell a
    refused location apart from a missing price.
    """

    def __init__(self, location_code: str):
        super().__init__(
            code="LOCATION_NOT_SERVICEABLE",
            message="We don't serve this area yet. Please try a different location code.",
            status_code=404,
            details={"location_code": location_code}
        )


class PriceNotFoundError(NotFoundError):
    """No active price for the product at this location."""

    def __init__(self, product_id: str, location_code: str):
        super().__init__(
            resource="Price",
            identifier=product_id,
            code="PRICE_NOT_FOUND",
            message="This product is not available in your area at the moment.",
            details={"product_id": product_id, "location_code": location_code}
        )


class ServiceabilityNotFoundError(NotFoundError):
    """No serviceability record for the location."""

    def __init__(self, location_code: str):
        super().__init__(
            resource="Location",
            identifier=location_code,
            code="LOCATION_NOT_FOUND"
        )
