"""
Custom domain exceptions for consistent error handling.

These exceptions are mapped to HTTP status codes by the global exception handler
in main.py. None of them is fatal: a failed validation never leaves an order
partially updated.
"""
from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    code = "domain_error"

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError):
    """Resource not found (404)."""
    code = "not_found"

    def __init__(self, resource_type: str, identifier: str, details: dict | None = None):
        message = f"{resource_type} not found: {identifier}"
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, details=details)


class ValidationError(DomainError):
    """Validation error (400)."""
    code = "validation_error"

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        if field:
            message = f"Validation error on {field}: {message}"
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class EmptyOrderError(DomainError):
    """Every garment quantity is zero (422)."""
    code = "empty_order"

    def __init__(self, message: str = "Order must contain at least one garment", details: dict | None = None):
        super().__init__(message, status_code=422, details=details)


class InvalidCatalogEntryError(DomainError):
    """A garment kind in the order has no price in the chosen service (422)."""
    code = "invalid_catalog_entry"

    def __init__(self, service_name: str, garment: str, details: dict | None = None):
        message = f"Service '{service_name}' has no price for garment '{garment}'"
        super().__init__(
            message,
            status_code=422,
            details={"service": service_name, "garment": garment, **(details or {})},
        )


class InvalidTransitionError(DomainError):
    """Target status is not reachable from the current status (409)."""
    code = "invalid_transition"

    def __init__(self, current: str, target: str | None, reason: str | None = None):
        message = f"Cannot move order from '{current}' to '{target}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            status_code=status.HTTP_409_CONFLICT,
            details={"current": current, "target": target},
        )


class PaymentRequiredError(DomainError):
    """Delivery blocked until payment is recorded (402)."""
    code = "payment_required"

    def __init__(self, message: str = "Payment must be completed before delivery", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_402_PAYMENT_REQUIRED, details=details)


class PermissionDeniedError(DomainError):
    """Permission denied (403)."""
    code = "permission_denied"

    def __init__(self, message: str = "Permission denied", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, details=details)


class UnauthorizedError(DomainError):
    """Unauthorized access (401)."""
    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED, details=details)


class ConflictError(DomainError):
    """Resource conflict (409)."""
    code = "conflict"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


class RateLimitError(DomainError):
    """Rate limit exceeded (429)."""
    code = "rate_limited"

    def __init__(self, message: str = "Rate limit exceeded", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_429_TOO_MANY_REQUESTS, details=details)
