# =============================================================================
# app/exceptions.py - Custom Exceptions and Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error response carries a human-readable `detail`, a machine-readable
# `code`, and when available a `suggestion` and `details` with the
# underlying database or SDK message.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class MarketplaceException(Exception):
    """
    Base exception for the marketplace API.

    All custom exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: str = "MARKETPLACE_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Request Exceptions (4xx)
# =============================================================================

class MissingFieldsError(MarketplaceException):
    """Raised when required request fields are absent or empty."""

    def __init__(self, required: list[str], missing: list[str] | None = None):
        super().__init__(
            message="Missing required fields",
            code="MISSING_FIELDS",
            status_code=400,
            suggestion=f"Provide all of: {', '.join(required)}",
            details={"required": required, "missing": missing or required},
        )


class InvalidRequestError(MarketplaceException):
    """Raised when a request is well-formed but semantically invalid."""

    def __init__(self, message: str, details: dict[str, Any] | None = None, suggestion: str | None = None):
        super().__init__(
            message=message,
            code="INVALID_REQUEST",
            status_code=400,
            suggestion=suggestion,
            details=details,
        )


class ForbiddenError(MarketplaceException):
    """Raised when the caller may not perform the operation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
            details=details,
        )


class NotFoundError(MarketplaceException):
    """Raised when a referenced row doesn't exist."""

    def __init__(self, resource: str, identifier: str | None = None):
        code = resource.upper().replace(" ", "_") + "_NOT_FOUND"
        details = {"id": identifier} if identifier else None
        super().__init__(
            message=f"{resource.capitalize()} not found" + (f": {identifier}" if identifier else ""),
            code=code,
            status_code=404,
            suggestion=f"Check that the {resource} id is correct",
            details=details,
        )


class ConflictError(MarketplaceException):
    """Raised when the row being created already exists."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="CONFLICT",
            status_code=409,
            details=details,
        )


class InvalidImageError(MarketplaceException):
    """Raised when an uploaded image cannot be accepted."""

    def __init__(self, reason: str, allowed: list[str] | None = None):
        super().__init__(
            message=f"Invalid image: {reason}",
            code="INVALID_IMAGE",
            status_code=400,
            suggestion=f"Upload one of: {', '.join(allowed)}" if allowed else None,
            details={"allowed_types": allowed} if allowed else None,
        )


class ImageTooLargeError(MarketplaceException):
    """Raised when an uploaded image exceeds the size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"Image too large: {size_mb:.1f}MB (max: {max_mb}MB)",
            code="IMAGE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload an image smaller than {max_mb}MB",
            details={"size_mb": round(size_mb, 2), "max_mb": max_mb},
        )


# =============================================================================
# Downstream Exceptions
# =============================================================================

class DatabaseError(MarketplaceException):
    """Raised when a database call fails. The driver message is passed through."""

    def __init__(self, action: str, error: str):
        super().__init__(
            message=f"Failed to {action}",
            code="DATABASE_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error},
        )


class StorageUploadError(MarketplaceException):
    """Raised when file upload to storage fails."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to upload file to storage: {error}",
            code="STORAGE_UPLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error},
        )


class ServiceNotConfiguredError(MarketplaceException):
    """Raised when a third-party integration has no credentials."""

    def __init__(self, service: str, variables: list[str]):
        super().__init__(
            message=f"{service} configuration error",
            code=f"{service.upper()}_NOT_CONFIGURED",
            status_code=500,
            suggestion=f"Set {', '.join(variables)} in the environment",
            details={"missing": variables},
        )


class StripeOperationError(MarketplaceException):
    """Raised when the Stripe API rejects a request."""

    def __init__(self, message: str, error_type: str | None = None, error_code: str | None = None):
        super().__init__(
            message="Stripe error",
            code="STRIPE_ERROR",
            status_code=400,
            details={"error": message, "type": error_type, "stripe_code": error_code},
        )


class PlaidOperationError(MarketplaceException):
    """Raised when the Plaid API rejects a request."""

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(
            message="Plaid error",
            code="PLAID_ERROR",
            status_code=400,
            details={"error": message, "error_code": error_code},
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def marketplace_exception_handler(
    request: Request,
    exc: MarketplaceException
) -> JSONResponse:
    """Convert MarketplaceException to JSON response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def database_client_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Answer a Supabase client failure as DATABASE_ERROR with the driver message."""
    error = DatabaseError("query the database", getattr(exc, "message", None) or str(exc))
    return await marketplace_exception_handler(request, error)
