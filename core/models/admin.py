# =============================================================================
# core/models/admin.py - Admin Console Schemas
# =============================================================================
# Request bodies for admin-only operations: customer and provider status,
# business edits and approval, document review, enum maintenance.
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field

from .business import DocumentStatus, VerificationStatus


class StatusFilter(str, Enum):
    """Query values accepted by list endpoints with an active filter."""
    ALL = "all"
    ACTIVE = "active"
    INACTIVE = "inactive"


class CustomerStatusUpdate(BaseModel):
    is_active: bool = Field(..., description="Whether the customer can sign in and book")


class AdminBusinessUpdate(BaseModel):
    """
    Admin edits to a business profile.

    Only fields that are present are written.
    """

    business_name: str | None = Field(default=None, max_length=255)
    business_type: str | None = None
    contact_email: str | None = None
    phone: str | None = None
    website_url: str | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
    verification_status: VerificationStatus | None = None
    verification_notes: str | None = None
    rejection_reason: str | None = None


class ApproveBusinessRequest(BaseModel):
    model_config = {"populate_by_name": True}

    business_id: str | None = Field(default=None, alias="businessId")
    admin_user_id: str | None = Field(default=None, alias="adminUserId")
    approval_notes: str | None = Field(default=None, alias="approvalNotes")


class RejectBusinessRequest(BaseModel):
    model_config = {"populate_by_name": True}

    business_id: str | None = Field(default=None, alias="businessId")
    admin_user_id: str | None = Field(default=None, alias="adminUserId")
    rejection_reason: str | None = Field(default=None, alias="rejectionReason")


class ProviderUpdate(BaseModel):
    verification_status: VerificationStatus | None = None
    background_check_status: str | None = None
    is_active: bool | None = None
    active_for_bookings: bool | None = None


class DocumentReview(BaseModel):
    """Verify or reject one business document."""

    verification_status: DocumentStatus
    verification_notes: str | None = None
    rejection_reason: str | None = None


class EnumValueRequest(BaseModel):
    """
    Adds a label to a Postgres enum type.

    Example:
        {"enum_name": "booking_status", "enum_value": "no_show"}
    """

    enum_name: str | None = None
    enum_value: str | None = None
