# =============================================================================
# core/models/business.py - Business Schemas
# =============================================================================
# Enums and request bodies for business-owned data:
# - Business profile (name, description, links, images)
# - Business hours
# - Tax information used for Stripe Connect
# - Image uploads and business documents
# - Service category associations
#
# Required fields are typed optional and checked by the services, so that a
# missing field answers 400 with the list of required fields.
# =============================================================================

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class VerificationStatus(str, Enum):
    """
    Review state of a business or provider.

    Flow: pending -> under_review -> approved | rejected
    An approved business can later be suspended.
    """
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class BusinessType(str, Enum):
    """Business types accepted by the business_type column."""
    INDEPENDENT = "independent"
    SMALL_BUSINESS = "small_business"
    FRANCHISE = "franchise"
    ENTERPRISE = "enterprise"
    OTHER = "other"
    SOLE_PROPRIETORSHIP = "sole_proprietorship"
    LLC = "llc"
    CORPORATION = "corporation"
    PARTNERSHIP = "partnership"


class ProviderRole(str, Enum):
    OWNER = "owner"
    DISPATCHER = "dispatcher"
    PROVIDER = "provider"


class ImageType(str, Enum):
    """Business images stored on business_profiles."""
    LOGO = "logo"
    COVER = "cover"

    @property
    def column(self) -> str:
        """business_profiles column holding the image URL."""
        return "logo_url" if self is ImageType.LOGO else "cover_image_url"


class DocumentStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


# Entity types accepted by business_stripe_tax_info.business_entity_type
TAX_ENTITY_TYPES = (
    "sole_proprietorship",
    "partnership",
    "llc",
    "corporation",
    "non_profit",
)


# =============================================================================
# Business Profile
# =============================================================================

class BusinessProfileUpdate(BaseModel):
    """
    Partial update of the public business profile.

    The portal sends camelCase keys; snake_case column names are accepted too.
    Only fields that are present are written.

    Example:
        {
            "businessName": "Glow Mobile Spa",
            "detailedDescription": "In-home facials and massage",
            "websiteUrl": "https://glow.example.com",
            "socialMediaLinks": {"instagram": "@glowspa"}
        }
    """

    model_config = {"populate_by_name": True}

    business_name: str | None = Field(default=None, alias="businessName", max_length=255)
    business_description: str | None = Field(default=None, alias="detailedDescription")
    website_url: str | None = Field(default=None, alias="websiteUrl")
    social_media: dict[str, Any] | None = Field(default=None, alias="socialMediaLinks")
    logo_url: str | None = Field(default=None, alias="logoUrl")
    cover_image_url: str | None = Field(default=None, alias="coverImageUrl")
    years_in_business: int | None = Field(default=None, alias="yearsInBusiness", ge=0)


class BusinessHoursUpdate(BaseModel):
    """Body of PUT /business/hours (frontend day format)."""

    business_id: str | None = Field(default=None, description="Business UUID")
    business_hours: dict[str, Any] | None = Field(
        default=None,
        description="Hours keyed by lowercase day name",
        examples=[{"monday": {"open": "09:00", "close": "17:00", "closed": False}}],
    )


# =============================================================================
# Tax Information
# =============================================================================

class TaxInfoUpdate(BaseModel):
    """Body of PUT /business/tax-info. Values are normalised before storage."""

    business_id: str | None = None
    legal_business_name: str | None = None
    tax_id: str | None = None
    tax_id_type: str | None = Field(default=None, description="EIN or SSN (case-insensitive)")
    business_entity_type: str | None = None
    tax_address_line1: str | None = None
    tax_address_line2: str | None = None
    tax_city: str | None = None
    tax_state: str | None = None
    tax_postal_code: str | None = None
    tax_country: str | None = None
    tax_contact_name: str | None = None
    tax_contact_email: str | None = None
    tax_contact_phone: str | None = None


# =============================================================================
# Images and Documents
# =============================================================================

class ImageUploadRequest(BaseModel):
    """
    Base64 image upload.

    file_data may be raw base64 or a data URL
    ("data:image/png;base64,iVBORw0...").
    """

    business_id: str | None = None
    image_type: ImageType | None = None
    file_data: str | None = None
    file_name: str | None = None
    content_type: str | None = None


class DocumentCreate(BaseModel):
    """Registers a document already uploaded to storage by the portal."""

    business_id: str | None = None
    document_type: str | None = None
    document_name: str | None = None
    file_url: str | None = None
    file_size_bytes: int | None = Field(default=None, ge=0)


# =============================================================================
# Service Categories
# =============================================================================

class CategoryAssociationUpdate(BaseModel):
    """Replaces a business's approved categories and subcategories."""

    business_id: str | None = None
    category_ids: list[str] = Field(default_factory=list)
    subcategory_ids: list[str] = Field(default_factory=list)
