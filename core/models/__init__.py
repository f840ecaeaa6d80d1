# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for request validation and enums
# shared by the services:
# - business.py: Business profile, hours, tax info, images, documents
# - onboarding.py: Phase 1 business info, application, Phase 2 steps
# - catalog.py: Business services and add-ons
# - payments.py: Stripe Connect and Plaid
# - admin.py: Admin console operations
# =============================================================================

# -----------------------------------------------------------------------------
# Business Models
# -----------------------------------------------------------------------------
from .business import (
    TAX_ENTITY_TYPES,
    BusinessHoursUpdate,
    BusinessProfileUpdate,
    BusinessType,
    CategoryAssociationUpdate,
    DocumentCreate,
    DocumentStatus,
    ImageType,
    ImageUploadRequest,
    ProviderRole,
    TaxInfoUpdate,
    VerificationStatus,
)

# -----------------------------------------------------------------------------
# Onboarding Models
# -----------------------------------------------------------------------------
from .onboarding import (
    PHASE2_STEPS,
    BusinessAddress,
    BusinessInfoData,
    BusinessInfoRequest,
    FinalConsents,
    OnboardingPhase,
    Phase2ProgressRequest,
    Phase2Step,
    Phase2TokenRequest,
    SubmitApplicationRequest,
)

# -----------------------------------------------------------------------------
# Catalogue Models
# -----------------------------------------------------------------------------
from .catalog import (
    BusinessAddonUpdate,
    BusinessServiceCreate,
    BusinessServiceUpdate,
    DeliveryType,
    ServiceStatusFilter,
)

# -----------------------------------------------------------------------------
# Payment Models
# -----------------------------------------------------------------------------
from .payments import (
    AccountLinkRequest,
    ConnectAccountRequest,
    ConnectAccountStatus,
    ConnectBusinessType,
    LinkTokenRequest,
    PublicTokenExchangeRequest,
)

# -----------------------------------------------------------------------------
# Admin Models
# -----------------------------------------------------------------------------
from .admin import (
    AdminBusinessUpdate,
    ApproveBusinessRequest,
    CustomerStatusUpdate,
    DocumentReview,
    EnumValueRequest,
    ProviderUpdate,
    RejectBusinessRequest,
    StatusFilter,
)

__all__ = [
    # Business
    "TAX_ENTITY_TYPES",
    "BusinessHoursUpdate",
    "BusinessProfileUpdate",
    "BusinessType",
    "CategoryAssociationUpdate",
    "DocumentCreate",
    "DocumentStatus",
    "ImageType",
    "ImageUploadRequest",
    "ProviderRole",
    "TaxInfoUpdate",
    "VerificationStatus",
    # Onboarding
    "PHASE2_STEPS",
    "BusinessAddress",
    "BusinessInfoData",
    "BusinessInfoRequest",
    "FinalConsents",
    "OnboardingPhase",
    "Phase2ProgressRequest",
    "Phase2Step",
    "Phase2TokenRequest",
    "SubmitApplicationRequest",
    # Catalogue
    "BusinessAddonUpdate",
    "BusinessServiceCreate",
    "BusinessServiceUpdate",
    "DeliveryType",
    "ServiceStatusFilter",
    # Payments
    "AccountLinkRequest",
    "ConnectAccountRequest",
    "ConnectAccountStatus",
    "ConnectBusinessType",
    "LinkTokenRequest",
    "PublicTokenExchangeRequest",
    # Admin
    "AdminBusinessUpdate",
    "ApproveBusinessRequest",
    "CustomerStatusUpdate",
    "DocumentReview",
    "EnumValueRequest",
    "ProviderUpdate",
    "RejectBusinessRequest",
    "StatusFilter",
]
