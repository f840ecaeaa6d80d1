# =============================================================================
# core/models/onboarding.py - Onboarding Schemas
# =============================================================================
# Request bodies for the two onboarding phases:
#
# Phase 1 (before admin review):
#   business info -> documents -> submit application
#
# Phase 2 (after approval, reached through a Phase 2 link):
#   welcome -> business_profile -> personal_profile -> business_hours
#   -> banking_payout -> service_pricing -> final_review
# =============================================================================

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Phase2Step(str, Enum):
    """Phase 2 wizard steps, in the order the portal presents them."""
    WELCOME = "welcome"
    BUSINESS_PROFILE = "business_profile"
    PERSONAL_PROFILE = "personal_profile"
    BUSINESS_HOURS = "business_hours"
    BANKING_PAYOUT = "banking_payout"
    SERVICE_PRICING = "service_pricing"
    FINAL_REVIEW = "final_review"

    @property
    def completed_column(self) -> str:
        """business_setup_progress flag set when the step is saved."""
        return f"{self.value}_completed"


PHASE2_STEPS: tuple[Phase2Step, ...] = tuple(Phase2Step)


class OnboardingPhase(str, Enum):
    PHASE1 = "phase1"
    PHASE2 = "phase2"
    COMPLETE = "complete"


# Document types an application needs before it can be reviewed
REQUIRED_DOCUMENT_TYPES = ("professional_license", "professional_headshot")
BUSINESS_LICENSE_DOCUMENT = "business_license"


# =============================================================================
# Phase 1
# =============================================================================

class BusinessAddress(BaseModel):
    """Primary business location as entered in Phase 1."""

    model_config = {"populate_by_name": True}

    address_line1: str | None = Field(default=None, alias="addressLine1")
    address_line2: str | None = Field(default=None, alias="addressLine2")
    city: str | None = None
    state: str | None = None
    postal_code: str | None = Field(default=None, alias="postalCode")
    country: str | None = None


class BusinessInfoData(BaseModel):
    """
    Business details collected in Phase 1.

    Example:
        {
            "businessName": "Glow Mobile Spa",
            "businessType": "independent",
            "contactEmail": "owner@glow.example.com",
            "phone": "+15555550100",
            "serviceCategories": ["c1f0..."],
            "serviceSubcategories": ["s9a2..."]
        }
    """

    model_config = {"populate_by_name": True}

    business_name: str | None = Field(default=None, alias="businessName")
    business_type: str | None = Field(default=None, alias="businessType")
    contact_email: str | None = Field(default=None, alias="contactEmail")
    phone: str | None = None
    service_categories: list[str] = Field(default_factory=list, alias="serviceCategories")
    service_subcategories: list[str] = Field(default_factory=list, alias="serviceSubcategories")
    business_address: BusinessAddress | None = Field(default=None, alias="businessAddress")
    website: str | None = None
    social_media: Any = Field(default=None, alias="socialMedia")
    business_description: str | None = Field(default=None, alias="businessDescription")


class BusinessInfoRequest(BaseModel):
    model_config = {"populate_by_name": True}

    user_id: str | None = Field(default=None, alias="userId")
    business_data: BusinessInfoData | None = Field(default=None, alias="businessData")


class FinalConsents(BaseModel):
    model_config = {"populate_by_name": True}

    information_accuracy: bool = Field(default=False, alias="informationAccuracy")
    terms_accepted: bool = Field(default=False, alias="termsAccepted")
    background_check_consent: bool = Field(default=False, alias="backgroundCheckConsent")

    @property
    def all_given(self) -> bool:
        return self.information_accuracy and self.terms_accepted and self.background_check_consent


class SubmitApplicationRequest(BaseModel):
    model_config = {"populate_by_name": True}

    user_id: str | None = Field(default=None, alias="userId")
    business_id: str | None = Field(default=None, alias="businessId")
    final_consents: FinalConsents | None = Field(default=None, alias="finalConsents")
    submission_metadata: dict[str, Any] | None = Field(default=None, alias="submissionMetadata")


# =============================================================================
# Phase 2
# =============================================================================

class Phase2TokenRequest(BaseModel):
    token: str | None = None


class Phase2ProgressRequest(BaseModel):
    """
    Saves one Phase 2 step.

    `step` is validated by the service so an unknown step answers 400
    with the list of valid steps.
    """

    business_id: str | None = None
    step: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
