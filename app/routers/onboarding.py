# =============================================================================
# app/routers/onboarding.py - Business Onboarding Endpoints
# =============================================================================
# Phase 1 (business info, status, application) and the Phase 2 wizard
# (token validation, profile, step progress).
#
# Callers authenticate with a Supabase JWT or, in Phase 2, with the
# X-Phase2-Token header from the approval link.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from app.auth import OnboardingAccess, get_onboarding_access
from core.models.business import BusinessProfileUpdate
from core.models.onboarding import (
    BusinessInfoRequest,
    Phase2ProgressRequest,
    Phase2TokenRequest,
    SubmitApplicationRequest,
)
from core.services.business_service import BusinessService
from core.services.onboarding_service import OnboardingService
from core.services.setup_progress_service import SetupProgressService

router = APIRouter()


# =============================================================================
# Phase 1
# =============================================================================

@router.post("/business-info")
async def submit_business_info(
    request: BusinessInfoRequest,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """
    Create or update the business from the Phase 1 form.

    Also links the owner provider, rewrites service categories and saves the
    primary location when an address is given.
    """
    business_data = (
        request.business_data.model_dump(mode="json", by_alias=True)
        if request.business_data else None
    )
    return OnboardingService.submit_business_info(access.acting_user(request.user_id), business_data)


@router.get("/status/{user_id}")
async def get_onboarding_status(
    user_id: Annotated[str, Path(description="Auth user UUID")],
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """Where the user is in onboarding and where the portal should send them."""
    return OnboardingService.get_status(access.acting_user(user_id))


@router.post("/submit-application")
async def submit_application(
    request: SubmitApplicationRequest,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """Submit the Phase 1 application for admin review."""
    access.ensure_business(request.business_id)
    consents = (
        request.final_consents.model_dump(by_alias=True)
        if request.final_consents else None
    )
    return OnboardingService.submit_application(
        access.acting_user(request.user_id),
        request.business_id,
        consents,
        request.submission_metadata,
    )


# =============================================================================
# Phase 2
# =============================================================================

@router.post("/validate-phase2-token")
async def validate_phase2_token(request: Phase2TokenRequest):
    """
    Check the token from an approval link.

    Public: the token itself is the credential.
    """
    return SetupProgressService.validate_token(request.token)


@router.get("/business-profile/{business_id}")
async def get_business_profile(
    business_id: Annotated[str, Path(description="Business UUID")],
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    access.ensure_business(business_id)
    return BusinessService.get_profile(business_id)


@router.put("/business-profile/{business_id}")
async def update_business_profile(
    business_id: Annotated[str, Path(description="Business UUID")],
    request: BusinessProfileUpdate,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """Partial update; fields left out of the body are untouched."""
    access.ensure_business(business_id)
    return BusinessService.update_profile(business_id, request.model_dump())


@router.post("/save-phase2-progress")
async def save_phase2_progress(
    request: Phase2ProgressRequest,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """Mark one Phase 2 step complete and store its data."""
    access.ensure_business(request.business_id)
    return SetupProgressService.save_step(request.business_id, request.step, request.data)


@router.get("/progress/{business_id}")
async def get_phase2_progress(
    business_id: Annotated[str, Path(description="Business UUID")],
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    access.ensure_business(business_id)
    return SetupProgressService.get_progress(business_id)
