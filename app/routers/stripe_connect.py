# =============================================================================
# app/routers/stripe_connect.py - Stripe Connect Endpoints
# =============================================================================
# Payout account setup during Phase 2. Stripe hosts the KYC forms; these
# endpoints create the account, report its status and issue fresh
# onboarding links.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.auth import OnboardingAccess, get_onboarding_access
from core.models.payments import AccountLinkRequest, ConnectAccountRequest
from core.services.stripe_service import StripeConnectService

router = APIRouter()


@router.post("/create-connect-account")
async def create_connect_account(
    request: ConnectAccountRequest,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """
    Create the Connect account for an approved business.

    Returns the account and a Stripe-hosted onboarding URL.
    """
    access.ensure_business(request.business_id)
    data = request.model_dump(by_alias=True)
    data["userId"] = access.acting_user(request.user_id)
    return StripeConnectService.create_connect_account(data)


@router.get("/check-connect-account-status")
async def check_connect_account_status(
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    business_id: Annotated[str | None, Query(alias="businessId")] = None,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    access.ensure_business(business_id)
    return StripeConnectService.check_account_status(access.acting_user(user_id), business_id)


@router.post("/create-account-link")
async def create_account_link(
    request: AccountLinkRequest,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """New onboarding link when the previous one expired or was used."""
    access.ensure_business(request.business_id)
    return StripeConnectService.refresh_account_link(request.business_id)
