# =============================================================================
# app/routers/plaid.py - Plaid Bank Linking Endpoints
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.auth import OnboardingAccess, get_onboarding_access
from app.exceptions import MissingFieldsError
from core.models.payments import LinkTokenRequest, PublicTokenExchangeRequest
from core.services.plaid_service import PlaidService

router = APIRouter()


@router.post("/create-link-token")
async def create_link_token(
    request: LinkTokenRequest,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    access.ensure_business(request.business_id)
    return PlaidService.create_link_token(access.acting_user(request.user_id), request.business_id)


@router.post("/exchange-public-token")
async def exchange_public_token(
    request: PublicTokenExchangeRequest,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """
    Finish Plaid Link: verify the selected account and store the connection.

    The response never includes the Plaid access token.
    """
    access.ensure_business(request.business_id)
    data = request.model_dump(by_alias=True)
    data["userId"] = access.acting_user(request.user_id)
    return PlaidService.exchange_public_token(data)


@router.get("/bank-connection")
async def get_bank_connection(
    business_id: Annotated[str | None, Query(description="Business UUID")] = None,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    if not business_id:
        raise MissingFieldsError(["business_id"])
    access.ensure_business(business_id)
    return PlaidService.get_connection(business_id)
