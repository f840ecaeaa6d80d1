# =============================================================================
# core/models/payments.py - Stripe Connect and Plaid Schemas
# =============================================================================

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ConnectBusinessType(str, Enum):
    """Stripe Connect account business_type."""
    INDIVIDUAL = "individual"
    COMPANY = "company"


class ConnectAccountStatus(str, Enum):
    """
    Onboarding state derived from a live Stripe account.

    - complete: charges and payouts enabled
    - review: details submitted, Stripe is verifying
    - incomplete: information is currently due
    - pending: nothing submitted yet
    """
    COMPLETE = "complete"
    REVIEW = "review"
    INCOMPLETE = "incomplete"
    PENDING = "pending"


class ConnectAccountRequest(BaseModel):
    """
    Body of POST /stripe/create-connect-account.

    Individuals need first/last name and date of birth; companies need a
    company name and tax id.
    """

    model_config = {"populate_by_name": True}

    user_id: str | None = Field(default=None, alias="userId")
    business_id: str | None = Field(default=None, alias="businessId")
    business_name: str | None = Field(default=None, alias="businessName")
    business_type: str | None = Field(default=None, alias="businessType")
    email: str | None = None
    country: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    date_of_birth: str | None = Field(default=None, alias="dateOfBirth", description="YYYY-MM-DD")
    company_name: str | None = Field(default=None, alias="companyName")
    tax_id: str | None = Field(default=None, alias="taxId")
    phone: str | None = None


class AccountLinkRequest(BaseModel):
    model_config = {"populate_by_name": True}

    business_id: str | None = Field(default=None, alias="businessId")


class LinkTokenRequest(BaseModel):
    model_config = {"populate_by_name": True}

    user_id: str | None = Field(default=None, alias="userId")
    business_id: str | None = Field(default=None, alias="businessId")


class PublicTokenExchangeRequest(BaseModel):
    """
    Completes Plaid Link.

    account_id is the account the user picked in Link; metadata is the Link
    success metadata (institution, accounts) and is stored as-is.
    """

    model_config = {"populate_by_name": True}

    public_token: str | None = None
    account_id: str | None = None
    user_id: str | None = Field(default=None, alias="userId")
    business_id: str | None = Field(default=None, alias="businessId")
    metadata: dict[str, Any] | None = None
