# =============================================================================
# tests/test_stripe_service.py - Stripe Connect Tests
# =============================================================================
# Stripe calls are patched; nothing reaches the API.
#
# Run with: pytest tests/test_stripe_service.py -v
# =============================================================================

from unittest.mock import patch

import pytest
import stripe

from app.config import settings
from app.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    MissingFieldsError,
    NotFoundError,
    ServiceNotConfiguredError,
    StripeOperationError,
)
from core.models.payments import ConnectAccountStatus
from core.services.stripe_service import (
    TABLE,
    StripeConnectService,
    derive_account_status,
    parse_date_of_birth,
)
from tests.conftest import BUSINESS_ID, USER_ID


def account(**fields):
    data = {
        "id": "acct_123",
        "country": "US",
        "default_currency": "usd",
        "business_type": "individual",
        "charges_enabled": False,
        "payouts_enabled": False,
        "details_submitted": False,
        "requirements": {"currently_due": [], "eventually_due": [], "past_due": []},
        "capabilities": {"transfers": "inactive"},
    }
    data.update(fields)
    return data


def connect_request(**overrides):
    data = {
        "userId": USER_ID,
        "businessId": BUSINESS_ID,
        "businessName": "Glow Mobile Spa",
        "businessType": "individual",
        "email": "owner@example.com",
        "country": "US",
        "firstName": "Ada",
        "lastName": "Lane",
        "dateOfBirth": "1990-04-12",
    }
    data.update(overrides)
    return data


class TestHelpers:

    def test_parse_date_of_birth(self):
        assert parse_date_of_birth("1990-04-12") == {"day": 12, "month": 4, "year": 1990}

    def test_parse_date_of_birth_rejects_other_formats(self):
        with pytest.raises(InvalidRequestError):
            parse_date_of_birth("04/12/1990")

    @pytest.mark.parametrize("fields,expected", [
        ({"charges_enabled": True, "payouts_enabled": True}, ConnectAccountStatus.COMPLETE),
        ({"details_submitted": True}, ConnectAccountStatus.REVIEW),
        ({"requirements": {"currently_due": ["external_account"]}}, ConnectAccountStatus.INCOMPLETE),
        ({}, ConnectAccountStatus.PENDING),
    ])
    def test_derive_account_status(self, fields, expected):
        status, _ = derive_account_status(account(**fields))
        assert status == expected

    def test_incomplete_message_counts_items(self):
        _, message = derive_account_status(account(requirements={"currently_due": ["a", "b"]}))
        assert "2 items" in message

    def test_company_params(self):
        params = StripeConnectService.build_account_params(
            connect_request(businessType="company", companyName="Glow LLC", taxId="12-3456789"),
            {"address_line1": "1 Main St", "city": "Austin", "state": "TX", "postal_code": "78701"},
        )

        assert params["company"]["name"] == "Glow LLC"
        assert params["company"]["address"]["country"] == "US"
        assert "individual" not in params
        assert params["controller"]["stripe_dashboard"]["type"] == "express"

    def test_individual_params_without_location(self):
        params = StripeConnectService.build_account_params(connect_request(), None)

        assert params["individual"]["dob"] == {"day": 12, "month": 4, "year": 1990}
        assert "address" not in params["individual"]
        assert params["metadata"] == {"user_id": USER_ID, "business_id": BUSINESS_ID}


class TestCreateConnectAccount:

    def test_not_configured(self, fake_db):
        with patch.object(settings, "STRIPE_SECRET_KEY", ""):
            with pytest.raises(ServiceNotConfiguredError) as exc_info:
                StripeConnectService.create_connect_account(connect_request())

        assert exc_info.value.code == "STRIPE_NOT_CONFIGURED"
        assert exc_info.value.status_code == 500

    def test_individual_needs_date_of_birth(self, fake_db):
        with pytest.raises(MissingFieldsError) as exc_info:
            StripeConnectService.create_connect_account(connect_request(dateOfBirth=None))
        assert exc_info.value.details["missing"] == ["dateOfBirth"]

    def test_unknown_business_type(self, fake_db):
        with pytest.raises(InvalidRequestError):
            StripeConnectService.create_connect_account(connect_request(businessType="partnership"))

    def test_business_must_be_owned(self, fake_db):
        with pytest.raises(NotFoundError):
            StripeConnectService.create_connect_account(connect_request())

    def test_business_must_be_approved(self, fake_db):
        fake_db.set_result("business_profiles", data=[
            {"id": BUSINESS_ID, "business_name": "Glow", "verification_status": "under_review"}
        ])

        with pytest.raises(ForbiddenError):
            StripeConnectService.create_connect_account(connect_request())

    def test_existing_account_conflicts(self, fake_db):
        fake_db.set_result("business_profiles", data=[
            {"id": BUSINESS_ID, "business_name": "Glow", "verification_status": "approved"}
        ])
        fake_db.set_result(TABLE, data=[{"account_id": "acct_old"}])

        with pytest.raises(ConflictError) as exc_info:
            StripeConnectService.create_connect_account(connect_request())
        assert exc_info.value.details == {"accountId": "acct_old"}

    @patch("stripe.AccountLink.create")
    @patch("stripe.Account.create")
    def test_creates_and_stores_account(self, mock_create, mock_link, fake_db):
        fake_db.set_result("business_profiles", data=[
            {"id": BUSINESS_ID, "business_name": "Glow", "verification_status": "approved"}
        ])
        mock_create.return_value = account()
        mock_link.return_value = {"url": "https://connect.stripe.com/setup/e/acct_123", "expires_at": 1700000000}

        result = StripeConnectService.create_connect_account(connect_request())

        assert result["success"] is True
        assert result["account"]["id"] == "acct_123"
        assert result["onboarding_url"].startswith("https://connect.stripe.com")

        stored = fake_db.calls(TABLE, "insert")[0].payload
        assert stored["account_id"] == "acct_123"
        assert stored["business_type"] == "individual"
        assert fake_db.calls("business_profiles", "update")[0].payload["stripe_connect_account_id"] == "acct_123"

        link_kwargs = mock_link.call_args.kwargs
        assert link_kwargs["account"] == "acct_123"
        assert link_kwargs["return_url"].endswith("success=true")

    @patch("stripe.Account.create")
    def test_stripe_error_becomes_400(self, mock_create, fake_db):
        fake_db.set_result("business_profiles", data=[
            {"id": BUSINESS_ID, "business_name": "Glow", "verification_status": "approved"}
        ])
        mock_create.side_effect = stripe.InvalidRequestError("Invalid country", param="country")

        with pytest.raises(StripeOperationError) as exc_info:
            StripeConnectService.create_connect_account(connect_request())

        assert exc_info.value.status_code == 400
        assert exc_info.value.code == "STRIPE_ERROR"
        assert fake_db.calls(TABLE, "insert") == []


class TestCheckAccountStatus:

    def test_requires_ids(self, fake_db):
        with pytest.raises(MissingFieldsError):
            StripeConnectService.check_account_status(USER_ID, None)

    def test_no_stored_account(self, fake_db):
        with pytest.raises(NotFoundError):
            StripeConnectService.check_account_status(USER_ID, BUSINESS_ID)

    @patch("stripe.Account.retrieve")
    def test_refreshes_flags(self, mock_retrieve, fake_db):
        fake_db.set_result(TABLE, data=[{"id": "row-1", "account_id": "acct_123"}])
        mock_retrieve.return_value = account(
            details_submitted=True,
            requirements={"currently_due": [], "eventually_due": ["individual.id_number"], "past_due": []},
        )

        result = StripeConnectService.check_account_status(USER_ID, BUSINESS_ID)

        assert result["account"]["status"] == "review"
        assert result["account"]["needs_verification"] is True
        assert result["account"]["verification_progress"] == {
            "total_requirements": 1,
            "completed_requirements": 1,
        }
        assert result["can_accept_payments"] is False

        update = fake_db.calls(TABLE, "update")[0]
        assert update.payload["details_submitted"] is True
        assert update.eq_value("id") == "row-1"


class TestRefreshAccountLink:

    def test_requires_business(self, fake_db):
        with pytest.raises(MissingFieldsError):
            StripeConnectService.refresh_account_link(None)

    @patch("stripe.AccountLink.create")
    def test_new_link(self, mock_link, fake_db):
        fake_db.set_result(TABLE, data=[{"account_id": "acct_123"}])
        mock_link.return_value = {"url": "https://connect.stripe.com/setup/e/new", "expires_at": 1700000300}

        result = StripeConnectService.refresh_account_link(BUSINESS_ID)

        assert result["account_id"] == "acct_123"
        assert result["url"].endswith("/new")
