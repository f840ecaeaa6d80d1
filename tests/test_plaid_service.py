# =============================================================================
# tests/test_plaid_service.py - Plaid Bank Linking Tests
# =============================================================================
# PlaidClient.post is patched for service tests; the client itself is
# exercised against an httpx.MockTransport.
#
# Run with: pytest tests/test_plaid_service.py -v
# =============================================================================

import json
from unittest.mock import patch

import httpx
import pytest

from app.config import settings
from app.exceptions import (
    InvalidRequestError,
    MissingFieldsError,
    NotFoundError,
    PlaidOperationError,
    ServiceNotConfiguredError,
)
from core.services.plaid_service import TABLE, PlaidService
from lib.plaid_client import PlaidClient, PlaidClientError
from tests.conftest import BUSINESS_ID, USER_ID


PLAID_RESPONSES = {
    "/item/public_token/exchange": {"access_token": "access-sandbox-1", "item_id": "item-1"},
    "/accounts/get": {
        "accounts": [
            {"account_id": "acc-chk", "name": "Checking", "mask": "0000", "type": "depository", "subtype": "checking"},
            {"account_id": "acc-sav", "name": "Savings", "mask": "1111", "type": "depository", "subtype": "savings"},
        ],
        "item": {"institution_id": "ins_109508"},
    },
    "/institutions/get_by_id": {"institution": {"institution_id": "ins_109508", "name": "First Platypus Bank"}},
    "/auth/get": {
        "numbers": {"ach": [
            {"account_id": "acc-chk", "account": "1111222233330000", "routing": "011401533"},
            {"account_id": "acc-sav", "account": "1111222233331111", "routing": "011401533"},
        ]}
    },
}


def fake_post(responses=PLAID_RESPONSES):
    def post(path, body):
        return responses[path]
    return post


def exchange_request(**overrides):
    data = {
        "public_token": "public-sandbox-1",
        "account_id": "acc-chk",
        "userId": USER_ID,
        "businessId": BUSINESS_ID,
    }
    data.update(overrides)
    return data


@pytest.fixture
def owned_business(fake_db):
    fake_db.set_result("business_profiles", data=[{"id": BUSINESS_ID, "business_name": "Glow"}])
    return fake_db


class TestCreateLinkToken:

    def test_requires_ids(self, fake_db):
        with pytest.raises(MissingFieldsError):
            PlaidService.create_link_token(None, BUSINESS_ID)

    def test_business_must_be_owned(self, fake_db):
        with pytest.raises(NotFoundError):
            PlaidService.create_link_token(USER_ID, BUSINESS_ID)

    def test_not_configured(self, owned_business):
        with patch.object(settings, "PLAID_SECRET", ""):
            with pytest.raises(ServiceNotConfiguredError) as exc_info:
                PlaidService.create_link_token(USER_ID, BUSINESS_ID)
        assert exc_info.value.code == "PLAID_NOT_CONFIGURED"

    @patch.object(PlaidClient, "post")
    def test_link_token(self, mock_post, owned_business):
        mock_post.return_value = {"link_token": "link-sandbox-1", "expiration": "2024-05-01T12:00:00Z"}

        result = PlaidService.create_link_token(USER_ID, BUSINESS_ID)

        assert result == {"link_token": "link-sandbox-1", "expiration": "2024-05-01T12:00:00Z"}
        path, body = mock_post.call_args.args
        assert path == "/link/token/create"
        assert body["client_name"] == "Glow"
        assert body["products"] == ["auth"]

    @patch.object(PlaidClient, "post")
    def test_plaid_error(self, mock_post, owned_business):
        mock_post.side_effect = PlaidClientError("invalid client_id", error_code="INVALID_API_KEYS")

        with pytest.raises(PlaidOperationError) as exc_info:
            PlaidService.create_link_token(USER_ID, BUSINESS_ID)
        assert exc_info.value.status_code == 400


class TestExchangePublicToken:

    def test_requires_fields(self, fake_db):
        with pytest.raises(MissingFieldsError) as exc_info:
            PlaidService.exchange_public_token(exchange_request(account_id=None))
        assert exc_info.value.details["missing"] == ["account_id"]

    def test_stores_selected_account(self, owned_business):
        with patch.object(PlaidClient, "post", side_effect=fake_post()):
            result = PlaidService.exchange_public_token(exchange_request())

        assert result["institution"]["name"] == "First Platypus Bank"
        assert result["accounts"][0]["mask"] == "0000"
        assert "access_token" not in str(result)

        stored = owned_business.calls(TABLE, "upsert")[0]
        assert stored.options["on_conflict"] == "business_id"
        assert stored.payload["plaid_access_token"] == "access-sandbox-1"
        assert stored.payload["routing_numbers"] == ["011401533"]
        assert stored.payload["account_number_mask"] == "0000"

        assert owned_business.calls("business_profiles", "update")[0].payload["bank_connected"] is True
        assert owned_business.calls("business_setup_progress", "update")[0].payload["plaid_connected"] is True

    def test_unknown_account(self, owned_business):
        with patch.object(PlaidClient, "post", side_effect=fake_post()):
            with pytest.raises(InvalidRequestError, match="Selected account not found"):
                PlaidService.exchange_public_token(exchange_request(account_id="acc-missing"))

    def test_account_without_ach_numbers(self, owned_business):
        responses = {**PLAID_RESPONSES, "/auth/get": {"numbers": {"ach": []}}}

        with patch.object(PlaidClient, "post", side_effect=fake_post(responses)):
            with pytest.raises(InvalidRequestError, match="Account verification failed"):
                PlaidService.exchange_public_token(exchange_request())

        assert owned_business.calls(TABLE, "upsert") == []

    def test_no_institution_skips_lookup(self, owned_business):
        responses = {**PLAID_RESPONSES, "/accounts/get": {**PLAID_RESPONSES["/accounts/get"], "item": {}}}

        with patch.object(PlaidClient, "post", side_effect=fake_post(responses)) as mock_post:
            result = PlaidService.exchange_public_token(exchange_request())

        called_paths = [call.args[0] for call in mock_post.call_args_list]
        assert "/institutions/get_by_id" not in called_paths
        assert result["institution"]["name"] is None


class TestGetConnection:

    def test_not_connected(self, fake_db):
        assert PlaidService.get_connection(BUSINESS_ID) == {"business_id": BUSINESS_ID, "connected": False}

    def test_connected(self, fake_db):
        fake_db.set_result(TABLE, data=[{
            "business_id": BUSINESS_ID,
            "institution_name": "First Platypus Bank",
            "account_mask": "0000",
            "is_active": True,
        }])

        connection = PlaidService.get_connection(BUSINESS_ID)

        assert connection["connected"] is True
        assert connection["account_mask"] == "0000"


class TestPlaidClient:

    @pytest.fixture
    def transport(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.path == "/accounts/get":
                return httpx.Response(400, json={
                    "error_type": "INVALID_INPUT",
                    "error_code": "INVALID_ACCESS_TOKEN",
                    "error_message": "provided access token is in an invalid format",
                })
            return httpx.Response(200, json={"link_token": "link-sandbox-1"})

        original = PlaidClient._http
        PlaidClient._http = httpx.Client(
            base_url="https://sandbox.plaid.com",
            transport=httpx.MockTransport(handler),
        )
        yield requests
        PlaidClient._http.close()
        PlaidClient._http = original

    def test_credentials_added_to_body(self, transport):
        assert PlaidClient.post("/link/token/create", {"language": "en"}) == {"link_token": "link-sandbox-1"}

        body = json.loads(transport[0].content)
        assert body["client_id"] == settings.PLAID_CLIENT_ID
        assert body["secret"] == settings.PLAID_SECRET
        assert body["language"] == "en"

    def test_error_response(self, transport):
        with pytest.raises(PlaidClientError) as exc_info:
            PlaidClient.post("/accounts/get", {"access_token": "bad"})

        assert exc_info.value.error_code == "INVALID_ACCESS_TOKEN"
        assert exc_info.value.status_code == 400
        assert "invalid format" in exc_info.value.message
