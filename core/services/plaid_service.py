# =============================================================================
# core/services/plaid_service.py - Plaid Bank Linking
# =============================================================================
# Connects a business bank account for payouts:
#   1. create link token -> portal opens Plaid Link
#   2. exchange public token -> access token, account details, ACH numbers
#   3. store in plaid_bank_connections (one per business)
#
# Access tokens are stored but never returned to the portal.
# =============================================================================

import logging
from typing import Any

from lib.plaid_client import PlaidClient, PlaidClientError
from lib.supabase_client import SupabaseClient
from lib.utils import missing_fields, utc_now_iso
from app.config import settings
from app.exceptions import (
    DatabaseError,
    InvalidRequestError,
    MissingFieldsError,
    NotFoundError,
    PlaidOperationError,
    ServiceNotConfiguredError,
)

logger = logging.getLogger(__name__)

TABLE = "plaid_bank_connections"

# Columns safe to return to the portal
CONNECTION_SUMMARY_COLUMNS = (
    "business_id, institution_id, institution_name, account_name, account_mask, "
    "account_type, account_subtype, verification_status, connected_at, is_active"
)

EXCHANGE_REQUIRED = ["public_token", "account_id", "userId", "businessId"]


class PlaidService:
    """Service for Plaid bank account linking."""

    @staticmethod
    def _call(path: str, body: dict[str, Any]) -> dict[str, Any]:
        """
        Raises:
            ServiceNotConfiguredError: Plaid credentials unset
            PlaidOperationError: Plaid rejected the request
        """
        if not settings.plaid_configured:
            raise ServiceNotConfiguredError("Plaid", ["PLAID_CLIENT_ID", "PLAID_SECRET"])
        try:
            return PlaidClient.post(path, body)
        except PlaidClientError as e:
            raise PlaidOperationError(e.message, error_code=e.error_code)

    @staticmethod
    def _owned_business(user_id: str, business_id: str) -> dict[str, Any]:
        business = SupabaseClient.fetch_one(
            "business_profiles", "id", business_id,
            columns="id, business_name",
            filters={"owner_user_id": user_id},
        )
        if not business:
            raise NotFoundError("business", business_id)
        return business

    @staticmethod
    def create_link_token(user_id: str | None, business_id: str | None) -> dict[str, Any]:
        """
        Link token for Plaid Link (Auth product, US institutions).

        Raises:
            MissingFieldsError: userId or businessId missing
            NotFoundError: Business not owned by the user
        """
        required = ["userId", "businessId"]
        missing = missing_fields({"userId": user_id, "businessId": business_id}, required)
        if missing:
            raise MissingFieldsError(required, missing)

        business = PlaidService._owned_business(user_id, business_id)
        response = PlaidService._call("/link/token/create", {
            "client_name": business.get("business_name") or "Business payouts",
            "user": {"client_user_id": user_id},
            "products": ["auth"],
            "country_codes": ["US"],
            "language": "en",
        })

        return {
            "link_token": response.get("link_token"),
            "expiration": response.get("expiration"),
        }

    @staticmethod
    def exchange_public_token(data: dict[str, Any]) -> dict[str, Any]:
        """
        Complete Plaid Link for the selected account.

        Raises:
            MissingFieldsError: Required fields missing
            NotFoundError: Business not owned by the user
            InvalidRequestError: Selected account absent or not verifiable
            PlaidOperationError: Plaid rejected a request
            DatabaseError: Connection can't be stored
        """
        missing = missing_fields(data, EXCHANGE_REQUIRED)
        if missing:
            raise MissingFieldsError(EXCHANGE_REQUIRED, missing)

        user_id = data["userId"]
        business_id = data["businessId"]
        account_id = data["account_id"]
        metadata = data.get("metadata") or {}

        PlaidService._owned_business(user_id, business_id)

        exchange = PlaidService._call("/item/public_token/exchange", {"public_token": data["public_token"]})
        access_token = exchange["access_token"]
        item_id = exchange.get("item_id")

        accounts = PlaidService._call("/accounts/get", {"access_token": access_token})
        selected = next(
            (account for account in accounts.get("accounts", []) if account.get("account_id") == account_id),
            None,
        )
        if not selected:
            raise InvalidRequestError("Selected account not found", details={"account_id": account_id})

        institution_id = (
            (metadata.get("institution") or {}).get("institution_id")
            or (accounts.get("item") or {}).get("institution_id")
        )
        institution: dict[str, Any] = {"institution_id": institution_id, "name": None}
        if institution_id:
            institution = PlaidService._call("/institutions/get_by_id", {
                "institution_id": institution_id,
                "country_codes": ["US"],
            }).get("institution", institution)

        auth = PlaidService._call("/auth/get", {
            "access_token": access_token,
            "options": {"account_ids": [account_id]},
        })
        ach_numbers = [
            number for number in (auth.get("numbers") or {}).get("ach", [])
            if number.get("account_id") == account_id
        ]
        if not ach_numbers:
            raise InvalidRequestError("Account verification failed", details={"account_id": account_id})

        now = utc_now_iso()
        connection = {
            "user_id": user_id,
            "business_id": business_id,
            "plaid_access_token": access_token,
            "plaid_item_id": item_id,
            "plaid_account_id": account_id,
            "institution_id": institution.get("institution_id"),
            "institution_name": institution.get("name"),
            "account_name": selected.get("name"),
            "account_mask": selected.get("mask"),
            "account_type": selected.get("type"),
            "account_subtype": selected.get("subtype"),
            "verification_status": "verified",
            "routing_numbers": [number.get("routing") for number in ach_numbers],
            "account_number_mask": (ach_numbers[0].get("account") or "")[-4:],
            "connected_at": now,
            "is_active": True,
        }

        client = SupabaseClient.get_client()
        try:
            client.table(TABLE).upsert(connection, on_conflict="business_id").execute()
        except Exception as e:
            logger.error(f"Failed to store bank connection for {business_id}: {e}")
            raise DatabaseError("store bank connection", str(e))

        logger.info(f"Bank account linked for business {business_id} ({institution.get('name')})")

        follow_ups = (
            ("business_profiles", {"bank_connected": True, "bank_connected_at": now, "updated_at": now}, "id"),
            ("business_setup_progress", {"plaid_connected": True, "updated_at": now}, "business_id"),
        )
        for table, updates, column in follow_ups:
            try:
                client.table(table).update(updates).eq(column, business_id).execute()
            except Exception as e:
                logger.warning(f"Bank linked but {table} update failed: {e}")

        return {
            "item_id": item_id,
            "institution": {
                "name": institution.get("name"),
                "institution_id": institution.get("institution_id"),
            },
            "accounts": [{
                "account_id": selected.get("account_id"),
                "name": selected.get("name"),
                "mask": selected.get("mask"),
                "type": selected.get("type"),
                "subtype": selected.get("subtype"),
                "verification_status": "verified",
            }],
            "connected_at": now,
        }

    @staticmethod
    def get_connection(business_id: str) -> dict[str, Any]:
        """Stored connection without tokens or account numbers."""
        connection = SupabaseClient.fetch_one(
            TABLE, "business_id", business_id, columns=CONNECTION_SUMMARY_COLUMNS
        )
        if not connection:
            return {"business_id": business_id, "connected": False}
        return {"connected": bool(connection.get("is_active")), **connection}
