# =============================================================================
# core/services/tax_service.py - Business Tax Information
# =============================================================================
# Tax details collected for Stripe Connect are stored in
# business_stripe_tax_info, one row per business.
# =============================================================================

import logging
from typing import Any

from lib.supabase_client import SupabaseClient
from lib.utils import first_or_none, utc_now_iso
from core.models.business import TAX_ENTITY_TYPES, ProviderRole
from app.exceptions import DatabaseError, InvalidRequestError, NotFoundError

logger = logging.getLogger(__name__)

TABLE = "business_stripe_tax_info"

DEFAULT_ENTITY_TYPE = "llc"
DEFAULT_TAX_ID_TYPE = "EIN"
DEFAULT_COUNTRY = "US"
DEFAULT_CONTACT_NAME = "Business Owner"


def normalize_tax_id_type(value: str | None) -> str:
    """EIN or SSN, case-insensitive. Anything else is treated as EIN."""
    upper = (value or "").strip().upper()
    return upper if upper in ("EIN", "SSN") else DEFAULT_TAX_ID_TYPE


def normalize_entity_type(value: str | None) -> str:
    return value if value in TAX_ENTITY_TYPES else DEFAULT_ENTITY_TYPE


class TaxInfoService:
    """Service for reading and saving business tax information."""

    @staticmethod
    def get_tax_info(business_id: str) -> dict[str, Any]:
        tax_info = SupabaseClient.fetch_one(TABLE, "business_id", business_id)
        return {"business_id": business_id, "tax_info": tax_info}

    @staticmethod
    def resolve_contact(
        business_id: str,
        contact_name: str | None,
        contact_email: str | None,
    ) -> tuple[str, str | None]:
        """
        Fill in the tax contact from the business profile, then the owner.

        Returns:
            (contact_name, contact_email); the email may still be None

        Raises:
            NotFoundError: If the business doesn't exist
        """
        if contact_name and contact_email:
            return contact_name, contact_email

        business = SupabaseClient.fetch_one(
            "business_profiles", "id", business_id, columns="business_name, contact_email"
        )
        if not business:
            raise NotFoundError("business", business_id)

        name = contact_name or business.get("business_name") or DEFAULT_CONTACT_NAME
        email = contact_email or business.get("contact_email")

        if not email:
            owner = SupabaseClient.fetch_one(
                "providers",
                "business_id",
                business_id,
                columns="email, first_name, last_name",
                filters={"provider_role": ProviderRole.OWNER.value},
            )
            if owner and owner.get("email"):
                email = owner["email"]
                if not contact_name:
                    full_name = f"{owner.get('first_name') or ''} {owner.get('last_name') or ''}".strip()
                    name = full_name or name

        return name, email

    @staticmethod
    def save_tax_info(data: dict[str, Any]) -> dict[str, Any]:
        """
        Upsert tax information for a business.

        Args:
            data: TaxInfoUpdate fields; business_id is required

        Raises:
            InvalidRequestError: No business_id or no resolvable contact email
            NotFoundError: Unknown business
            DatabaseError: If the upsert fails
        """
        business_id = data.get("business_id")
        if not business_id:
            raise InvalidRequestError("business_id is required")

        contact_name, contact_email = TaxInfoService.resolve_contact(
            business_id,
            data.get("tax_contact_name"),
            data.get("tax_contact_email"),
        )
        if not contact_email:
            raise InvalidRequestError(
                "Contact email is required. Please ensure your business profile has a contact email.",
                suggestion="Provide tax_contact_email or set a contact email on the business profile",
            )

        row = {
            "business_id": business_id,
            "business_entity_type": normalize_entity_type(data.get("business_entity_type")),
            "legal_business_name": data.get("legal_business_name") or None,
            "tax_id": data.get("tax_id") or None,
            "tax_id_type": normalize_tax_id_type(data.get("tax_id_type")),
            "tax_address_line1": data.get("tax_address_line1") or None,
            "tax_address_line2": data.get("tax_address_line2") or None,
            "tax_city": data.get("tax_city") or None,
            "tax_state": data.get("tax_state") or None,
            "tax_postal_code": data.get("tax_postal_code") or None,
            "tax_country": data.get("tax_country") or DEFAULT_COUNTRY,
            "tax_contact_name": contact_name,
            "tax_contact_email": contact_email,
            "tax_contact_phone": data.get("tax_contact_phone") or None,
            "updated_at": utc_now_iso(),
        }

        client = SupabaseClient.get_client()
        try:
            response = (
                client.table(TABLE)
                .upsert(row, on_conflict="business_id")
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to save tax info for {business_id}: {e}")
            raise DatabaseError("save tax info", str(e))

        logger.info(f"Saved tax info for business {business_id}")
        return {"message": "Saved", "tax_info": first_or_none(response.data) or row}
