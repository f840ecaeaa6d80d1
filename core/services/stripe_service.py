# =============================================================================
# core/services/stripe_service.py - Stripe Connect Accounts
# =============================================================================
# Approved businesses receive payouts through a Stripe Connect account.
# The platform controls the account (pays Stripe fees, covers losses) and
# the owner manages it through the Express dashboard.
#
# Flow:
#   create account -> store in stripe_connect_accounts -> account link
#   -> owner completes Stripe onboarding -> status check refreshes flags
# =============================================================================

import logging
from datetime import date
from typing import Any

import stripe

from lib.supabase_client import SupabaseClient
from lib.utils import missing_fields, utc_now_iso
from core.models.business import VerificationStatus
from core.models.payments import ConnectAccountStatus, ConnectBusinessType
from app.config import settings
from app.exceptions import (
    ConflictError,
    DatabaseError,
    ForbiddenError,
    InvalidRequestError,
    MissingFieldsError,
    NotFoundError,
    ServiceNotConfiguredError,
    StripeOperationError,
)

logger = logging.getLogger(__name__)

TABLE = "stripe_connect_accounts"

CONNECT_REQUIRED = ["userId", "businessId", "businessName", "businessType", "email", "country"]
INDIVIDUAL_REQUIRED = ["firstName", "lastName", "dateOfBirth"]
COMPANY_REQUIRED = ["companyName", "taxId"]


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from a Stripe object or a plain dict."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _plain(obj: Any) -> Any:
    """Stripe object as JSON-serialisable data for storage."""
    if obj is None or isinstance(obj, dict):
        return obj
    to_dict = getattr(obj, "to_dict", None)
    return to_dict() if callable(to_dict) else None


def parse_date_of_birth(value: str) -> dict[str, int]:
    """
    YYYY-MM-DD as Stripe's dob object.

    Raises:
        InvalidRequestError: If the date can't be parsed
    """
    try:
        dob = date.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidRequestError(
            "dateOfBirth must be a date in YYYY-MM-DD format",
            details={"dateOfBirth": value},
        )
    return {"day": dob.day, "month": dob.month, "year": dob.year}


def derive_account_status(account: Any) -> tuple[ConnectAccountStatus, str]:
    """Onboarding status and message for a live Stripe account."""
    requirements = _field(account, "requirements")
    currently_due = _field(requirements, "currently_due") or []

    if _field(account, "charges_enabled") and _field(account, "payouts_enabled"):
        return ConnectAccountStatus.COMPLETE, "Account fully onboarded and ready to accept payments"
    if _field(account, "details_submitted"):
        return ConnectAccountStatus.REVIEW, "Account details submitted, pending Stripe review"
    if currently_due:
        return ConnectAccountStatus.INCOMPLETE, f"Account setup incomplete: {len(currently_due)} items required"
    return ConnectAccountStatus.PENDING, "Account setup in progress"


class StripeConnectService:
    """Service for Stripe Connect account onboarding."""

    @staticmethod
    def _configure() -> None:
        """
        Raises:
            ServiceNotConfiguredError: If STRIPE_SECRET_KEY is unset
        """
        if not settings.stripe_configured:
            raise ServiceNotConfiguredError("Stripe", ["STRIPE_SECRET_KEY"])
        stripe.api_key = settings.STRIPE_SECRET_KEY
        stripe.api_version = settings.STRIPE_API_VERSION

    @staticmethod
    def _stripe_error(e: "stripe.StripeError") -> StripeOperationError:
        logger.error(f"Stripe request failed: {e}")
        return StripeOperationError(
            getattr(e, "user_message", None) or str(e),
            error_type=_field(getattr(e, "error", None), "type") or type(e).__name__,
            error_code=getattr(e, "code", None),
        )

    @staticmethod
    def onboarding_urls() -> dict[str, str]:
        base = settings.APP_URL.rstrip("/")
        return {
            "refresh_url": f"{base}/provider-onboarding/phase2/stripe-setup?refresh=true",
            "return_url": f"{base}/provider-onboarding/phase2/stripe-setup?success=true",
        }

    @staticmethod
    def create_account_link(account_id: str) -> Any:
        """
        Raises:
            StripeOperationError: If Stripe rejects the request
        """
        StripeConnectService._configure()
        try:
            return stripe.AccountLink.create(
                account=account_id,
                type="account_onboarding",
                collection_options={"fields": "eventually_due"},
                **StripeConnectService.onboarding_urls(),
            )
        except stripe.StripeError as e:
            raise StripeConnectService._stripe_error(e)

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    @staticmethod
    def build_account_params(data: dict[str, Any], location: dict[str, Any] | None) -> dict[str, Any]:
        """Parameters for stripe.Account.create from a validated request."""
        business_type = data["businessType"]
        address = None
        if location:
            address = {
                key: value for key, value in {
                    "line1": location.get("address_line1"),
                    "line2": location.get("address_line2"),
                    "city": location.get("city"),
                    "state": location.get("state"),
                    "postal_code": location.get("postal_code"),
                    "country": data["country"],
                }.items() if value
            }

        params: dict[str, Any] = {
            "country": data["country"],
            "email": data["email"],
            "business_type": business_type,
            "controller": {
                "fees": {"payer": "application"},
                "losses": {"payments": "application"},
                "stripe_dashboard": {"type": "express"},
            },
            "capabilities": {
                "card_payments": {"requested": True},
                "transfers": {"requested": True},
            },
            "business_profile": {"name": data["businessName"]},
            "metadata": {
                "user_id": data["userId"],
                "business_id": data["businessId"],
            },
        }

        if business_type == ConnectBusinessType.INDIVIDUAL.value:
            individual = {
                "first_name": data["firstName"],
                "last_name": data["lastName"],
                "email": data["email"],
                "dob": parse_date_of_birth(data["dateOfBirth"]),
            }
            if data.get("phone"):
                individual["phone"] = data["phone"]
            if address:
                individual["address"] = address
            params["individual"] = individual
        else:
            company = {"name": data["companyName"], "tax_id": data["taxId"]}
            if address:
                company["address"] = address
            params["company"] = company

        return params

    @staticmethod
    def create_connect_account(data: dict[str, Any]) -> dict[str, Any]:
        """
        Create and store a Connect account for an approved business.

        Args:
            data: Request fields keyed as the portal sends them (userId, ...)

        Raises:
            MissingFieldsError / InvalidRequestError: Bad input
            NotFoundError: Business doesn't exist or isn't owned by the user
            ForbiddenError: Business isn't approved
            ConflictError: An account already exists
            StripeOperationError: Stripe rejected the request
            DatabaseError: The account can't be stored
        """
        StripeConnectService._configure()

        missing = missing_fields(data, CONNECT_REQUIRED)
        if missing:
            raise MissingFieldsError(CONNECT_REQUIRED, missing)

        business_type = data["businessType"]
        if business_type not in [t.value for t in ConnectBusinessType]:
            raise InvalidRequestError(
                "businessType must be individual or company",
                details={"businessType": business_type},
            )
        extra = INDIVIDUAL_REQUIRED if business_type == ConnectBusinessType.INDIVIDUAL.value else COMPANY_REQUIRED
        missing = missing_fields(data, extra)
        if missing:
            raise MissingFieldsError(extra, missing)

        user_id = data["userId"]
        business_id = data["businessId"]

        business = SupabaseClient.fetch_one(
            "business_profiles", "id", business_id,
            columns="id, business_name, verification_status",
            filters={"owner_user_id": user_id},
        )
        if not business:
            raise NotFoundError("business", business_id)

        if business.get("verification_status") != VerificationStatus.APPROVED.value:
            raise ForbiddenError(
                "Business must be approved before setting up payments",
                details={"currentStatus": business.get("verification_status")},
            )

        existing = SupabaseClient.fetch_one(
            TABLE, "business_id", business_id, columns="account_id", filters={"user_id": user_id}
        )
        if existing:
            raise ConflictError(
                "Stripe Connect account already exists",
                details={"accountId": existing["account_id"]},
            )

        location = SupabaseClient.fetch_one(
            "business_locations", "business_id", business_id,
            columns="address_line1, address_line2, city, state, postal_code",
            filters={"is_primary": True},
        )
        params = StripeConnectService.build_account_params(data, location)

        try:
            account = stripe.Account.create(**params)
        except stripe.StripeError as e:
            raise StripeConnectService._stripe_error(e)

        account_id = _field(account, "id")
        logger.info(f"Created Stripe account {account_id} for business {business_id}")

        row = {
            "user_id": user_id,
            "business_id": business_id,
            "account_id": account_id,
            "account_type": "express",
            "country": _field(account, "country") or data["country"],
            "default_currency": _field(account, "default_currency"),
            "business_type": business_type,
            "charges_enabled": bool(_field(account, "charges_enabled")),
            "payouts_enabled": bool(_field(account, "payouts_enabled")),
            "details_submitted": bool(_field(account, "details_submitted")),
            "requirements": _plain(_field(account, "requirements")),
            "capabilities": _plain(_field(account, "capabilities")),
        }

        client = SupabaseClient.get_client()
        try:
            client.table(TABLE).insert(row).execute()
        except Exception as e:
            logger.error(f"Stripe account {account_id} created but not stored: {e}")
            raise DatabaseError("store Stripe account", str(e))

        try:
            client.table("business_profiles").update({
                "stripe_connect_account_id": account_id,
                "updated_at": utc_now_iso(),
            }).eq("id", business_id).execute()
        except Exception as e:
            logger.warning(f"Could not link Stripe account on business {business_id}: {e}")

        link = StripeConnectService.create_account_link(account_id)

        return {
            "success": True,
            "account": {
                "id": account_id,
                "charges_enabled": row["charges_enabled"],
                "payouts_enabled": row["payouts_enabled"],
                "details_submitted": row["details_submitted"],
            },
            "onboarding_url": _field(link, "url"),
            "expires_at": _field(link, "expires_at"),
        }

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    @staticmethod
    def check_account_status(user_id: str | None, business_id: str | None) -> dict[str, Any]:
        """
        Refresh stored flags from Stripe and report onboarding status.

        Raises:
            MissingFieldsError: userId or businessId missing
            NotFoundError: No stored account
            StripeOperationError: Stripe rejected the request
        """
        StripeConnectService._configure()

        required = ["userId", "businessId"]
        missing = missing_fields({"userId": user_id, "businessId": business_id}, required)
        if missing:
            raise MissingFieldsError(required, missing)

        stored = SupabaseClient.fetch_one(TABLE, "user_id", user_id, filters={"business_id": business_id})
        if not stored:
            raise NotFoundError("stripe connect account", business_id)

        try:
            account = stripe.Account.retrieve(stored["account_id"])
        except stripe.StripeError as e:
            raise StripeConnectService._stripe_error(e)

        charges_enabled = bool(_field(account, "charges_enabled"))
        payouts_enabled = bool(_field(account, "payouts_enabled"))
        details_submitted = bool(_field(account, "details_submitted"))
        requirements = _field(account, "requirements")

        client = SupabaseClient.get_client()
        try:
            client.table(TABLE).update({
                "charges_enabled": charges_enabled,
                "payouts_enabled": payouts_enabled,
                "details_submitted": details_submitted,
                "requirements": _plain(requirements),
                "capabilities": _plain(_field(account, "capabilities")),
                "updated_at": utc_now_iso(),
            }).eq("id", stored["id"]).execute()
        except Exception as e:
            logger.warning(f"Could not refresh stored Stripe account {stored['account_id']}: {e}")

        try:
            client.table("business_profiles").update({
                "stripe_connect_account_id": stored["account_id"],
            }).eq("id", business_id).execute()
        except Exception as e:
            logger.warning(f"Could not link Stripe account on business {business_id}: {e}")

        status, message = derive_account_status(account)
        currently_due = list(_field(requirements, "currently_due") or [])
        eventually_due = list(_field(requirements, "eventually_due") or [])
        total_requirements = len(currently_due) + len(eventually_due)

        return {
            "success": True,
            "account": {
                "id": _field(account, "id"),
                "status": status.value,
                "charges_enabled": charges_enabled,
                "payouts_enabled": payouts_enabled,
                "details_submitted": details_submitted,
                "country": _field(account, "country"),
                "default_currency": _field(account, "default_currency"),
                "business_type": _field(account, "business_type"),
                "capabilities": _plain(_field(account, "capabilities")),
                "requirements": {
                    "currently_due": currently_due,
                    "eventually_due": eventually_due,
                    "past_due": list(_field(requirements, "past_due") or []),
                    "disabled_reason": _field(requirements, "disabled_reason"),
                },
                "needs_verification": bool(eventually_due),
                "verification_progress": {
                    "total_requirements": total_requirements,
                    "completed_requirements": total_requirements if details_submitted else 0,
                },
            },
            "message": message,
            "can_accept_payments": charges_enabled,
            "can_receive_payouts": payouts_enabled,
        }

    @staticmethod
    def refresh_account_link(business_id: str | None) -> dict[str, Any]:
        """
        New onboarding link for a stored account.

        Raises:
            MissingFieldsError: businessId missing
            NotFoundError: No stored account
        """
        if not business_id:
            raise MissingFieldsError(["businessId"])

        stored = SupabaseClient.fetch_one(TABLE, "business_id", business_id, columns="account_id")
        if not stored:
            raise NotFoundError("stripe connect account", business_id)

        link = StripeConnectService.create_account_link(stored["account_id"])
        return {
            "success": True,
            "account_id": stored["account_id"],
            "url": _field(link, "url"),
            "expires_at": _field(link, "expires_at"),
        }
