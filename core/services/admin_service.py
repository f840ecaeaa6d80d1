# =============================================================================
# core/services/admin_service.py - Admin Console Queries
# =============================================================================
# Read and edit operations behind the admin console tables: customers,
# businesses, providers, bookings and dashboard figures.
#
# Approval and rejection of businesses live in approval_service.
# =============================================================================

import logging
import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any

from lib.business_hours import db_to_frontend
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import compact, utc_now_iso
from core.models.admin import StatusFilter
from core.services.business_service import BusinessService
from core.services.category_service import CategoryAssociationService
from core.services.document_service import DocumentService
from app.exceptions import DatabaseError, InvalidRequestError, NotFoundError

logger = logging.getLogger(__name__)

CUSTOMER_COLUMNS = (
    "id, user_id, first_name, last_name, email, phone, is_active, created_at, "
    "date_of_birth, image_url, bio, email_verified, phone_verified"
)

PROVIDER_COLUMNS = "*, business_profiles!business_id(business_name)"

BOOKINGS_VIEW = "admin_bookings_enriched"

BOOKING_SEARCH_COLUMNS = (
    "customer_first_name",
    "customer_last_name",
    "customer_email",
    "provider_first_name",
    "provider_last_name",
    "business_name",
    "service_name",
)

MAX_PAGE_SIZE = 100

# PostgREST filter syntax characters
_SEARCH_UNSAFE = re.compile(r"[,()*%\\]")


def clamp_page(page: int, page_size: int, max_size: int = MAX_PAGE_SIZE) -> tuple[int, int]:
    return max(page, 1), min(max(page_size, 1), max_size)


def pagination(page: int, page_size: int, total: int) -> dict[str, int]:
    return {
        "page": page,
        "limit": page_size,
        "total": total,
        "totalPages": math.ceil(total / page_size) if page_size else 0,
    }


def search_term(search: str | None) -> str | None:
    """Search text safe to embed in an ilike pattern, or None when blank."""
    if not search:
        return None
    cleaned = _SEARCH_UNSAFE.sub(" ", search).strip()
    return cleaned or None


def _auth_details(user_ids: list[str]) -> dict[str, dict[str, Any]]:
    """Sign-in email and last sign-in per auth user; unknown users are skipped."""
    details = {}
    for user_id in dict.fromkeys(user_ids):
        user = SupabaseClient.fetch_auth_user(user_id)
        if user:
            details[user_id] = user
        else:
            logger.warning(f"Could not fetch auth user {user_id}")
    return details


class AdminService:
    """Service for admin console listings and edits."""

    # -------------------------------------------------------------------------
    # Customers
    # -------------------------------------------------------------------------

    @staticmethod
    def list_customers(status: StatusFilter = StatusFilter.ALL) -> list[dict[str, Any]]:
        """
        Customer profiles with notification preferences and auth details.

        Preferences come from user_settings; customers without a row get
        email on, sms off.
        """
        filters = {}
        if status != StatusFilter.ALL:
            filters["is_active"] = status == StatusFilter.ACTIVE

        customers = SupabaseClient.fetch_many(
            "customer_profiles",
            filters=filters,
            columns=CUSTOMER_COLUMNS,
            order_by="created_at",
            descending=True,
        )

        user_ids = [c["user_id"] for c in customers if c.get("user_id")]
        settings_by_user: dict[str, dict[str, Any]] = {}
        auth_by_user: dict[str, dict[str, Any]] = {}
        if user_ids:
            rows = SupabaseClient.fetch_many(
                "user_settings",
                columns="user_id, email_notifications, sms_notifications",
                in_filters={"user_id": user_ids},
            )
            settings_by_user = {row["user_id"]: row for row in rows}
            auth_by_user = _auth_details(user_ids)

        enriched = []
        for customer in customers:
            preferences = settings_by_user.get(customer.get("user_id"), {})
            auth = auth_by_user.get(customer.get("user_id"), {})
            email_pref = preferences.get("email_notifications")
            sms_pref = preferences.get("sms_notifications")
            enriched.append({
                **customer,
                "email_notifications": True if email_pref is None else email_pref,
                "sms_notifications": False if sms_pref is None else sms_pref,
                "auth_email": auth.get("email"),
                "last_sign_in_at": auth.get("last_sign_in_at"),
            })
        return enriched

    @staticmethod
    def set_customer_status(customer_id: str, is_active: bool) -> dict[str, Any]:
        """
        Raises:
            NotFoundError: Unknown customer
            DatabaseError: Update failed
        """
        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("customer_profiles")
                .update({"is_active": is_active})
                .eq("id", customer_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to update customer {customer_id}: {e}")
            raise DatabaseError("update customer status", str(e))

        if not response.data:
            raise NotFoundError("customer", customer_id)

        logger.info(f"Customer {customer_id} set {'active' if is_active else 'inactive'}")
        return response.data[0]

    # -------------------------------------------------------------------------
    # Businesses
    # -------------------------------------------------------------------------

    @staticmethod
    def list_businesses(
        verification_status: str | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 25,
    ) -> dict[str, Any]:
        """Business profiles newest first with a total for pagination."""
        page, page_size = clamp_page(page, page_size)
        offset = (page - 1) * page_size

        client = SupabaseClient.get_client()
        query = client.table("business_profiles").select("*", count="exact")
        if verification_status and verification_status != "all":
            query = query.eq("verification_status", verification_status)
        term = search_term(search)
        if term:
            query = query.or_(f"business_name.ilike.%{term}%,contact_email.ilike.%{term}%")

        try:
            response = (
                query.order("created_at", desc=True)
                .range(offset, offset + page_size - 1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to list businesses: {e}")
            raise DatabaseError("fetch businesses", str(e))

        total = response.count or 0
        return {"data": response.data or [], "pagination": pagination(page, page_size, total)}

    @staticmethod
    def get_business_detail(business_id: str) -> dict[str, Any]:
        """
        Everything the business detail dialog shows.

        Raises:
            NotFoundError: Unknown business
        """
        business = BusinessService.get_business(business_id)

        locations = SupabaseClient.fetch_many(
            "business_locations",
            filters={"business_id": business_id},
            order_by="is_primary",
            descending=True,
        )

        client = SupabaseClient.get_client()
        try:
            services = (
                client.table("business_services")
                .select("id", count="exact")
                .eq("business_id", business_id)
                .execute()
            )
            services_count = services.count or 0
        except Exception as e:
            logger.warning(f"Could not count services for {business_id}: {e}")
            services_count = 0

        associations = CategoryAssociationService.get_associations(business_id)

        return {
            **business,
            "business_hours": db_to_frontend(business.get("business_hours")),
            "locations": locations,
            "services_count": services_count,
            "documents": DocumentService.list_documents(business_id=business_id),
            "categories": associations["categories"],
            "subcategories": associations["subcategories"],
        }

    @staticmethod
    def update_business(business_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        """
        Raises:
            InvalidRequestError: Nothing to update
            NotFoundError: Unknown business
        """
        updates = compact(updates)
        if not updates:
            raise InvalidRequestError("No fields to update")
        business = BusinessService.update_business(business_id, updates, action="update business")
        logger.info(f"Admin updated business {business_id}: {sorted(updates)}")
        return business

    # -------------------------------------------------------------------------
    # Providers
    # -------------------------------------------------------------------------

    @staticmethod
    def list_providers(
        verification_status: str | None = None,
        background_check_status: str | None = None,
        business_id: str | None = None,
        is_active: bool | None = None,
        provider_role: str | None = None,
    ) -> list[dict[str, Any]]:
        filters: dict[str, Any] = {}
        if verification_status and verification_status != "all":
            filters["verification_status"] = verification_status
        if background_check_status and background_check_status != "all":
            filters["background_check_status"] = background_check_status
        if business_id:
            filters["business_id"] = business_id
        if is_active is not None:
            filters["is_active"] = is_active
        if provider_role and provider_role != "all":
            filters["provider_role"] = provider_role

        providers = SupabaseClient.fetch_many(
            "providers",
            filters=filters,
            columns=PROVIDER_COLUMNS,
            order_by="created_at",
            descending=True,
        )

        auth_by_user = _auth_details([p["user_id"] for p in providers if p.get("user_id")])
        return [
            {
                **provider,
                "auth_email": auth_by_user.get(provider.get("user_id"), {}).get("email"),
                "last_sign_in_at": auth_by_user.get(provider.get("user_id"), {}).get("last_sign_in_at"),
            }
            for provider in providers
        ]

    @staticmethod
    def update_provider(provider_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        """
        Raises:
            InvalidRequestError: Nothing to update
            NotFoundError: Unknown provider
            DatabaseError: Update failed
        """
        updates = compact(updates)
        if not updates:
            raise InvalidRequestError("No fields to update")
        updates["updated_at"] = utc_now_iso()

        client = SupabaseClient.get_client()
        try:
            response = client.table("providers").update(updates).eq("id", provider_id).execute()
        except Exception as e:
            logger.error(f"Failed to update provider {provider_id}: {e}")
            raise DatabaseError("update provider", str(e))

        if not response.data:
            raise NotFoundError("provider", provider_id)

        logger.info(f"Admin updated provider {provider_id}")
        return response.data[0]

    # -------------------------------------------------------------------------
    # Bookings
    # -------------------------------------------------------------------------

    @staticmethod
    def list_bookings(
        search: str | None = None,
        booking_status: str | None = None,
        business_id: str | None = None,
        provider_id: str | None = None,
        customer_id: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        page: int = 1,
        limit: int = 50,
        today: date | None = None,
    ) -> dict[str, Any]:
        """
        Bookings from the enriched view.

        Without a date range the window is 30 days back to one year ahead.
        """
        today = today or datetime.now(timezone.utc).date()
        effective_from = date_from or today - timedelta(days=30)
        effective_to = date_to or today + timedelta(days=365)
        page, limit = clamp_page(page, limit)
        offset = (page - 1) * limit

        client = SupabaseClient.get_client()
        query = client.table(BOOKINGS_VIEW).select("*", count="exact")

        term = search_term(search)
        if term:
            query = query.or_(",".join(f"{column}.ilike.%{term}%" for column in BOOKING_SEARCH_COLUMNS))
        if booking_status and booking_status != "all":
            query = query.eq("booking_status", booking_status)
        for column, value in (
            ("business_id", business_id),
            ("provider_id", provider_id),
            ("customer_id", customer_id),
        ):
            if value:
                query = query.eq(column, value)

        try:
            response = (
                query.gte("booking_date", effective_from.isoformat())
                .lte("booking_date", effective_to.isoformat())
                .order("booking_date", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to list bookings: {e}")
            raise DatabaseError("fetch bookings", str(e))

        bookings = []
        for booking in response.data or []:
            payment = None
            if booking.get("payment_id"):
                payment = {
                    "stripe_transaction_id": booking.get("stripe_transaction_id"),
                    "amount_paid": booking.get("amount_paid"),
                    "payment_date": booking.get("payment_date"),
                    "transaction_status": booking.get("transaction_status"),
                    "transaction_type": booking.get("transaction_type"),
                    "payment_method": booking.get("transaction_payment_method"),
                }
            bookings.append({**booking, "payment_details": payment})

        return {
            "data": bookings,
            "pagination": pagination(page, limit, response.count or 0),
            "dateRange": {
                "from": effective_from.isoformat(),
                "to": effective_to.isoformat(),
                "isDefault": date_from is None and date_to is None,
            },
        }

    @staticmethod
    def booking_stats(
        days: int = 30,
        business_id: str | None = None,
        provider_id: str | None = None,
        today: date | None = None,
    ) -> dict[str, Any]:
        """Status counts and completed revenue over the last `days` days."""
        if days < 1:
            raise InvalidRequestError("days must be at least 1", details={"days": days})

        today = today or datetime.now(timezone.utc).date()
        since = (today - timedelta(days=days)).isoformat()

        client = SupabaseClient.get_client()
        query = (
            client.table(BOOKINGS_VIEW)
            .select("booking_status, total_amount")
            .gte("booking_date", since)
        )
        if business_id:
            query = query.eq("business_id", business_id)
        if provider_id:
            query = query.eq("provider_id", provider_id)

        try:
            rows = query.execute().data or []
        except Exception as e:
            logger.error(f"Failed to compute booking stats: {e}")
            raise DatabaseError("fetch booking statistics", str(e))

        status_breakdown: dict[str, int] = {}
        for row in rows:
            status = row.get("booking_status") or "unknown"
            status_breakdown[status] = status_breakdown.get(status, 0) + 1

        completed_revenue = sum(
            float(row.get("total_amount") or 0)
            for row in rows
            if row.get("booking_status") == "completed"
        )
        completed = status_breakdown.get("completed", 0)

        return {
            "total_bookings": len(rows),
            "completed_bookings": completed,
            "cancelled_bookings": status_breakdown.get("cancelled", 0),
            "pending_bookings": status_breakdown.get("pending", 0),
            "status_breakdown": status_breakdown,
            "completed_revenue": round(completed_revenue, 2),
            "average_booking_value": round(completed_revenue / completed, 2) if completed else 0,
            "period_days": days,
        }

    # -------------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------------

    @staticmethod
    def dashboard_stats() -> dict[str, Any]:
        """
        Raises:
            DatabaseError: RPC failed
        """
        try:
            data = SupabaseClient.call_rpc("get_admin_dashboard_stats")
        except SupabaseClientError as e:
            logger.error(f"Dashboard stats failed: {e}")
            raise DatabaseError("fetch dashboard stats", e.message)

        if isinstance(data, list):
            data = data[0] if data else {}
        return data or {}
