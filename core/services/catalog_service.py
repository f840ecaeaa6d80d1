# =============================================================================
# core/services/catalog_service.py - Business Services and Add-ons
# =============================================================================
# A business offers catalogue services at its own price. What it may offer
# is limited by its approved subcategories:
#
#   business_service_subcategories -> services (by subcategory_id)
#   services -> service_addon_eligibility -> service_addons
#
# Prices are in dollars; a business price must be positive and at least the
# catalogue min_price.
# =============================================================================

import logging
from typing import Any

from lib.supabase_client import SupabaseClient
from lib.utils import first_or_none, missing_fields, utc_now_iso
from core.models.catalog import OPEN_BOOKING_STATUSES, ServiceStatusFilter
from app.exceptions import (
    ConflictError,
    DatabaseError,
    InvalidRequestError,
    MissingFieldsError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

SERVICE_DETAIL_COLUMNS = (
    "id, name, description, min_price, duration_minutes, image_url, "
    "service_subcategories(service_subcategory_type, service_categories(service_category_type))"
)

MAX_PAGE_SIZE = 100


class CatalogService:
    """Service for what a business offers and at which price."""

    # -------------------------------------------------------------------------
    # Business services
    # -------------------------------------------------------------------------

    @staticmethod
    def list_business_services(
        business_id: str,
        page: int = 1,
        limit: int = 25,
        status: ServiceStatusFilter | None = None,
    ) -> dict[str, Any]:
        """
        Paginated services of a business with catalogue details and stats.

        Args:
            business_id: Business UUID
            page: 1-based page (values below 1 are clamped)
            limit: Page size, clamped to 1..100
            status: Optional active/inactive filter
        """
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        offset = (page - 1) * limit

        client = SupabaseClient.get_client()

        try:
            query = (
                client.table("business_services")
                .select(
                    "id, business_id, service_id, business_price, is_active, delivery_type, created_at",
                    count="exact",
                )
                .eq("business_id", business_id)
            )
            if status == ServiceStatusFilter.ACTIVE:
                query = query.eq("is_active", True)
            elif status == ServiceStatusFilter.INACTIVE:
                query = query.eq("is_active", False)

            response = query.order("created_at", desc=True).range(offset, offset + limit - 1).execute()
            rows = response.data or []
            total = response.count or 0

            active_response = (
                client.table("business_services")
                .select("id", count="exact")
                .eq("business_id", business_id)
                .eq("is_active", True)
                .execute()
            )
            active_count = active_response.count or 0

        except Exception as e:
            logger.error(f"Failed to list services for business {business_id}: {e}")
            raise DatabaseError("fetch business services", str(e))

        service_ids = list(dict.fromkeys(row["service_id"] for row in rows if row.get("service_id")))
        details: dict[str, dict[str, Any]] = {}
        if service_ids:
            try:
                for service in SupabaseClient.fetch_many(
                    "services", columns=SERVICE_DETAIL_COLUMNS, in_filters={"id": service_ids}
                ):
                    details[service["id"]] = service
            except Exception as e:
                # Rows are still useful without catalogue details
                logger.warning(f"Could not load service details: {e}")

        services = [{**row, "services": details.get(row["service_id"])} for row in rows]
        prices = [row.get("business_price") or 0 for row in rows]

        return {
            "business_id": business_id,
            "services": services,
            "stats": {
                "total_services": total,
                "active_services": active_count,
                "total_revenue": 0,
                "avg_price": sum(prices) / len(prices) if prices else 0,
            },
            "pagination": {"page": page, "limit": limit, "total": total},
        }

    @staticmethod
    def _check_price(service_id: str, business_price: Any) -> dict[str, Any]:
        """
        Validate a business price against the catalogue minimum.

        Raises:
            InvalidRequestError: Price not a positive number or below min_price
            NotFoundError: Unknown catalogue service
        """
        if isinstance(business_price, bool) or not isinstance(business_price, (int, float)) or business_price <= 0:
            raise InvalidRequestError("business_price must be a positive number")

        service = SupabaseClient.fetch_one("services", "id", service_id, columns="id, name, min_price")
        if not service:
            raise NotFoundError("service", service_id)

        min_price = service.get("min_price") or 0
        if business_price < min_price:
            raise InvalidRequestError(
                f"Price must be at least ${min_price} for {service['name']}",
                details={"min_price": min_price, "business_price": business_price},
            )
        return service

    @staticmethod
    def add_business_service(data: dict[str, Any]) -> dict[str, Any]:
        """
        Offer a catalogue service.

        Raises:
            MissingFieldsError: business_id, service_id or business_price missing
            InvalidRequestError / NotFoundError: Price or service rejected
            ConflictError: The business already offers the service
        """
        required = ["business_id", "service_id", "business_price"]
        missing = missing_fields(data, required)
        if missing:
            raise MissingFieldsError(required, missing)

        business_id = data["business_id"]
        service_id = data["service_id"]
        CatalogService._check_price(service_id, data["business_price"])

        existing = SupabaseClient.fetch_one(
            "business_services", "business_id", business_id,
            columns="id", filters={"service_id": service_id},
        )
        if existing:
            raise ConflictError(
                "Service already added to business",
                details={"business_service_id": existing["id"]},
            )

        row = {
            "business_id": business_id,
            "service_id": service_id,
            "business_price": data["business_price"],
            "delivery_type": data.get("delivery_type") or "customer_location",
            "is_active": data.get("is_active", True),
        }

        client = SupabaseClient.get_client()
        try:
            response = client.table("business_services").insert(row).execute()
        except Exception as e:
            logger.error(f"Failed to add service {service_id} to {business_id}: {e}")
            raise DatabaseError("add service", str(e))

        logger.info(f"Business {business_id} now offers service {service_id}")
        return {
            "message": "Service added successfully",
            "service": first_or_none(response.data) or row,
        }

    @staticmethod
    def update_business_service(data: dict[str, Any]) -> dict[str, Any]:
        """
        Update price, delivery type or active flag of an offered service.

        Raises:
            MissingFieldsError: business_id or service_id missing
            InvalidRequestError: Nothing to update, or price rejected
            NotFoundError: Business doesn't offer the service
        """
        required = ["business_id", "service_id"]
        missing = missing_fields(data, required)
        if missing:
            raise MissingFieldsError(required, missing)

        business_id = data["business_id"]
        service_id = data["service_id"]

        updates: dict[str, Any] = {}
        if data.get("business_price") is not None:
            CatalogService._check_price(service_id, data["business_price"])
            updates["business_price"] = data["business_price"]
        if data.get("delivery_type") is not None:
            updates["delivery_type"] = data["delivery_type"]
        if data.get("is_active") is not None:
            updates["is_active"] = data["is_active"]

        if not updates:
            raise InvalidRequestError("No fields to update provided")

        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("business_services")
                .update(updates)
                .eq("business_id", business_id)
                .eq("service_id", service_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to update service {service_id} for {business_id}: {e}")
            raise DatabaseError("update service", str(e))

        if not response.data:
            raise NotFoundError("business service", service_id)

        return {"message": "Service updated successfully", "service": response.data[0]}

    @staticmethod
    def remove_business_service(business_id: str, service_id: str) -> dict[str, Any]:
        """
        Stop offering a service.

        Raises:
            ConflictError: The service has open bookings
            DatabaseError: If the lookup or delete fails
        """
        client = SupabaseClient.get_client()

        try:
            bookings = (
                client.table("bookings")
                .select("id")
                .eq("business_id", business_id)
                .eq("service_id", service_id)
                .in_("booking_status", OPEN_BOOKING_STATUSES)
                .execute()
            )
        except Exception as e:
            raise DatabaseError("check active bookings", str(e))

        if bookings.data:
            raise ConflictError(
                "Cannot remove a service with active bookings",
                details={"active_bookings": len(bookings.data)},
            )

        try:
            client.table("business_services").delete().eq("business_id", business_id).eq("service_id", service_id).execute()
        except Exception as e:
            logger.error(f"Failed to remove service {service_id} from {business_id}: {e}")
            raise DatabaseError("remove service", str(e))

        logger.info(f"Business {business_id} removed service {service_id}")
        return {"message": "Service removed successfully"}

    # -------------------------------------------------------------------------
    # Eligibility
    # -------------------------------------------------------------------------

    @staticmethod
    def get_service_eligibility(business_id: str) -> dict[str, Any]:
        """
        Approved categories with their approved subcategories nested.

        A subcategory whose category association is missing is grouped under
        a placeholder "Unknown Category".
        """
        categories = SupabaseClient.fetch_many(
            "business_service_categories",
            filters={"business_id": business_id, "is_active": True},
            columns=(
                "category_id, created_at, updated_at, "
                "service_categories(id, service_category_type, description, image_url, sort_order, is_active)"
            ),
            order_by="created_at",
        )
        subcategories = SupabaseClient.fetch_many(
            "business_service_subcategories",
            filters={"business_id": business_id, "is_active": True},
            columns=(
                "category_id, subcategory_id, created_at, updated_at, "
                "service_subcategories(id, category_id, service_subcategory_type, description, image_url, is_active)"
            ),
            order_by="created_at",
        )

        grouped: dict[str, dict[str, Any]] = {}
        for item in categories:
            category = item.get("service_categories")
            if not category:
                continue
            grouped[category["id"]] = {
                "category_id": category["id"],
                "category_name": category.get("service_category_type"),
                "description": category.get("description"),
                "image_url": category.get("image_url"),
                "sort_order": category.get("sort_order"),
                "is_active": category.get("is_active"),
                "approved_at": item.get("created_at"),
                "subcategories": [],
            }

        for item in subcategories:
            subcategory = item.get("service_subcategories")
            if not subcategory or not item.get("category_id"):
                continue
            parent = grouped.setdefault(item["category_id"], {
                "category_id": item["category_id"],
                "category_name": "Unknown Category",
                "description": None,
                "image_url": None,
                "sort_order": 999,
                "is_active": True,
                "approved_at": None,
                "subcategories": [],
            })
            parent["subcategories"].append({
                "subcategory_id": subcategory["id"],
                "subcategory_name": subcategory.get("service_subcategory_type"),
                "description": subcategory.get("description"),
                "image_url": subcategory.get("image_url"),
                "is_active": subcategory.get("is_active"),
                "approved_at": item.get("created_at"),
            })

        approved = sorted(grouped.values(), key=lambda c: c.get("sort_order") or 999)
        updated = [row["updated_at"] for row in categories + subcategories if row.get("updated_at")]

        return {
            "business_id": business_id,
            "approved_categories": approved,
            "stats": {
                "total_categories": len(grouped),
                "total_subcategories": len(subcategories),
            },
            "last_updated": max(updated) if updated else None,
            "additional_info": (
                None if approved else
                "No service categories have been approved for this business yet. "
                "Contact platform administration for approval."
            ),
        }

    @staticmethod
    def _approved_subcategory_ids(business_id: str) -> list[str]:
        rows = SupabaseClient.fetch_many(
            "business_service_subcategories",
            filters={"business_id": business_id, "is_active": True},
            columns="subcategory_id",
        )
        return list(dict.fromkeys(row["subcategory_id"] for row in rows if row.get("subcategory_id")))

    @staticmethod
    def list_eligible_services(business_id: str) -> dict[str, Any]:
        """Active catalogue services the business may offer, with its current configuration."""
        subcategory_ids = CatalogService._approved_subcategory_ids(business_id)
        if not subcategory_ids:
            return {"business_id": business_id, "service_count": 0, "eligible_services": []}

        services = SupabaseClient.fetch_many(
            "services",
            filters={"is_active": True},
            columns="id, name, description, min_price, duration_minutes, image_url, subcategory_id",
            in_filters={"subcategory_id": subcategory_ids},
            order_by="name",
        )
        offered = {
            row["service_id"]: row
            for row in SupabaseClient.fetch_many(
                "business_services",
                filters={"business_id": business_id},
                columns="service_id, business_price, is_active, delivery_type",
            )
        }

        eligible = []
        for service in services:
            configured = offered.get(service["id"])
            eligible.append({
                **service,
                "is_configured": configured is not None,
                "business_price": configured.get("business_price") if configured else None,
                "business_is_active": configured.get("is_active") if configured else None,
                "delivery_type": configured.get("delivery_type") if configured else None,
            })

        return {
            "business_id": business_id,
            "service_count": len(eligible),
            "eligible_services": eligible,
        }

    # -------------------------------------------------------------------------
    # Add-ons
    # -------------------------------------------------------------------------

    @staticmethod
    def list_eligible_addons(business_id: str) -> dict[str, Any]:
        """Active add-ons attached to services in the business's approved subcategories."""
        subcategory_ids = CatalogService._approved_subcategory_ids(business_id)
        empty = {"business_id": business_id, "addon_count": 0, "eligible_addons": []}
        if not subcategory_ids:
            return empty

        service_rows = SupabaseClient.fetch_many(
            "services",
            filters={"is_active": True},
            columns="id",
            in_filters={"subcategory_id": subcategory_ids},
        )
        service_ids = [row["id"] for row in service_rows]
        if not service_ids:
            return empty

        eligibility = SupabaseClient.fetch_many(
            "service_addon_eligibility",
            columns=(
                "addon_id, service_id, is_recommended, "
                "service_addons(id, name, description, image_url, is_active), "
                "services(id, subcategory_id, service_subcategories(id, service_subcategory_type))"
            ),
            in_filters={"service_id": service_ids},
        )
        configured = {
            row["addon_id"]: row
            for row in SupabaseClient.fetch_many(
                "business_addons",
                filters={"business_id": business_id},
                columns="addon_id, custom_price, is_available",
            )
        }

        addons: dict[str, dict[str, Any]] = {}
        for item in eligibility:
            addon = item.get("service_addons")
            if not addon or not addon.get("is_active") or item["addon_id"] in addons:
                continue
            service = item.get("services") or {}
            subcategory = service.get("service_subcategories") or {}
            business_addon = configured.get(addon["id"])
            addons[item["addon_id"]] = {
                "id": addon["id"],
                "name": addon.get("name"),
                "description": addon.get("description"),
                "image_url": addon.get("image_url"),
                "is_active": addon.get("is_active"),
                "subcategory_id": service.get("subcategory_id"),
                "subcategory_name": subcategory.get("service_subcategory_type") or "Unknown",
                "is_configured": business_addon is not None,
                "custom_price": business_addon.get("custom_price") if business_addon else None,
                "is_available": business_addon.get("is_available") if business_addon else None,
            }

        return {
            "business_id": business_id,
            "addon_count": len(addons),
            "eligible_addons": list(addons.values()),
        }

    @staticmethod
    def upsert_business_addon(data: dict[str, Any]) -> dict[str, Any]:
        """
        Set a business's price and availability for an add-on.

        Raises:
            MissingFieldsError: business_id or addon_id missing
            DatabaseError: If the upsert fails
        """
        required = ["business_id", "addon_id"]
        missing = missing_fields(data, required)
        if missing:
            raise MissingFieldsError(required, missing)

        row = {
            "business_id": data["business_id"],
            "addon_id": data["addon_id"],
            "custom_price": data.get("custom_price"),
            "is_available": data.get("is_available", True),
            "updated_at": utc_now_iso(),
        }

        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("business_addons")
                .upsert(row, on_conflict="business_id,addon_id")
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to save add-on {data['addon_id']} for {data['business_id']}: {e}")
            raise DatabaseError("save add-on", str(e))

        return {"message": "Add-on saved", "addon": first_or_none(response.data) or row}
