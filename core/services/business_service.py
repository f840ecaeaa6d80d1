# =============================================================================
# core/services/business_service.py - Business Profile Logic
# =============================================================================
# Handles business_profiles reads and partial updates:
# - Public profile (name, description, links, images)
# - Business hours (stored and returned in different day formats)
# - Logo and cover image uploads
# =============================================================================

import logging
from typing import Any

from lib.supabase_client import SupabaseClient
from lib.business_hours import (
    InvalidBusinessHoursError,
    db_to_frontend,
    format_hours_summary,
    frontend_to_db,
    open_days,
)
from lib.utils import compact, utc_now_iso
from core.models.business import ImageType
from core.services.storage_service import StorageService, decode_image_data
from app.exceptions import DatabaseError, InvalidRequestError, NotFoundError

logger = logging.getLogger(__name__)

TABLE = "business_profiles"

# Columns returned for the profile editor
PROFILE_COLUMNS = (
    "id, business_name, business_type, business_description, contact_email, phone, "
    "website_url, social_media, logo_url, cover_image_url, years_in_business, "
    "verification_status, is_active, setup_completed, updated_at"
)


class BusinessService:
    """Service for business profile and hours operations."""

    @staticmethod
    def get_business(business_id: str, columns: str = "*") -> dict[str, Any]:
        """
        Get a business profile row.

        Raises:
            NotFoundError: If the business doesn't exist
        """
        business = SupabaseClient.fetch_one(TABLE, "id", business_id, columns=columns)
        if not business:
            raise NotFoundError("business", business_id)
        return business

    @staticmethod
    def update_business(business_id: str, updates: dict[str, Any], action: str = "update business") -> dict[str, Any]:
        """
        Write columns on one business and return the updated row.

        Raises:
            NotFoundError: If no row was updated
            DatabaseError: If the update fails
        """
        client = SupabaseClient.get_client()
        data = {**updates, "updated_at": utc_now_iso()}

        try:
            response = client.table(TABLE).update(data).eq("id", business_id).execute()
        except Exception as e:
            logger.error(f"Failed to {action} {business_id}: {e}")
            raise DatabaseError(action, str(e))

        if not response.data:
            raise NotFoundError("business", business_id)

        logger.info(f"Updated business {business_id}: {sorted(updates)}")
        return response.data[0]

    # -------------------------------------------------------------------------
    # Profile
    # -------------------------------------------------------------------------

    @staticmethod
    def shape_profile(business: dict[str, Any]) -> dict[str, Any]:
        """
        Profile as the portal reads it.

        The editor reads camelCase keys while other screens read the column
        names, so both are returned.
        """
        return {
            **business,
            "businessName": business.get("business_name"),
            "businessType": business.get("business_type"),
            "detailedDescription": business.get("business_description"),
            "websiteUrl": business.get("website_url"),
            "socialMediaLinks": business.get("social_media") or {},
            "logoUrl": business.get("logo_url"),
            "coverImageUrl": business.get("cover_image_url"),
            "yearsInBusiness": business.get("years_in_business"),
            "contactEmail": business.get("contact_email"),
        }

    @staticmethod
    def get_profile(business_id: str) -> dict[str, Any]:
        business = BusinessService.get_business(business_id, columns=PROFILE_COLUMNS)
        return BusinessService.shape_profile(business)

    @staticmethod
    def update_profile(business_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        """
        Partially update the public profile.

        Args:
            business_id: Business UUID
            updates: Column values; None values are left untouched

        Raises:
            InvalidRequestError: If nothing would be updated
            NotFoundError: If the business doesn't exist
        """
        data = compact(updates)
        if not data:
            raise InvalidRequestError(
                "No fields to update provided",
                suggestion="Send at least one profile field",
            )

        BusinessService.get_business(business_id, columns="id")
        business = BusinessService.update_business(business_id, data, action="update business profile")
        return BusinessService.shape_profile(business)

    # -------------------------------------------------------------------------
    # Hours
    # -------------------------------------------------------------------------

    @staticmethod
    def get_hours(business_id: str) -> dict[str, Any]:
        """Business hours in frontend format (all seven days) with display lines."""
        business = BusinessService.get_business(business_id, columns="id, business_name, business_hours")
        stored = business.get("business_hours")
        return {
            "business_id": business["id"],
            "business_name": business.get("business_name"),
            "business_hours": db_to_frontend(stored),
            "open_days": open_days(stored),
            "summary": format_hours_summary(stored),
        }

    @staticmethod
    def update_hours(business_id: str, business_hours: dict[str, Any]) -> dict[str, Any]:
        """
        Replace stored business hours.

        Raises:
            InvalidRequestError: Unknown day or malformed times
            NotFoundError: If the business doesn't exist
            DatabaseError: If the update fails
        """
        try:
            db_hours = frontend_to_db(business_hours)
        except InvalidBusinessHoursError as e:
            raise InvalidRequestError(
                e.message,
                details={"day": e.day} if e.day else None,
                suggestion="Use lowercase day names with HH:MM open/close times",
            )

        BusinessService.get_business(business_id, columns="id")
        business = BusinessService.update_business(
            business_id,
            {"business_hours": db_hours},
            action="update business hours",
        )

        return {
            "success": True,
            "business_id": business_id,
            "business_hours": db_to_frontend(business.get("business_hours", db_hours)),
        }

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    @staticmethod
    def upload_image(
        business_id: str,
        image_type: ImageType,
        file_data: str,
        content_type: str | None = None,
    ) -> dict[str, Any]:
        """
        Upload a logo or cover image and point the profile at it.

        The uploaded file is removed again if the profile update fails.

        Raises:
            NotFoundError: If the business doesn't exist
            InvalidImageError / ImageTooLargeError: If the image is rejected
            StorageUploadError / DatabaseError: If upload or update fails
        """
        BusinessService.get_business(business_id, columns="id")
        content, resolved_type = decode_image_data(file_data, content_type)

        uploaded = StorageService.upload_image(business_id, image_type, content, resolved_type)

        try:
            BusinessService.update_business(
                business_id,
                {image_type.column: uploaded["url"]},
                action=f"save {image_type.value} image",
            )
        except Exception:
            StorageService.delete_file(uploaded["path"])
            raise

        return {
            "success": True,
            "url": uploaded["url"],
            "path": uploaded["path"],
            "image_type": image_type.value,
        }
