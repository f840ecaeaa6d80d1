# =============================================================================
# core/services/onboarding_service.py - Phase 1 Onboarding Logic
# =============================================================================
# Phase 1 takes a new owner from signup to a submitted application:
#   1. business info: business profile, owner provider, categories, location
#   2. documents: uploaded by the portal, recorded by DocumentService
#   3. submit application: provider_applications row, business under review
#
# The status endpoint tells the portal which phase and step to resume at.
# =============================================================================

import logging
from typing import Any

from lib.supabase_client import SupabaseClient
from lib.utils import first_or_none, missing_fields, utc_now_iso
from core.models.business import ProviderRole, VerificationStatus
from core.models.onboarding import (
    BUSINESS_LICENSE_DOCUMENT,
    REQUIRED_DOCUMENT_TYPES,
    OnboardingPhase,
)
from core.services.category_service import CategoryAssociationService
from core.services.document_service import DocumentService
from app.exceptions import (
    ConflictError,
    DatabaseError,
    InvalidRequestError,
    MissingFieldsError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

BUSINESS_INFO_REQUIRED = ["businessName", "businessType", "contactEmail", "phone", "serviceCategories"]


def required_document_types(business_type: str | None) -> list[str]:
    """Documents an application needs; sole proprietors skip the business licence."""
    required = list(REQUIRED_DOCUMENT_TYPES)
    if business_type != "sole_proprietorship":
        required.append(BUSINESS_LICENSE_DOCUMENT)
    return required


class OnboardingService:
    """Service for Phase 1 onboarding operations."""

    # -------------------------------------------------------------------------
    # Business info
    # -------------------------------------------------------------------------

    @staticmethod
    def find_owned_business(user_id: str) -> dict[str, Any] | None:
        """Business the user owns, via their owner provider row."""
        provider = SupabaseClient.fetch_one(
            "providers", "user_id", user_id,
            columns="business_id",
            filters={"provider_role": ProviderRole.OWNER.value},
        )
        if not provider or not provider.get("business_id"):
            return None
        return SupabaseClient.fetch_one("business_profiles", "id", provider["business_id"], columns="id")

    @staticmethod
    def submit_business_info(user_id: str | None, business_data: dict[str, Any] | None) -> dict[str, Any]:
        """
        Create or update the business for a Phase 1 owner.

        Args:
            user_id: Auth user id of the owner
            business_data: Business fields keyed as the portal sends them
                (businessName, businessType, contactEmail, ...)

        Returns:
            Dict with success flag and the business row

        Raises:
            MissingFieldsError: Missing userId/businessData or a required field
            NotFoundError: Unknown auth user
            DatabaseError: Business or ownership rows can't be written
        """
        request_missing = missing_fields({"userId": user_id, "businessData": business_data}, ["userId", "businessData"])
        if request_missing:
            raise MissingFieldsError(["userId", "businessData"], request_missing)

        missing = missing_fields(business_data, BUSINESS_INFO_REQUIRED)
        if missing:
            raise MissingFieldsError(BUSINESS_INFO_REQUIRED, missing)

        user = SupabaseClient.fetch_auth_user(user_id)
        if not user:
            raise NotFoundError("user", user_id)

        profile_fields = {
            "business_name": business_data["businessName"],
            "business_type": business_data["businessType"],
            "contact_email": business_data["contactEmail"],
            "phone": business_data["phone"],
            "website_url": business_data.get("website"),
            "social_media": business_data.get("socialMedia") or [],
            "business_description": business_data.get("businessDescription"),
            "setup_step": 1,
        }

        client = SupabaseClient.get_client()
        existing = OnboardingService.find_owned_business(user_id)

        if existing:
            business_id = existing["id"]
            try:
                response = (
                    client.table("business_profiles")
                    .update({**profile_fields, "updated_at": utc_now_iso()})
                    .eq("id", business_id)
                    .execute()
                )
            except Exception as e:
                logger.error(f"Failed to update business {business_id}: {e}")
                raise DatabaseError("update business information", str(e))
            business = response.data[0] if response.data else {"id": business_id, **profile_fields}

            try:
                client.table("providers").update({
                    "email": business_data["contactEmail"],
                    "phone": business_data["phone"],
                }).eq("user_id", user_id).eq("provider_role", ProviderRole.OWNER.value).execute()
            except Exception as e:
                logger.warning(f"Could not update owner contact info for {user_id}: {e}")

        else:
            try:
                response = client.table("business_profiles").insert({
                    **profile_fields,
                    "owner_user_id": user_id,
                    "business_hours": {},
                    "verification_status": VerificationStatus.PENDING.value,
                    "is_active": False,
                    "setup_completed": False,
                }).execute()
            except Exception as e:
                logger.error(f"Failed to create business for {user_id}: {e}")
                raise DatabaseError("create business profile", str(e))

            if not response.data:
                raise DatabaseError("create business profile", "Insert returned no data")

            business = response.data[0]
            business_id = business["id"]
            logger.info(f"Created business {business_id} for user {user_id}")

            OnboardingService._link_owner(user, business_id, business_data)

        CategoryAssociationService.replace_associations(
            business_id,
            business_data["serviceCategories"],
            business_data.get("serviceSubcategories") or [],
        )

        if business_data.get("businessAddress"):
            OnboardingService._save_primary_location(user_id, business_id, business_data["businessAddress"])

        return {"success": True, "business": business}

    @staticmethod
    def _link_owner(user: dict[str, Any], business_id: str, business_data: dict[str, Any]) -> None:
        """
        Create or attach the owner's provider row.

        Raises:
            DatabaseError: Ownership is what ties the user to the business,
                so a failure here fails the request
        """
        client = SupabaseClient.get_client()
        metadata = user.get("user_metadata") or {}
        independent = business_data.get("businessType") == "independent"

        provider = SupabaseClient.fetch_one("providers", "user_id", user["id"], columns="id")

        try:
            if provider:
                updates = {
                    "business_id": business_id,
                    "email": business_data["contactEmail"],
                    "phone": business_data["phone"],
                }
                if independent:
                    updates["active_for_bookings"] = True
                client.table("providers").update(updates).eq("user_id", user["id"]).execute()
            else:
                row = {
                    "user_id": user["id"],
                    "business_id": business_id,
                    "first_name": metadata.get("first_name") or "Provider",
                    "last_name": metadata.get("last_name") or "",
                    "email": business_data["contactEmail"],
                    "phone": business_data["phone"],
                    "provider_role": ProviderRole.OWNER.value,
                    "verification_status": VerificationStatus.PENDING.value,
                    "background_check_status": "under_review",
                    "is_active": False,
                    "business_managed": True,
                }
                if independent:
                    row["active_for_bookings"] = True
                client.table("providers").insert(row).execute()

        except Exception as e:
            logger.error(f"Failed to link owner {user['id']} to business {business_id}: {e}")
            raise DatabaseError("establish business ownership relationship", str(e))

    @staticmethod
    def _save_primary_location(user_id: str, business_id: str, address: dict[str, Any]) -> None:
        """Upsert the primary location and point the owner at it. Failures are logged only."""
        client = SupabaseClient.get_client()
        data = {
            "business_id": business_id,
            "location_name": "Main Location",
            "address_line1": address.get("addressLine1"),
            "address_line2": address.get("addressLine2"),
            "city": address.get("city"),
            "state": address.get("state"),
            "postal_code": address.get("postalCode"),
            "country": address.get("country"),
            "is_primary": True,
            "is_active": True,
        }

        try:
            existing = SupabaseClient.fetch_one(
                "business_locations", "business_id", business_id,
                columns="id", filters={"is_primary": True},
            )
            if existing:
                client.table("business_locations").update(data).eq("id", existing["id"]).execute()
                location_id = existing["id"]
            else:
                response = client.table("business_locations").insert(data).execute()
                location_id = response.data[0]["id"] if response.data else None
        except Exception as e:
            logger.warning(f"Could not save primary location for business {business_id}: {e}")
            return

        if not location_id:
            return

        try:
            client.table("providers").update({"location_id": location_id}).eq(
                "user_id", user_id
            ).eq("provider_role", ProviderRole.OWNER.value).execute()
        except Exception as e:
            logger.warning(f"Could not set owner location for {user_id}: {e}")

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    @staticmethod
    def get_status(user_id: str) -> dict[str, Any]:
        """
        Where the user is in onboarding.

        Approved businesses are in Phase 2:
            identity_verification -> bank_connection -> stripe_setup -> complete
        Everyone else is in Phase 1:
            business_info -> documents -> review -> submitted

        Raises:
            NotFoundError: Unknown auth user
        """
        user = SupabaseClient.fetch_auth_user(user_id)
        if not user:
            raise NotFoundError("user", user_id)

        business = SupabaseClient.fetch_one("business_profiles", "owner_user_id", user_id)
        if not business:
            return {
                "phase": OnboardingPhase.PHASE1.value,
                "currentStep": "signup",
                "needsOnboarding": True,
                "userData": {"id": user["id"], "email": user.get("email")},
            }

        business_id = business["id"]
        provider = SupabaseClient.fetch_one(
            "providers", "business_id", business_id,
            filters={"provider_role": ProviderRole.OWNER.value},
        )
        application = SupabaseClient.fetch_one("provider_applications", "business_id", business_id)
        progress = SupabaseClient.fetch_one("business_setup_progress", "business_id", business_id)

        phase, step = OnboardingService.determine_step(business, application)

        if phase == OnboardingPhase.COMPLETE:
            return {
                "phase": phase.value,
                "currentStep": "complete",
                "redirectTo": "/provider-dashboard",
                "businessId": business_id,
                "userId": user_id,
            }

        provider = provider or {}
        application = application or {}
        return {
            "phase": phase.value,
            "currentStep": step,
            "businessId": business_id,
            "userId": user_id,
            "userData": {
                "id": user["id"],
                "email": user.get("email"),
                "firstName": provider.get("first_name"),
                "lastName": provider.get("last_name"),
                "phone": provider.get("phone"),
            },
            "businessData": {
                "businessName": business.get("business_name"),
                "businessType": business.get("business_type"),
                "contactEmail": business.get("contact_email"),
                "phone": business.get("phone"),
                "businessHours": business.get("business_hours"),
                "website": business.get("website_url"),
                "socialMedia": business.get("social_media"),
                "businessDescription": business.get("business_description"),
            },
            "applicationStatus": {
                "status": application.get("application_status") or "not_submitted",
                "submittedAt": application.get("submitted_at"),
                "reviewStatus": application.get("review_status"),
            },
            "verificationStatus": {
                "business": business.get("verification_status"),
                "identity": business.get("identity_verified"),
                "background": provider.get("background_check_status"),
            },
            "setupProgress": progress or {
                "current_step": 1,
                "total_steps": 8,
                "phase_1_completed": False,
                "phase_2_completed": False,
            },
        }

    @staticmethod
    def determine_step(
        business: dict[str, Any],
        application: dict[str, Any] | None,
    ) -> tuple[OnboardingPhase, str]:
        """Phase and step for a business (see get_status)."""
        if business.get("verification_status") == VerificationStatus.APPROVED.value:
            if not business.get("identity_verified"):
                return OnboardingPhase.PHASE2, "identity_verification"
            if not business.get("bank_connected"):
                return OnboardingPhase.PHASE2, "bank_connection"
            if not business.get("stripe_connect_account_id"):
                return OnboardingPhase.PHASE2, "stripe_setup"

            account = SupabaseClient.fetch_one(
                "stripe_connect_accounts", "business_id", business["id"],
                columns="charges_enabled, payouts_enabled",
            )
            if account and account.get("charges_enabled") and account.get("payouts_enabled"):
                return OnboardingPhase.COMPLETE, "complete"
            return OnboardingPhase.PHASE2, "stripe_setup"

        if not business.get("business_name"):
            return OnboardingPhase.PHASE1, "business_info"

        if not application or application.get("application_status") != "submitted":
            pending = SupabaseClient.fetch_many(
                "business_documents",
                filters={
                    "business_id": business["id"],
                    "verification_status": "pending",
                },
                columns="document_type",
            )
            uploaded = {doc.get("document_type") for doc in pending}
            required = required_document_types(business.get("business_type"))
            if not all(doc_type in uploaded for doc_type in required):
                return OnboardingPhase.PHASE1, "documents"
            return OnboardingPhase.PHASE1, "review"

        if business.get("verification_status") == VerificationStatus.UNDER_REVIEW.value:
            return OnboardingPhase.PHASE1, "submitted"
        if business.get("verification_status") == VerificationStatus.PENDING.value:
            return OnboardingPhase.PHASE1, "review"
        # Rejected or suspended after submission
        return OnboardingPhase.PHASE1, "business_info"

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------

    @staticmethod
    def submit_application(
        user_id: str | None,
        business_id: str | None,
        final_consents: dict[str, Any] | None,
        submission_metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Submit a Phase 1 application for admin review.

        Raises:
            MissingFieldsError: userId, businessId or finalConsents missing
            InvalidRequestError: A consent wasn't given
            ConflictError: Application already submitted
            NotFoundError: User doesn't own the business
            DatabaseError: Application can't be written
        """
        required = ["userId", "businessId", "finalConsents"]
        missing = missing_fields(
            {"userId": user_id, "businessId": business_id, "finalConsents": final_consents},
            required,
        )
        if missing:
            raise MissingFieldsError(required, missing)

        if not all(final_consents.get(key) for key in (
            "informationAccuracy", "termsAccepted", "backgroundCheckConsent"
        )):
            raise InvalidRequestError("All consents must be given to submit application")

        owner = SupabaseClient.fetch_one(
            "providers", "user_id", user_id,
            columns="business_id",
            filters={"business_id": business_id, "provider_role": ProviderRole.OWNER.value},
        )
        if not owner:
            raise NotFoundError("business", business_id)

        business = SupabaseClient.fetch_one("business_profiles", "id", business_id)
        if not business:
            raise NotFoundError("business", business_id)

        uploaded = DocumentService.uploaded_types(business_id)
        outstanding = [t for t in required_document_types(business.get("business_type")) if t not in uploaded]
        if outstanding:
            # Missing documents don't block submission; admins see them in review
            logger.warning(f"Business {business_id} submitted without documents: {outstanding}")

        existing = SupabaseClient.fetch_one(
            "provider_applications", "business_id", business_id, columns="id, application_status"
        )
        if existing and existing.get("application_status") == "submitted":
            raise ConflictError(
                "Application already submitted",
                details={"applicationId": existing["id"], "status": existing["application_status"]},
            )

        now = utc_now_iso()
        submission = {
            "user_id": user_id,
            "business_id": business_id,
            "application_status": "submitted",
            "review_status": "pending",
            "consents_given": final_consents,
            "submission_metadata": {**(submission_metadata or {}), "timestamp": now},
            "submitted_at": now,
        }

        client = SupabaseClient.get_client()
        try:
            response = (
                client.table("provider_applications")
                .upsert(submission, on_conflict="business_id")
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to submit application for {business_id}: {e}")
            raise DatabaseError("submit application", str(e))

        application = first_or_none(response.data) or submission
        logger.info(f"Application submitted for business {business_id}")

        follow_ups = (
            ("business_profiles", {
                "verification_status": VerificationStatus.UNDER_REVIEW.value,
                "setup_step": 2,
                "application_submitted_at": now,
            }, "id"),
            ("providers", {
                "verification_status": VerificationStatus.UNDER_REVIEW.value,
                "background_check_status": "pending",
            }, "business_id"),
        )
        for table, updates, column in follow_ups:
            try:
                client.table(table).update(updates).eq(column, business_id).execute()
            except Exception as e:
                logger.warning(f"Application submitted but {table} update failed: {e}")

        try:
            client.table("business_setup_progress").upsert({
                "business_id": business_id,
                "phase_1_completed": True,
                "phase_1_completed_at": now,
            }, on_conflict="business_id").execute()
        except Exception as e:
            logger.warning(f"Could not record Phase 1 completion for {business_id}: {e}")

        return {
            "success": True,
            "applicationId": application.get("id"),
            "submissionDate": application.get("submitted_at"),
            "outstandingDocuments": outstanding,
            "message": (
                "Application submitted successfully! You will receive an email within "
                "3-5 business days with next steps."
            ),
        }
