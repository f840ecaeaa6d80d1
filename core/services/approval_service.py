# =============================================================================
# core/services/approval_service.py - Business Approval
# =============================================================================
# Admin review outcome for a submitted Phase 1 application.
#
# Approval activates the business (RPC approve_and_activate_business), marks
# the application approved, and issues the Phase 2 link for the owner.
# Rejection records the reason. Bookkeeping writes after the decisive step
# are best effort and only logged.
# =============================================================================

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.tokens import build_phase2_url, issue_phase2_token
from lib.utils import missing_fields, utc_now_iso
from core.models.business import ProviderRole, VerificationStatus
from core.services.business_service import BusinessService
from app.config import settings
from app.exceptions import (
    InvalidRequestError,
    MarketplaceException,
    MissingFieldsError,
)

logger = logging.getLogger(__name__)


class MissingOwnerError(MarketplaceException):
    """Approved business has no owner provider to address the Phase 2 link to."""

    def __init__(self, business_id: str):
        super().__init__(
            message="Missing owner provider",
            code="MISSING_OWNER",
            status_code=500,
            suggestion="The business must have a provider with provider_role = 'owner'",
            details={"business_id": business_id},
        )


class ApprovalService:
    """Service for approving and rejecting business applications."""

    @staticmethod
    def _application(business_id: str) -> dict[str, Any] | None:
        return SupabaseClient.fetch_one(
            "provider_applications", "business_id", business_id, columns="id"
        )

    @staticmethod
    def _update_application(application_id: str, updates: dict[str, Any]) -> None:
        try:
            SupabaseClient.get_client().table("provider_applications").update(updates).eq(
                "id", application_id
            ).execute()
        except Exception as e:
            logger.warning(f"Could not update application {application_id}: {e}")

    @staticmethod
    def approve(
        business_id: str | None,
        admin_user_id: str | None,
        approval_notes: str | None = None,
    ) -> dict[str, Any]:
        """
        Approve a business and issue the owner's Phase 2 link.

        Raises:
            MissingFieldsError: businessId or adminUserId missing
            NotFoundError: Unknown business
            InvalidRequestError: The activation RPC refused
            MissingOwnerError: No owner provider
        """
        required = ["businessId", "adminUserId"]
        missing = missing_fields({"businessId": business_id, "adminUserId": admin_user_id}, required)
        if missing:
            raise MissingFieldsError(required, missing)

        business = BusinessService.get_business(business_id, columns="id, business_name")
        application = ApprovalService._application(business_id)

        try:
            SupabaseClient.call_rpc("approve_and_activate_business", {
                "p_business_id": business_id,
                "p_admin_user_id": admin_user_id,
                "p_approval_notes": approval_notes,
            })
        except SupabaseClientError as e:
            logger.error(f"Activation of business {business_id} failed: {e}")
            raise InvalidRequestError(
                "Failed to approve and activate business",
                details={"error": e.message},
            )

        approved = datetime.now(timezone.utc)
        approved_at = approved.isoformat()
        if application:
            ApprovalService._update_application(application["id"], {
                "application_status": "approved",
                "review_status": "approved",
                "reviewed_at": approved_at,
                "reviewed_by": admin_user_id,
                "approval_notes": approval_notes,
            })

        owner = SupabaseClient.fetch_one(
            "providers", "business_id", business_id,
            columns="user_id",
            filters={"provider_role": ProviderRole.OWNER.value},
        )
        if not owner or not owner.get("user_id"):
            logger.error(f"No owner provider for approved business {business_id}")
            raise MissingOwnerError(business_id)

        application_id = application["id"] if application else business_id
        token = issue_phase2_token(business_id, owner["user_id"], application_id, now=approved)
        approval_url = build_phase2_url(token)

        client = SupabaseClient.get_client()
        if application:
            token_expires_at = (approved + timedelta(days=settings.PHASE2_TOKEN_TTL_DAYS)).isoformat()
            try:
                client.table("application_approvals").insert({
                    "business_id": business_id,
                    "application_id": application["id"],
                    "approved_by": admin_user_id,
                    "approval_token": token,
                    "token_expires_at": token_expires_at,
                    "approval_notes": approval_notes,
                }).execute()
            except Exception as e:
                logger.warning(f"Could not record approval for {business_id}: {e}")

        try:
            client.table("business_setup_progress").upsert({
                "business_id": business_id,
                "phase_1_completed": True,
                "phase_1_completed_at": approved_at,
            }, on_conflict="business_id").execute()
        except Exception as e:
            logger.warning(f"Could not update setup progress for {business_id}: {e}")

        logger.info(f"Business {business_id} ({business.get('business_name')}) approved by {admin_user_id}")

        return {
            "success": True,
            "message": "Application approved successfully",
            "approvalToken": token,
            "approvalUrl": approval_url,
            "approvedAt": approved_at,
            "approvedBy": admin_user_id,
        }

    @staticmethod
    def reject(
        business_id: str | None,
        admin_user_id: str | None,
        rejection_reason: str | None,
    ) -> dict[str, Any]:
        """
        Raises:
            MissingFieldsError: businessId, adminUserId or rejectionReason missing
            NotFoundError: Unknown business
        """
        required = ["businessId", "adminUserId", "rejectionReason"]
        missing = missing_fields(
            {"businessId": business_id, "adminUserId": admin_user_id, "rejectionReason": rejection_reason},
            required,
        )
        if missing:
            raise MissingFieldsError(required, missing)

        rejected_at = utc_now_iso()
        BusinessService.update_business(
            business_id,
            {
                "verification_status": VerificationStatus.REJECTED.value,
                "rejection_reason": rejection_reason,
                "is_active": False,
            },
            action="reject business",
        )

        application = ApprovalService._application(business_id)
        if application:
            ApprovalService._update_application(application["id"], {
                "application_status": "rejected",
                "review_status": "rejected",
                "reviewed_at": rejected_at,
                "reviewed_by": admin_user_id,
                "rejection_reason": rejection_reason,
            })

        logger.info(f"Business {business_id} rejected by {admin_user_id}")

        return {
            "success": True,
            "message": "Application rejected",
            "rejectedAt": rejected_at,
            "rejectedBy": admin_user_id,
        }
