# =============================================================================
# core/services/setup_progress_service.py - Phase 2 Setup Progress
# =============================================================================
# Phase 2 is a wizard the owner completes after approval. Progress lives in
# business_setup_progress (one row per business):
#
#   <step>_completed   one flag per Phase2Step
#   step_data          {step: data} as last saved by the portal
#   current_step       index of the first incomplete step (7 when done)
#   phase_2_completed  all steps done
#
# Some steps also write through to the business profile.
# =============================================================================

import logging
from typing import Any

from lib.supabase_client import SupabaseClient
from lib.tokens import Phase2TokenError, verify_phase2_token
from lib.utils import first_or_none, missing_fields, utc_now_iso
from core.models.business import VerificationStatus
from core.models.onboarding import PHASE2_STEPS, Phase2Step
from core.services.business_service import BusinessService
from app.exceptions import (
    DatabaseError,
    ForbiddenError,
    InvalidRequestError,
    MissingFieldsError,
)

logger = logging.getLogger(__name__)

TABLE = "business_setup_progress"


def completion_percentage(completed: int) -> int:
    return round(completed / len(PHASE2_STEPS) * 100)


def parse_step(step: str | None) -> Phase2Step:
    """
    Raises:
        InvalidRequestError: If step isn't a Phase 2 step
    """
    try:
        return Phase2Step(step)
    except ValueError:
        raise InvalidRequestError(
            f"Invalid step: {step}",
            details={"valid_steps": [s.value for s in PHASE2_STEPS]},
        )


class SetupProgressService:
    """Service for Phase 2 wizard progress."""

    @staticmethod
    def shape_progress(business_id: str, row: dict[str, Any] | None) -> dict[str, Any]:
        """Progress response from a stored row (or none)."""
        row = row or {}
        steps = {step.value: bool(row.get(step.completed_column)) for step in PHASE2_STEPS}
        completed = sum(steps.values())
        next_index = next((i for i, step in enumerate(PHASE2_STEPS) if not steps[step.value]), len(PHASE2_STEPS))

        return {
            "business_id": business_id,
            "steps": steps,
            "completed_steps": completed,
            "total_steps": len(PHASE2_STEPS),
            "completion_percentage": completion_percentage(completed),
            "current_step": next_index,
            "current_step_name": PHASE2_STEPS[next_index].value if next_index < len(PHASE2_STEPS) else None,
            "phase_2_completed": completed == len(PHASE2_STEPS),
            "step_data": row.get("step_data") or {},
            "plaid_connected": bool(row.get("plaid_connected")),
            "updated_at": row.get("updated_at"),
        }

    @staticmethod
    def get_progress(business_id: str) -> dict[str, Any]:
        row = SupabaseClient.fetch_one(TABLE, "business_id", business_id)
        return SetupProgressService.shape_progress(business_id, row)

    @staticmethod
    def save_step(business_id: str | None, step: str | None, data: dict[str, Any] | None) -> dict[str, Any]:
        """
        Mark a Phase 2 step complete and store its data.

        Side effects:
            business_hours: hours are written to the business profile
            final_review: the business is marked setup_completed

        Raises:
            MissingFieldsError: business_id or step missing
            InvalidRequestError: Unknown step or invalid hours
            NotFoundError: Unknown business
            DatabaseError: Progress can't be written
        """
        required = ["business_id", "step"]
        missing = missing_fields({"business_id": business_id, "step": step}, required)
        if missing:
            raise MissingFieldsError(required, missing)

        phase2_step = parse_step(step)
        data = data or {}
        BusinessService.get_business(business_id, columns="id")

        if phase2_step == Phase2Step.BUSINESS_HOURS:
            hours = data.get("business_hours", data)
            if hours:
                BusinessService.update_hours(business_id, hours)
            else:
                logger.info(f"No hours sent with business_hours step for {business_id}; stored hours kept")
        elif phase2_step == Phase2Step.FINAL_REVIEW:
            BusinessService.update_business(
                business_id,
                {"setup_completed": True},
                action="complete business setup",
            )

        existing = SupabaseClient.fetch_one(TABLE, "business_id", business_id) or {}
        step_data = dict(existing.get("step_data") or {})
        step_data[phase2_step.value] = data

        row = {
            "business_id": business_id,
            **{s.completed_column: bool(existing.get(s.completed_column)) for s in PHASE2_STEPS},
            phase2_step.completed_column: True,
            "step_data": step_data,
        }
        shaped = SetupProgressService.shape_progress(business_id, row)
        row["current_step"] = shaped["current_step"]
        row["phase_2_completed"] = shaped["phase_2_completed"]
        row["updated_at"] = utc_now_iso()
        if shaped["phase_2_completed"] and not existing.get("phase_2_completed"):
            row["phase_2_completed_at"] = row["updated_at"]

        client = SupabaseClient.get_client()
        try:
            response = client.table(TABLE).upsert(row, on_conflict="business_id").execute()
        except Exception as e:
            logger.error(f"Failed to save {phase2_step.value} progress for {business_id}: {e}")
            raise DatabaseError("save setup progress", str(e))

        logger.info(
            f"Business {business_id} completed {phase2_step.value} "
            f"({shaped['completion_percentage']}%)"
        )
        stored = first_or_none(response.data) or row
        return {"success": True, **SetupProgressService.shape_progress(business_id, stored)}

    @staticmethod
    def validate_token(token: str | None) -> dict[str, Any]:
        """
        Check a Phase 2 link token and return what the wizard needs to start.

        Raises:
            MissingFieldsError: No token
            InvalidRequestError: Invalid or expired token, or unknown business
            ForbiddenError: The business isn't approved
        """
        if not token:
            raise MissingFieldsError(["token"])

        try:
            claims = verify_phase2_token(token)
        except Phase2TokenError as e:
            raise InvalidRequestError(
                "Token expired" if e.expired else "Invalid token",
                details={"error": e.message},
            )

        business = SupabaseClient.fetch_one(
            "business_profiles", "id", claims.business_id,
            columns="id, business_name, verification_status",
        )
        if not business:
            raise InvalidRequestError("Business not found", details={"business_id": claims.business_id})

        if business.get("verification_status") != VerificationStatus.APPROVED.value:
            raise ForbiddenError(
                "Business is not approved for Phase 2",
                details={"currentStatus": business.get("verification_status")},
            )

        progress = SupabaseClient.fetch_one(TABLE, "business_id", claims.business_id)
        if progress is None:
            try:
                SupabaseClient.get_client().table(TABLE).insert({
                    "business_id": claims.business_id,
                    "current_step": 0,
                    **{step.completed_column: False for step in PHASE2_STEPS},
                }).execute()
            except Exception as e:
                logger.warning(f"Could not create setup progress for {claims.business_id}: {e}")

        return {
            "success": True,
            "business_id": claims.business_id,
            "user_id": claims.user_id,
            "application_id": claims.application_id,
            "business_name": business.get("business_name"),
            "expires_at": claims.expires_at.isoformat(),
            "progress": SetupProgressService.shape_progress(claims.business_id, progress),
            "can_access_phase2": True,
        }
