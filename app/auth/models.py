# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from uuid import UUID

from pydantic import BaseModel

from app.exceptions import ForbiddenError, NotFoundError
from lib.supabase_client import SupabaseClient


class AuthUser(BaseModel):
    """
    Authenticated user extracted from Supabase JWT.

    This is the minimal user info available from the token itself,
    without querying the database.
    """
    model_config = {"frozen": True}

    id: UUID
    email: str | None = None


class AdminUser(AuthUser):
    """Authenticated user with an active admin_users row."""
    role: str | None = None


class OnboardingAccess(BaseModel):
    """
    Caller of an onboarding endpoint.

    Either a signed-in owner (Supabase JWT), limited to businesses whose
    owner_user_id is theirs, or the holder of a Phase 2 link, limited to the
    token's business.
    """
    model_config = {"frozen": True}

    user_id: str
    email: str | None = None
    business_id: str | None = None
    via_phase2_token: bool = False

    def ensure_business(self, business_id: str | None) -> None:
        """
        No-op when business_id is None; callers report the missing field.

        Raises:
            ForbiddenError: Phase 2 token for a different business, or a
                session user who doesn't own the business
            NotFoundError: Unknown business (session callers)
        """
        if not business_id:
            return
        business_id = str(business_id)

        if self.via_phase2_token:
            if business_id != self.business_id:
                raise ForbiddenError(
                    "Phase 2 token is not valid for this business",
                    details={"business_id": business_id},
                )
            return

        business = SupabaseClient.fetch_one(
            "business_profiles", "id", business_id, columns="id, owner_user_id"
        )
        if not business:
            raise NotFoundError("business", business_id)
        if str(business.get("owner_user_id")) != self.user_id:
            raise ForbiddenError(
                "You do not own this business",
                details={"business_id": business_id},
            )

    def acting_user(self, requested: str | None = None) -> str:
        """
        The user an operation runs as: always the caller.

        Raises:
            ForbiddenError: requested names a different user
        """
        if requested and str(requested) != self.user_id:
            raise ForbiddenError(
                "Cannot act on behalf of another user",
                details={"userId": str(requested)},
            )
        return self.user_id


class CurrentUserResponse(BaseModel):
    """Response for /auth/me."""
    id: UUID
    email: str | None = None
    is_admin: bool = False
    admin_role: str | None = None
    last_sign_in_at: str | None = None
