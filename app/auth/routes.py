# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# Sign-in happens client-side with Supabase Auth. These routes let the
# front-ends check a session and whether it carries admin rights.
# =============================================================================

import logging

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser, CurrentUserResponse
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> CurrentUserResponse:
    """
    The signed-in user, with admin role when they have one.

    Raises:
        401: If not authenticated
    """
    admin = SupabaseClient.fetch_one(
        "admin_users", "user_id", str(user.id),
        columns="role, is_active",
    )
    auth_user = SupabaseClient.fetch_auth_user(user.id) or {}

    return CurrentUserResponse(
        id=user.id,
        email=user.email or auth_user.get("email"),
        is_admin=bool(admin and admin.get("is_active")),
        admin_role=admin.get("role") if admin else None,
        last_sign_in_at=auth_user.get("last_sign_in_at"),
    )


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """
    Verify that the current token is valid.

    Raises:
        401: If token is invalid or expired
    """
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email
    }
