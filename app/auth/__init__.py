# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Supabase JWT authentication, admin checks and Phase 2 link access.
#
# Usage:
#   from app.auth import get_admin_user, AdminUser
#
#   @router.get("/admin-only")
#   async def admin_only(admin: AdminUser = Depends(get_admin_user)):
#       return {"admin_id": admin.id}
# =============================================================================

from app.auth.dependencies import get_admin_user, get_current_user, get_onboarding_access
from app.auth.models import AdminUser, AuthUser, CurrentUserResponse, OnboardingAccess

__all__ = [
    "get_current_user",
    "get_admin_user",
    "get_onboarding_access",
    "AuthUser",
    "AdminUser",
    "OnboardingAccess",
    "CurrentUserResponse",
]
