# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Three callers reach this API:
#   get_current_user       any Supabase session (ES256 via JWKS, HS256 legacy)
#   get_admin_user         a session with an active admin_users row
#   get_onboarding_access  a session, or the X-Phase2-Token from an approval link
#
# Usage:
#   @router.get("/api/admin/customers")
#   async def customers(admin: AdminUser = Depends(get_admin_user)):
#       ...
# =============================================================================

import logging
import time
from typing import Any, Optional
from uuid import UUID

import httpx
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError

from app.config import settings
from app.auth.models import AdminUser, AuthUser, OnboardingAccess
from lib.supabase_client import SupabaseClient
from lib.tokens import Phase2TokenError, verify_phase2_token

logger = logging.getLogger(__name__)

security = HTTPBearer()
security_optional = HTTPBearer(auto_error=False)

SESSION_AUDIENCE = "authenticated"
JWKS_CACHE_TTL = 3600  # seconds

_jwks: dict[str, Any] = {"keys": [], "fetched_at": 0.0}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _project_keys() -> list[dict[str, Any]]:
    """
    Public signing keys of the Supabase project, refreshed hourly.

    A failed refresh keeps serving the previous keys.
    """
    if _jwks["keys"] and time.time() - _jwks["fetched_at"] < JWKS_CACHE_TTL:
        return _jwks["keys"]

    url = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/.well-known/jwks.json"
    try:
        response = httpx.get(url, timeout=10)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning(f"JWKS refresh from {url} failed: {e}")
        return _jwks["keys"]

    _jwks["keys"] = response.json().get("keys", [])
    _jwks["fetched_at"] = time.time()
    logger.debug(f"Loaded {len(_jwks['keys'])} signing keys from {url}")
    return _jwks["keys"]


def _verification_key(token: str) -> tuple[Any, str]:
    """(key, algorithm) for a session token, based on its unverified header."""
    legacy = (settings.SUPABASE_JWT_SECRET, "HS256")
    try:
        header = jwt.get_unverified_header(token)
    except JWTError:
        return legacy

    algorithm = header.get("alg", "HS256")
    if algorithm == "HS256":
        return legacy

    kid = header.get("kid")
    match = next((k for k in _project_keys() if kid and k.get("kid") == kid), None)
    if match is None:
        logger.warning(f"No project key for alg={algorithm} kid={kid}; trying the legacy secret")
        return legacy
    return match, algorithm


def decode_session_token(token: str) -> AuthUser:
    """
    Verify a Supabase session token.

    Raises:
        HTTPException: 401 for an expired, forged or malformed token
    """
    key, algorithm = _verification_key(token)
    try:
        claims = jwt.decode(token, key, algorithms=[algorithm], audience=SESSION_AUDIENCE)
    except ExpiredSignatureError:
        logger.warning("Session token expired")
        raise _unauthorized("Token has expired")
    except JWTError as e:
        logger.warning(f"Session token rejected: {e}")
        raise _unauthorized(f"Invalid token: {e}")

    subject = claims.get("sub")
    if not subject:
        raise _unauthorized("Invalid token: missing user ID")
    try:
        user_id = UUID(subject)
    except ValueError:
        logger.warning(f"Session token subject is not a UUID: {subject}")
        raise _unauthorized("Invalid token: malformed user ID")

    return AuthUser(id=user_id, email=claims.get("email"))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthUser:
    """
    The caller's Supabase user.

    Raises:
        HTTPException: 401 if the Bearer token is missing, invalid or expired
    """
    user = decode_session_token(credentials.credentials)
    logger.debug(f"Authenticated user: {user.id}")
    return user


async def get_admin_user(
    user: AuthUser = Depends(get_current_user)
) -> AdminUser:
    """
    Require an authenticated user with an active admin_users row.

    Raises:
        HTTPException: 403 if the user isn't an active admin
    """
    admin = SupabaseClient.fetch_one(
        "admin_users", "user_id", str(user.id),
        columns="user_id, role, is_active",
    )

    if not admin or not admin.get("is_active"):
        logger.warning(f"Admin access denied for user {user.id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )

    return AdminUser(id=user.id, email=user.email, role=admin.get("role"))


async def get_onboarding_access(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional),
    phase2_token: Optional[str] = Header(default=None, alias="X-Phase2-Token"),
) -> OnboardingAccess:
    """
    Accept a Supabase Bearer token or a Phase 2 link token.

    The Phase 2 token wins when both are sent.

    Raises:
        HTTPException: 401 if neither credential is present and valid
    """
    if phase2_token:
        try:
            claims = verify_phase2_token(phase2_token)
        except Phase2TokenError as e:
            logger.warning(f"Phase 2 token rejected: {e.message}")
            raise _unauthorized("Phase 2 token has expired" if e.expired else "Invalid Phase 2 token")
        return OnboardingAccess(
            user_id=claims.user_id,
            business_id=claims.business_id,
            via_phase2_token=True,
        )

    if credentials is None:
        raise _unauthorized("Not authenticated")

    user = decode_session_token(credentials.credentials)
    return OnboardingAccess(user_id=str(user.id), email=user.email)
