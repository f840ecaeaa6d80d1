# =============================================================================
# lib/tokens.py - Phase 2 Onboarding Tokens
# =============================================================================
# When an admin approves a business, the owner receives a link that lets
# them continue onboarding (Phase 2) without a portal login. The link carries
# a signed JWT scoped to one business.
#
# Usage:
#   token = issue_phase2_token(business_id, user_id, application_id)
#   claims = verify_phase2_token(token)
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

from jose import jwt, JWTError, ExpiredSignatureError

from app.config import settings

PHASE2_PURPOSE = "phase2_onboarding"
ALGORITHM = "HS256"


class Phase2TokenError(Exception):
    """Raised when a Phase 2 token is invalid, expired or for another purpose."""

    def __init__(self, message: str, expired: bool = False):
        super().__init__(message)
        self.message = message
        self.expired = expired


@dataclass(frozen=True)
class Phase2Claims:
    """Verified contents of a Phase 2 token."""

    business_id: str
    user_id: str
    application_id: str
    expires_at: datetime


def issue_phase2_token(
    business_id: str,
    user_id: str,
    application_id: str | None = None,
    now: datetime | None = None,
) -> str:
    """
    Sign a Phase 2 token.

    application_id falls back to business_id for businesses created before
    provider_applications existed.
    """
    issued_at = now or datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(days=settings.PHASE2_TOKEN_TTL_DAYS)

    payload = {
        "business_id": str(business_id),
        "user_id": str(user_id),
        "application_id": str(application_id or business_id),
        "purpose": PHASE2_PURPOSE,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def verify_phase2_token(token: str) -> Phase2Claims:
    """
    Verify signature, expiry and purpose of a Phase 2 token.

    Raises:
        Phase2TokenError: If the token can't be trusted
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise Phase2TokenError("Phase 2 token has expired", expired=True)
    except JWTError as e:
        raise Phase2TokenError(f"Invalid Phase 2 token: {e}")

    if payload.get("purpose") != PHASE2_PURPOSE:
        raise Phase2TokenError("Token is not a Phase 2 onboarding token")

    business_id = payload.get("business_id")
    user_id = payload.get("user_id")
    if not business_id or not user_id:
        raise Phase2TokenError("Phase 2 token is missing business or user")

    return Phase2Claims(
        business_id=business_id,
        user_id=user_id,
        application_id=payload.get("application_id") or business_id,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def build_phase2_url(token: str) -> str:
    """Portal URL that opens Phase 2 onboarding with the given token."""
    base = settings.APP_URL.rstrip("/")
    return f"{base}/provider-onboarding/phase2?{urlencode({'token': token})}"
