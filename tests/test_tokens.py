# =============================================================================
# tests/test_tokens.py - Phase 2 Token Tests
# =============================================================================
# Run with: pytest tests/test_tokens.py -v
# =============================================================================

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest
from jose import jwt

from app.config import settings
from lib.tokens import (
    ALGORITHM,
    PHASE2_PURPOSE,
    Phase2TokenError,
    build_phase2_url,
    issue_phase2_token,
    verify_phase2_token,
)


class TestIssueAndVerify:

    def test_claims_survive_signing(self):
        token = issue_phase2_token("biz-1", "user-1", "app-1")
        claims = verify_phase2_token(token)

        assert claims.business_id == "biz-1"
        assert claims.user_id == "user-1"
        assert claims.application_id == "app-1"

    def test_application_defaults_to_business(self):
        claims = verify_phase2_token(issue_phase2_token("biz-1", "user-1"))
        assert claims.application_id == "biz-1"

    def test_expiry_uses_configured_ttl(self):
        now = datetime.now(timezone.utc).replace(microsecond=0)
        claims = verify_phase2_token(issue_phase2_token("biz-1", "user-1", now=now))

        assert claims.expires_at == now + timedelta(days=settings.PHASE2_TOKEN_TTL_DAYS)

    def test_expired_token(self):
        issued = datetime.now(timezone.utc) - timedelta(days=settings.PHASE2_TOKEN_TTL_DAYS + 1)
        token = issue_phase2_token("biz-1", "user-1", now=issued)

        with pytest.raises(Phase2TokenError) as exc_info:
            verify_phase2_token(token)
        assert exc_info.value.expired is True

    def test_wrong_secret(self):
        token = jwt.encode(
            {"business_id": "biz-1", "user_id": "user-1", "purpose": PHASE2_PURPOSE},
            "some-other-secret",
            algorithm=ALGORITHM,
        )
        with pytest.raises(Phase2TokenError) as exc_info:
            verify_phase2_token(token)
        assert exc_info.value.expired is False

    def test_wrong_purpose(self):
        token = jwt.encode(
            {"business_id": "biz-1", "user_id": "user-1", "purpose": "password_reset"},
            settings.SECRET_KEY,
            algorithm=ALGORITHM,
        )
        with pytest.raises(Phase2TokenError, match="not a Phase 2"):
            verify_phase2_token(token)

    def test_missing_user(self):
        token = jwt.encode(
            {"business_id": "biz-1", "purpose": PHASE2_PURPOSE},
            settings.SECRET_KEY,
            algorithm=ALGORITHM,
        )
        with pytest.raises(Phase2TokenError):
            verify_phase2_token(token)

    def test_garbage(self):
        with pytest.raises(Phase2TokenError):
            verify_phase2_token("not-a-jwt")


class TestBuildPhase2Url:

    def test_url_carries_token(self):
        url = build_phase2_url("abc.def.ghi")
        parsed = urlparse(url)

        assert url.startswith(settings.APP_URL.rstrip("/"))
        assert parsed.path.endswith("/provider-onboarding/phase2")
        assert parse_qs(parsed.query)["token"] == ["abc.def.ghi"]
