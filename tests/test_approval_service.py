# =============================================================================
# tests/test_approval_service.py - Business Approval Tests
# =============================================================================

from datetime import datetime

import pytest

from app.config import settings
from app.exceptions import InvalidRequestError, MissingFieldsError, NotFoundError
from core.services.approval_service import ApprovalService, MissingOwnerError
from lib.tokens import verify_phase2_token
from tests.conftest import ADMIN_ID, BUSINESS_ID, USER_ID


@pytest.fixture
def approvable(fake_db):
    fake_db.set_result("business_profiles", data=[{"id": BUSINESS_ID, "business_name": "Glow"}])
    fake_db.set_result("provider_applications", data=[{"id": "app-1"}])
    fake_db.set_result("providers", data=[{"user_id": USER_ID}])
    return fake_db


class TestApprove:

    def test_requires_admin(self, fake_db):
        with pytest.raises(MissingFieldsError) as exc_info:
            ApprovalService.approve(BUSINESS_ID, None)
        assert exc_info.value.details["missing"] == ["adminUserId"]

    def test_unknown_business(self, fake_db):
        with pytest.raises(NotFoundError):
            ApprovalService.approve(BUSINESS_ID, ADMIN_ID)
        assert fake_db.rpc_calls == []

    def test_issues_phase2_link(self, approvable):
        result = ApprovalService.approve(BUSINESS_ID, ADMIN_ID, "Looks good")

        assert result["success"] is True
        assert result["approvedBy"] == ADMIN_ID
        assert result["approvalUrl"].endswith(f"token={result['approvalToken']}")

        claims = verify_phase2_token(result["approvalToken"])
        assert claims.business_id == BUSINESS_ID
        assert claims.user_id == USER_ID
        assert claims.application_id == "app-1"

        assert approvable.rpc_calls == [("approve_and_activate_business", {
            "p_business_id": BUSINESS_ID,
            "p_admin_user_id": ADMIN_ID,
            "p_approval_notes": "Looks good",
        })]

    def test_records_application_and_progress(self, approvable):
        result = ApprovalService.approve(BUSINESS_ID, ADMIN_ID)

        application = approvable.calls("provider_applications", "update")[0]
        assert application.payload["application_status"] == "approved"
        assert application.eq_value("id") == "app-1"

        approval = approvable.calls("application_approvals", "insert")[0].payload
        approved_at = datetime.fromisoformat(result["approvedAt"])
        expires_at = datetime.fromisoformat(approval["token_expires_at"])
        assert (expires_at - approved_at).days == settings.PHASE2_TOKEN_TTL_DAYS

        progress = approvable.calls("business_setup_progress", "upsert")[0].payload
        assert progress["phase_1_completed"] is True

    def test_rpc_failure(self, approvable):
        approvable.set_rpc("approve_and_activate_business", error=Exception("already approved"))

        with pytest.raises(InvalidRequestError) as exc_info:
            ApprovalService.approve(BUSINESS_ID, ADMIN_ID)

        assert exc_info.value.message == "Failed to approve and activate business"
        assert approvable.calls("provider_applications", "update") == []

    def test_missing_owner(self, fake_db):
        fake_db.set_result("business_profiles", data=[{"id": BUSINESS_ID, "business_name": "Glow"}])

        with pytest.raises(MissingOwnerError) as exc_info:
            ApprovalService.approve(BUSINESS_ID, ADMIN_ID)
        assert exc_info.value.code == "MISSING_OWNER"

    def test_without_application(self, fake_db):
        fake_db.set_result("business_profiles", data=[{"id": BUSINESS_ID, "business_name": "Glow"}])
        fake_db.set_result("providers", data=[{"user_id": USER_ID}])

        result = ApprovalService.approve(BUSINESS_ID, ADMIN_ID)

        assert verify_phase2_token(result["approvalToken"]).application_id == BUSINESS_ID
        assert fake_db.calls("application_approvals") == []


class TestReject:

    def test_reason_required(self, fake_db):
        with pytest.raises(MissingFieldsError):
            ApprovalService.reject(BUSINESS_ID, ADMIN_ID, "")

    def test_rejects_business_and_application(self, fake_db):
        fake_db.set_result("provider_applications", data=[{"id": "app-1"}])

        result = ApprovalService.reject(BUSINESS_ID, ADMIN_ID, "Licence expired")

        business = fake_db.calls("business_profiles", "update")[0].payload
        assert business["verification_status"] == "rejected"
        assert business["is_active"] is False
        assert business["rejection_reason"] == "Licence expired"

        application = fake_db.calls("provider_applications", "update")[0].payload
        assert application["application_status"] == "rejected"
        assert result["rejectedBy"] == ADMIN_ID
