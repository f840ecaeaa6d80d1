# =============================================================================
# app/routers/admin_businesses.py - Admin Business Management
# =============================================================================
# Business listing, detail and edits, plus the approval decision that opens
# Phase 2 for the owner.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from app.auth import AdminUser, get_admin_user
from core.models.admin import AdminBusinessUpdate, ApproveBusinessRequest, RejectBusinessRequest
from core.services.admin_service import AdminService
from core.services.approval_service import ApprovalService

router = APIRouter()


@router.get("/businesses")
async def list_businesses(
    verification_status: Annotated[str | None, Query()] = None,
    search: Annotated[str | None, Query(description="Business name or contact email")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 25,
    admin: AdminUser = Depends(get_admin_user),
):
    return AdminService.list_businesses(
        verification_status=verification_status,
        search=search,
        page=page,
        page_size=page_size,
    )


@router.get("/businesses/{business_id}")
async def get_business(
    business_id: Annotated[str, Path(description="Business UUID")],
    admin: AdminUser = Depends(get_admin_user),
):
    """Profile with locations, documents, categories and hours."""
    return {"success": True, "data": AdminService.get_business_detail(business_id)}


@router.patch("/businesses/{business_id}")
async def update_business(
    business_id: Annotated[str, Path(description="Business UUID")],
    request: AdminBusinessUpdate,
    admin: AdminUser = Depends(get_admin_user),
):
    business = AdminService.update_business(business_id, request.model_dump(mode="json"))
    return {"success": True, "data": business}


@router.post("/approve-business")
async def approve_business(
    request: ApproveBusinessRequest,
    admin: AdminUser = Depends(get_admin_user),
):
    """
    Approve a business and issue the owner's Phase 2 link.

    adminUserId defaults to the signed-in admin.
    """
    return ApprovalService.approve(
        request.business_id,
        request.admin_user_id or str(admin.id),
        request.approval_notes,
    )


@router.post("/reject-business")
async def reject_business(
    request: RejectBusinessRequest,
    admin: AdminUser = Depends(get_admin_user),
):
    return ApprovalService.reject(
        request.business_id,
        request.admin_user_id or str(admin.id),
        request.rejection_reason,
    )
