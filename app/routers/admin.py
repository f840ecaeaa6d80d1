# =============================================================================
# app/routers/admin.py - Admin Console Endpoints
# =============================================================================
# Customers, providers, bookings, document review and dashboard figures.
# Business management lives in admin_businesses.py.
#
# All endpoints require an active admin (admin_users table).
# =============================================================================

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from app.auth import AdminUser, get_admin_user
from core.models.admin import CustomerStatusUpdate, DocumentReview, ProviderUpdate, StatusFilter
from core.models.business import DocumentStatus
from core.services.admin_service import AdminService
from core.services.document_service import DocumentService

router = APIRouter()


# =============================================================================
# Customers
# =============================================================================

@router.get("/customers")
async def list_customers(
    status: Annotated[StatusFilter, Query(description="all, active or inactive")] = StatusFilter.ALL,
    admin: AdminUser = Depends(get_admin_user),
):
    """Customer profiles with notification preferences."""
    return {"success": True, "data": AdminService.list_customers(status)}


@router.patch("/customers/{customer_id}/status")
async def update_customer_status(
    customer_id: Annotated[str, Path(description="Customer profile UUID")],
    request: CustomerStatusUpdate,
    admin: AdminUser = Depends(get_admin_user),
):
    customer = AdminService.set_customer_status(customer_id, request.is_active)
    return {"success": True, "data": customer}


# =============================================================================
# Providers
# =============================================================================

@router.get("/providers")
async def list_providers(
    verification_status: Annotated[str | None, Query()] = None,
    background_check_status: Annotated[str | None, Query()] = None,
    business_id: Annotated[str | None, Query()] = None,
    is_active: Annotated[bool | None, Query()] = None,
    provider_role: Annotated[str | None, Query()] = None,
    admin: AdminUser = Depends(get_admin_user),
):
    providers = AdminService.list_providers(
        verification_status=verification_status,
        background_check_status=background_check_status,
        business_id=business_id,
        is_active=is_active,
        provider_role=provider_role,
    )
    return {"success": True, "data": providers}


@router.patch("/providers/{provider_id}")
async def update_provider(
    provider_id: Annotated[str, Path(description="Provider UUID")],
    request: ProviderUpdate,
    admin: AdminUser = Depends(get_admin_user),
):
    provider = AdminService.update_provider(provider_id, request.model_dump(mode="json"))
    return {"success": True, "data": provider}


# =============================================================================
# Bookings
# =============================================================================

@router.get("/bookings")
async def list_bookings(
    search: Annotated[str | None, Query(description="Customer, provider, business or service name")] = None,
    booking_status: Annotated[str | None, Query()] = None,
    business_id: Annotated[str | None, Query()] = None,
    provider_id: Annotated[str | None, Query()] = None,
    customer_id: Annotated[str | None, Query()] = None,
    date_from: Annotated[date | None, Query(description="YYYY-MM-DD")] = None,
    date_to: Annotated[date | None, Query(description="YYYY-MM-DD")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    admin: AdminUser = Depends(get_admin_user),
):
    """
    Bookings newest first.

    Defaults to 30 days back through one year ahead when no dates are given.
    """
    return AdminService.list_bookings(
        search=search,
        booking_status=booking_status,
        business_id=business_id,
        provider_id=provider_id,
        customer_id=customer_id,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )


@router.get("/bookings/stats")
async def booking_stats(
    days: Annotated[int, Query(ge=1, le=365)] = 30,
    business_id: Annotated[str | None, Query()] = None,
    provider_id: Annotated[str | None, Query()] = None,
    admin: AdminUser = Depends(get_admin_user),
):
    return {"data": AdminService.booking_stats(days, business_id=business_id, provider_id=provider_id)}


# =============================================================================
# Documents
# =============================================================================

@router.get("/documents")
async def list_documents(
    verification_status: Annotated[DocumentStatus | None, Query()] = None,
    admin: AdminUser = Depends(get_admin_user),
):
    return {"success": True, "data": DocumentService.list_documents(verification_status=verification_status)}


@router.patch("/documents/{document_id}")
async def review_document(
    document_id: Annotated[str, Path(description="Document UUID")],
    request: DocumentReview,
    admin: AdminUser = Depends(get_admin_user),
):
    """Verify or reject a document. Rejections need a reason."""
    document = DocumentService.review_document(
        document_id,
        request.verification_status,
        str(admin.id),
        verification_notes=request.verification_notes,
        rejection_reason=request.rejection_reason,
    )
    return {"success": True, "data": document}


# =============================================================================
# Dashboard
# =============================================================================

@router.get("/dashboard-stats")
async def dashboard_stats(admin: AdminUser = Depends(get_admin_user)):
    return {"success": True, "data": AdminService.dashboard_stats()}
