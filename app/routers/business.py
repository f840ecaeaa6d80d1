# =============================================================================
# app/routers/business.py - Owner-Facing Business Endpoints
# =============================================================================
# Settings a business owner manages from the onboarding portal and dashboard:
# hours, tax info, services and add-ons, categories, images, documents.
#
# business_id comes from the query string (GET/DELETE) or the body
# (POST/PUT); a missing id answers 400 like the portal expects.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.auth import OnboardingAccess, get_onboarding_access
from app.exceptions import MissingFieldsError
from lib.utils import missing_fields
from core.models.business import (
    BusinessHoursUpdate,
    CategoryAssociationUpdate,
    DocumentCreate,
    ImageUploadRequest,
    TaxInfoUpdate,
)
from core.models.catalog import (
    BusinessAddonUpdate,
    BusinessServiceCreate,
    BusinessServiceUpdate,
    ServiceStatusFilter,
)
from core.services.business_service import BusinessService
from core.services.catalog_service import CatalogService
from core.services.category_service import CategoryAssociationService
from core.services.document_service import DocumentService
from core.services.tax_service import TaxInfoService

router = APIRouter()

BusinessIdQuery = Annotated[str | None, Query(description="Business UUID")]


def require_business_id(business_id: str | None, access: OnboardingAccess) -> str:
    """
    Raises:
        MissingFieldsError: No business_id
        ForbiddenError: Phase 2 token for another business
    """
    if not business_id:
        raise MissingFieldsError(["business_id"])
    access.ensure_business(business_id)
    return business_id


# =============================================================================
# Hours
# =============================================================================

@router.get("/hours")
async def get_business_hours(
    business_id: BusinessIdQuery = None,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    return BusinessService.get_hours(require_business_id(business_id, access))


@router.put("/hours")
async def update_business_hours(
    request: BusinessHoursUpdate,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """Replace the weekly hours. Body uses frontend format (lowercase days)."""
    missing = missing_fields(request.model_dump(), ["business_id", "business_hours"])
    if missing:
        raise MissingFieldsError(["business_id", "business_hours"], missing)
    business_id = require_business_id(request.business_id, access)
    return BusinessService.update_hours(business_id, request.business_hours)


# =============================================================================
# Tax Info
# =============================================================================

@router.get("/tax-info")
async def get_tax_info(
    business_id: BusinessIdQuery = None,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    return TaxInfoService.get_tax_info(require_business_id(business_id, access))


@router.put("/tax-info")
async def save_tax_info(
    request: TaxInfoUpdate,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    access.ensure_business(request.business_id)
    return TaxInfoService.save_tax_info(request.model_dump())


# =============================================================================
# Services
# =============================================================================

@router.get("/services")
async def list_business_services(
    business_id: BusinessIdQuery = None,
    page: Annotated[int, Query(description="Page number")] = 1,
    limit: Annotated[int, Query(description="Items per page (max 100)")] = 25,
    status: Annotated[ServiceStatusFilter | None, Query(description="active or inactive")] = None,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """Services the business offers, with catalogue details and stats."""
    return CatalogService.list_business_services(
        require_business_id(business_id, access), page=page, limit=limit, status=status
    )


@router.post("/services")
async def add_business_service(
    request: BusinessServiceCreate,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    access.ensure_business(request.business_id)
    return CatalogService.add_business_service(request.model_dump(mode="json"))


@router.put("/services")
async def update_business_service(
    request: BusinessServiceUpdate,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    access.ensure_business(request.business_id)
    return CatalogService.update_business_service(request.model_dump(mode="json"))


@router.delete("/services")
async def remove_business_service(
    business_id: BusinessIdQuery = None,
    service_id: Annotated[str | None, Query(description="Catalogue service UUID")] = None,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """Stop offering a service. Refused while it has open bookings."""
    missing = missing_fields({"business_id": business_id, "service_id": service_id}, ["business_id", "service_id"])
    if missing:
        raise MissingFieldsError(["business_id", "service_id"], missing)
    access.ensure_business(business_id)
    return CatalogService.remove_business_service(business_id, service_id)


@router.get("/service-eligibility")
async def get_service_eligibility(
    business_id: BusinessIdQuery = None,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """Approved categories and subcategories, grouped for the pricing step."""
    return CatalogService.get_service_eligibility(require_business_id(business_id, access))


@router.get("/eligible-services")
async def list_eligible_services(
    business_id: BusinessIdQuery = None,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """Catalogue services and add-ons the business may offer."""
    business_id = require_business_id(business_id, access)
    services = CatalogService.list_eligible_services(business_id)
    addons = CatalogService.list_eligible_addons(business_id)
    return {
        **services,
        "addon_count": addons["addon_count"],
        "eligible_addons": addons["eligible_addons"],
    }


# =============================================================================
# Add-ons
# =============================================================================

@router.get("/addons")
async def list_business_addons(
    business_id: BusinessIdQuery = None,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    return CatalogService.list_eligible_addons(require_business_id(business_id, access))


@router.put("/addons")
async def upsert_business_addon(
    request: BusinessAddonUpdate,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    access.ensure_business(request.business_id)
    return CatalogService.upsert_business_addon(request.model_dump())


# =============================================================================
# Service Categories
# =============================================================================

@router.get("/service-categories")
async def get_service_categories(
    business_id: BusinessIdQuery = None,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    return CategoryAssociationService.get_associations(require_business_id(business_id, access))


@router.put("/service-categories")
async def replace_service_categories(
    request: CategoryAssociationUpdate,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """
    Replace the business's categories and subcategories.

    A failed rewrite restores the previous associations.
    """
    business_id = require_business_id(request.business_id, access)
    CategoryAssociationService.replace_associations(
        business_id, request.category_ids, request.subcategory_ids
    )
    return {"success": True, **CategoryAssociationService.get_associations(business_id)}


# =============================================================================
# Images
# =============================================================================

@router.post("/images/upload")
async def upload_business_image(
    request: ImageUploadRequest,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """Upload a logo or cover image (base64 or data URL)."""
    required = ["business_id", "image_type", "file_data"]
    missing = missing_fields(request.model_dump(), required)
    if missing:
        raise MissingFieldsError(required, missing)
    access.ensure_business(request.business_id)
    return BusinessService.upload_image(
        request.business_id,
        request.image_type,
        request.file_data,
        content_type=request.content_type,
    )


# =============================================================================
# Documents
# =============================================================================

@router.get("/documents")
async def list_business_documents(
    business_id: BusinessIdQuery = None,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    business_id = require_business_id(business_id, access)
    return {"business_id": business_id, "documents": DocumentService.list_documents(business_id=business_id)}


@router.post("/documents")
async def register_business_document(
    request: DocumentCreate,
    access: OnboardingAccess = Depends(get_onboarding_access),
):
    """Record a document the portal already uploaded to storage."""
    required = ["business_id", "document_type", "document_name", "file_url"]
    missing = missing_fields(request.model_dump(), required)
    if missing:
        raise MissingFieldsError(required, missing)
    access.ensure_business(request.business_id)
    document = DocumentService.create_document(
        request.business_id,
        request.document_type,
        request.document_name,
        request.file_url,
        file_size_bytes=request.file_size_bytes,
    )
    return {"success": True, "document": document}
