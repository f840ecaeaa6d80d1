# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .admin_service import AdminService
from .approval_service import ApprovalService, MissingOwnerError
from .business_service import BusinessService
from .catalog_service import CatalogService
from .category_service import CategoryAssociationService
from .document_service import DocumentService
from .enum_service import EnumService
from .onboarding_service import OnboardingService
from .plaid_service import PlaidService
from .setup_progress_service import SetupProgressService
from .storage_service import StorageService
from .stripe_service import StripeConnectService
from .tax_service import TaxInfoService

__all__ = [
    "AdminService",
    "ApprovalService",
    "MissingOwnerError",
    "BusinessService",
    "CatalogService",
    "CategoryAssociationService",
    "DocumentService",
    "EnumService",
    "OnboardingService",
    "PlaidService",
    "SetupProgressService",
    "StorageService",
    "StripeConnectService",
    "TaxInfoService",
]
