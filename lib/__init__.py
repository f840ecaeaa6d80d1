# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Typed Supabase wrapper for database operations
# - plaid_client.py: Plaid REST client over httpx
# - business_hours.py: Business hours format conversion and validation
# - tokens.py: Phase 2 onboarding tokens
# - utils.py: Shared helpers (UUIDs, timestamps, required fields)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.business_hours import InvalidBusinessHoursError, db_to_frontend, frontend_to_db
from lib.utils import missing_fields, normalize_uuid

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Business hours
    "InvalidBusinessHoursError",
    "db_to_frontend",
    "frontend_to_db",
    # Utils
    "missing_fields",
    "normalize_uuid",
]
