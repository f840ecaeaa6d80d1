# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the marketplace business logic:
# - models/: Pydantic schemas and enums for requests and domain values
# - services/: Supabase, Stripe and Plaid operations behind each endpoint
#
# Services raise app.exceptions errors and never build HTTP responses
# themselves, so they can be tested without the web layer.
# =============================================================================
